"""
FamilyMemory - one user's memories for one AI family member

Binds a MemoryStore to a (user_id, family) pair and runs the export and
import pipelines against it with defaults taken from FamilyMemSettings.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from ..config.settings import FamilyMemSettings
from ..database.export_import import ExportManager, ImportManager
from ..utils.exceptions import ValidationError
from ..utils.logging import get_logger
from ..utils.pydantic_models import (
    DateRange,
    ExportArtifact,
    ExportFilter,
    ImportOptions,
    ImportOutcome,
    MemoryRecord,
    MemoryType,
)
from .normalizer import normalize_records, sample_memories
from .progress import ProgressReporter
from .store import MemoryStore, bind_store

logger = get_logger("familymem.memory")


class FamilyMemory:
    """Export/import facade over a memory store"""

    def __init__(
        self,
        store: MemoryStore,
        user_id: Optional[str] = None,
        family: Optional[str] = None,
        settings: Optional[FamilyMemSettings] = None,
    ):
        self.settings = settings or FamilyMemSettings()
        self.store = store
        self.user_id = user_id or self.settings.user_id
        self.family = family or self.settings.family
        self.export_manager = ExportManager(source=self.settings.exports.source)
        self.import_manager = ImportManager()

    def load_memories(
        self,
        limit: Optional[int] = None,
        fallback: Optional[Callable[[], List[MemoryRecord]]] = None,
    ) -> List[MemoryRecord]:
        """
        Fetch and normalize the current collection.

        Without a limit (here or in ``exports.load_limit``) the whole
        collection is loaded. A capped load that comes back full is logged
        as truncated, since older memories were left out.

        When the store answers with something other than a list, the
        fallback collection is returned instead (sample memories unless
        another fallback is given). An empty list is a real, empty
        collection and is returned as-is.
        """
        if limit is None:
            limit = self.settings.exports.load_limit
        records = self._fetch(limit, fallback or sample_memories)
        if limit is not None and len(records) >= limit:
            logger.warning(
                f"Loaded {len(records)} memories for {self.user_id}/{self.family}, "
                f"the load limit of {limit}; older memories were not included"
            )
        return records

    def _fetch(
        self, limit: Optional[int], fallback: Callable[[], List[MemoryRecord]]
    ) -> List[MemoryRecord]:
        raw = self.store.get_memories(self.user_id, self.family, limit)
        try:
            return normalize_records(raw)
        except TypeError:
            logger.warning(
                f"Store returned {type(raw).__name__} instead of a memory list, "
                "using fallback memories"
            )
            return fallback()

    def default_import_options(self) -> ImportOptions:
        return ImportOptions(**self.settings.imports.model_dump())

    def export(
        self,
        format: Any = None,
        types: Optional[Iterable[Any]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        progress: Optional[ProgressReporter] = None,
        records: Optional[List[MemoryRecord]] = None,
    ) -> ExportArtifact:
        """Export the collection (or the given records) with optional filters"""
        if records is None:
            records = self.load_memories()

        export_filter = ExportFilter(date_range=DateRange(start=start, end=end))
        if types is not None:
            export_filter = ExportFilter(
                types={MemoryType(t) for t in types},
                date_range=export_filter.date_range,
            )

        return self.export_manager.export(
            records,
            filter=export_filter,
            format=format or self.settings.exports.default_format,
            progress=progress,
        )

    def export_to_path(self, output_dir: Optional[str] = None, **kwargs: Any) -> Path:
        artifact = self.export(**kwargs)
        path = artifact.write(output_dir or self.settings.exports.output_dir)
        logger.info(f"Exported {artifact.record_count} memories to {path}")
        return path

    def import_text(
        self,
        file_name: str,
        content: str | bytes,
        options: Optional[ImportOptions] = None,
        progress: Optional[ProgressReporter] = None,
        validate_only: bool = False,
    ) -> ImportOutcome:
        """Import file content into the bound store"""
        store_fn, clear_fn = bind_store(self.store, self.user_id, self.family)
        # Duplicate detection needs every stored memory, not the export cap
        existing = self._fetch(None, list)
        return self.import_manager.import_data(
            file_name,
            content,
            existing,
            options=options or self.default_import_options(),
            store=store_fn,
            clear_existing=clear_fn,
            progress=progress,
            validate_only=validate_only,
        )

    def import_file(
        self,
        path: str | Path,
        options: Optional[ImportOptions] = None,
        progress: Optional[ProgressReporter] = None,
        validate_only: bool = False,
    ) -> ImportOutcome:
        path = Path(path)
        if not path.exists():
            raise ValidationError(f"Import file not found: {path}")
        return self.import_text(
            path.name,
            path.read_bytes(),
            options=options,
            progress=progress,
            validate_only=validate_only,
        )

    def search(self, query: str, limit: int = 10) -> List[MemoryRecord]:
        raw = self.store.search_memories(self.user_id, self.family, query, limit)
        if not isinstance(raw, list):
            return []
        return normalize_records(raw)
