"""
Export/Import functionality for familymem memory collections.

Exports a collection of memory records to JSON (compact or pretty, wrapped
in a versioned envelope) or CSV, and imports JSON/CSV files back through a
memory store, reconciling them with the existing collection.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

from loguru import logger

from ..core.csv_codec import CSV_FIELDS, decode, encode
from ..core.normalizer import (
    apply_row_defaults,
    import_id_factory,
    resolve_import_text,
)
from ..core.progress import ProgressReporter
from ..utils.exceptions import (
    ConfigurationError,
    EmptyInputError,
    FamilyMemError,
    MalformedJsonError,
    MalformedStructureError,
    NoMatchingRecordsError,
    NoValidRecordsError,
    InvalidRecordsError,
    StoreError,
    UnsupportedFormatError,
    ValidationError,
)
from ..utils.helpers import DateTimeUtils, StringUtils
from ..utils.pydantic_models import (
    DateRange,
    ExportArtifact,
    ExportFilter,
    ExportFormat,
    ImportMode,
    ImportOptions,
    ImportOutcome,
    MemoryRecord,
    MemoryType,
)

ENVELOPE_VERSION = "1.0"
ERROR_TEXT_LENGTH = 30


def export_filename(extension: str, when: Optional[datetime] = None) -> str:
    """mem0-export-<YYYY-MM-DD>.<extension>"""
    when = when or DateTimeUtils.now()
    return f"mem0-export-{DateTimeUtils.format_date(when)}.{extension}"


def _audit_event(action: str, details: Dict[str, Any]) -> None:
    """Emit audit log entry"""
    logger.info(f"[AUDIT] {action}: {details}")


class ExportManager:
    """Manages export operations for memory collections"""

    def __init__(self, source: str = "mem0-dashboard"):
        """
        Initialize ExportManager.

        Args:
            source: Tag written to the envelope's "source" field
        """
        self.source = source

    def export(
        self,
        records: Sequence[MemoryRecord],
        filter: Optional[ExportFilter] = None,
        format: str = "json",
        source: Optional[str] = None,
        progress: Optional[ProgressReporter] = None,
        audit_logging: bool = True,
    ) -> ExportArtifact:
        """
        Export memories to a downloadable artifact.

        Args:
            records: Normalized memory records
            filter: Type and date criteria (defaults to everything)
            format: Export format (json, json-pretty, csv)
            source: Override for the envelope source tag
            progress: Optional reporter for step/percent updates
            audit_logging: Emit audit log entries for this export

        Returns:
            ExportArtifact with content, MIME type, extension and file name

        Raises:
            UnsupportedFormatError: unknown format
            EmptyInputError: there are no records at all
            NoMatchingRecordsError: no record survives the filters
        """
        progress = progress or ProgressReporter()
        progress.reset()
        export_filter = filter or ExportFilter()

        try:
            export_format = self._resolve_format(format)
            self._validate_pre_export(records, export_filter)

            if audit_logging:
                _audit_event(
                    "export_started",
                    {
                        "format": export_format.value,
                        "records": len(records),
                        "types": sorted(t.value for t in export_filter.types),
                    },
                )

            progress.advance("Preparing export", 10)
            now = DateTimeUtils.now()
            selected: List[MemoryRecord] = list(records)

            progress.advance("Filtering by type", 25)
            selected = self._filter_by_type(selected, export_filter)

            progress.advance("Filtering by date range", 40)
            selected = self._filter_by_date(selected, export_filter.date_range, now)

            if not selected:
                raise NoMatchingRecordsError(
                    "No memories match the selected filters",
                    context={"total": len(records)},
                )

            progress.advance("Formatting export data", 60)
            if export_format == ExportFormat.CSV:
                content = encode(selected, CSV_FIELDS)
            else:
                content = self._serialize_json(
                    selected,
                    export_filter,
                    source or self.source,
                    now,
                    pretty=export_format == ExportFormat.JSON_PRETTY,
                )

            progress.advance("Preparing file", 85)
            artifact = ExportArtifact(
                content=content,
                mime_type=export_format.mime_type,
                extension=export_format.extension,
                filename=export_filename(export_format.extension, now),
                record_count=len(selected),
            )
            progress.advance("Export complete", 100)

        except FamilyMemError as e:
            progress.add_error(e.message)
            logger.error(f"Export failed: {e.message}")
            raise

        if audit_logging:
            _audit_event(
                "export_completed",
                {
                    "format": export_format.value,
                    "filename": artifact.filename,
                    "record_count": artifact.record_count,
                },
            )

        return artifact

    def export_to_path(
        self,
        records: Sequence[MemoryRecord],
        output_dir: str = ".",
        **kwargs: Any,
    ) -> Path:
        """Export and write the artifact into output_dir"""
        artifact = self.export(records, **kwargs)
        path = artifact.write(output_dir)
        logger.info(f"Exported {artifact.record_count} memories to {path}")
        return path

    def _resolve_format(self, format: Any) -> ExportFormat:
        try:
            return ExportFormat(str(getattr(format, "value", format)).lower())
        except ValueError:
            raise UnsupportedFormatError(
                str(format), supported=tuple(f.value for f in ExportFormat)
            )

    def _validate_pre_export(
        self, records: Sequence[MemoryRecord], export_filter: ExportFilter
    ) -> None:
        """Validate pre-export conditions"""
        if not records:
            raise EmptyInputError("No memories to export")

        date_range = export_filter.date_range
        if date_range.start and date_range.end and date_range.start > date_range.end:
            raise ValidationError("Export start date must be before end date")

    def _filter_by_type(
        self, records: List[MemoryRecord], export_filter: ExportFilter
    ) -> List[MemoryRecord]:
        if export_filter.covers_all_types:
            return records
        return [record for record in records if record.type in export_filter.types]

    def _filter_by_date(
        self, records: List[MemoryRecord], date_range: DateRange, now: datetime
    ) -> List[MemoryRecord]:
        if date_range.is_unbounded:
            return records

        start = date_range.start or DateTimeUtils.EPOCH
        end = date_range.end or now
        selected = []
        for record in records:
            created = DateTimeUtils.parse_timestamp(record.created_at) or now
            if start <= created <= end:
                selected.append(record)
        return selected

    def _serialize_json(
        self,
        records: List[MemoryRecord],
        export_filter: ExportFilter,
        source: str,
        now: datetime,
        pretty: bool,
    ) -> str:
        date_range = export_filter.date_range
        envelope = {
            "version": ENVELOPE_VERSION,
            "exported_at": DateTimeUtils.to_iso(now),
            "source": source,
            "total_memories": len(records),
            "filters": {
                "types": [t.value for t in MemoryType if t in export_filter.types],
                "date_range": {
                    "start": DateTimeUtils.to_iso(date_range.start)
                    if date_range.start
                    else None,
                    "end": DateTimeUtils.to_iso(date_range.end)
                    if date_range.end
                    else None,
                },
            },
            "memories": [record.to_export_dict() for record in records],
        }
        if pretty:
            return json.dumps(envelope, indent=2, ensure_ascii=False)
        return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


class ImportManager:
    """Manages import operations into a memory store"""

    SUPPORTED_EXTENSIONS = ("json", "csv")

    def import_data(
        self,
        file_name: str,
        file_content: str | bytes,
        existing: Iterable[Any],
        options: Optional[ImportOptions] = None,
        store: Optional[Callable[[str], bool]] = None,
        clear_existing: Optional[Callable[[], bool]] = None,
        progress: Optional[ProgressReporter] = None,
        validate_only: bool = False,
        audit_logging: bool = True,
    ) -> ImportOutcome:
        """
        Import memories from file content.

        Args:
            file_name: Name of the uploaded file; its extension picks the parser
            file_content: Raw file text
            existing: Current collection, used to seed duplicate detection
            options: Import options (mode, duplicate and validation policy)
            store: Persists one memory text, returns True on success
            clear_existing: Empties the destination; required for replace mode
            progress: Optional reporter for step/percent/error updates
            validate_only: Stop after validation without persisting anything
            audit_logging: Emit audit log entries for import events

        Returns:
            ImportOutcome summary. Partial failures are reported here, never
            raised.

        Raises:
            ValidationError subclasses for structural problems, and
            ConfigurationError/StoreError when replace mode cannot clear.
            All of them are raised before any memory is stored.
        """
        options = options or ImportOptions()
        progress = progress or ProgressReporter()
        progress.reset()

        try:
            progress.advance("Validating file format", 5)
            import_format = self._detect_format(file_name)

            progress.advance("Parsing file", 15)
            text = self._decode_content(file_content)
            if import_format == "json":
                records = self._parse_json(text)
            else:
                records = self._parse_csv(text)

            if not records:
                raise NoValidRecordsError("No valid memories found in file")

            progress.advance("Validating records", 35)
            if options.validate_before_import:
                self._validate_records(records)

            if validate_only:
                progress.advance("Validation complete", 100)
                return ImportOutcome(
                    total=len(records),
                    mode=options.import_mode,
                    validated_only=True,
                )

            if store is None:
                raise ConfigurationError("A store callable is required to import")

            if audit_logging:
                _audit_event(
                    "import_started",
                    {
                        "file": file_name,
                        "format": import_format,
                        "records": len(records),
                        "mode": options.import_mode.value,
                        "skip_duplicates": options.skip_duplicates,
                    },
                )

            if options.import_mode == ImportMode.REPLACE:
                progress.advance("Clearing existing memories", 45)
                self._clear_existing(clear_existing)

        except FamilyMemError as e:
            progress.add_error(e.message)
            logger.error(f"Import of {file_name} failed: {e.message}")
            raise

        outcome = self._persist(records, existing, options, store, progress)

        if audit_logging:
            _audit_event(
                "import_completed",
                {
                    "file": file_name,
                    "total": outcome.total,
                    "imported": outcome.success_count,
                    "failed": outcome.failed_count,
                    "cancelled": outcome.cancelled,
                },
            )

        return outcome

    def import_file(self, import_path: str | Path, *args: Any, **kwargs: Any) -> ImportOutcome:
        """Read a file from disk and import it"""
        path = Path(import_path)
        if not path.exists():
            raise ValidationError(f"Import file not found: {import_path}")
        self._detect_format(path.name)
        return self.import_data(path.name, path.read_bytes(), *args, **kwargs)

    def _detect_format(self, file_name: str) -> str:
        """Map the file extension onto a parser"""
        extension = Path(file_name or "").suffix.lower().lstrip(".")
        if extension not in self.SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(extension, supported=self.SUPPORTED_EXTENSIONS)
        return extension

    def _decode_content(self, file_content: str | bytes) -> str:
        if isinstance(file_content, bytes):
            try:
                return file_content.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ValidationError(f"File is not valid UTF-8 text: {e}", cause=e)
        return file_content

    def _parse_json(self, text: str) -> List[Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedJsonError(f"Invalid JSON file: {e}", cause=e)

        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("memories"), list):
            if data.get("version") and data["version"] != ENVELOPE_VERSION:
                logger.warning(
                    f"Export version mismatch: {data['version']} != {ENVELOPE_VERSION}"
                )
            return data["memories"]

        raise MalformedStructureError(
            'Invalid JSON format: expected an array of memories or an object '
            'with a "memories" array'
        )

    def _parse_csv(self, text: str) -> List[Dict[str, Any]]:
        rows = decode(text)
        factory = import_id_factory()
        return [apply_row_defaults(row, index, factory) for index, row in enumerate(rows)]

    def _validate_records(self, records: List[Any]) -> None:
        invalid = sum(1 for record in records if not resolve_import_text(record))
        if invalid:
            raise InvalidRecordsError(invalid, len(records))

    def _clear_existing(self, clear_existing: Optional[Callable[[], bool]]) -> None:
        if clear_existing is None:
            raise ConfigurationError(
                "Replace mode requires a way to clear existing memories"
            )
        try:
            cleared = clear_existing()
        except Exception as e:
            raise StoreError(f"Failed to clear existing memories: {e}", cause=e)
        if cleared is False:
            raise StoreError("Failed to clear existing memories")
        logger.info("Cleared existing memories before replace import")

    def _seed_duplicates(
        self, existing: Iterable[Any], options: ImportOptions
    ) -> Set[str]:
        if options.import_mode == ImportMode.REPLACE:
            return set()
        seen: Set[str] = set()
        for record in existing:
            if isinstance(record, MemoryRecord):
                text = record.text
            else:
                text = resolve_import_text(record)
            if text:
                seen.add(options.duplicate_match.key(text))
        return seen

    def _persist(
        self,
        records: List[Any],
        existing: Iterable[Any],
        options: ImportOptions,
        store: Callable[[str], bool],
        progress: ProgressReporter,
    ) -> ImportOutcome:
        """Store records one at a time, collecting per-record failures"""
        seen = self._seed_duplicates(existing, options) if options.skip_duplicates else set()
        total = len(records)
        success_count = 0
        errors: List[str] = []
        cancelled = False

        def fail(message: str) -> None:
            errors.append(message)
            progress.add_error(message)
            logger.debug(message)

        progress.advance("Importing memories", 50)

        for index, record in enumerate(records):
            if progress.cancelled:
                cancelled = True
                logger.warning(f"Import cancelled after {index} of {total} memories")
                break

            text = resolve_import_text(record)
            if not text:
                fail(f"Memory at index {index} has no content")
            else:
                key = options.duplicate_match.key(text)
                preview = StringUtils.truncate_text(text, ERROR_TEXT_LENGTH)
                if options.skip_duplicates and key in seen:
                    fail(f"Skipped duplicate: {preview}")
                else:
                    try:
                        stored = store(text)
                    except Exception as e:
                        fail(f"Error importing {preview}: {e}")
                    else:
                        if stored:
                            success_count += 1
                            if options.skip_duplicates:
                                seen.add(key)
                        else:
                            fail(f"Failed to import: {preview}")

            progress.set_percent(50 + int((index + 1) / total * 40))

        progress.advance("Finalizing import", 95)
        outcome = ImportOutcome(
            total=total,
            success_count=success_count,
            failed_count=len(errors),
            errors=tuple(errors),
            mode=options.import_mode,
            cancelled=cancelled,
        )
        progress.advance("Import complete", 100)
        logger.info(outcome.summary())
        return outcome
