"""
Pydantic models for memory records and the import/export pipelines
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MemoryType(str, Enum):
    """Kinds of memories the dashboard records"""

    FILE_OPERATION = "file_operation"
    SEARCH = "search"
    PREFERENCE = "preference"
    CUSTOM = "custom"

    @classmethod
    def coerce(cls, value: Any) -> "MemoryType":
        """Map any raw value onto a known type, defaulting to custom"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.CUSTOM


class ImportMode(str, Enum):
    """How imported memories are reconciled with the existing collection"""

    MERGE = "merge"  # Keep existing, add new
    APPEND = "append"  # Keep existing, add everything
    REPLACE = "replace"  # Clear existing, then add


class ExportFormat(str, Enum):
    """Supported export formats"""

    JSON = "json"
    JSON_PRETTY = "json-pretty"
    CSV = "csv"

    @property
    def mime_type(self) -> str:
        return "text/csv" if self is ExportFormat.CSV else "application/json"

    @property
    def extension(self) -> str:
        return "csv" if self is ExportFormat.CSV else "json"


class DuplicateMatch(str, Enum):
    """How memory texts are compared when skipping duplicates"""

    EXACT = "exact"
    TRIMMED = "trimmed"
    CASE_INSENSITIVE = "case_insensitive"

    def key(self, text: str) -> str:
        if self is DuplicateMatch.TRIMMED:
            return text.strip()
        if self is DuplicateMatch.CASE_INSENSITIVE:
            return text.strip().casefold()
        return text


class MemoryRecord(BaseModel):
    """Canonical memory record"""

    id: str
    content: str
    memory: str
    created_at: str
    type: MemoryType = MemoryType.CUSTOM

    @property
    def text(self) -> str:
        return self.memory or self.content

    def to_export_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "memory": self.memory,
            "created_at": self.created_at,
            "type": self.type.value,
        }


class DateRange(BaseModel):
    """Inclusive date window; open ends are None"""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


class ExportFilter(BaseModel):
    """Criteria for one export call"""

    types: Set[MemoryType] = Field(default_factory=lambda: set(MemoryType))
    date_range: DateRange = Field(default_factory=DateRange)

    @property
    def covers_all_types(self) -> bool:
        return set(MemoryType) <= self.types


class ImportOptions(BaseModel):
    """Per-session import settings"""

    skip_duplicates: bool = True
    validate_before_import: bool = True
    import_mode: ImportMode = ImportMode.MERGE
    duplicate_match: DuplicateMatch = DuplicateMatch.EXACT


class ImportOutcome(BaseModel):
    """Final summary of an import run"""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    success_count: int = 0
    failed_count: int = 0
    errors: Tuple[str, ...] = ()
    mode: ImportMode = ImportMode.MERGE
    cancelled: bool = False
    validated_only: bool = False

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0

    def summary(self) -> str:
        if self.validated_only:
            return f"Validated {self.total} memories"
        if self.failed_count:
            return f"Imported {self.success_count}, {self.failed_count} failed"
        return f"Imported {self.success_count} memories"


class ExportArtifact(BaseModel):
    """Serialized export ready to be saved as a file"""

    model_config = ConfigDict(frozen=True)

    content: str
    mime_type: str
    extension: str
    filename: str
    record_count: int

    def write(self, directory: str | Path = ".") -> Path:
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_text(self.content, encoding="utf-8")
        return path


class ProgressSnapshot(BaseModel):
    """Point-in-time view of a ProgressReporter"""

    model_config = ConfigDict(frozen=True)

    step: str = ""
    percent: int = 0
    errors: Tuple[str, ...] = ()
    cancelled: bool = False
