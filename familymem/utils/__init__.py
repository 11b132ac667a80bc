"""Utils and models"""

from .exceptions import (
    ConfigurationError,
    EmptyInputError,
    FamilyMemError,
    FormatError,
    InvalidRecordsError,
    MalformedJsonError,
    MalformedStructureError,
    NoMatchingRecordsError,
    NoValidRecordsError,
    StoreError,
    UnsupportedFormatError,
    ValidationError,
)
from .helpers import DateTimeUtils, StringUtils
from .logging import LoggingManager, get_logger
from .pydantic_models import (
    DateRange,
    DuplicateMatch,
    ExportArtifact,
    ExportFilter,
    ExportFormat,
    ImportMode,
    ImportOptions,
    ImportOutcome,
    MemoryRecord,
    MemoryType,
    ProgressSnapshot,
)

__all__ = [
    # Exceptions
    "FamilyMemError",
    "ConfigurationError",
    "StoreError",
    "ValidationError",
    "UnsupportedFormatError",
    "MalformedJsonError",
    "MalformedStructureError",
    "NoValidRecordsError",
    "InvalidRecordsError",
    "EmptyInputError",
    "NoMatchingRecordsError",
    "FormatError",
    # Helpers
    "DateTimeUtils",
    "StringUtils",
    # Logging
    "LoggingManager",
    "get_logger",
    # Pydantic models
    "MemoryRecord",
    "MemoryType",
    "ImportMode",
    "ImportOptions",
    "ImportOutcome",
    "ExportFormat",
    "ExportFilter",
    "ExportArtifact",
    "DateRange",
    "DuplicateMatch",
    "ProgressSnapshot",
]
