"""
familymem - export, import and reconcile AI family member memories

Moves memory collections between a memory store (local SQL database or a
Mem0 API) and portable JSON/CSV files.
"""

__version__ = "1.0.0"

# Configuration system
from .config import (
    ConfigManager,
    DatabaseSettings,
    ExportSettings,
    FamilyMemSettings,
    ImportSettings,
    LoggingSettings,
    Mem0Settings,
)

# Core components
from .core.memory import FamilyMemory
from .core.progress import ProgressReporter
from .core.store import MemoryStore

# Pipelines and stores
from .database import (
    ExportManager,
    ImportManager,
    SQLAlchemyDatabaseManager,
    SQLAlchemyMemoryStore,
)
from .integrations import Mem0Client

# Utils and models
from .utils import (
    ConfigurationError,
    DateRange,
    DuplicateMatch,
    EmptyInputError,
    ExportArtifact,
    ExportFilter,
    ExportFormat,
    FamilyMemError,
    FormatError,
    ImportMode,
    ImportOptions,
    ImportOutcome,
    InvalidRecordsError,
    LoggingManager,
    MalformedJsonError,
    MalformedStructureError,
    MemoryRecord,
    MemoryType,
    NoMatchingRecordsError,
    NoValidRecordsError,
    StoreError,
    UnsupportedFormatError,
    ValidationError,
    get_logger,
)

__all__ = [
    # Core
    "FamilyMemory",
    "MemoryStore",
    "ProgressReporter",
    "ExportManager",
    "ImportManager",
    # Stores
    "SQLAlchemyDatabaseManager",
    "SQLAlchemyMemoryStore",
    "Mem0Client",
    # Configuration
    "ConfigManager",
    "FamilyMemSettings",
    "DatabaseSettings",
    "Mem0Settings",
    "ImportSettings",
    "ExportSettings",
    "LoggingSettings",
    # Models
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
    # Logging
    "LoggingManager",
    "get_logger",
]
