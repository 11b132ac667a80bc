"""
Core record handling: normalization, CSV codec, progress and store protocol

FamilyMemory lives in familymem.core.memory and is exported from the
top-level package.
"""

from .csv_codec import CSV_FIELDS
from .normalizer import normalize_record, normalize_records, sample_memories
from .progress import ProgressReporter
from .store import MemoryStore, bind_store

__all__ = [
    "CSV_FIELDS",
    "normalize_record",
    "normalize_records",
    "sample_memories",
    "ProgressReporter",
    "MemoryStore",
    "bind_store",
]
