"""
Best-effort coercion of raw memory objects into MemoryRecord instances.

Memories reach the dashboard from the Mem0 API, from older export files and
from hand-written CSV, so field names vary. Field priority:

    content     content -> memory -> text -> "Unknown memory"
    memory      memory -> content -> text -> "Unknown memory"
    created_at  parseable created_at -> now
    id          id -> generated
    type        known type -> custom
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..utils.helpers import DateTimeUtils, StringUtils
from ..utils.pydantic_models import MemoryRecord, MemoryType

FALLBACK_CONTENT = "Unknown memory"

IdFactory = Callable[[int], str]


def mock_id_factory(timestamp_ms: Optional[int] = None) -> IdFactory:
    """Ids of the form mock-<epoch-ms>-<random>"""
    stamp = timestamp_ms if timestamp_ms is not None else DateTimeUtils.now_ms()
    return lambda index: f"mock-{stamp}-{StringUtils.random_suffix()}"


def import_id_factory(timestamp_ms: Optional[int] = None) -> IdFactory:
    """Ids of the form import-<epoch-ms>-<row index>"""
    stamp = timestamp_ms if timestamp_ms is not None else DateTimeUtils.now_ms()
    return lambda index: f"import-{stamp}-{index}"


def _text_value(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def first_text(raw: Mapping[str, Any], fields: Sequence[str]) -> str:
    """First non-blank text value among fields, or an empty string"""
    for field in fields:
        value = _text_value(raw.get(field))
        if value.strip():
            return value
    return ""


def resolve_import_text(raw: Any) -> str:
    """Text an import would persist for this raw record (memory, text, content)"""
    if not isinstance(raw, Mapping):
        return ""
    return first_text(raw, ("memory", "text", "content"))


def normalize_timestamp(value: Any) -> str:
    """Keep a parseable ISO string as-is, convert other parseable values, else now"""
    parsed = DateTimeUtils.parse_timestamp(value)
    if parsed is None:
        return DateTimeUtils.now_iso()
    if isinstance(value, str):
        return value
    return DateTimeUtils.to_iso(parsed)


def _as_mapping(item: Any) -> Mapping[str, Any]:
    if isinstance(item, MemoryRecord):
        return item.to_export_dict()
    if isinstance(item, Mapping):
        return item
    if isinstance(item, str):
        return {"content": item}
    return {}


def normalize_record(
    item: Any, index: int = 0, id_factory: Optional[IdFactory] = None
) -> MemoryRecord:
    raw = _as_mapping(item)
    content = first_text(raw, ("content", "memory", "text")) or FALLBACK_CONTENT
    memory = first_text(raw, ("memory", "content", "text")) or FALLBACK_CONTENT

    record_id = _text_value(raw.get("id")).strip()
    if not record_id:
        record_id = (id_factory or mock_id_factory())(index)

    return MemoryRecord(
        id=record_id,
        content=content,
        memory=memory,
        created_at=normalize_timestamp(raw.get("created_at")),
        type=MemoryType.coerce(raw.get("type")),
    )


def normalize_records(
    raw: Sequence[Any], id_factory: Optional[IdFactory] = None
) -> List[MemoryRecord]:
    """
    Normalize a list of raw memory objects.

    Never raises for an individual malformed element. A missing collection
    (None or a non-list) is rejected: callers substitute their own fallback
    set instead of silently getting an empty list.
    """
    if raw is None or isinstance(raw, (str, bytes, Mapping)) or not isinstance(
        raw, Sequence
    ):
        raise TypeError(
            f"normalize_records expects a list of memories, got {type(raw).__name__}"
        )

    factory = id_factory or mock_id_factory()
    return [normalize_record(item, index, factory) for index, item in enumerate(raw)]


def apply_row_defaults(
    row: Mapping[str, Any], index: int, id_factory: Optional[IdFactory] = None
) -> Dict[str, Any]:
    """
    Fill id, created_at and type on a decoded CSV row.

    Content is left alone so that pre-import validation can still see rows
    without a memory.
    """
    record = dict(row)
    if not _text_value(record.get("id")).strip():
        record["id"] = (id_factory or import_id_factory())(index)
    record["created_at"] = normalize_timestamp(record.get("created_at"))
    record["type"] = MemoryType.coerce(record.get("type")).value
    return record


def sample_memories() -> List[MemoryRecord]:
    """Fallback collection shown when the memory store returns nothing usable"""
    now = DateTimeUtils.now_iso()
    factory = mock_id_factory()
    samples = [
        ("Opened project-plan.md in the file explorer", MemoryType.FILE_OPERATION),
        ("Searched for 'quarterly report'", MemoryType.SEARCH),
        ("Prefers dark mode and compact file lists", MemoryType.PREFERENCE),
        ("Remember to back up the family photo folder", MemoryType.CUSTOM),
    ]
    return [
        MemoryRecord(
            id=factory(index),
            content=text,
            memory=text,
            created_at=now,
            type=memory_type,
        )
        for index, (text, memory_type) in enumerate(samples)
    ]
