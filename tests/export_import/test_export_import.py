import json
import re
from datetime import datetime, timezone
from pathlib import Path

import pytest

from familymem.core.csv_codec import encode
from familymem.core.progress import ProgressReporter
from familymem.database.export_import import ExportManager, ImportManager
from familymem.utils.exceptions import (
    ConfigurationError,
    EmptyInputError,
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
from familymem.utils.pydantic_models import (
    DateRange,
    DuplicateMatch,
    ExportFilter,
    ImportMode,
    ImportOptions,
    MemoryType,
)
from tests.conftest import create_simple_memory


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _json_file(*texts: str) -> str:
    return json.dumps({"version": "1.0", "memories": [{"memory": t} for t in texts]})


def _csv_file(*texts: str) -> str:
    records = [
        create_simple_memory(t, record_id=str(i + 1)) for i, t in enumerate(texts)
    ]
    return encode(records)


class RecordingStore:
    """store(text) callable that remembers what it was given"""

    def __init__(self, result=True):
        self.result = result
        self.calls = []

    def __call__(self, text: str) -> bool:
        self.calls.append(text)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


# Export


def test_json_pretty_export_of_custom_records():
    records = [create_simple_memory(f"note {i}", record_id=f"c{i}") for i in range(3)]

    artifact = ExportManager().export(
        records,
        filter=ExportFilter(types={MemoryType.CUSTOM}),
        format="json-pretty",
    )

    payload = json.loads(artifact.content)
    assert len(payload["memories"]) == 3
    assert payload["total_memories"] == 3
    assert payload["version"] == "1.0"
    assert payload["source"] == "mem0-dashboard"
    assert payload["filters"]["types"] == ["custom"]
    assert payload["filters"]["date_range"] == {"start": None, "end": None}
    assert artifact.content.startswith('{\n  "version"')
    assert artifact.mime_type == "application/json"
    assert artifact.extension == "json"
    assert re.fullmatch(r"mem0-export-\d{4}-\d{2}-\d{2}\.json", artifact.filename)


def test_compact_json_export_has_no_whitespace(sample_records):
    artifact = ExportManager(source="unit-test").export(sample_records, format="json")

    assert "\n" not in artifact.content
    assert '"source":"unit-test"' in artifact.content
    payload = json.loads(artifact.content)
    assert [m["id"] for m in payload["memories"]] == ["r1", "r2", "r3", "r4"]
    assert payload["filters"]["types"] == [
        "file_operation",
        "search",
        "preference",
        "custom",
    ]


def test_csv_export_has_no_envelope(sample_records):
    artifact = ExportManager().export(sample_records, format="csv")

    lines = artifact.content.split("\n")
    assert lines[0] == '"id","memory","created_at","type"'
    assert lines[1] == '"r1","Opened budget.xlsx","2024-01-05T10:00:00.000Z","file_operation"'
    assert len(lines) == 5
    assert artifact.mime_type == "text/csv"
    assert artifact.filename.endswith(".csv")


def test_all_types_and_unbounded_range_keep_every_record_in_order(sample_records):
    artifact = ExportManager().export(
        sample_records, filter=ExportFilter(), format="json"
    )

    exported = json.loads(artifact.content)["memories"]
    assert exported == [r.to_export_dict() for r in sample_records]


def test_type_filter(sample_records):
    artifact = ExportManager().export(
        sample_records,
        filter=ExportFilter(types={MemoryType.PREFERENCE, MemoryType.SEARCH}),
        format="json",
    )

    exported = json.loads(artifact.content)["memories"]
    assert [m["id"] for m in exported] == ["r2", "r3"]
    assert artifact.record_count == 2


def test_date_filter_is_inclusive(sample_records):
    export_filter = ExportFilter(
        date_range=DateRange(start=_utc(2024, 2, 10, 10), end=_utc(2024, 3, 15, 10))
    )

    artifact = ExportManager().export(sample_records, filter=export_filter, format="json")

    payload = json.loads(artifact.content)
    assert [m["id"] for m in payload["memories"]] == ["r2", "r3"]
    assert payload["filters"]["date_range"]["start"] == "2024-02-10T10:00:00.000Z"


def test_open_ended_date_filter(sample_records):
    export_filter = ExportFilter(date_range=DateRange(start=_utc(2024, 3, 1)))

    artifact = ExportManager().export(sample_records, filter=export_filter, format="csv")

    assert artifact.record_count == 2


def test_empty_input_and_no_match_are_distinct(sample_records):
    with pytest.raises(EmptyInputError) as empty:
        ExportManager().export([], format="json")
    assert not isinstance(empty.value, NoMatchingRecordsError)
    assert empty.value.message == "No memories to export"

    progress = ProgressReporter()
    with pytest.raises(NoMatchingRecordsError) as no_match:
        ExportManager().export(
            sample_records,
            filter=ExportFilter(date_range=DateRange(start=_utc(2030, 1, 1))),
            progress=progress,
        )
    assert no_match.value.message == "No memories match the selected filters"
    assert progress.errors == ["No memories match the selected filters"]


def test_unsupported_export_format(sample_records):
    with pytest.raises(UnsupportedFormatError):
        ExportManager().export(sample_records, format="xml")


def test_inverted_date_range_is_rejected(sample_records):
    export_filter = ExportFilter(
        date_range=DateRange(start=_utc(2024, 5, 1), end=_utc(2024, 1, 1))
    )
    with pytest.raises(ValidationError):
        ExportManager().export(sample_records, filter=export_filter)


def test_export_progress_reaches_complete(sample_records):
    snapshots = []
    progress = ProgressReporter(on_update=snapshots.append)

    ExportManager().export(sample_records, progress=progress)

    percents = [s.percent for s in snapshots]
    assert percents == sorted(percents)
    assert "Filtering by type" in [s.step for s in snapshots]
    assert progress.step == "Export complete"
    assert progress.percent == 100


def test_export_to_path_writes_file(tmp_path: Path, sample_records):
    path = ExportManager().export_to_path(
        sample_records, output_dir=str(tmp_path / "out"), format="csv"
    )

    assert path.exists()
    assert path.parent == tmp_path / "out"
    assert path.read_text(encoding="utf-8").startswith('"id","memory"')


# Import


def test_ten_csv_rows_all_stored():
    store = RecordingStore()
    content = _csv_file(*[f"memory {i}" for i in range(10)])

    outcome = ImportManager().import_data("backup.csv", content, [], store=store)

    assert outcome.success_count == 10
    assert outcome.failed_count == 0
    assert outcome.total == 10
    assert outcome.errors == ()
    assert store.calls == [f"memory {i}" for i in range(10)]


def test_empty_memories_array_is_rejected():
    store = RecordingStore()
    with pytest.raises(NoValidRecordsError):
        ImportManager().import_data("backup.json", '{"memories": []}', [], store=store)
    assert store.calls == []


def test_bare_json_array_is_accepted():
    store = RecordingStore()
    content = json.dumps([{"text": "from text"}, {"content": "from content"}])

    outcome = ImportManager().import_data("list.JSON", content, [], store=store)

    assert outcome.success_count == 2
    assert store.calls == ["from text", "from content"]


def test_memory_field_wins_over_text_and_content():
    store = RecordingStore()
    content = json.dumps([{"memory": "m", "text": "t", "content": "c"}])

    ImportManager().import_data("a.json", content, [], store=store)

    assert store.calls == ["m"]


def test_unsupported_extension_fails_before_parsing():
    store = RecordingStore()
    with pytest.raises(UnsupportedFormatError):
        ImportManager().import_data("notes.txt", "not even json", [], store=store)
    with pytest.raises(UnsupportedFormatError):
        ImportManager().import_data("no_extension", "[]", [], store=store)
    assert store.calls == []


def test_malformed_json():
    with pytest.raises(MalformedJsonError):
        ImportManager().import_data("a.json", "{oops", [], store=RecordingStore())


def test_json_with_wrong_shape():
    for content in ('{"items": []}', '"just a string"', '{"memories": {"a": 1}}'):
        with pytest.raises(MalformedStructureError):
            ImportManager().import_data("a.json", content, [], store=RecordingStore())


def test_csv_without_memory_column():
    content = '"id","text"\n"1","hello"'
    with pytest.raises(FormatError):
        ImportManager().import_data("a.csv", content, [], store=RecordingStore())


def test_csv_bytes_with_bom():
    store = RecordingStore()
    content = ("\ufeff" + _csv_file("héllo")).encode("utf-8")

    outcome = ImportManager().import_data("a.csv", content, [], store=store)

    assert outcome.success_count == 1
    assert store.calls == ["héllo"]


def test_validation_gate_is_all_or_nothing():
    store = RecordingStore()
    content = json.dumps([{"memory": "ok"}, {"memory": ""}, {"id": "x"}])

    with pytest.raises(InvalidRecordsError) as exc_info:
        ImportManager().import_data("a.json", content, [], store=store)

    assert exc_info.value.invalid_count == 2
    assert exc_info.value.total == 3
    assert store.calls == []


def test_empty_record_is_a_non_fatal_failure():
    store = RecordingStore()
    content = json.dumps(
        [{"memory": "one"}, {"memory": "two"}, {"memory": ""}, {"memory": "four"}, {"memory": "five"}]
    )
    options = ImportOptions(validate_before_import=False)

    outcome = ImportManager().import_data("a.json", content, [], options=options, store=store)

    assert outcome.total == 5
    assert outcome.success_count == 4
    assert outcome.failed_count == 1
    assert outcome.errors == ("Memory at index 2 has no content",)
    with pytest.raises(AttributeError):
        outcome.errors.append("edited later")
    assert store.calls == ["one", "two", "four", "five"]
    assert outcome.summary() == "Imported 4, 1 failed"


def test_duplicates_are_skipped_without_calling_store():
    store = RecordingStore()
    existing = [create_simple_memory("already here")]
    content = _json_file("already here", "new one", "new one")

    outcome = ImportManager().import_data("a.json", content, existing, store=store)

    assert store.calls == ["new one"]
    assert outcome.success_count == 1
    assert outcome.failed_count == 2
    assert outcome.errors == (
        "Skipped duplicate: already here",
        "Skipped duplicate: new one",
    )


def test_duplicates_allowed_when_skip_disabled():
    store = RecordingStore()
    existing = [{"memory": "already here"}]
    options = ImportOptions(skip_duplicates=False, import_mode=ImportMode.APPEND)

    outcome = ImportManager().import_data(
        "a.json", _json_file("already here", "already here"), existing, options=options, store=store
    )

    assert outcome.success_count == 2
    assert store.calls == ["already here", "already here"]


def test_duplicate_match_modes():
    existing = [create_simple_memory("Dark Mode")]
    content = _json_file("  dark mode ")

    exact = ImportManager().import_data("a.json", content, existing, store=RecordingStore())
    assert exact.success_count == 1

    options = ImportOptions(duplicate_match=DuplicateMatch.CASE_INSENSITIVE)
    folded = ImportManager().import_data(
        "a.json", content, existing, options=options, store=RecordingStore()
    )
    assert folded.success_count == 0
    assert folded.errors == ("Skipped duplicate:   dark mode ",)


def test_store_failures_are_truncated_and_counted():
    long_text = "x" * 40
    failing = ImportManager().import_data(
        "a.json", _json_file(long_text), [], store=RecordingStore(result=False)
    )
    assert failing.errors == (f"Failed to import: {'x' * 30}...",)
    assert failing.failed_count == 1

    raising = ImportManager().import_data(
        "a.json", _json_file("short"), [], store=RecordingStore(result=RuntimeError("boom"))
    )
    assert raising.errors == ("Error importing short: boom",)
    assert raising.success_count == 0
    assert raising.has_failures


def test_replace_mode_clears_before_storing():
    events = []

    def store(text):
        events.append(("store", text))
        return True

    def clear():
        events.append(("clear", None))
        return True

    existing = [create_simple_memory("kept text")]
    options = ImportOptions(import_mode=ImportMode.REPLACE)

    outcome = ImportManager().import_data(
        "a.json", _json_file("kept text"), existing, options=options, store=store, clear_existing=clear
    )

    # Existing texts do not count as duplicates once the collection is cleared
    assert events == [("clear", None), ("store", "kept text")]
    assert outcome.success_count == 1
    assert outcome.mode == ImportMode.REPLACE


def test_replace_mode_requires_a_working_clear():
    options = ImportOptions(import_mode=ImportMode.REPLACE)
    store = RecordingStore()

    with pytest.raises(ConfigurationError):
        ImportManager().import_data("a.json", _json_file("a"), [], options=options, store=store)

    with pytest.raises(StoreError):
        ImportManager().import_data(
            "a.json", _json_file("a"), [], options=options, store=store, clear_existing=lambda: False
        )

    def broken_clear():
        raise RuntimeError("db down")

    with pytest.raises(StoreError):
        ImportManager().import_data(
            "a.json", _json_file("a"), [], options=options, store=store, clear_existing=broken_clear
        )

    assert store.calls == []


def test_missing_store_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        ImportManager().import_data("a.json", _json_file("a"), [])


def test_validate_only_does_not_persist():
    store = RecordingStore()

    outcome = ImportManager().import_data(
        "a.json", _json_file("a", "b"), [], store=store, validate_only=True
    )

    assert outcome.validated_only
    assert outcome.total == 2
    assert outcome.summary() == "Validated 2 memories"
    assert store.calls == []


def test_cancel_stops_before_next_record():
    progress = ProgressReporter()

    def store(text):
        if text == "b":
            progress.cancel()
        return True

    outcome = ImportManager().import_data(
        "a.json", _json_file("a", "b", "c", "d"), [], store=store, progress=progress
    )

    assert outcome.cancelled
    assert outcome.success_count == 2
    assert outcome.total == 4


def test_import_progress_is_monotonic_and_banded():
    snapshots = []
    progress = ProgressReporter(on_update=snapshots.append)

    ImportManager().import_data(
        "a.csv", _csv_file("a", "b", "c", "d"), [], store=RecordingStore(), progress=progress
    )

    percents = [s.percent for s in snapshots]
    assert percents == sorted(percents)
    assert 90 in percents
    steps = [s.step for s in snapshots]
    assert steps[0] == "Validating file format"
    assert "Importing memories" in steps
    assert steps[-1] == "Import complete"
    assert progress.percent == 100


def test_structural_error_is_reported_to_progress():
    progress = ProgressReporter()
    with pytest.raises(MalformedJsonError):
        ImportManager().import_data("a.json", "{", [], store=RecordingStore(), progress=progress)
    assert len(progress.errors) == 1
    assert progress.errors[0].startswith("Invalid JSON file")


def test_import_file_from_disk(tmp_path: Path):
    path = tmp_path / "backup.json"
    path.write_text(_json_file("from disk"), encoding="utf-8")
    store = RecordingStore()

    outcome = ImportManager().import_file(path, [], store=store)

    assert outcome.success_count == 1
    assert store.calls == ["from disk"]

    with pytest.raises(ValidationError):
        ImportManager().import_file(tmp_path / "missing.json", [], store=store)


def test_export_then_import_round_trip(sample_records):
    store = RecordingStore()
    for format in ("json", "json-pretty", "csv"):
        artifact = ExportManager().export(sample_records, format=format)
        store.calls.clear()

        outcome = ImportManager().import_data(artifact.filename, artifact.content, [], store=store)

        assert outcome.success_count == len(sample_records)
        assert store.calls == [r.memory for r in sample_records]
