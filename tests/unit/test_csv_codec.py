"""
Unit tests for the CSV codec used by exports and imports
"""

import pytest

from familymem.core.csv_codec import CSV_FIELDS, decode, encode, split_line
from familymem.utils.exceptions import FormatError
from tests.conftest import create_simple_memory


class TestEncode:
    def test_header_and_rows_are_fully_quoted(self):
        record = create_simple_memory("hello", record_id="1")

        text = encode([record])

        assert text == (
            '"id","memory","created_at","type"\n'
            '"1","hello","2024-01-01T00:00:00.000Z","custom"'
        )

    def test_embedded_quote_and_comma(self):
        record = create_simple_memory('a"b,c', record_id="1")

        text = encode([record], fields=("memory",))

        assert text.split("\n")[1] == '"a""b,c"'

    def test_mapping_rows_and_missing_fields(self):
        text = encode([{"memory": "only memory"}])

        assert text.split("\n")[1] == '"","only memory","",""'

    def test_fields_fixed_order(self):
        assert CSV_FIELDS == ("id", "memory", "created_at", "type")


class TestDecode:
    def test_quoted_header_cell(self):
        text = '"id,memory,created_at,type"\n"1","hello","2024-01-01T00:00:00.000Z","custom"'

        rows = decode(text)

        assert len(rows) == 1
        assert rows[0]["memory"] == "hello"
        assert rows[0]["type"] == "custom"

    def test_plain_header(self):
        rows = decode('id,memory\r\n1,hello\r\n2,"world, again"')

        assert rows == [
            {"id": "1", "memory": "hello"},
            {"id": "2", "memory": "world, again"},
        ]

    def test_escaped_quotes_round_trip(self):
        record = create_simple_memory('a"b,c', record_id="1")

        rows = decode(encode([record]))

        assert rows[0]["memory"] == 'a"b,c'

    def test_round_trip_of_several_records(self):
        records = [
            create_simple_memory("first", "search", record_id="1"),
            create_simple_memory('quote " inside', "preference", record_id="2"),
            create_simple_memory("comma, inside", "file_operation", record_id="3"),
        ]

        rows = decode(encode(records))

        assert rows == [
            {
                "id": r.id,
                "memory": r.memory,
                "created_at": r.created_at,
                "type": r.type.value,
            }
            for r in records
        ]

    def test_blank_lines_are_skipped(self):
        rows = decode('memory\n\n"a"\n   \n"b"\n')

        assert [row["memory"] for row in rows] == ["a", "b"]

    def test_header_only_is_rejected(self):
        with pytest.raises(FormatError):
            decode('"id","memory"')

    def test_empty_text_is_rejected(self):
        with pytest.raises(FormatError) as exc_info:
            decode("")
        assert exc_info.value.line_number == 1

    def test_missing_memory_column(self):
        for header in ('"id","text"', "content,type", '"Memory"'):
            with pytest.raises(FormatError) as exc_info:
                decode(f'{header}\n"1","2"')
            assert exc_info.value.line_number == 1

    def test_field_count_mismatch_names_line(self):
        text = 'id,memory\n1,a\n2,b\n3,c,extra'

        with pytest.raises(FormatError) as exc_info:
            decode(text)

        assert exc_info.value.line_number == 4
        assert "Line 4" in exc_info.value.message

    def test_too_few_fields(self):
        with pytest.raises(FormatError) as exc_info:
            decode('id,memory,type\n"1","a"')
        assert exc_info.value.line_number == 2

    def test_byte_order_mark_is_ignored(self):
        rows = decode('\ufeffmemory\n"hello"')

        assert rows == [{"memory": "hello"}]


def test_split_line_empty_fields():
    assert split_line(',"",x') == ["", "", "x"]
    assert split_line('"say ""hi"""') == ['say "hi"']
