"""
CSV encoding and decoding for memory exports.

Files are written with every field quoted. Reading is line based: a record
may not span lines, which keeps error messages pointing at the exact line of
a broken row.
"""

import csv
import io
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..utils.exceptions import FormatError
from ..utils.helpers import DateTimeUtils

CSV_FIELDS = ("id", "memory", "created_at", "type")
REQUIRED_COLUMN = "memory"

_LINE_BREAK = re.compile(r"\r?\n")


def _cell(record: Any, field: str) -> str:
    if isinstance(record, Mapping):
        value = record.get(field)
    else:
        value = getattr(record, field, None)

    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return DateTimeUtils.to_iso(value)
    return str(value)


def encode(records: Iterable[Any], fields: Sequence[str] = CSV_FIELDS) -> str:
    """Render records as CSV text, header first, one quoted line per record"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(fields)
    for record in records:
        writer.writerow([_cell(record, field) for field in fields])
    return buffer.getvalue().rstrip("\n")


def split_line(line: str) -> List[str]:
    """Split one CSV line into fields, honoring quotes and doubled quotes"""
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def decode(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into one dict per data row.

    The first line is the header and must name a "memory" column. Blank data
    lines are skipped. Values are returned as strings without coercion.

    Raises:
        FormatError: no header, no data rows, no memory column, or a row
            whose field count differs from the header's
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = _LINE_BREAK.split(text)
    if not lines[0].strip():
        raise FormatError("CSV file is missing a header row", line_number=1)
    if sum(1 for line in lines if line.strip()) < 2:
        raise FormatError(
            "CSV file must contain a header row and at least one data row"
        )

    header = split_line(lines[0])
    # Header written as a single quoted cell: "id,memory,created_at,type"
    if len(header) == 1 and "," in header[0]:
        header = header[0].split(",")
    header = [name.strip() for name in header]
    if REQUIRED_COLUMN not in header:
        raise FormatError(
            f'CSV header must include a "{REQUIRED_COLUMN}" column', line_number=1
        )

    rows: List[Dict[str, str]] = []
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = split_line(line)
        if len(values) != len(header):
            raise FormatError(
                f"Line {line_number} has {len(values)} fields, expected {len(header)}",
                line_number=line_number,
            )
        rows.append(dict(zip(header, values)))

    return rows
