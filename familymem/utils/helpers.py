"""
Helper utilities shared by the familymem pipelines
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional


class StringUtils:
    """String manipulation utilities"""

    @staticmethod
    def generate_id(prefix: str = "") -> str:
        """Generate a unique ID with optional prefix"""
        return f"{prefix}{uuid.uuid4()}"

    @staticmethod
    def random_suffix(length: int = 9) -> str:
        """Short random token used in generated memory ids"""
        return uuid.uuid4().hex[:length]

    @staticmethod
    def truncate_text(text: str, max_length: int = 30, suffix: str = "...") -> str:
        """Cut text to max_length characters and append suffix if it was cut"""
        if len(text) <= max_length:
            return text
        return text[:max_length] + suffix


class DateTimeUtils:
    """Timestamp parsing and formatting for memory records"""

    EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def now_ms() -> int:
        """Milliseconds since the epoch"""
        return int(time.time() * 1000)

    @staticmethod
    def to_iso(value: datetime) -> str:
        """Format as UTC ISO-8601 with millisecond precision and a Z suffix"""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

    @staticmethod
    def now_iso() -> str:
        return DateTimeUtils.to_iso(DateTimeUtils.now())

    @staticmethod
    def parse_timestamp(value: Any) -> Optional[datetime]:
        """
        Parse a timestamp from an ISO string, a datetime or epoch milliseconds.

        Returns a timezone-aware datetime, or None when the value cannot be
        interpreted. Naive values are taken to be UTC.
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text[-1] in ("Z", "z"):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def format_date(value: datetime) -> str:
        """YYYY-MM-DD in UTC"""
        return DateTimeUtils.to_iso(value).split("T")[0]
