"""
Exception hierarchy for familymem

Structural failures (bad file, bad shape, nothing to import or export) are
raised as subclasses of ValidationError before any memory is written.
Per-record problems during an import are never raised; they are collected in
the ImportOutcome instead.
"""

from typing import Any, Dict, Optional


class FamilyMemError(Exception):
    """Base exception for all familymem errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a serializable dictionary"""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(FamilyMemError):
    """Invalid or missing configuration"""


class StoreError(FamilyMemError):
    """Memory store operation failed in a way the caller must see"""


class ValidationError(FamilyMemError):
    """Input data failed validation"""


class UnsupportedFormatError(ValidationError):
    """File extension or export format is not json/csv"""

    def __init__(self, format_name: str, supported: tuple = ("json", "csv")):
        super().__init__(
            f"Unsupported format: {format_name or '<none>'}. "
            f"Supported formats: {', '.join(supported)}",
            context={"format": format_name, "supported": list(supported)},
        )
        self.format_name = format_name


class MalformedJsonError(ValidationError):
    """Import file is not valid JSON"""


class MalformedStructureError(ValidationError):
    """JSON parsed but is neither a list nor an object with a memories list"""


class NoValidRecordsError(ValidationError):
    """Import file parsed to zero records"""


class InvalidRecordsError(ValidationError):
    """Pre-import validation found records without content"""

    def __init__(self, invalid_count: int, total: int):
        super().__init__(
            f"Validation failed: {invalid_count} of {total} memories have no content",
            context={"invalid_count": invalid_count, "total": total},
        )
        self.invalid_count = invalid_count
        self.total = total


class EmptyInputError(ValidationError):
    """There is nothing to export"""


class NoMatchingRecordsError(EmptyInputError):
    """Memories exist but none match the export filters"""


class FormatError(ValidationError):
    """CSV text is structurally invalid"""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message, context={"line_number": line_number})
        self.line_number = line_number
