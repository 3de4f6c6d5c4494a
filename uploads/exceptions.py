# uploads/exceptions.py
"""
Error taxonomy for the bulk upload pipeline.

Parsing errors are raised before anything is persisted. Per-row field
problems are collected as FieldValidationError values on the staged row and
never abort a batch. Everything raised during approve/reject rolls the whole
transaction back.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence


class UploadError(Exception):
    """Base class for pipeline errors surfaced to callers."""


class SchemaError(UploadError):
    """Malformed upload structure: unreadable file, missing sheet or columns."""

    def __init__(self, message: str, missing_columns: Sequence[str] = ()):
        self.missing_columns = list(missing_columns)
        super().__init__(message)


class EmptyFileError(SchemaError):
    """The first sheet holds no data rows."""


@dataclass(frozen=True)
class FieldValidationError:
    """One failed field rule on one row. Collected, not raised."""

    field: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class NotFoundError(UploadError):
    def __init__(self, batch_id):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} not found.")


class InvalidStateError(UploadError):
    """Operation attempted against a batch in an incompatible lifecycle state."""

    def __init__(self, batch_id, current_status: str, operation: str, allowed: Iterable[str] = ()):
        self.batch_id = batch_id
        self.current_status = current_status
        self.operation = operation
        self.allowed = list(allowed)
        expected = f" Expected one of: {', '.join(self.allowed)}." if self.allowed else ""
        super().__init__(
            f"Cannot {operation} batch {batch_id}: current status is {current_status}.{expected}"
        )


class UnresolvedCategoryError(UploadError):
    """Category names with no matching transaction type. Fatal for the whole batch."""

    def __init__(self, names: Iterable[str]):
        self.names = sorted(names)
        quoted = ", ".join(f"'{name}'" for name in self.names)
        super().__init__(f"Transaction type(s) not found: {quoted}.")


class DuplicateRecordError(UploadError):
    """A register row (member or loan) with the same key already exists."""

    def __init__(self, kind: str, field: str, value: str, row_number: Optional[int] = None):
        self.kind = kind
        self.field = field
        self.value = value
        self.row_number = row_number
        where = f" (row {row_number})" if row_number is not None else ""
        super().__init__(f"{kind} with {field} '{value}' already exists{where}.")


class InvalidIdentityError(UploadError):
    """Blank or placeholder uploader/approver identity."""


class TransientError(UploadError):
    """Storage unavailable or timed out. Safe to retry the whole operation."""
