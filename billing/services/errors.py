from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class InvoicingError(ValueError):
    code = "invoicing_error"
    status_code = 400


class NotFound(InvoicingError):
    code = "not_found"
    status_code = 404


class NothingToInvoice(InvoicingError):
    code = "nothing_to_invoice"
    status_code = 422

    def __init__(self, message: str = "No time entries or expenses selected"):
        super().__init__(message)


class Conflict(InvoicingError):
    code = "conflict"
    status_code = 409


class InvalidTransition(InvoicingError):
    code = "invalid_transition"
    status_code = 409


class ValidationFailure(InvoicingError):
    code = "validation_error"
    status_code = 422


class PersistenceFailure(InvoicingError):
    code = "persistence_failure"
    status_code = 500


class SelectionReadFailure(InvoicingError):
    code = "selection_read_failure"
    status_code = 503


@dataclass
class ActionResult(Generic[T]):
    """
    Outcome of a user-facing action. Failures carry the message and the
    error code instead of raising.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: InvoicingError) -> "ActionResult":
        return cls(success=False, error=str(exc), code=exc.code)

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        for klass in _ERROR_CLASSES:
            if klass.code == self.code:
                return klass.status_code
        return 400


_ERROR_CLASSES = (
    NotFound,
    NothingToInvoice,
    Conflict,
    InvalidTransition,
    ValidationFailure,
    PersistenceFailure,
    SelectionReadFailure,
)
