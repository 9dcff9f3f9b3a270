# estimator/core/errors.py
import enum
from typing import Any


class ErrorKind(str, enum.Enum):
    not_found = "not_found"
    conflict = "conflict"
    validation = "validation"
    internal = "internal"


class DomainError(Exception):
    """
    Error de dominio con un tipo cerrado (ErrorKind) y contexto estructurado.
    La capa HTTP decide el status a partir de `kind`, nunca del texto.
    """

    kind: ErrorKind = ErrorKind.internal

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    kind = ErrorKind.not_found


class ConflictError(DomainError):
    kind = ErrorKind.conflict


class ValidationError(DomainError):
    kind = ErrorKind.validation


class InternalError(DomainError):
    kind = ErrorKind.internal


class OperationCancelled(Exception):
    """La operación se canceló (o venció su plazo) antes de confirmar la transacción."""

    def __init__(self, operation: str, reason: str = "cancelled") -> None:
        super().__init__(f"{operation}: {reason}")
        self.operation = operation
        self.reason = reason
