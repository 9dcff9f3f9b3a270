# estimator/db/errors.py
from sqlalchemy.exc import IntegrityError

from estimator.core.errors import ConflictError, DomainError, ErrorKind, InternalError, NotFoundError

# SQLSTATE de PostgreSQL
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"


def _violation_kind(exc: IntegrityError) -> str | None:
    """Devuelve "unique", "foreign_key" o None según el error del driver."""
    orig = exc.orig
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode == PG_UNIQUE_VIOLATION:
        return "unique"
    if pgcode == PG_FOREIGN_KEY_VIOLATION:
        return "foreign_key"

    # sqlite3 no expone códigos SQLSTATE
    text = str(orig)
    if "UNIQUE constraint failed" in text or "PRIMARY KEY" in text:
        return "unique"
    if "FOREIGN KEY constraint failed" in text:
        return "foreign_key"
    return None


def translate_integrity_error(
    exc: IntegrityError,
    *,
    operation: str,
    on_foreign_key: ErrorKind = ErrorKind.not_found,
) -> DomainError:
    violation = _violation_kind(exc)
    if violation == "unique":
        return ConflictError("El registro ya existe.", operation=operation)
    if violation == "foreign_key":
        if on_foreign_key == ErrorKind.conflict:
            return ConflictError("El registro está en uso.", operation=operation)
        return NotFoundError("Registro referenciado no encontrado.", operation=operation)
    return InternalError("Violación de integridad inesperada.", operation=operation)
