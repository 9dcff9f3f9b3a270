# estimator/api/errors.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from estimator.core.errors import DomainError, ErrorKind, OperationCancelled

logger = logging.getLogger(__name__)

# Debe cubrir todos los miembros de ErrorKind
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.conflict: status.HTTP_409_CONFLICT,
    ErrorKind.validation: status.HTTP_400_BAD_REQUEST,
    ErrorKind.internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(kind: ErrorKind) -> int:
    return STATUS_BY_KIND[kind]


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.kind == ErrorKind.internal:
        logger.error("Error interno en %s %s: %r", request.method, request.url.path, exc)
        detail = "Error interno del servidor."
    else:
        detail = exc.message
    return JSONResponse(
        status_code=status_for(exc.kind),
        content={
            "error": exc.kind.value,
            "detail": detail,
            "context": exc.context,
        },
    )


async def cancelled_handler(request: Request, exc: OperationCancelled) -> JSONResponse:
    logger.warning("Operación cancelada en %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "cancelled",
            "detail": "La operación fue cancelada; no se aplicaron cambios.",
            "context": {"operation": exc.operation, "reason": exc.reason},
        },
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Payload mal formado = Validation, mismo status que las reglas de dominio
    logger.info("Payload inválido en %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status_for(ErrorKind.validation),
        content={
            "error": ErrorKind.validation.value,
            "detail": "Payload inválido.",
            "context": {"errors": jsonable_encoder(exc.errors())},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(OperationCancelled, cancelled_handler)
