# estimator/db/session.py
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope, check_cancelled
from estimator.core.config import get_settings
from estimator.core.errors import DomainError, ErrorKind, InternalError, OperationCancelled
from estimator.db.errors import translate_integrity_error

logger = logging.getLogger(__name__)

# Nivel de aislamiento para lecturas de agregación (una sola foto consistente)
SNAPSHOT_ISOLATION = {
    "postgresql": "REPEATABLE READ",
    "mysql": "REPEATABLE READ",
}


def _normalize_url(database_url: str) -> str:
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, *, echo: bool = False, **kwargs) -> Engine:
    engine = create_engine(
        _normalize_url(database_url),
        future=True,
        echo=echo,
        **kwargs,
    )
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: los servicios devuelven objetos ya cerrada la sesión
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
        future=True,
    )


settings = get_settings()

engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = build_session_factory(engine)


@contextmanager
def transaction(
    session_factory: sessionmaker,
    *,
    operation: str,
    cancel: CancelScope | None = None,
    read_only: bool = False,
    on_foreign_key: ErrorKind = ErrorKind.not_found,
) -> Iterator[Session]:
    """
    Unidad de trabajo por llamada: abre sesión, confirma al salir sin errores
    y revierte ante cualquier falla (incluida la cancelación).

    - read_only: no confirma nada y fija aislamiento de snapshot si el motor lo soporta.
    - on_foreign_key: tipo de error a usar si el motor rechaza una llave foránea
      (NotFound al insertar referencias, Conflict al borrar algo en uso).
    """
    check_cancelled(cancel, operation)
    db: Session = session_factory()
    try:
        if read_only:
            dialect = db.get_bind().dialect.name
            level = SNAPSHOT_ISOLATION.get(dialect)
            if level:
                db.connection(execution_options={"isolation_level": level})
            elif dialect == "sqlite":
                # pysqlite no abre transacción para SELECT; sin BEGIN cada
                # consulta vería lo último confirmado
                db.connection().exec_driver_sql("BEGIN")
        yield db
        check_cancelled(cancel, operation)
        # En solo lectura no hay nada que confirmar: close() libera la conexión
        # sin expirar los objetos ya cargados.
        if not read_only:
            db.commit()
    except OperationCancelled:
        db.rollback()
        logger.info("Operación cancelada, transacción revertida: %s", operation)
        raise
    except DomainError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        raise translate_integrity_error(exc, operation=operation, on_foreign_key=on_foreign_key) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Falla de almacenamiento en %s", operation, exc_info=True)
        raise InternalError("Error de almacenamiento.", operation=operation) from exc
    finally:
        db.close()
