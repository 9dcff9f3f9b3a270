# estimator/services/job_service.py
import logging

from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope
from estimator.core.errors import ConflictError, ErrorKind, NotFoundError
from estimator.db.session import transaction
from estimator.models import BOQJob, Job
from estimator.services.validators import clean_optional, clean_required

logger = logging.getLogger(__name__)


def load_job(db: Session, job_id: int) -> Job:
    job = db.get(Job, job_id)
    if not job:
        raise NotFoundError("Trabajo no encontrado.", job_id=job_id)
    return job


class JobCatalog:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create_job(
        self,
        *,
        name: str,
        unit: str,
        description: str | None = None,
        cancel: CancelScope | None = None,
    ) -> Job:
        job = Job(
            name=clean_required(name, "name"),
            unit=clean_required(unit, "unit"),
            description=clean_optional(description),
        )
        with transaction(self._session_factory, operation="create_job", cancel=cancel) as db:
            db.add(job)
            db.flush()
        logger.info("Trabajo creado: id=%s nombre=%s", job.id, job.name)
        return job

    def update_job(
        self,
        job_id: int,
        *,
        name: str,
        unit: str,
        description: str | None = None,
        cancel: CancelScope | None = None,
    ) -> Job:
        name = clean_required(name, "name")
        unit = clean_required(unit, "unit")
        with transaction(self._session_factory, operation="update_job", cancel=cancel) as db:
            job = load_job(db, job_id)
            job.name = name
            job.unit = unit
            job.description = clean_optional(description)
            db.add(job)
            db.flush()
        return job

    def get_job(self, job_id: int, *, cancel: CancelScope | None = None) -> Job:
        with transaction(self._session_factory, operation="get_job", cancel=cancel, read_only=True) as db:
            return load_job(db, job_id)

    def list_jobs(self, *, cancel: CancelScope | None = None) -> list[Job]:
        with transaction(self._session_factory, operation="list_jobs", cancel=cancel, read_only=True) as db:
            return db.query(Job).order_by(Job.name, Job.id).all()

    def delete_job(self, job_id: int, *, cancel: CancelScope | None = None) -> None:
        """Borra el trabajo y sus filas del ledger; no se permite si algún proyecto lo usa."""
        with transaction(
            self._session_factory,
            operation="delete_job",
            cancel=cancel,
            on_foreign_key=ErrorKind.conflict,
        ) as db:
            job = load_job(db, job_id)
            used = db.query(BOQJob.id).filter(BOQJob.job_id == job_id).first()
            if used:
                raise ConflictError("El trabajo está asignado a un proyecto.", job_id=job_id)
            db.delete(job)
            db.flush()
        logger.info("Trabajo eliminado: id=%s", job_id)
