# estimator/services/ledger_service.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope, check_cancelled
from estimator.core.errors import NotFoundError, ValidationError
from estimator.db.session import transaction
from estimator.models import JobMaterial, Material
from estimator.services.job_service import load_job
from estimator.services.material_service import load_material
from estimator.services.validators import QUANTITY_PLACES, clean_required, positive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobMaterialItem:
    material_id: str
    quantity: Decimal


@dataclass(frozen=True)
class JobMaterialLine:
    material_id: str
    name: str
    unit: str
    quantity: Decimal


def _load_pair(db: Session, job_id: int, material_id: str) -> JobMaterial:
    row = (
        db.query(JobMaterial)
        .filter(JobMaterial.job_id == job_id, JobMaterial.material_id == material_id)
        .first()
    )
    if not row:
        raise NotFoundError(
            "El material no está asignado a este trabajo.",
            job_id=job_id,
            material_id=material_id,
        )
    return row


class JobMaterialLedger:
    """
    Relación trabajo-material: cantidad de cada material por unidad de trabajo.
    Cada escritura es una sola transacción.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def add_job_materials(
        self,
        job_id: int,
        items: Sequence[JobMaterialItem],
        *,
        cancel: CancelScope | None = None,
    ) -> list[JobMaterialLine]:
        """
        Agrega un lote de materiales al trabajo (todo o nada).

        Un par (job_id, material_id) repetido, ya sea existente o duplicado
        dentro del mismo lote, lo rechaza la restricción UNIQUE del motor y
        se reporta como Conflict; ninguna fila del lote queda persistida.
        """
        if not items:
            raise ValidationError("Debe incluir al menos un material.", field="materials")

        cleaned = [
            JobMaterialItem(
                material_id=clean_required(item.material_id, "material_id"),
                quantity=positive(item.quantity, "quantity", places=QUANTITY_PLACES),
            )
            for item in items
        ]

        operation = "add_job_materials"
        with transaction(self._session_factory, operation=operation, cancel=cancel) as db:
            load_job(db, job_id)
            lines: list[JobMaterialLine] = []
            for item in cleaned:
                check_cancelled(cancel, operation)
                material = load_material(db, item.material_id)
                db.add(JobMaterial(job_id=job_id, material_id=material.material_id, quantity=item.quantity))
                lines.append(
                    JobMaterialLine(
                        material_id=material.material_id,
                        name=material.name,
                        unit=material.unit,
                        quantity=item.quantity,
                    )
                )
            db.flush()
        logger.info("Materiales agregados al trabajo %s: %s", job_id, [line.material_id for line in lines])
        return lines

    def update_quantity(
        self,
        job_id: int,
        material_id: str,
        quantity: Decimal,
        *,
        cancel: CancelScope | None = None,
    ) -> JobMaterial:
        quantity = positive(quantity, "quantity", places=QUANTITY_PLACES)
        with transaction(self._session_factory, operation="update_job_material_quantity", cancel=cancel) as db:
            row = _load_pair(db, job_id, material_id)
            row.quantity = quantity
            db.add(row)
            db.flush()
        logger.info("Cantidad actualizada: trabajo=%s material=%s cantidad=%s", job_id, material_id, quantity)
        return row

    def delete_job_material(
        self,
        job_id: int,
        material_id: str,
        *,
        cancel: CancelScope | None = None,
    ) -> None:
        with transaction(self._session_factory, operation="delete_job_material", cancel=cancel) as db:
            row = _load_pair(db, job_id, material_id)
            db.delete(row)
            db.flush()
        logger.info("Material %s eliminado del trabajo %s", material_id, job_id)

    def materials_for_job(self, job_id: int, *, cancel: CancelScope | None = None) -> list[JobMaterialLine]:
        """Lista (material, cantidad) del trabajo; una lista vacía es válida."""
        with transaction(self._session_factory, operation="materials_for_job", cancel=cancel, read_only=True) as db:
            load_job(db, job_id)
            rows = (
                db.query(JobMaterial, Material)
                .join(Material, Material.material_id == JobMaterial.material_id)
                .filter(JobMaterial.job_id == job_id)
                .order_by(JobMaterial.material_id)
                .all()
            )
            return [
                JobMaterialLine(
                    material_id=material.material_id,
                    name=material.name,
                    unit=material.unit,
                    quantity=Decimal(str(jm.quantity)),
                )
                for jm, material in rows
            ]
