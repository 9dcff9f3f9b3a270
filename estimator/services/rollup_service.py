# estimator/services/rollup_service.py
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope
from estimator.core.errors import NotFoundError
from estimator.db.session import transaction
from estimator.models import BOQJob, Job, JobMaterial, Material
from estimator.services.boq_service import load_project
from estimator.services.job_service import load_job
from estimator.services.price_history_service import query_price_rows, summarize_prices
from estimator.services.validators import MONEY_PLACES, QUANTITY_PLACES, non_negative, positive

logger = logging.getLogger(__name__)

PRICE_SOURCE_ACTUAL = "actual"
PRICE_SOURCE_ESTIMATED = "estimated"


@dataclass(frozen=True)
class MaterialCostLine:
    material_id: str
    quantity: Decimal
    unit_price: Decimal
    price_source: str  # "actual" | "estimated"
    cost: Decimal


@dataclass(frozen=True)
class JobCostLine:
    job_id: int
    job_name: str
    quantity: Decimal
    material_cost: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    revenue: Decimal
    margin: Decimal
    materials: list[MaterialCostLine] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectCostSummary:
    project_id: int
    total_material_cost: Decimal
    total_labor_cost: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    margin: Decimal
    margin_percent: Decimal | None
    # Materiales valuados con el precio estimado por no tener precio real
    estimated_fallback_material_ids: list[str] = field(default_factory=list)
    jobs: list[JobCostLine] = field(default_factory=list)


def _dec(value: object) -> Decimal:
    return Decimal(str(value or 0))


def _load_boq_job(db: Session, project_id: int, job_id: int) -> BOQJob:
    row = (
        db.query(BOQJob)
        .filter(BOQJob.project_id == project_id, BOQJob.job_id == job_id)
        .first()
    )
    if not row:
        raise NotFoundError(
            "El trabajo no está asignado a este proyecto.",
            project_id=project_id,
            job_id=job_id,
        )
    return row


def compute_project_cost(
    db: Session,
    project_id: int,
    *,
    window: timedelta | None = None,
    now: datetime | None = None,
) -> ProjectCostSummary:
    boq_rows = (
        db.query(BOQJob, Job)
        .join(Job, Job.id == BOQJob.job_id)
        .filter(BOQJob.project_id == project_id)
        .order_by(BOQJob.job_id)
        .all()
    )
    job_ids = [boq.job_id for boq, _ in boq_rows]

    ledger: dict[int, list[JobMaterial]] = {jid: [] for jid in job_ids}
    if job_ids:
        for jm in (
            db.query(JobMaterial)
            .filter(JobMaterial.job_id.in_(job_ids))
            .order_by(JobMaterial.job_id, JobMaterial.material_id)
            .all()
        ):
            ledger[jm.job_id].append(jm)

    material_ids = sorted({jm.material_id for rows in ledger.values() for jm in rows})
    estimated = {
        m.material_id: _dec(m.reference_price)
        for m in db.query(Material).filter(Material.material_id.in_(material_ids)).all()
    } if material_ids else {}
    price_rows = query_price_rows(db, material_ids, window=window, now=now)

    # Precio unitario por material: último precio real o, si no existe, el estimado
    unit_prices: dict[str, tuple[Decimal, str]] = {}
    fallback: list[str] = []
    for material_id in material_ids:
        stats = summarize_prices(price_rows[material_id])
        if stats.actual_price is not None:
            unit_prices[material_id] = (stats.actual_price, PRICE_SOURCE_ACTUAL)
        else:
            unit_prices[material_id] = (estimated[material_id], PRICE_SOURCE_ESTIMATED)
            fallback.append(material_id)

    jobs: list[JobCostLine] = []
    for boq, job in boq_rows:
        boq_qty = _dec(boq.quantity)
        material_lines: list[MaterialCostLine] = []
        material_cost = Decimal("0")
        for jm in ledger[boq.job_id]:
            unit_price, source = unit_prices[jm.material_id]
            quantity = _dec(jm.quantity) * boq_qty
            cost = quantity * unit_price
            material_cost += cost
            material_lines.append(
                MaterialCostLine(
                    material_id=jm.material_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    price_source=source,
                    cost=cost,
                )
            )
        labor_cost = _dec(boq.labor_cost) * boq_qty
        total_cost = material_cost + labor_cost
        revenue = _dec(boq.selling_price) * boq_qty
        jobs.append(
            JobCostLine(
                job_id=job.id,
                job_name=job.name,
                quantity=boq_qty,
                material_cost=material_cost,
                labor_cost=labor_cost,
                total_cost=total_cost,
                revenue=revenue,
                margin=revenue - total_cost,
                materials=material_lines,
            )
        )

    total_material = sum((j.material_cost for j in jobs), Decimal("0"))
    total_labor = sum((j.labor_cost for j in jobs), Decimal("0"))
    total_cost = sum((j.total_cost for j in jobs), Decimal("0"))
    total_revenue = sum((j.revenue for j in jobs), Decimal("0"))
    margin = total_revenue - total_cost
    margin_percent = (margin / total_revenue * 100) if total_revenue else None

    if fallback:
        logger.info(
            "Proyecto %s: materiales sin precio real, se usa el estimado: %s",
            project_id,
            fallback,
        )

    return ProjectCostSummary(
        project_id=project_id,
        total_material_cost=total_material,
        total_labor_cost=total_labor,
        total_cost=total_cost,
        total_revenue=total_revenue,
        margin=margin,
        margin_percent=margin_percent,
        estimated_fallback_material_ids=fallback,
        jobs=jobs,
    )


class ProjectCostRollup:
    """Trabajos del BOQ de un proyecto y totales de costo, ingreso y margen."""

    def __init__(self, session_factory: sessionmaker, *, price_window: timedelta | None = None) -> None:
        self._session_factory = session_factory
        self._price_window = price_window

    def add_or_update_boq_job(
        self,
        project_id: int,
        job_id: int,
        *,
        quantity: Decimal,
        labor_cost: Decimal,
        selling_price: Decimal,
        cancel: CancelScope | None = None,
    ) -> BOQJob:
        """
        Upsert por (project_id, job_id). Si dos llamadas insertan a la vez el
        mismo par, la restricción UNIQUE deja pasar una y la otra recibe Conflict.
        """
        quantity = positive(quantity, "quantity", places=QUANTITY_PLACES)
        labor_cost = non_negative(labor_cost, "labor_cost", places=MONEY_PLACES)
        selling_price = non_negative(selling_price, "selling_price", places=MONEY_PLACES)

        with transaction(self._session_factory, operation="add_or_update_boq_job", cancel=cancel) as db:
            load_project(db, project_id)
            load_job(db, job_id)
            row = (
                db.query(BOQJob)
                .filter(BOQJob.project_id == project_id, BOQJob.job_id == job_id)
                .first()
            )
            created = row is None
            if created:
                row = BOQJob(project_id=project_id, job_id=job_id)
            row.quantity = quantity
            row.labor_cost = labor_cost
            row.selling_price = selling_price
            db.add(row)
            db.flush()
        logger.info(
            "BOQ %s: proyecto=%s trabajo=%s cantidad=%s",
            "agregado" if created else "actualizado",
            project_id,
            job_id,
            quantity,
        )
        return row

    def remove_boq_job(self, project_id: int, job_id: int, *, cancel: CancelScope | None = None) -> None:
        with transaction(self._session_factory, operation="remove_boq_job", cancel=cancel) as db:
            row = _load_boq_job(db, project_id, job_id)
            db.delete(row)
            db.flush()
        logger.info("BOQ eliminado: proyecto=%s trabajo=%s", project_id, job_id)

    def list_boq_jobs(self, project_id: int, *, cancel: CancelScope | None = None) -> list[BOQJob]:
        with transaction(self._session_factory, operation="list_boq_jobs", cancel=cancel, read_only=True) as db:
            load_project(db, project_id)
            return (
                db.query(BOQJob)
                .filter(BOQJob.project_id == project_id)
                .order_by(BOQJob.job_id)
                .all()
            )

    def project_cost(
        self,
        project_id: int,
        *,
        window: timedelta | None = None,
        now: datetime | None = None,
        cancel: CancelScope | None = None,
    ) -> ProjectCostSummary:
        with transaction(self._session_factory, operation="project_cost_rollup", cancel=cancel, read_only=True) as db:
            load_project(db, project_id)
            return compute_project_cost(
                db,
                project_id,
                window=window if window is not None else self._price_window,
                now=now,
            )
