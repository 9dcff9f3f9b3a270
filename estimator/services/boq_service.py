# estimator/services/boq_service.py
"""
Agregación de materiales del presupuesto (BOQ) de un proyecto.

No guarda estado propio: cada lectura recalcula a partir del ledger, el
catálogo y el historial de precios, dentro de una sola transacción de
lectura para no mezclar versiones de filas a mitad del cálculo.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope
from estimator.core.errors import NotFoundError
from estimator.db.session import transaction
from estimator.models import BOQJob, JobMaterial, Material, Project
from estimator.services.price_history_service import ActualPriceStats, query_price_rows, summarize_prices
from estimator.services.material_service import load_material

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemandRow:
    """Una fila del ledger vista desde un proyecto: material × cantidad/unidad × cantidad BOQ."""
    material_id: str
    quantity_per_unit: Decimal
    boq_quantity: Decimal


@dataclass(frozen=True)
class MaterialPriceDetail:
    material_id: str
    name: str
    unit: str
    total_quantity: Decimal
    estimated_price: Decimal
    avg_actual_price: Decimal | None
    actual_price: Decimal | None
    supplier_name: str | None


def _dec(value: object) -> Decimal:
    return Decimal(str(value or 0))


def aggregate_requirements(rows: Iterable[DemandRow]) -> dict[str, Decimal]:
    """
    Suma por material de quantity_per_unit × boq_quantity. Aritmética Decimal
    exacta: el resultado no depende del orden de las filas. Los materiales
    con demanda total cero se omiten.
    """
    totals: dict[str, Decimal] = {}
    for row in rows:
        totals[row.material_id] = totals.get(row.material_id, Decimal("0")) + (
            _dec(row.quantity_per_unit) * _dec(row.boq_quantity)
        )
    return {mid: totals[mid] for mid in sorted(totals) if totals[mid] != 0}


def load_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError("Proyecto no encontrado.", project_id=project_id)
    return project


def query_demand_rows(db: Session, project_id: int) -> list[DemandRow]:
    # Una sola sentencia: todas las filas salen de la misma foto
    rows = (
        db.query(JobMaterial.material_id, JobMaterial.quantity, BOQJob.quantity)
        .join(BOQJob, BOQJob.job_id == JobMaterial.job_id)
        .filter(BOQJob.project_id == project_id)
        .all()
    )
    return [
        DemandRow(material_id=material_id, quantity_per_unit=_dec(qty_unit), boq_quantity=_dec(boq_qty))
        for material_id, qty_unit, boq_qty in rows
    ]


def build_price_details(
    db: Session,
    project_id: int,
    *,
    window: timedelta | None = None,
    now: datetime | None = None,
) -> list[MaterialPriceDetail]:
    requirements = aggregate_requirements(query_demand_rows(db, project_id))
    if not requirements:
        return []

    material_ids = list(requirements)
    materials = {
        m.material_id: m
        for m in db.query(Material).filter(Material.material_id.in_(material_ids)).all()
    }
    price_rows = query_price_rows(db, material_ids, window=window, now=now)

    details: list[MaterialPriceDetail] = []
    for material_id, total_quantity in requirements.items():
        material = materials[material_id]
        stats = summarize_prices(price_rows[material_id])
        details.append(
            MaterialPriceDetail(
                material_id=material_id,
                name=material.name,
                unit=material.unit,
                total_quantity=total_quantity,
                estimated_price=_dec(material.reference_price),
                avg_actual_price=stats.avg_actual_price,
                actual_price=stats.actual_price,
                supplier_name=stats.supplier_name,
            )
        )
    return details


class BOQAggregator:
    """Vista de lectura: demanda y costo de materiales de un proyecto."""

    def __init__(self, session_factory: sessionmaker, *, price_window: timedelta | None = None) -> None:
        self._session_factory = session_factory
        self._price_window = price_window

    def material_requirements(
        self,
        project_id: int,
        *,
        cancel: CancelScope | None = None,
    ) -> dict[str, Decimal]:
        with transaction(
            self._session_factory,
            operation="compute_material_requirements",
            cancel=cancel,
            read_only=True,
        ) as db:
            load_project(db, project_id)
            return aggregate_requirements(query_demand_rows(db, project_id))

    def estimated_price(self, material_id: str, *, cancel: CancelScope | None = None) -> Decimal:
        with transaction(self._session_factory, operation="compute_estimated_price", cancel=cancel, read_only=True) as db:
            return _dec(load_material(db, material_id).reference_price)

    def actual_price_stats(
        self,
        material_id: str,
        *,
        window: timedelta | None = None,
        now: datetime | None = None,
        cancel: CancelScope | None = None,
    ) -> ActualPriceStats:
        with transaction(self._session_factory, operation="compute_actual_price_stats", cancel=cancel, read_only=True) as db:
            load_material(db, material_id)
            window = window if window is not None else self._price_window
            rows = query_price_rows(db, [material_id], window=window, now=now)[material_id]
            return summarize_prices(rows)

    def price_stats(
        self,
        material_id: str,
        *,
        window: timedelta | None = None,
        now: datetime | None = None,
        cancel: CancelScope | None = None,
    ) -> tuple[Decimal, ActualPriceStats]:
        """Precio estimado y estadísticas reales del material, leídos en la misma foto."""
        with transaction(self._session_factory, operation="compute_price_stats", cancel=cancel, read_only=True) as db:
            material = load_material(db, material_id)
            window = window if window is not None else self._price_window
            rows = query_price_rows(db, [material_id], window=window, now=now)[material_id]
            return _dec(material.reference_price), summarize_prices(rows)

    def material_price_details(
        self,
        project_id: int,
        *,
        window: timedelta | None = None,
        now: datetime | None = None,
        cancel: CancelScope | None = None,
    ) -> list[MaterialPriceDetail]:
        """
        Una fila por material usado en los trabajos del proyecto. Proyecto sin
        trabajos: lista vacía. Cualquier error aborta el cálculo completo.
        """
        with transaction(
            self._session_factory,
            operation="build_material_price_detail",
            cancel=cancel,
            read_only=True,
        ) as db:
            load_project(db, project_id)
            details = build_price_details(
                db,
                project_id,
                window=window if window is not None else self._price_window,
                now=now,
            )
        logger.debug("Detalle de precios del proyecto %s: %d materiales", project_id, len(details))
        return details
