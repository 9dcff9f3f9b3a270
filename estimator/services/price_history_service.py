# estimator/services/price_history_service.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope
from estimator.db.session import transaction
from estimator.models import SupplierPrice
from estimator.services.material_service import load_material
from estimator.services.validators import MONEY_PLACES, clean_required, non_negative

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActualPriceStats:
    """
    Resumen del historial real de un material. Todos los campos son None si
    no hay observaciones (aún no comprado), lo cual es distinto de precio 0.
    """
    avg_actual_price: Decimal | None = None
    actual_price: Decimal | None = None
    supplier_name: str | None = None
    observations: int = 0


def summarize_prices(rows: Iterable[SupplierPrice]) -> ActualPriceStats:
    """
    Promedio aritmético de todas las filas y precio/proveedor de la más
    reciente por observed_at (empate: id mayor, es decir la última insertada).
    """
    rows = list(rows)
    if not rows:
        return ActualPriceStats()

    total = Decimal("0")
    for row in rows:
        total += Decimal(str(row.price))
    latest = max(rows, key=lambda r: (r.observed_at, r.id))

    return ActualPriceStats(
        avg_actual_price=total / len(rows),
        actual_price=Decimal(str(latest.price)),
        supplier_name=latest.supplier_name,
        observations=len(rows),
    )


def query_price_rows(
    db: Session,
    material_ids: Sequence[str],
    *,
    window: timedelta | None = None,
    now: datetime | None = None,
) -> dict[str, list[SupplierPrice]]:
    """Filas de historial agrupadas por material, opcionalmente sólo la ventana final."""
    grouped: dict[str, list[SupplierPrice]] = {mid: [] for mid in material_ids}
    if not material_ids:
        return grouped

    query = db.query(SupplierPrice).filter(SupplierPrice.material_id.in_(list(material_ids)))
    if window is not None:
        since = (now or datetime.utcnow()) - window
        query = query.filter(SupplierPrice.observed_at >= since)

    for row in query.order_by(SupplierPrice.observed_at, SupplierPrice.id).all():
        grouped[row.material_id].append(row)
    return grouped


class SupplierPriceHistory:
    """Historial de precios reales por proveedor (sólo inserciones)."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def record_price(
        self,
        *,
        material_id: str,
        supplier_name: str,
        price: Decimal,
        observed_at: datetime | None = None,
        cancel: CancelScope | None = None,
    ) -> SupplierPrice:
        supplier_name = clean_required(supplier_name, "supplier_name")
        price = non_negative(price, "price", places=MONEY_PLACES)

        with transaction(self._session_factory, operation="record_supplier_price", cancel=cancel) as db:
            load_material(db, material_id)
            row = SupplierPrice(
                material_id=material_id,
                supplier_name=supplier_name,
                price=price,
                observed_at=observed_at or datetime.utcnow(),
            )
            db.add(row)
            db.flush()
        logger.info(
            "Precio de proveedor registrado: material=%s proveedor=%s precio=%s",
            material_id,
            supplier_name,
            price,
        )
        return row

    def list_prices(self, material_id: str, *, cancel: CancelScope | None = None) -> list[SupplierPrice]:
        with transaction(self._session_factory, operation="list_supplier_prices", cancel=cancel, read_only=True) as db:
            load_material(db, material_id)
            return query_price_rows(db, [material_id])[material_id]

    def actual_price_stats(
        self,
        material_id: str,
        *,
        window: timedelta | None = None,
        now: datetime | None = None,
        cancel: CancelScope | None = None,
    ) -> ActualPriceStats:
        with transaction(self._session_factory, operation="actual_price_stats", cancel=cancel, read_only=True) as db:
            load_material(db, material_id)
            rows = query_price_rows(db, [material_id], window=window, now=now)[material_id]
            return summarize_prices(rows)
