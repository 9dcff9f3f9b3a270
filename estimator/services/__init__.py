# estimator/services/__init__.py
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import sessionmaker

from .boq_service import BOQAggregator
from .job_service import JobCatalog
from .ledger_service import JobMaterialLedger
from .material_service import MaterialCatalog
from .price_history_service import SupplierPriceHistory
from .rollup_service import ProjectCostRollup


@dataclass(frozen=True)
class Components:
    materials: MaterialCatalog
    prices: SupplierPriceHistory
    jobs: JobCatalog
    ledger: JobMaterialLedger
    boq: BOQAggregator
    rollup: ProjectCostRollup


def build_components(session_factory: sessionmaker, *, price_window: timedelta | None = None) -> Components:
    """Todos los componentes comparten la misma fábrica de sesiones, inyectada aquí."""
    return Components(
        materials=MaterialCatalog(session_factory),
        prices=SupplierPriceHistory(session_factory),
        jobs=JobCatalog(session_factory),
        ledger=JobMaterialLedger(session_factory),
        boq=BOQAggregator(session_factory, price_window=price_window),
        rollup=ProjectCostRollup(session_factory, price_window=price_window),
    )


__all__ = [
    "BOQAggregator",
    "Components",
    "JobCatalog",
    "JobMaterialLedger",
    "MaterialCatalog",
    "ProjectCostRollup",
    "SupplierPriceHistory",
    "build_components",
]
