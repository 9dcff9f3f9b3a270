# tests/conftest.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from estimator.db.base import Base
from estimator.db.session import build_session_factory, create_db_engine, transaction
from estimator.main import create_app
from estimator.models import Project
from estimator.services import build_components
from estimator.services.ledger_service import JobMaterialItem


@pytest.fixture
def engine():
    engine = create_db_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def components(session_factory):
    return build_components(session_factory)


@pytest.fixture
def client(session_factory):
    with TestClient(create_app(session_factory)) as c:
        yield c


@pytest.fixture
def make_project(session_factory):
    def _make(name: str = "Demo House") -> int:
        with transaction(session_factory, operation="test_create_project") as db:
            project = Project(name=name)
            db.add(project)
            db.flush()
            return project.id

    return _make


@dataclass
class DoorProject:
    project_id: int
    job_id: int
    t1: datetime
    t2: datetime


@pytest.fixture
def door_project(components, make_project) -> DoorProject:
    """Trabajo "Install Door" (bisagra x3, tornillo x12) usado 10 veces en un proyecto."""
    components.materials.create_material(
        material_id="hinge", name="Hinge", unit="piece", reference_price=Decimal("5.50")
    )
    components.materials.create_material(
        material_id="screw", name="Screw", unit="piece", reference_price=Decimal("0.10")
    )
    job = components.jobs.create_job(name="Install Door", unit="unit")
    components.ledger.add_job_materials(
        job.id,
        [
            JobMaterialItem(material_id="hinge", quantity=Decimal("3")),
            JobMaterialItem(material_id="screw", quantity=Decimal("12")),
        ],
    )
    project_id = make_project()
    components.rollup.add_or_update_boq_job(
        project_id,
        job.id,
        quantity=Decimal("10"),
        labor_cost=Decimal("25"),
        selling_price=Decimal("120"),
    )

    t1 = datetime(2026, 1, 10, 9, 0, 0)
    t2 = t1 + timedelta(days=5)
    components.prices.record_price(material_id="hinge", supplier_name="Hardware Depot", price=Decimal("5"), observed_at=t1)
    components.prices.record_price(material_id="hinge", supplier_name="BuildMart", price=Decimal("7"), observed_at=t2)
    return DoorProject(project_id=project_id, job_id=job.id, t1=t1, t2=t2)
