# tests/test_concurrency.py
import threading
from decimal import Decimal

import pytest

from estimator.core.errors import ConflictError
from estimator.db.base import Base
from estimator.db.session import build_session_factory, create_db_engine, transaction
from estimator.models import Project
from estimator.services import build_components
from estimator.services.boq_service import query_demand_rows
from estimator.services.ledger_service import JobMaterialItem
from estimator.services.price_history_service import query_price_rows


@pytest.fixture
def file_components(tmp_path):
    # Base en archivo: cada hilo usa su propia conexión
    engine = create_db_engine(
        f"sqlite:///{tmp_path / 'estimator.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(engine)
    session_factory = build_session_factory(engine)
    yield build_components(session_factory), session_factory
    engine.dispose()


def _run_together(*calls):
    """Lanza cada llamada en su hilo a la vez; devuelve "ok" o la excepción de cada una."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        try:
            call()
            results[index] = "ok"
        except Exception as exc:  # se inspecciona en el test
            results[index] = exc

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


def _seed(components, session_factory):
    components.materials.create_material(material_id="hinge", name="Hinge", unit="piece", reference_price=Decimal("5.50"))
    job = components.jobs.create_job(name="Install Door", unit="unit")
    with transaction(session_factory, operation="seed_project") as db:
        project = Project(name="Demo House")
        db.add(project)
        db.flush()
        project_id = project.id
    return job.id, project_id


def test_concurrent_add_of_same_pair_one_wins(file_components):
    components, session_factory = file_components
    job_id, _ = _seed(components, session_factory)

    results = _run_together(
        lambda: components.ledger.add_job_materials(job_id, [JobMaterialItem("hinge", Decimal("3"))]),
        lambda: components.ledger.add_job_materials(job_id, [JobMaterialItem("hinge", Decimal("4"))]),
    )

    assert results.count("ok") == 1
    [error] = [r for r in results if r != "ok"]
    assert isinstance(error, ConflictError)

    lines = components.ledger.materials_for_job(job_id)
    assert len(lines) == 1
    assert lines[0].quantity in (Decimal("3"), Decimal("4"))


def test_concurrent_boq_upsert_leaves_one_row(file_components):
    components, session_factory = file_components
    job_id, project_id = _seed(components, session_factory)

    def upsert(quantity):
        return lambda: components.rollup.add_or_update_boq_job(
            project_id, job_id, quantity=quantity, labor_cost=Decimal("25"), selling_price=Decimal("120")
        )

    results = _run_together(upsert(Decimal("10")), upsert(Decimal("20")))

    # Según el orden, el segundo actualiza o pierde contra la restricción UNIQUE
    assert "ok" in results
    assert all(r == "ok" or isinstance(r, ConflictError) for r in results)
    rows = components.rollup.list_boq_jobs(project_id)
    assert len(rows) == 1
    assert rows[0].quantity in (Decimal("10"), Decimal("20"))


def test_read_only_transaction_sees_one_snapshot(file_components):
    components, session_factory = file_components
    job_id, project_id = _seed(components, session_factory)
    components.ledger.add_job_materials(job_id, [JobMaterialItem("hinge", Decimal("3"))])
    components.rollup.add_or_update_boq_job(
        project_id, job_id, quantity=Decimal("10"), labor_cost=Decimal("0"), selling_price=Decimal("0")
    )
    components.prices.record_price(material_id="hinge", supplier_name="Hardware Depot", price=Decimal("5"))

    outcome = []

    def writer():
        components.prices.record_price(material_id="hinge", supplier_name="BuildMart", price=Decimal("7"))
        outcome.append("ok")

    with transaction(session_factory, operation="snapshot_read", read_only=True) as db:
        demand = query_demand_rows(db, project_id)
        before = query_price_rows(db, ["hinge"])["hinge"]

        thread = threading.Thread(target=writer)
        thread.start()
        thread.join(timeout=0.5)

        after = query_price_rows(db, ["hinge"])["hinge"]
        assert query_demand_rows(db, project_id) == demand
        assert [p.id for p in after] == [p.id for p in before]

    thread.join(timeout=30)
    assert outcome == ["ok"]
    assert len(components.prices.list_prices("hinge")) == 2
