# tests/test_boq.py
from decimal import Decimal
from itertools import permutations

import pytest

from estimator.core.errors import NotFoundError
from estimator.services.boq_service import DemandRow, aggregate_requirements
from estimator.services.ledger_service import JobMaterialItem


def test_aggregate_requirements_is_order_independent():
    rows = [
        DemandRow("hinge", Decimal("3"), Decimal("10")),
        DemandRow("screw", Decimal("12"), Decimal("10")),
        DemandRow("hinge", Decimal("0.1"), Decimal("3")),
        DemandRow("screw", Decimal("0.2"), Decimal("7")),
    ]
    expected = {"hinge": Decimal("30.3"), "screw": Decimal("121.4")}

    for perm in permutations(rows):
        result = aggregate_requirements(perm)
        assert result == expected
        assert list(result) == ["hinge", "screw"]


def test_aggregate_requirements_drops_zero_totals():
    rows = [DemandRow("hinge", Decimal("3"), Decimal("0"))]
    assert aggregate_requirements(rows) == {}


def test_material_requirements(components, door_project):
    totals = components.boq.material_requirements(door_project.project_id)
    assert totals == {"hinge": Decimal("30"), "screw": Decimal("120")}


def test_material_requirements_sums_across_jobs(components, door_project, make_project):
    frame_job = components.jobs.create_job(name="Frame Door", unit="unit")
    components.ledger.add_job_materials(frame_job.id, [JobMaterialItem(material_id="screw", quantity=Decimal("8"))])
    components.rollup.add_or_update_boq_job(
        door_project.project_id,
        frame_job.id,
        quantity=Decimal("2"),
        labor_cost=Decimal("10"),
        selling_price=Decimal("40"),
    )

    totals = components.boq.material_requirements(door_project.project_id)

    assert totals == {"hinge": Decimal("30"), "screw": Decimal("136")}


def test_requirements_do_not_depend_on_insertion_order(components, make_project):
    for mid in ("a", "b", "c"):
        components.materials.create_material(material_id=mid, name=mid.upper(), unit="kg")

    job_x = components.jobs.create_job(name="X", unit="m2")
    job_y = components.jobs.create_job(name="Y", unit="m2")
    components.ledger.add_job_materials(
        job_x.id,
        [JobMaterialItem("c", Decimal("1.5")), JobMaterialItem("a", Decimal("2"))],
    )
    components.ledger.add_job_materials(
        job_y.id,
        [JobMaterialItem("a", Decimal("0.25")), JobMaterialItem("b", Decimal("4"))],
    )

    first = make_project("First")
    second = make_project("Second")
    for project_id, order in ((first, (job_x, job_y)), (second, (job_y, job_x))):
        for job, qty in zip(order, (Decimal("4"), Decimal("4"))):
            components.rollup.add_or_update_boq_job(
                project_id, job.id, quantity=qty, labor_cost=Decimal("0"), selling_price=Decimal("0")
            )

    assert components.boq.material_requirements(first) == components.boq.material_requirements(second)
    assert components.boq.material_requirements(first) == {
        "a": Decimal("9"),
        "b": Decimal("16"),
        "c": Decimal("6"),
    }


def test_project_without_jobs_has_no_requirements(components, make_project):
    project_id = make_project()
    assert components.boq.material_requirements(project_id) == {}
    assert components.boq.material_price_details(project_id) == []


def test_unknown_project(components):
    with pytest.raises(NotFoundError):
        components.boq.material_requirements(999)
    with pytest.raises(NotFoundError):
        components.boq.material_price_details(999)


def test_material_price_details(components, door_project):
    details = components.boq.material_price_details(door_project.project_id)
    by_id = {d.material_id: d for d in details}

    assert [d.material_id for d in details] == ["hinge", "screw"]

    hinge = by_id["hinge"]
    assert hinge.total_quantity == Decimal("30")
    assert hinge.estimated_price == Decimal("5.50")
    assert hinge.avg_actual_price == Decimal("6")
    assert hinge.actual_price == Decimal("7")
    assert hinge.supplier_name == "BuildMart"

    screw = by_id["screw"]
    assert screw.total_quantity == Decimal("120")
    assert screw.estimated_price == Decimal("0.10")
    assert screw.avg_actual_price is None
    assert screw.actual_price is None
    assert screw.supplier_name is None


def test_material_price_details_is_idempotent(components, door_project):
    first = components.boq.material_price_details(door_project.project_id)
    second = components.boq.material_price_details(door_project.project_id)
    assert first == second


def test_estimated_price_and_stats_passthrough(components, door_project):
    assert components.boq.estimated_price("screw") == Decimal("0.10")
    assert components.boq.actual_price_stats("hinge").actual_price == Decimal("7")
    with pytest.raises(NotFoundError):
        components.boq.estimated_price("ghost")


def test_price_stats_reads_estimate_and_history_together(components, door_project):
    estimated, stats = components.boq.price_stats("hinge")
    assert estimated == Decimal("5.50")
    assert stats.avg_actual_price == Decimal("6")
    assert stats.actual_price == Decimal("7")

    with pytest.raises(NotFoundError):
        components.boq.price_stats("ghost")
