# tests/test_rollup.py
from datetime import datetime
from decimal import Decimal

import pytest

from estimator.core.errors import NotFoundError, ValidationError
from estimator.services.rollup_service import PRICE_SOURCE_ACTUAL, PRICE_SOURCE_ESTIMATED


def test_project_cost_worked_example(components, door_project):
    summary = components.rollup.project_cost(door_project.project_id)

    # bisagra 30 × 7 (último precio real) + tornillo 120 × 0.10 (estimado)
    assert summary.total_material_cost == Decimal("222")
    assert summary.total_labor_cost == Decimal("250")
    assert summary.total_cost == Decimal("472")
    assert summary.total_revenue == Decimal("1200")
    assert summary.margin == Decimal("728")
    assert summary.estimated_fallback_material_ids == ["screw"]

    [job] = summary.jobs
    assert job.job_name == "Install Door"
    assert job.quantity == Decimal("10")
    sources = {line.material_id: line.price_source for line in job.materials}
    assert sources == {"hinge": PRICE_SOURCE_ACTUAL, "screw": PRICE_SOURCE_ESTIMATED}


def test_margin_percent_is_none_without_revenue(components, door_project, make_project):
    project_id = make_project("Free work")
    components.rollup.add_or_update_boq_job(
        project_id, door_project.job_id, quantity=Decimal("1"), labor_cost=Decimal("5"), selling_price=Decimal("0")
    )
    summary = components.rollup.project_cost(project_id)
    assert summary.total_revenue == Decimal("0")
    assert summary.margin_percent is None


def test_empty_project_costs_nothing(components, make_project):
    summary = components.rollup.project_cost(make_project())
    assert summary.total_cost == Decimal("0")
    assert summary.jobs == []
    assert summary.estimated_fallback_material_ids == []


def test_new_actual_price_changes_the_rollup(components, door_project):
    components.prices.record_price(
        material_id="screw", supplier_name="BuildMart", price=Decimal("0.20"), observed_at=datetime(2026, 2, 1)
    )
    summary = components.rollup.project_cost(door_project.project_id)
    assert summary.total_material_cost == Decimal("234")
    assert summary.estimated_fallback_material_ids == []


def test_add_or_update_boq_job_is_an_upsert(components, door_project):
    components.rollup.add_or_update_boq_job(
        door_project.project_id,
        door_project.job_id,
        quantity=Decimal("2"),
        labor_cost=Decimal("25"),
        selling_price=Decimal("120"),
    )

    rows = components.rollup.list_boq_jobs(door_project.project_id)
    assert len(rows) == 1
    assert rows[0].quantity == Decimal("2")
    assert components.boq.material_requirements(door_project.project_id) == {
        "hinge": Decimal("6"),
        "screw": Decimal("24"),
    }


def test_remove_boq_job(components, door_project):
    components.rollup.remove_boq_job(door_project.project_id, door_project.job_id)
    assert components.rollup.list_boq_jobs(door_project.project_id) == []

    with pytest.raises(NotFoundError):
        components.rollup.remove_boq_job(door_project.project_id, door_project.job_id)


def test_boq_job_references_must_exist(components, door_project):
    with pytest.raises(NotFoundError):
        components.rollup.add_or_update_boq_job(
            999, door_project.job_id, quantity=Decimal("1"), labor_cost=Decimal("0"), selling_price=Decimal("0")
        )
    with pytest.raises(NotFoundError):
        components.rollup.add_or_update_boq_job(
            door_project.project_id, 999, quantity=Decimal("1"), labor_cost=Decimal("0"), selling_price=Decimal("0")
        )


@pytest.mark.parametrize(
    "values",
    [
        {"quantity": Decimal("0"), "labor_cost": Decimal("0"), "selling_price": Decimal("0")},
        {"quantity": Decimal("1"), "labor_cost": Decimal("-1"), "selling_price": Decimal("0")},
        {"quantity": Decimal("1"), "labor_cost": Decimal("0"), "selling_price": Decimal("-5")},
    ],
)
def test_boq_job_validation(components, door_project, values):
    with pytest.raises(ValidationError):
        components.rollup.add_or_update_boq_job(door_project.project_id, door_project.job_id, **values)
    assert components.rollup.list_boq_jobs(door_project.project_id)[0].quantity == Decimal("10")
