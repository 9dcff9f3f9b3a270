# tests/test_price_history.py
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from estimator.core.errors import NotFoundError, ValidationError
from estimator.services.price_history_service import ActualPriceStats, summarize_prices


def _row(row_id, price, observed_at, supplier="S"):
    return SimpleNamespace(id=row_id, price=Decimal(price), observed_at=observed_at, supplier_name=supplier)


def test_summarize_prices_empty_is_all_none():
    assert summarize_prices([]) == ActualPriceStats()


def test_summarize_prices_uses_latest_observation_not_insertion_order():
    t = datetime(2026, 3, 1)
    rows = [
        _row(1, "9", t + timedelta(days=2), "Late"),
        _row(2, "3", t, "Early"),
    ]
    stats = summarize_prices(rows)
    assert stats.actual_price == Decimal("9")
    assert stats.supplier_name == "Late"
    assert stats.avg_actual_price == Decimal("6")
    assert stats.observations == 2


def test_summarize_prices_tie_goes_to_highest_id():
    t = datetime(2026, 3, 1)
    stats = summarize_prices([_row(5, "4", t, "B"), _row(2, "8", t, "A")])
    assert stats.actual_price == Decimal("4")
    assert stats.supplier_name == "B"


def test_no_history_is_distinct_from_zero_price(components):
    components.materials.create_material(material_id="hinge", name="Hinge", unit="piece")
    components.materials.create_material(material_id="free", name="Offcut", unit="piece")
    components.prices.record_price(
        material_id="free", supplier_name="Yard", price=Decimal("0"), observed_at=datetime(2026, 1, 1)
    )

    none_stats = components.prices.actual_price_stats("hinge")
    zero_stats = components.prices.actual_price_stats("free")

    assert none_stats.actual_price is None
    assert none_stats.avg_actual_price is None
    assert none_stats.supplier_name is None
    assert zero_stats.actual_price == Decimal("0")
    assert zero_stats.supplier_name == "Yard"


def test_average_and_latest_price(components, door_project):
    stats = components.prices.actual_price_stats("hinge")

    assert stats.avg_actual_price == Decimal("6")
    assert stats.actual_price == Decimal("7")
    assert stats.supplier_name == "BuildMart"


def test_window_limits_the_observations(components, door_project):
    stats = components.prices.actual_price_stats(
        "hinge",
        window=timedelta(days=3),
        now=door_project.t2 + timedelta(days=1),
    )
    assert stats.observations == 1
    assert stats.avg_actual_price == Decimal("7")

    stale = components.prices.actual_price_stats(
        "hinge",
        window=timedelta(days=3),
        now=door_project.t2 + timedelta(days=30),
    )
    assert stale == ActualPriceStats()


def test_list_prices_in_observation_order(components, door_project):
    prices = components.prices.list_prices("hinge")
    assert [p.supplier_name for p in prices] == ["Hardware Depot", "BuildMart"]


def test_record_price_for_unknown_material(components):
    with pytest.raises(NotFoundError):
        components.prices.record_price(material_id="ghost", supplier_name="S", price=Decimal("1"))


def test_record_price_validation(components):
    components.materials.create_material(material_id="hinge", name="Hinge", unit="piece")
    with pytest.raises(ValidationError):
        components.prices.record_price(material_id="hinge", supplier_name="S", price=Decimal("-1"))
    with pytest.raises(ValidationError):
        components.prices.record_price(material_id="hinge", supplier_name=" ", price=Decimal("1"))
    assert components.prices.list_prices("hinge") == []


@pytest.mark.parametrize("price", [Decimal("7.005"), Decimal("10000000000")])
def test_price_beyond_column_is_rejected_not_rounded(components, price):
    components.materials.create_material(material_id="hinge", name="Hinge", unit="piece")
    with pytest.raises(ValidationError) as excinfo:
        components.prices.record_price(material_id="hinge", supplier_name="S", price=price)
    assert excinfo.value.context["field"] == "price"
    assert components.prices.list_prices("hinge") == []


def test_price_at_column_scale_reads_back_unchanged(components):
    components.materials.create_material(material_id="hinge", name="Hinge", unit="piece")
    components.prices.record_price(
        material_id="hinge", supplier_name="S", price=Decimal("7.05"), observed_at=datetime(2026, 1, 1)
    )
    assert components.prices.actual_price_stats("hinge").actual_price == Decimal("7.05")
