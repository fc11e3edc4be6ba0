import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from quote_tool.engine import LineItemStore, LineItem


def goods_line(quantity=2, unit_price=50.0):
    return LineItem(
        description="Mop", quantity=quantity, unit_price=unit_price,
        total_price=quantity * unit_price, source="goods",
    )


def service_line(total=1250.0):
    return LineItem(
        description="Grand Ménage - 50m²", quantity=1, unit_price=total, total_price=total,
        editable=False, source="service", category="Grand Ménage", computed_total=total,
    )


@pytest.fixture
def store():
    return LineItemStore([goods_line(), service_line()])


def test_ids_are_assigned_and_insertion_order_kept(store):
    ids = [line.id for line in store]
    assert ids == ["line-1", "line-2"]
    assert len(store) == 2
    assert "line-1" in store


def test_add_stores_a_copy():
    """The caller's object is never mutated by later edits."""
    original = goods_line()
    store = LineItemStore()
    stored = store.add(original)
    store.update_unit_price(stored.id, 10)

    assert original.id is None
    assert original.unit_price == 50.0


def test_quantity_edit_derives_total(store):
    line = store.update_quantity("line-1", 3)
    assert line.quantity == 3
    assert line.total_price == 150.0


def test_quantity_is_clamped_to_one(store):
    """Zero, negative and garbage quantities all become 1."""
    for value in (0, -5, "abc", None):
        line = store.update_quantity("line-1", value)
        assert line.quantity == 1
        assert line.total_price == line.unit_price


def test_unit_price_is_clamped_to_zero(store):
    line = store.update_unit_price("line-1", -20)
    assert line.unit_price == 0
    assert line.total_price == 0


def test_total_edit_back_derives_unit_price(store):
    """Quantity 4, total set to 100 → unit price 25."""
    store.update_quantity("line-1", 4)
    line = store.update_total("line-1", 100)

    assert line.quantity == 4
    assert line.unit_price == 25
    assert line.total_price == 100


def test_negative_total_is_clamped(store):
    line = store.update_total("line-1", -1)
    assert line.total_price == 0
    assert line.unit_price == 0


def test_total_always_equals_quantity_times_unit_after_edit(store):
    """Every quantity or unit price edit leaves an exact product."""
    edits = [
        ("quantity", 3), ("unit_price", 19.99), ("quantity", 7), ("unit_price", "12,5"), ("quantity", "2"),
    ]
    for field, value in edits:
        if field == "quantity":
            line = store.update_quantity("line-1", value)
        else:
            line = store.update_unit_price("line-1", value)
        assert line.total_price == line.quantity * line.unit_price


def test_edit_order_does_not_change_the_result():
    """Setting quantity then price gives the same line as price then quantity."""
    a = LineItemStore([goods_line()])
    b = LineItemStore([goods_line()])

    a.update_quantity("line-1", 4)
    a.update_unit_price("line-1", 12)
    b.update_unit_price("line-1", 12)
    b.update_quantity("line-1", 4)

    assert a.get("line-1").total_price == b.get("line-1").total_price == 48


def test_quantity_edit_ignored_on_service_line(store):
    line = store.update_quantity("line-2", 5)
    assert line.quantity == 1
    assert line.total_price == 1250.0


def test_service_line_total_edit_is_tracked_as_adjustment(store):
    line = store.update_total("line-2", 1100)

    assert line.unit_price == 1100
    assert line.is_adjusted
    assert line.adjustment == pytest.approx(-150)
    assert line.trace[-1].step == "Edit"


def test_adjust_unit_price_by_ten_percent(store):
    line = store.adjust_unit_price("line-1", 1.1)
    assert line.unit_price == pytest.approx(55)
    assert line.total_price == pytest.approx(110)

    line = store.adjust_unit_price("line-1", 0.9)
    assert line.unit_price == pytest.approx(49.5)


def test_custom_line_and_removal(store):
    custom = store.add_custom()
    assert custom.description == "Custom service"
    assert custom.total_price == 0
    assert custom.editable

    removed = store.remove("line-1")
    assert removed.description == "Mop"
    assert [line.id for line in store] == ["line-2", custom.id]


def test_unknown_ids_are_ignored(store):
    assert store.remove("line-99") is None
    assert store.update_quantity("line-99", 2) is None
    assert store.update_total("line-99", 2) is None
    assert len(store) == 2


def test_ids_are_not_reused_after_removal(store):
    store.remove("line-2")
    added = store.add(goods_line())
    assert added.id == "line-3"
