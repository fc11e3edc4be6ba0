import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from quote_tool.engine import QuoteEngine, QuoteRequest, ServiceSpec, GoodsItem, RateTable
from quote_tool.services.draft_service import DraftService


@pytest.fixture
def service():
    engine = QuoteEngine.from_components(RateTable({"X": [(80, 16), (200, 14)]}))
    return DraftService(engine)


@pytest.fixture
def draft(service):
    return service.create_draft(QuoteRequest(
        services=[ServiceSpec(category="X", area=50)],
        goods=[GoodsItem(name="Mop", quantity=3, unit_price=47)],
    ))


def test_create_draft_numbers_and_seeds_lines(service, draft):
    assert draft.draft_id == "draft-1"
    assert draft.quote_number.startswith("DV-SER-")
    assert draft.quote_number.endswith("-0001")
    assert len(draft.store) == 2
    assert service.summarize(draft.draft_id)["totals"]["sub_total"] == 941


def test_edit_line_one_price_field_at_a_time(service, draft):
    line = service.edit_line(draft.draft_id, "line-2", {"quantity": 5})
    assert line.total_price == 235

    with pytest.raises(ValueError, match="Edit one of"):
        service.edit_line(draft.draft_id, "line-2", {"quantity": 2, "total_price": 10})


def test_edit_line_total_and_text(service, draft):
    line = service.edit_line(draft.draft_id, "line-1", {"total_price": 700, "description": "X - 50m² (remise)"})

    assert line.is_adjusted
    assert line.description == "X - 50m² (remise)"
    summary = service.summarize(draft.draft_id)
    assert summary["totals"]["sub_total"] == 841
    assert summary["lines"][0]["adjustment"] == -100


def test_add_and_remove_custom_line(service, draft):
    line = service.add_line(draft.draft_id, description="Travel", quantity=2, unit_price=40)
    assert line.total_price == 80
    assert service.remove_line(draft.draft_id, line.id) is True
    assert service.remove_line(draft.draft_id, line.id) is False


def test_override_shows_as_payable_price(service, draft):
    service.set_final_price_override(draft.draft_id, 1000)
    summary = service.summarize(draft.draft_id)
    assert summary["payable_price"] == 1000
    assert summary["totals"]["final_price"] == 1130

    service.set_final_price_override(draft.draft_id, None)
    assert service.summarize(draft.draft_id)["payable_price"] == 1130


def test_unknown_draft_and_line(service, draft):
    with pytest.raises(ValueError, match="not found"):
        service.get_draft("draft-99")
    with pytest.raises(ValueError, match="not found"):
        service.edit_line(draft.draft_id, "line-99", {"quantity": 2})

    service.delete_draft(draft.draft_id)
    assert service.list_drafts() == []


def test_adjust_factor_is_a_price_edit_of_its_own(service, draft):
    """A percentage adjustment cannot be combined with another price field."""
    with pytest.raises(ValueError, match="Edit one of"):
        service.edit_line(draft.draft_id, "line-2", {"total_price": 100, "adjust_factor": 1.1})
    assert draft.store.get("line-2").total_price == 141

    line = service.edit_line(draft.draft_id, "line-2", {"adjust_factor": 1.1})
    assert line.unit_price == pytest.approx(51.7)
    assert line.total_price == pytest.approx(155.1)
