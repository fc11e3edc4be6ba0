import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from quote_tool.api.main import app


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_root_and_status(client):
    assert client.get("/").json()["status"] == "online"

    status = client.get("/system/status").json()
    assert status["engine_active"] is True
    assert status["categories_count"] == 14


def test_policy_lists_tables(client):
    policy = client.get("/policy").json()
    assert "Grand Ménage" in policy["categories"]
    assert policy["coefficients"]["urgency"]["immediate"] == 1.8
    assert policy["quote_policy"]["minimum_charge"] == 500


def test_calculate_quote(client):
    response = client.post("/quotes/calculate", json={
        "services": [{"category": "Grand Ménage", "area": 50}],
    })
    assert response.status_code == 200

    data = response.json()
    assert data["lines"][0]["total_price"] == 1250
    assert data["totals"]["final_price"] == 1500
    assert data["payable_price"] == 1500
    assert data["quote_number"].startswith("DV-SER-")


def test_calculate_rejects_unknown_option(client):
    response = client.post("/quotes/calculate", json={
        "services": [{"category": "Grand Ménage", "area": 50, "urgency": "yesterday"}],
    })
    assert response.status_code == 422
    assert "urgency" in response.json()["detail"]


def test_calculate_unpriced_category_is_server_error(client):
    response = client.post("/quotes/calculate", json={
        "services": [{"category": "Inconnu", "area": 50}],
    })
    assert response.status_code == 500


def test_draft_editing_flow(client):
    created = client.post("/drafts", json={
        "services": [{"category": "Grand Ménage", "area": 50}],
        "goods": [{"name": "Mop", "quantity": 3, "unit_price": 47}],
    })
    assert created.status_code == 200
    draft = created.json()
    draft_id = draft["draft_id"]
    assert [line["id"] for line in draft["lines"]] == ["line-1", "line-2"]

    edited = client.patch(f"/drafts/{draft_id}/lines/line-2", json={"quantity": 5}).json()
    assert edited["lines"][1]["total_price"] == 235
    assert edited["totals"]["sub_total"] == 1485

    added = client.post(f"/drafts/{draft_id}/lines", json={"description": "Travel", "unit_price": 15}).json()
    assert added["lines"][-1]["total_price"] == 15

    overridden = client.put(f"/drafts/{draft_id}/override", json={"final_price_override": 1700}).json()
    assert overridden["payable_price"] == 1700

    removed = client.delete(f"/drafts/{draft_id}/lines/line-2").json()
    assert len(removed["lines"]) == 2

    assert client.delete(f"/drafts/{draft_id}").status_code == 200
    assert client.get(f"/drafts/{draft_id}").status_code == 404


def test_draft_edit_errors(client):
    draft_id = client.post("/drafts", json={
        "goods": [{"name": "Mop", "quantity": 1, "unit_price": 47}],
    }).json()["draft_id"]

    both = client.patch(f"/drafts/{draft_id}/lines/line-1", json={"quantity": 2, "unit_price": 10})
    assert both.status_code == 400

    assert client.patch(f"/drafts/{draft_id}/lines/line-9", json={"quantity": 2}).status_code == 404
    assert client.patch("/drafts/draft-missing/lines/line-1", json={"quantity": 2}).status_code == 404


def test_patch_rejects_adjustment_combined_with_total(client):
    draft_id = client.post("/drafts", json={
        "goods": [{"name": "Mop", "quantity": 1, "unit_price": 47}],
    }).json()["draft_id"]

    response = client.patch(f"/drafts/{draft_id}/lines/line-1", json={"total_price": 100, "adjust_factor": 1.1})
    assert response.status_code == 400
    assert client.get(f"/drafts/{draft_id}").json()["lines"][0]["total_price"] == 47
