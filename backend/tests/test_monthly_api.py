"""
Monthly budget/actual matrices and the actual finalization gate.
"""

import uuid

import pytest

from conftest import months_payload


@pytest.fixture
def item(create_event, create_category, create_item):
    return create_item(create_event("1Q"), create_category("TRAVEL"))


def item_path(item, suffix=""):
    return f"/budget-items/{item['budgetItemId']}{suffix}"


class TestMonthlyMatrices:

    def test_empty_item_has_no_rows(self, client, item):
        assert client.get(item_path(item, "/budgets")).json() == []
        assert client.get(item_path(item, "/actuals")).json() == []

    def test_put_budgets_returns_all_months(self, client, item):
        response = client.put(
            item_path(item, "/budgets"),
            json=months_payload({1: 1000, 2: 2000, 3: 3000}, "budgetAmount"),
        )
        assert response.status_code == 200
        rows = response.json()
        assert [r["fiscalMonth"] for r in rows] == list(range(1, 13))
        assert rows[0] == {"fiscalMonth": 1, "budgetAmount": 1000}
        assert rows[11]["budgetAmount"] == 0

    def test_second_put_overwrites(self, client, item):
        client.put(item_path(item, "/actuals"), json=months_payload({1: 10}, "actualAmount"))
        client.put(item_path(item, "/actuals"), json=months_payload({1: 20}, "actualAmount"))

        rows = client.get(item_path(item, "/actuals")).json()
        assert len(rows) == 12
        assert rows[0]["actualAmount"] == 20

    def test_item_totals_follow_rows(self, client, item):
        client.put(item_path(item, "/budgets"), json=months_payload({1: 1000, 2: 2000}, "budgetAmount"))
        client.put(item_path(item, "/actuals"), json=months_payload({1: 1500}, "actualAmount"))

        body = client.get(item_path(item)).json()
        assert body["budgetTotal"] == 3000
        assert body["actualTotal"] == 1500
        # every actual month exists, so the actual side wins for all twelve
        assert body["reconciledTotal"] == 1500

    def test_incomplete_month_set_is_400(self, client, item):
        payload = months_payload({}, "budgetAmount")
        payload["months"] = payload["months"][:6]
        response = client.put(item_path(item, "/budgets"), json=payload)
        assert response.status_code == 400
        assert "missing" in response.json()["message"]
        assert client.get(item_path(item, "/budgets")).json() == []

    @pytest.mark.parametrize("amount", [-1, 1.5, "100", 2_147_483_648])
    def test_bad_amount_is_400(self, client, item, amount):
        response = client.put(item_path(item, "/budgets"), json=months_payload({4: amount}, "budgetAmount"))
        assert response.status_code == 400

    def test_unknown_item_is_404(self, client):
        path = f"/budget-items/{uuid.uuid4()}/budgets"
        assert client.get(path).status_code == 404
        assert client.put(path, json=months_payload({}, "budgetAmount")).status_code == 404

    def test_deleted_item_is_404(self, client, item):
        client.delete(item_path(item))
        response = client.put(item_path(item, "/actuals"), json=months_payload({}, "actualAmount"))
        assert response.status_code == 404


class TestFinalization:

    def test_finalize_blocks_actuals_only(self, client, item):
        finalized = client.post(item_path(item, "/finalize-actual"))
        assert finalized.status_code == 200
        assert finalized.json()["actualFinalizedFlg"] is True
        assert finalized.json()["actualFinalizedAt"] is not None

        blocked = client.put(item_path(item, "/actuals"), json=months_payload({1: 1}, "actualAmount"))
        assert blocked.status_code == 409
        assert blocked.json() == {"message": "actual is finalized"}
        assert client.get(item_path(item, "/actuals")).json() == []

        budgets = client.put(item_path(item, "/budgets"), json=months_payload({1: 1}, "budgetAmount"))
        assert budgets.status_code == 200

    def test_refinalize_keeps_timestamp(self, client, item):
        first = client.post(item_path(item, "/finalize-actual")).json()
        second = client.post(item_path(item, "/finalize-actual")).json()
        assert second["actualFinalizedAt"] == first["actualFinalizedAt"]

    def test_unfinalize_reopens_actuals(self, client, item):
        client.post(item_path(item, "/finalize-actual"))

        reopened = client.post(item_path(item, "/unfinalize-actual"))
        assert reopened.status_code == 200
        assert reopened.json()["actualFinalizedFlg"] is False
        assert reopened.json()["actualFinalizedAt"] is None

        response = client.put(item_path(item, "/actuals"), json=months_payload({1: 500}, "actualAmount"))
        assert response.status_code == 200

    def test_unfinalize_when_open_is_noop(self, client, item):
        response = client.post(item_path(item, "/unfinalize-actual"))
        assert response.status_code == 200
        assert response.json()["actualFinalizedFlg"] is False

    def test_finalize_unknown_item_is_404(self, client):
        assert client.post(f"/budget-items/{uuid.uuid4()}/finalize-actual").status_code == 404
