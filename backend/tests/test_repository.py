"""
Persistence gateway: soft-delete defaults, active-code uniqueness and
all-or-nothing monthly upserts.
"""

import pytest

from expense_budget.core.errors import Conflict, NotFound
from expense_budget.services.repository import (
    ActualMonthlyRepository,
    BudgetMonthlyRepository,
    ExpenseCategoryRepository,
)


class TestSoftDelete:

    def test_deleted_rows_excluded_from_list_and_lookup(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        category_id = sample_category.expense_category_id

        repo.soft_delete(category_id)

        assert repo.list() == []
        assert repo.get_active(category_id) is None
        assert repo.get(category_id).del_flg is True
        with pytest.raises(NotFound):
            repo.require_active(category_id)

    def test_redelete_is_noop(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        category_id = sample_category.expense_category_id

        first = repo.soft_delete(category_id)
        second = repo.soft_delete(category_id)

        assert first.del_flg is True
        assert second.del_flg is True

    def test_delete_unknown_id(self, db_session):
        with pytest.raises(NotFound):
            ExpenseCategoryRepository(db_session).soft_delete("00000000-0000-0000-0000-000000000000")

    def test_update_deleted_row_is_not_found(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        repo.soft_delete(sample_category.expense_category_id)
        with pytest.raises(NotFound):
            repo.update(sample_category.expense_category_id, {"expense_category_name": "x"})


class TestCodeUniqueness:

    def test_duplicate_active_code_conflicts(self, db_session, sample_category):
        with pytest.raises(Conflict):
            ExpenseCategoryRepository(db_session).create(
                {"expense_category_code": "TRAVEL", "expense_category_name": "other"}
            )

    def test_code_of_deleted_row_can_be_reused(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        repo.soft_delete(sample_category.expense_category_id)

        reused = repo.create({"expense_category_code": "TRAVEL", "expense_category_name": "旅費"})

        assert reused.expense_category_id != sample_category.expense_category_id
        assert [c.expense_category_code for c in repo.list()] == ["TRAVEL"]

    def test_update_to_colliding_code_conflicts(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        other = repo.create({"expense_category_code": "MEAL", "expense_category_name": "会議費"})
        with pytest.raises(Conflict):
            repo.update(other.expense_category_id, {"expense_category_code": "TRAVEL"})

    def test_update_keeping_own_code_is_allowed(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        updated = repo.update(sample_category.expense_category_id, {
            "expense_category_code": "TRAVEL",
            "expense_category_name": "旅費（国内）",
        })
        assert updated.expense_category_name == "旅費（国内）"

    def test_list_orders_by_code(self, db_session, sample_category):
        repo = ExpenseCategoryRepository(db_session)
        repo.create({"expense_category_code": "AD", "expense_category_name": "広告宣伝費"})
        repo.create({"expense_category_code": "MEAL", "expense_category_name": "会議費"})
        assert [c.expense_category_code for c in repo.list()] == ["AD", "MEAL", "TRAVEL"]


class TestBulkUpsert:

    def test_upsert_inserts_then_updates_in_place(self, db_session, sample_item):
        repo = BudgetMonthlyRepository(db_session)
        item_id = sample_item.budget_item_id

        repo.bulk_upsert(item_id, {m: 100 for m in range(1, 13)})
        rows = repo.bulk_upsert(item_id, {m: m * 10 for m in range(1, 13)})

        assert len(rows) == 12
        assert {r.fiscal_month: r.budget_amount for r in rows} == {m: m * 10 for m in range(1, 13)}

    def test_failure_on_last_row_keeps_previous_values(self, db_session, sample_item, monkeypatch):
        repo = ActualMonthlyRepository(db_session)
        item_id = sample_item.budget_item_id
        before = {m: m * 100 for m in range(1, 13)}
        repo.bulk_upsert(item_id, before)

        original = repo._upsert_row
        calls = {"count": 0}

        def failing_upsert(existing, budget_item_id, fiscal_month, amount):
            calls["count"] += 1
            if calls["count"] == 12:
                raise RuntimeError("storage failure")
            return original(existing, budget_item_id, fiscal_month, amount)

        monkeypatch.setattr(repo, "_upsert_row", failing_upsert)

        with pytest.raises(RuntimeError):
            repo.bulk_upsert(item_id, {m: 9999 for m in range(1, 13)})

        assert calls["count"] == 12
        rows = ActualMonthlyRepository(db_session).list_for_item(item_id)
        assert {r.fiscal_month: r.actual_amount for r in rows} == before

    def test_failed_first_upsert_leaves_no_rows(self, db_session, sample_item, monkeypatch):
        repo = BudgetMonthlyRepository(db_session)
        item_id = sample_item.budget_item_id
        original = repo._upsert_row
        calls = {"count": 0}

        def failing_upsert(existing, budget_item_id, fiscal_month, amount):
            calls["count"] += 1
            if calls["count"] == 12:
                raise RuntimeError("storage failure")
            return original(existing, budget_item_id, fiscal_month, amount)

        monkeypatch.setattr(repo, "_upsert_row", failing_upsert)

        with pytest.raises(RuntimeError):
            repo.bulk_upsert(item_id, {m: 1 for m in range(1, 13)})

        assert BudgetMonthlyRepository(db_session).list_for_item(item_id) == []

    def test_budget_and_actual_rows_are_independent(self, db_session, sample_item):
        item_id = sample_item.budget_item_id
        BudgetMonthlyRepository(db_session).bulk_upsert(item_id, {m: 1 for m in range(1, 13)})

        assert ActualMonthlyRepository(db_session).list_for_item(item_id) == []
