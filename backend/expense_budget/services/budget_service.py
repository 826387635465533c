"""
Budget items, their monthly budget/actual rows and the actual finalization gate.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from expense_budget.core.errors import Conflict, NotFound
from expense_budget.models.budget import ActualMonthly, BudgetItem, BudgetMonthly
from expense_budget.schemas import (
    BudgetItemCreate,
    BudgetItemUpdate,
    MonthlyActualUpsert,
    MonthlyBudgetUpsert,
)
from expense_budget.services.repository import (
    ActualMonthlyRepository,
    BudgetItemRepository,
    BudgetMonthlyRepository,
    EventRepository,
    ExpenseCategoryRepository,
)

logger = logging.getLogger(__name__)


def _require_references(db: Session, event_id: str, expense_category_id: str):
    if not EventRepository(db).get_active(event_id):
        raise NotFound("event not found")
    if not ExpenseCategoryRepository(db).get_active(expense_category_id):
        raise NotFound("expense category not found")


# --- Budget items ---

def list_budget_items(
    db: Session,
    fiscal_year: Optional[int] = None,
    event_code: Optional[str] = None,
    expense_category_code: Optional[str] = None,
) -> List[BudgetItem]:
    return BudgetItemRepository(db).search(
        fiscal_year=fiscal_year,
        event_code=event_code,
        expense_category_code=expense_category_code,
    )


def get_budget_item(db: Session, budget_item_id: str) -> BudgetItem:
    return BudgetItemRepository(db).require_active(budget_item_id)


def create_budget_item(db: Session, payload: BudgetItemCreate) -> BudgetItem:
    fields = payload.model_dump(mode="json")
    _require_references(db, fields["event_id"], fields["expense_category_id"])
    return BudgetItemRepository(db).create(fields)


def update_budget_item(db: Session, budget_item_id: str, payload: BudgetItemUpdate) -> BudgetItem:
    repo = BudgetItemRepository(db)
    item = repo.require_active(budget_item_id)
    changes = payload.changes()

    # Both references must still be active, whether or not they change
    _require_references(
        db,
        changes.get("event_id", item.event_id),
        changes.get("expense_category_id", item.expense_category_id),
    )
    return repo.update(budget_item_id, changes)


def delete_budget_item(db: Session, budget_item_id: str) -> BudgetItem:
    return BudgetItemRepository(db).soft_delete(budget_item_id)


# --- Monthly rows ---

def list_budget_monthlies(db: Session, budget_item_id: str) -> List[BudgetMonthly]:
    get_budget_item(db, budget_item_id)
    return BudgetMonthlyRepository(db).list_for_item(budget_item_id)


def list_actual_monthlies(db: Session, budget_item_id: str) -> List[ActualMonthly]:
    get_budget_item(db, budget_item_id)
    return ActualMonthlyRepository(db).list_for_item(budget_item_id)


def upsert_budget_monthlies(db: Session, budget_item_id: str, payload: MonthlyBudgetUpsert) -> List[BudgetMonthly]:
    # Budgets stay writable in both finalization states
    get_budget_item(db, budget_item_id)
    rows = {row.fiscal_month: row.budget_amount for row in payload.months}
    return BudgetMonthlyRepository(db).bulk_upsert(budget_item_id, rows)


def upsert_actual_monthlies(db: Session, budget_item_id: str, payload: MonthlyActualUpsert) -> List[ActualMonthly]:
    item = get_budget_item(db, budget_item_id)
    if item.actual_finalized_flg:
        raise Conflict("actual is finalized")
    rows = {row.fiscal_month: row.actual_amount for row in payload.months}
    return ActualMonthlyRepository(db).bulk_upsert(budget_item_id, rows)


# --- Finalization ---

def _set_finalized(db: Session, budget_item_id: str, finalized: bool) -> BudgetItem:
    item = get_budget_item(db, budget_item_id)
    if item.actual_finalized_flg == finalized:
        return item

    item.actual_finalized_flg = finalized
    item.actual_finalized_at = datetime.utcnow() if finalized else None
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(item)
    logger.info("Budget item %s actual %s", budget_item_id, "finalized" if finalized else "unfinalized")
    return item


def finalize_actual(db: Session, budget_item_id: str) -> BudgetItem:
    return _set_finalized(db, budget_item_id, True)


def unfinalize_actual(db: Session, budget_item_id: str) -> BudgetItem:
    return _set_finalized(db, budget_item_id, False)
