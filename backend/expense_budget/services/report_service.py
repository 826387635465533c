from sqlalchemy.orm import Session

from expense_budget.core.errors import NotFound
from expense_budget.core.reconciliation import summarize_by_category
from expense_budget.services.repository import BudgetItemRepository, EventRepository


def get_event_summary(db: Session, fiscal_year: int, event_code: str) -> dict:
    """
    Annual reconciled amount per expense category for one (fiscal year, event).

    Soft-deleted categories still group their items; only the items
    themselves must be active.
    """
    if not EventRepository(db).get_active_by_code(event_code):
        raise NotFound("event not found")

    items = BudgetItemRepository(db).search(fiscal_year=fiscal_year, event_code=event_code)
    series = [
        {
            "expense_category_code": row.expense_category_code,
            "expense_category_name": row.expense_category_name,
            "amount": row.amount,
        }
        for row in summarize_by_category(items)
    ]
    return {"fiscal_year": fiscal_year, "event_code": event_code, "series": series}
