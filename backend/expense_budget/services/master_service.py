"""
Master data maintenance: events and expense categories.
"""
from typing import List

from sqlalchemy.orm import Session

from expense_budget.core.errors import Conflict
from expense_budget.models.master import Event, ExpenseCategory
from expense_budget.schemas import EventCreate, EventUpdate, ExpenseCategoryCreate, ExpenseCategoryUpdate
from expense_budget.services.repository import (
    BudgetItemRepository,
    EventRepository,
    ExpenseCategoryRepository,
)


# --- Events ---

def list_events(db: Session) -> List[Event]:
    return EventRepository(db).list()


def create_event(db: Session, payload: EventCreate) -> Event:
    return EventRepository(db).create(payload.model_dump())


def update_event(db: Session, event_id: str, payload: EventUpdate) -> Event:
    repo = EventRepository(db)
    changes = payload.changes()

    # A referenced event keeps its code; name and order stay editable
    if "event_code" in changes:
        event = repo.require_active(event_id)
        if changes["event_code"] != event.event_code and BudgetItemRepository(db).count_referencing(event_id=event_id):
            raise Conflict("event_code cannot change while budget items reference the event")

    return repo.update(event_id, changes)


def delete_event(db: Session, event_id: str) -> Event:
    repo = EventRepository(db)
    event = repo.get_active(event_id)
    if event and BudgetItemRepository(db).count_referencing(event_id=event_id):
        raise Conflict("event is referenced by budget items")
    return repo.soft_delete(event_id)


# --- Expense categories ---

def list_expense_categories(db: Session) -> List[ExpenseCategory]:
    return ExpenseCategoryRepository(db).list()


def create_expense_category(db: Session, payload: ExpenseCategoryCreate) -> ExpenseCategory:
    return ExpenseCategoryRepository(db).create(payload.model_dump())


def update_expense_category(db: Session, expense_category_id: str, payload: ExpenseCategoryUpdate) -> ExpenseCategory:
    return ExpenseCategoryRepository(db).update(expense_category_id, payload.changes())


def delete_expense_category(db: Session, expense_category_id: str) -> ExpenseCategory:
    return ExpenseCategoryRepository(db).soft_delete(expense_category_id)
