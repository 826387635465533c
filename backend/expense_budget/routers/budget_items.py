from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from expense_budget.database import get_db
from expense_budget.schemas import (
    BudgetItemCreate,
    BudgetItemOut,
    BudgetItemUpdate,
    CODE_MAX_LENGTH,
    FISCAL_YEAR_MAX,
    FISCAL_YEAR_MIN,
    MonthlyActualOut,
    MonthlyActualUpsert,
    MonthlyBudgetOut,
    MonthlyBudgetUpsert,
)
from expense_budget.services import budget_service

router = APIRouter(prefix="/budget-items", tags=["budget-items"])

# --- Budget items ---

@router.get("", response_model=List[BudgetItemOut])
def get_budget_items(
    fiscal_year: Optional[int] = Query(None, alias="fiscalYear", ge=FISCAL_YEAR_MIN, le=FISCAL_YEAR_MAX),
    event_code: Optional[str] = Query(None, alias="eventCode", min_length=1, max_length=CODE_MAX_LENGTH),
    expense_category_code: Optional[str] = Query(None, alias="expenseCategoryCode", min_length=1, max_length=CODE_MAX_LENGTH),
    db: Session = Depends(get_db)
):
    """
    Active budget items with their event, category and monthly rows.
    """
    return budget_service.list_budget_items(
        db,
        fiscal_year=fiscal_year,
        event_code=event_code,
        expense_category_code=expense_category_code,
    )

@router.get("/{budget_item_id}", response_model=BudgetItemOut)
def get_budget_item(budget_item_id: UUID, db: Session = Depends(get_db)):
    return budget_service.get_budget_item(db, str(budget_item_id))

@router.post("", response_model=BudgetItemOut, status_code=status.HTTP_201_CREATED)
def create_budget_item(payload: BudgetItemCreate, db: Session = Depends(get_db)):
    """
    Create a budget item. The event and expense category must be active.
    """
    return budget_service.create_budget_item(db, payload)

@router.put("/{budget_item_id}", response_model=BudgetItemOut)
def update_budget_item(budget_item_id: UUID, payload: BudgetItemUpdate, db: Session = Depends(get_db)):
    return budget_service.update_budget_item(db, str(budget_item_id), payload)

@router.delete("/{budget_item_id}", response_model=BudgetItemOut)
def delete_budget_item(budget_item_id: UUID, db: Session = Depends(get_db)):
    return budget_service.delete_budget_item(db, str(budget_item_id))

# --- Monthly budgets / actuals ---

@router.get("/{budget_item_id}/budgets", response_model=List[MonthlyBudgetOut])
def get_budgets(budget_item_id: UUID, db: Session = Depends(get_db)):
    return budget_service.list_budget_monthlies(db, str(budget_item_id))

@router.put("/{budget_item_id}/budgets", response_model=List[MonthlyBudgetOut])
def put_budgets(budget_item_id: UUID, payload: MonthlyBudgetUpsert, db: Session = Depends(get_db)):
    """Replace the twelve monthly budget amounts in one transaction."""
    return budget_service.upsert_budget_monthlies(db, str(budget_item_id), payload)

@router.get("/{budget_item_id}/actuals", response_model=List[MonthlyActualOut])
def get_actuals(budget_item_id: UUID, db: Session = Depends(get_db)):
    return budget_service.list_actual_monthlies(db, str(budget_item_id))

@router.put("/{budget_item_id}/actuals", response_model=List[MonthlyActualOut])
def put_actuals(budget_item_id: UUID, payload: MonthlyActualUpsert, db: Session = Depends(get_db)):
    """
    Replace the twelve monthly actual amounts. 409 while the item is finalized.
    """
    return budget_service.upsert_actual_monthlies(db, str(budget_item_id), payload)

# --- Finalization ---

@router.post("/{budget_item_id}/finalize-actual", response_model=BudgetItemOut)
def finalize_actual(budget_item_id: UUID, db: Session = Depends(get_db)):
    return budget_service.finalize_actual(db, str(budget_item_id))

@router.post("/{budget_item_id}/unfinalize-actual", response_model=BudgetItemOut)
def unfinalize_actual(budget_item_id: UUID, db: Session = Depends(get_db)):
    return budget_service.unfinalize_actual(db, str(budget_item_id))
