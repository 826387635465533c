from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from expense_budget.database import get_db
from expense_budget.schemas import ExpenseCategoryCreate, ExpenseCategoryOut, ExpenseCategoryUpdate
from expense_budget.services import master_service

router = APIRouter(prefix="/expense-categories", tags=["expense-categories"])

@router.get("", response_model=List[ExpenseCategoryOut])
def get_expense_categories(db: Session = Depends(get_db)):
    return master_service.list_expense_categories(db)

@router.post("", response_model=ExpenseCategoryOut, status_code=status.HTTP_201_CREATED)
def create_expense_category(payload: ExpenseCategoryCreate, db: Session = Depends(get_db)):
    """
    Create a category. 409 when an active category already uses the code.
    """
    return master_service.create_expense_category(db, payload)

@router.put("/{expense_category_id}", response_model=ExpenseCategoryOut)
def update_expense_category(expense_category_id: UUID, payload: ExpenseCategoryUpdate, db: Session = Depends(get_db)):
    return master_service.update_expense_category(db, str(expense_category_id), payload)

@router.delete("/{expense_category_id}", response_model=ExpenseCategoryOut)
def delete_expense_category(expense_category_id: UUID, db: Session = Depends(get_db)):
    """Soft delete. Repeating the call on a deleted category is a no-op."""
    return master_service.delete_expense_category(db, str(expense_category_id))
