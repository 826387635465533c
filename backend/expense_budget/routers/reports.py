from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from expense_budget.database import get_db
from expense_budget.schemas import CODE_MAX_LENGTH, EventSummary, FISCAL_YEAR_MAX, FISCAL_YEAR_MIN
from expense_budget.services import report_service

router = APIRouter(prefix="/reports", tags=["reports"])

@router.get("/event-summary", response_model=EventSummary)
def get_event_summary(
    fiscal_year: int = Query(..., alias="fiscalYear", ge=FISCAL_YEAR_MIN, le=FISCAL_YEAR_MAX),
    event_code: str = Query(..., alias="eventCode", min_length=1, max_length=CODE_MAX_LENGTH),
    db: Session = Depends(get_db)
):
    """
    Per expense category annual totals (actual overrides budget month by month),
    ordered by category code.
    """
    return report_service.get_event_summary(db, fiscal_year, event_code)
