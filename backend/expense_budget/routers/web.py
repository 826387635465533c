"""
Server-rendered front end.

One page at ``/`` plus form targets under ``/ui``. Every form handler calls
the same service functions as the JSON API, then redirects back to the page
with either ``message`` or ``error`` in the query string.
"""
import logging
import os
from datetime import date
from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from expense_budget.core.errors import AppError, Conflict, ValidationError
from expense_budget.core.reconciliation import FISCAL_MONTHS
from expense_budget.database import get_db
from expense_budget.schemas import (
    BudgetItemCreate,
    BudgetItemOut,
    BudgetItemUpdate,
    ExpenseCategoryCreate,
    ExpenseCategoryUpdate,
    FISCAL_YEAR_MAX,
    FISCAL_YEAR_MIN,
    MonthlyActualUpsert,
    MonthlyBudgetUpsert,
)
from expense_budget.services import budget_service, master_service, report_service

logger = logging.getLogger(__name__)

base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
templates = Jinja2Templates(directory=os.path.join(base_dir, "templates"))
templates.env.filters["yen"] = lambda amount: f"{amount:,}"

router = APIRouter(tags=["web"], include_in_schema=False)


def _parse_fiscal_year(value) -> Optional[int]:
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if FISCAL_YEAR_MIN <= year <= FISCAL_YEAR_MAX:
        return year
    return None


def _parse_id(value) -> Optional[str]:
    try:
        return str(UUID(str(value).strip()))
    except ValueError:
        return None


def _back(fiscal_year, event_code: str, message: str = None, error: str = None) -> RedirectResponse:
    params = {"fiscalYear": fiscal_year if fiscal_year is not None else "", "eventCode": event_code or ""}
    if message:
        params["message"] = message
    if error:
        params["error"] = error
    return RedirectResponse(url=f"/?{urlencode(params)}", status_code=303)


def _parse_monthly_amounts(form, prefix: str):
    """Months 1..12 from ``{prefix}_{month}`` fields. Blank fields count as 0."""
    months = []
    for month in FISCAL_MONTHS:
        field = f"{prefix}_{month}"
        raw = str(form.get(field) or "0").strip()
        if not raw.isdecimal():
            raise ValidationError(f"{field}: not a non-negative integer")
        months.append((month, int(raw)))
    return months


def _run(action, fiscal_year, event_code: str, success: str, failure: str, conflict: str = None):
    try:
        action()
    except PydanticValidationError as e:
        logger.warning("Form rejected: %s", e.errors()[0].get("msg"))
        return _back(fiscal_year, event_code, error=failure)
    except Conflict as e:
        logger.warning("Form conflict: %s", e.message)
        return _back(fiscal_year, event_code, error=conflict or failure)
    except AppError as e:
        logger.warning("Form failed: %s", e.message)
        return _back(fiscal_year, event_code, error=failure)
    return _back(fiscal_year, event_code, message=success)


# --- Page ---

@router.get("/")
def index(
    request: Request,
    fiscalYear: Optional[str] = None,
    eventCode: Optional[str] = None,
    message: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db)
):
    events = master_service.list_events(db)
    categories = master_service.list_expense_categories(db)

    current_year = date.today().year
    fiscal_year = _parse_fiscal_year(fiscalYear) if fiscalYear else current_year
    selected_event_code = eventCode or (events[0].event_code if events else "")
    selected_event = next((e for e in events if e.event_code == selected_event_code), None)

    summary = None
    items = []
    if fiscal_year is not None and selected_event is not None:
        summary = report_service.get_event_summary(db, fiscal_year, selected_event_code)
        items = [
            BudgetItemOut.model_validate(item)
            for item in budget_service.list_budget_items(db, fiscal_year=fiscal_year, event_code=selected_event_code)
        ]

    series = summary["series"] if summary else []
    max_amount = max((row["amount"] for row in series), default=0)

    return templates.TemplateResponse(request, "index.html", {
        "events": events,
        "categories": categories,
        "fiscal_year": fiscal_year if fiscal_year is not None else current_year,
        "fiscal_year_min": FISCAL_YEAR_MIN,
        "fiscal_year_max": FISCAL_YEAR_MAX,
        "selected_event_code": selected_event_code,
        "selected_event": selected_event,
        "summary": summary,
        "series": series,
        "max_amount": max_amount,
        "items": items,
        "months": FISCAL_MONTHS,
        "message": message,
        "error": error,
    })


# --- Expense categories ---

@router.post("/ui/expense-categories/create")
def create_expense_category(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    expenseCategoryCode: str = Form(""),
    expenseCategoryName: str = Form(""),
    db: Session = Depends(get_db)
):
    if not expenseCategoryCode.strip() or not expenseCategoryName.strip():
        return _back(fiscalYear, eventCode, error="費目コードと費目名は必須です")

    return _run(
        lambda: master_service.create_expense_category(db, ExpenseCategoryCreate(
            expense_category_code=expenseCategoryCode,
            expense_category_name=expenseCategoryName,
        )),
        fiscalYear, eventCode,
        success="費目を作成しました",
        failure="費目の作成に失敗しました",
        conflict="費目コードが重複しています",
    )


@router.post("/ui/expense-categories/update")
def update_expense_category(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    expenseCategoryId: str = Form(""),
    expenseCategoryCode: str = Form(""),
    expenseCategoryName: str = Form(""),
    db: Session = Depends(get_db)
):
    expense_category_id = _parse_id(expenseCategoryId)
    if expense_category_id is None:
        return _back(fiscalYear, eventCode, error="費目IDが不正です")
    if not expenseCategoryCode.strip() or not expenseCategoryName.strip():
        return _back(fiscalYear, eventCode, error="費目更新の入力が不足しています")

    return _run(
        lambda: master_service.update_expense_category(db, expense_category_id, ExpenseCategoryUpdate(
            expense_category_code=expenseCategoryCode,
            expense_category_name=expenseCategoryName,
        )),
        fiscalYear, eventCode,
        success="費目を更新しました",
        failure="費目の更新に失敗しました",
        conflict="費目コードが重複しています",
    )


@router.post("/ui/expense-categories/delete")
def delete_expense_category(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    expenseCategoryId: str = Form(""),
    db: Session = Depends(get_db)
):
    expense_category_id = _parse_id(expenseCategoryId)
    if expense_category_id is None:
        return _back(fiscalYear, eventCode, error="費目IDが不正です")

    return _run(
        lambda: master_service.delete_expense_category(db, expense_category_id),
        fiscalYear, eventCode,
        success="費目を削除しました",
        failure="費目の削除に失敗しました",
    )


# --- Budget items ---

@router.post("/ui/budget-items/create")
def create_budget_item(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    eventId: str = Form(""),
    expenseCategoryId: str = Form(""),
    budgetItemCode: str = Form(""),
    budgetItemName: str = Form(""),
    db: Session = Depends(get_db)
):
    fiscal_year = _parse_fiscal_year(fiscalYear)
    if fiscal_year is None or not eventCode or not eventId or not expenseCategoryId \
            or not budgetItemCode.strip() or not budgetItemName.strip():
        return _back(fiscalYear, eventCode, error="必須項目を入力してください")

    return _run(
        lambda: budget_service.create_budget_item(db, BudgetItemCreate(
            fiscal_year=fiscal_year,
            event_id=eventId,
            expense_category_id=expenseCategoryId,
            budget_item_code=budgetItemCode,
            budget_item_name=budgetItemName,
        )),
        fiscal_year, eventCode,
        success="予算項目を作成しました",
        failure="予算項目の作成に失敗しました",
        conflict="重複する予算項目コードです",
    )


@router.post("/ui/budget-items/update")
def update_budget_item(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    budgetItemId: str = Form(""),
    expenseCategoryId: str = Form(""),
    budgetItemCode: str = Form(""),
    budgetItemName: str = Form(""),
    db: Session = Depends(get_db)
):
    budget_item_id = _parse_id(budgetItemId)
    if budget_item_id is None:
        return _back(fiscalYear, eventCode, error="予算項目IDが不正です")
    if not expenseCategoryId or not budgetItemCode.strip() or not budgetItemName.strip():
        return _back(fiscalYear, eventCode, error="予算項目更新の入力が不足しています")

    return _run(
        lambda: budget_service.update_budget_item(db, budget_item_id, BudgetItemUpdate(
            expense_category_id=expenseCategoryId,
            budget_item_code=budgetItemCode,
            budget_item_name=budgetItemName,
        )),
        fiscalYear, eventCode,
        success="予算項目を更新しました",
        failure="予算項目の更新に失敗しました",
        conflict="重複する予算項目コードです",
    )


@router.post("/ui/budget-items/delete")
def delete_budget_item(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    budgetItemId: str = Form(""),
    db: Session = Depends(get_db)
):
    budget_item_id = _parse_id(budgetItemId)
    if budget_item_id is None:
        return _back(fiscalYear, eventCode, error="予算項目IDが不正です")

    return _run(
        lambda: budget_service.delete_budget_item(db, budget_item_id),
        fiscalYear, eventCode,
        success="予算項目を削除しました",
        failure="予算項目の削除に失敗しました",
    )


# --- Monthly matrices ---

@router.post("/ui/budget-items/budgets")
async def save_budgets(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    fiscal_year = form.get("fiscalYear", "")
    event_code = form.get("eventCode", "")
    budget_item_id = _parse_id(form.get("budgetItemId", ""))
    if budget_item_id is None:
        return _back(fiscal_year, event_code, error="予算項目IDが不正です")

    try:
        months = _parse_monthly_amounts(form, "budget")
    except ValidationError as e:
        logger.warning("Form rejected: %s", e.message)
        return _back(fiscal_year, event_code, error="予算は0以上の整数で入力してください")

    return _run(
        lambda: budget_service.upsert_budget_monthlies(db, budget_item_id, MonthlyBudgetUpsert(
            months=[{"fiscal_month": m, "budget_amount": amount} for m, amount in months],
        )),
        fiscal_year, event_code,
        success="予算を一括更新しました",
        failure="予算一括保存に失敗しました",
    )


@router.post("/ui/budget-items/actuals")
async def save_actuals(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    fiscal_year = form.get("fiscalYear", "")
    event_code = form.get("eventCode", "")
    budget_item_id = _parse_id(form.get("budgetItemId", ""))
    if budget_item_id is None:
        return _back(fiscal_year, event_code, error="予算項目IDが不正です")

    try:
        months = _parse_monthly_amounts(form, "actual")
    except ValidationError as e:
        logger.warning("Form rejected: %s", e.message)
        return _back(fiscal_year, event_code, error="実績は0以上の整数で入力してください")

    return _run(
        lambda: budget_service.upsert_actual_monthlies(db, budget_item_id, MonthlyActualUpsert(
            months=[{"fiscal_month": m, "actual_amount": amount} for m, amount in months],
        )),
        fiscal_year, event_code,
        success="実績を一括更新しました",
        failure="実績一括保存に失敗しました",
        conflict="この項目は実績確定済みです",
    )


# --- Finalization ---

@router.post("/ui/budget-items/finalize")
def finalize_actual(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    budgetItemId: str = Form(""),
    db: Session = Depends(get_db)
):
    budget_item_id = _parse_id(budgetItemId)
    if budget_item_id is None:
        return _back(fiscalYear, eventCode, error="予算項目IDが不正です")

    return _run(
        lambda: budget_service.finalize_actual(db, budget_item_id),
        fiscalYear, eventCode,
        success="実績を確定しました",
        failure="確定に失敗しました",
    )


@router.post("/ui/budget-items/unfinalize")
def unfinalize_actual(
    fiscalYear: str = Form(""),
    eventCode: str = Form(""),
    budgetItemId: str = Form(""),
    db: Session = Depends(get_db)
):
    budget_item_id = _parse_id(budgetItemId)
    if budget_item_id is None:
        return _back(fiscalYear, eventCode, error="予算項目IDが不正です")

    return _run(
        lambda: budget_service.unfinalize_actual(db, budget_item_id),
        fiscalYear, eventCode,
        success="実績確定を解除しました",
        failure="確定解除に失敗しました",
    )
