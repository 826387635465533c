from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel
import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from expense_budget.core.reconciliation import FISCAL_MONTHS, annual_amount, monthly_total

# --- BOUNDS ---
FISCAL_YEAR_MIN = 2000
FISCAL_YEAR_MAX = 2100
AMOUNT_MAX = 2_147_483_647  # INT column upper bound
CODE_MAX_LENGTH = 50
NAME_MAX_LENGTH = 100

Code = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=CODE_MAX_LENGTH)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=NAME_MAX_LENGTH)]
FiscalYear = Annotated[int, Field(strict=True, ge=FISCAL_YEAR_MIN, le=FISCAL_YEAR_MAX)]
FiscalMonth = Annotated[int, Field(strict=True, ge=1, le=12)]
Amount = Annotated[int, Field(strict=True, ge=0, le=AMOUNT_MAX)]
DisplayOrder = Annotated[int, Field(strict=True, ge=0, le=AMOUNT_MAX)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialUpdate(CamelModel):
    """
    Base for PUT payloads. Only the fields present in the request are merged;
    at least one is required and none may be null.
    """

    @model_validator(mode="after")
    def _require_some_field(self):
        if not self.model_fields_set:
            fields = " or ".join(to_camel(name) for name in type(self).model_fields)
            raise ValueError(f"{fields} is required")
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} must not be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, mode="json")


def _check_complete_months(rows):
    months = [row.fiscal_month for row in rows]
    duplicated = sorted({m for m in months if months.count(m) > 1})
    if duplicated:
        raise ValueError(f"duplicate fiscalMonth: {', '.join(map(str, duplicated))}")
    missing = sorted(set(FISCAL_MONTHS) - set(months))
    if missing:
        raise ValueError(f"months must contain fiscalMonth 1-12; missing: {', '.join(map(str, missing))}")
    return rows


# --- EVENT SCHEMAS ---
class EventCreate(CamelModel):
    event_code: Code
    event_name: Name
    event_order: DisplayOrder = 0

class EventUpdate(PartialUpdate):
    event_code: Optional[Code] = None
    event_name: Optional[Name] = None
    event_order: Optional[DisplayOrder] = None

class EventOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    event_id: str
    event_code: str
    event_name: str
    event_order: int
    del_flg: bool
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


# --- EXPENSE CATEGORY SCHEMAS ---
class ExpenseCategoryCreate(CamelModel):
    expense_category_code: Code
    expense_category_name: Name

class ExpenseCategoryUpdate(PartialUpdate):
    expense_category_code: Optional[Code] = None
    expense_category_name: Optional[Name] = None

class ExpenseCategoryOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    expense_category_id: str
    expense_category_code: str
    expense_category_name: str
    del_flg: bool
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


# --- MONTHLY SCHEMAS ---
class MonthlyBudgetRow(CamelModel):
    fiscal_month: FiscalMonth
    budget_amount: Amount

class MonthlyActualRow(CamelModel):
    fiscal_month: FiscalMonth
    actual_amount: Amount

class MonthlyBudgetUpsert(CamelModel):
    months: List[MonthlyBudgetRow]

    @field_validator("months")
    @classmethod
    def _complete_months(cls, rows):
        return _check_complete_months(rows)

class MonthlyActualUpsert(CamelModel):
    months: List[MonthlyActualRow]

    @field_validator("months")
    @classmethod
    def _complete_months(cls, rows):
        return _check_complete_months(rows)

class MonthlyBudgetOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    fiscal_month: int
    budget_amount: int

class MonthlyActualOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    fiscal_month: int
    actual_amount: int


# --- BUDGET ITEM SCHEMAS ---
class BudgetItemCreate(CamelModel):
    fiscal_year: FiscalYear
    event_id: UUID
    expense_category_id: UUID
    budget_item_code: Code
    budget_item_name: Name

class BudgetItemUpdate(PartialUpdate):
    fiscal_year: Optional[FiscalYear] = None
    event_id: Optional[UUID] = None
    expense_category_id: Optional[UUID] = None
    budget_item_code: Optional[Code] = None
    budget_item_name: Optional[Name] = None

class BudgetItemOut(CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    budget_item_id: str
    fiscal_year: int
    budget_item_code: str
    budget_item_name: str
    event_id: str
    expense_category_id: str
    actual_finalized_flg: bool
    actual_finalized_at: Optional[datetime.datetime] = None
    del_flg: bool
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    event: EventOut
    expense_category: ExpenseCategoryOut
    budget_monthlies: List[MonthlyBudgetOut] = []
    actual_monthlies: List[MonthlyActualOut] = []

    @field_validator("budget_monthlies", "actual_monthlies", mode="before")
    @classmethod
    def _active_rows_only(cls, rows):
        return [row for row in rows or [] if not getattr(row, "del_flg", False)]

    @computed_field(alias="budgetTotal")
    @property
    def budget_total(self) -> int:
        return monthly_total(self.budget_monthlies, "budget_amount")

    @computed_field(alias="actualTotal")
    @property
    def actual_total(self) -> int:
        return monthly_total(self.actual_monthlies, "actual_amount")

    @computed_field(alias="reconciledTotal")
    @property
    def reconciled_total(self) -> int:
        return annual_amount(self.budget_monthlies, self.actual_monthlies)


# --- REPORT SCHEMAS ---
class EventSummaryPoint(CamelModel):
    expense_category_code: str
    expense_category_name: str
    amount: int

class EventSummary(CamelModel):
    fiscal_year: int
    event_code: str
    series: List[EventSummaryPoint]


class HealthOut(BaseModel):
    ok: bool
