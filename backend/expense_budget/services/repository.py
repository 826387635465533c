"""
Persistence gateway.

One repository per record kind. Every default query goes through
``_active()`` so soft-deleted rows never leak into listings or reference
checks; call sites do not restate the ``del_flg`` filter.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from expense_budget.core.errors import Conflict, NotFound
from expense_budget.models.budget import ActualMonthly, BudgetItem, BudgetMonthly
from expense_budget.models.master import Event, ExpenseCategory

logger = logging.getLogger(__name__)


class SoftDeleteRepository:
    model = None
    id_attr = None
    code_attr = None
    label = "record"
    default_order = ()

    def __init__(self, db: Session):
        self.db = db

    @property
    def _id_column(self):
        return getattr(self.model, self.id_attr)

    @property
    def _code_column(self):
        return getattr(self.model, self.code_attr)

    def _active(self):
        return self.db.query(self.model).filter(self.model.del_flg.is_(False))

    # --- Reads ---

    def list(self, filters: Iterable = (), order: Iterable = ()) -> List:
        query = self._active()
        for criterion in filters:
            query = query.filter(criterion)
        return query.order_by(*(tuple(order) or self.default_order)).all()

    def get(self, record_id: str):
        """Lookup including soft-deleted rows."""
        return self.db.query(self.model).filter(self._id_column == record_id).first()

    def get_active(self, record_id: str):
        return self._active().filter(self._id_column == record_id).first()

    def get_active_by_code(self, code: str):
        return self._active().filter(self._code_column == code).first()

    def require_active(self, record_id: str):
        record = self.get_active(record_id)
        if not record:
            raise NotFound(f"{self.label} not found")
        return record

    def _check_code_available(self, code: str, exclude_id: Optional[str] = None):
        query = self._active().filter(self._code_column == code)
        if exclude_id is not None:
            query = query.filter(self._id_column != exclude_id)
        if query.first():
            raise Conflict(f"{self.code_attr} already exists")

    # --- Writes ---

    def create(self, fields: Dict):
        self._check_code_available(fields[self.code_attr])
        record = self.model(**fields)
        self.db.add(record)
        self._commit()
        self.db.refresh(record)
        logger.info("Created %s %s", self.label, getattr(record, self.id_attr))
        return record

    def update(self, record_id: str, changes: Dict):
        record = self.require_active(record_id)
        new_code = changes.get(self.code_attr)
        if new_code is not None and new_code != getattr(record, self.code_attr):
            self._check_code_available(new_code, exclude_id=record_id)

        for key, value in changes.items():
            setattr(record, key, value)
        self._commit()
        self.db.refresh(record)
        logger.info("Updated %s %s: %s", self.label, record_id, ", ".join(sorted(changes)))
        return record

    def soft_delete(self, record_id: str):
        """Flag the row deleted. Deleting an already deleted row is a no-op."""
        record = self.get(record_id)
        if not record:
            raise NotFound(f"{self.label} not found")
        if record.del_flg:
            return record

        record.del_flg = True
        self._commit()
        self.db.refresh(record)
        logger.info("Deleted %s %s", self.label, record_id)
        return record

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class EventRepository(SoftDeleteRepository):
    model = Event
    id_attr = "event_id"
    code_attr = "event_code"
    label = "event"
    default_order = (Event.event_order.asc(), Event.event_code.asc())


class ExpenseCategoryRepository(SoftDeleteRepository):
    model = ExpenseCategory
    id_attr = "expense_category_id"
    code_attr = "expense_category_code"
    label = "expense category"
    default_order = (ExpenseCategory.expense_category_code.asc(),)


class BudgetItemRepository(SoftDeleteRepository):
    model = BudgetItem
    id_attr = "budget_item_id"
    code_attr = "budget_item_code"
    label = "budget item"
    default_order = (BudgetItem.fiscal_year.asc(), BudgetItem.budget_item_code.asc())

    def search(self, fiscal_year: Optional[int] = None, event_code: Optional[str] = None,
               expense_category_code: Optional[str] = None) -> List[BudgetItem]:
        query = self._active()
        if fiscal_year is not None:
            query = query.filter(BudgetItem.fiscal_year == fiscal_year)
        if event_code is not None:
            query = query.join(BudgetItem.event).filter(
                Event.event_code == event_code,
                Event.del_flg.is_(False),
            )
        if expense_category_code is not None:
            query = query.join(BudgetItem.expense_category).filter(
                ExpenseCategory.expense_category_code == expense_category_code,
                ExpenseCategory.del_flg.is_(False),
            )
        return query.order_by(*self.default_order).all()

    def count_referencing(self, **criteria) -> int:
        query = self._active()
        for key, value in criteria.items():
            query = query.filter(getattr(BudgetItem, key) == value)
        return query.count()


class MonthlyRepository:
    """Month rows of one kind (budgets or actuals), keyed on (item, month)."""
    model = None
    amount_attr = None

    def __init__(self, db: Session):
        self.db = db

    def list_for_item(self, budget_item_id: str) -> List:
        return (
            self.db.query(self.model)
            .filter(self.model.budget_item_id == budget_item_id, self.model.del_flg.is_(False))
            .order_by(self.model.fiscal_month.asc())
            .all()
        )

    def _upsert_row(self, existing: Dict, budget_item_id: str, fiscal_month: int, amount: int):
        row = existing.get(fiscal_month)
        if row is None:
            row = self.model(budget_item_id=budget_item_id, fiscal_month=fiscal_month)
            self.db.add(row)
            existing[fiscal_month] = row
        setattr(row, self.amount_attr, amount)
        row.del_flg = False
        return row

    def bulk_upsert(self, budget_item_id: str, rows: Dict[int, int]) -> List:
        """
        Write every (month -> amount) pair in one transaction.

        Either all rows are stored or, on any failure, none are and the
        previous values stay intact.
        """
        existing = {
            row.fiscal_month: row
            for row in self.db.query(self.model).filter(self.model.budget_item_id == budget_item_id)
        }
        try:
            for fiscal_month, amount in sorted(rows.items()):
                self._upsert_row(existing, budget_item_id, fiscal_month, amount)
                self.db.flush()
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning("Rolled back %s upsert for budget item %s", self.model.__tablename__, budget_item_id)
            raise

        logger.info("Upserted %d %s rows for budget item %s", len(rows), self.model.__tablename__, budget_item_id)
        return self.list_for_item(budget_item_id)


class BudgetMonthlyRepository(MonthlyRepository):
    model = BudgetMonthly
    amount_attr = "budget_amount"


class ActualMonthlyRepository(MonthlyRepository):
    model = ActualMonthly
    amount_attr = "actual_amount"
