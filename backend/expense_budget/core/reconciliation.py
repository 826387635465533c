"""
Budget/actual reconciliation.

For every fiscal month 1..12 the effective amount of a budget item is the
actual amount when an active actual row exists for that month, otherwise the
budget amount when present, otherwise zero. The annual amount is the sum of
the twelve effective amounts.
"""
from typing import Dict, Iterable, List, NamedTuple

FISCAL_MONTHS = tuple(range(1, 13))


class CategoryTotal(NamedTuple):
    expense_category_code: str
    expense_category_name: str
    amount: int


def _by_month(rows, amount_attr: str) -> Dict[int, int]:
    amounts = {}
    for row in rows:
        if getattr(row, "del_flg", False):
            continue
        amounts[row.fiscal_month] = getattr(row, amount_attr)
    return amounts


def monthly_total(rows, amount_attr: str) -> int:
    """Plain sum of one side (budget or actual) over months 1..12."""
    amounts = _by_month(rows, amount_attr)
    return sum(amounts.get(month, 0) for month in FISCAL_MONTHS)


def effective_monthly_amounts(budgets, actuals) -> Dict[int, int]:
    budget_map = _by_month(budgets, "budget_amount")
    actual_map = _by_month(actuals, "actual_amount")

    effective = {}
    for month in FISCAL_MONTHS:
        if month in actual_map:
            effective[month] = actual_map[month]
        else:
            effective[month] = budget_map.get(month, 0)
    return effective


def annual_amount(budgets, actuals) -> int:
    return sum(effective_monthly_amounts(budgets, actuals).values())


def summarize_by_category(items: Iterable) -> List[CategoryTotal]:
    """
    Group budget items by expense category code and sum their annual amounts.

    Only categories with at least one item appear. The result is ordered by
    category code ascending.
    """
    totals: Dict[str, int] = {}
    names: Dict[str, str] = {}

    for item in items:
        category = item.expense_category
        code = category.expense_category_code
        if code not in totals:
            totals[code] = 0
        # A reused code reports under the active category name
        if code not in names or not getattr(category, "del_flg", False):
            names[code] = category.expense_category_name
        totals[code] += annual_amount(item.budget_monthlies, item.actual_monthlies)

    return [
        CategoryTotal(code, names[code], totals[code])
        for code in sorted(totals)
    ]
