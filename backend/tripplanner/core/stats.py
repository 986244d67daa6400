"""
Expense statistics.
Pure folds over an in-memory expense list; recomputed on every read.
Expenses are mappings with ``amount``, ``category``, ``placeId`` and,
when joined with their place, ``place_day``.
"""

from typing import Any, Dict, List, Mapping, Sequence

from tripplanner.core.currency import parse_amount


def total_spent(expenses: Sequence[Mapping[str, Any]]) -> float:
    return sum((parse_amount(e.get("amount")) for e in expenses), 0.0)


def category_totals(expenses: Sequence[Mapping[str, Any]]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for expense in expenses:
        category = expense.get("category")
        totals[category] = totals.get(category, 0.0) + parse_amount(expense.get("amount"))
    return totals


def category_stats(expenses: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Per-category total and count, largest total first."""
    stats: Dict[str, Dict[str, Any]] = {}
    for expense in expenses:
        category = expense.get("category")
        row = stats.setdefault(category, {"category": category, "total_amount": 0.0, "count": 0})
        row["total_amount"] += parse_amount(expense.get("amount"))
        row["count"] += 1
    return sorted(stats.values(), key=lambda r: r["total_amount"], reverse=True)


def daily_expenses(expenses: Sequence[Mapping[str, Any]]) -> Dict[int, List[Mapping[str, Any]]]:
    """
    Group place-attached expenses by the day of their place.
    Miscellaneous expenses (no place, or a place that no longer exists)
    are left out.
    """
    grouped: Dict[int, List[Mapping[str, Any]]] = {}
    for expense in expenses:
        day = expense.get("place_day")
        if not expense.get("placeId") or not day:
            continue
        grouped.setdefault(int(day), []).append(expense)
    return grouped


def daily_totals(expenses: Sequence[Mapping[str, Any]]) -> Dict[int, float]:
    return {day: total_spent(items) for day, items in daily_expenses(expenses).items()}


def expenses_by_place(expenses: Sequence[Mapping[str, Any]], place_id: str) -> List[Mapping[str, Any]]:
    return [e for e in expenses if e.get("placeId") == place_id]


def budget_summary(expenses: Sequence[Mapping[str, Any]], budget: float) -> Dict[str, Any]:
    """Spent vs budget, as shown on the expense dashboard."""
    spent = total_spent(expenses)
    percent_used = (spent / budget) * 100 if budget > 0 else 0.0
    return {
        "budget": budget,
        "spent": spent,
        "remaining": budget - spent,
        "percentUsed": round(percent_used, 1),
        "overBudget": spent > budget,
    }


def misc_expenses(expenses: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Expenses never attached to a place."""
    return [e for e in expenses if not e.get("placeId")]


def orphaned_expenses(expenses: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Expenses still pointing at a place that no longer exists."""
    return [e for e in expenses if e.get("placeId") and not e.get("place_day")]
