from __future__ import annotations

from tripplanner.core import stats

EXPENSES = [
    {"id": "e1", "amount": 4300.0, "category": "food", "placeId": "p1", "place_day": 1},
    {"id": "e2", "amount": "1,000", "category": "food", "placeId": "p2", "place_day": 2},
    {"id": "e3", "amount": 150000, "category": "accommodation", "placeId": "p3", "place_day": 1},
    {"id": "e4", "amount": 20000, "category": "transport", "placeId": None, "place_day": None},
    # attached to a place that was deleted
    {"id": "e5", "amount": 500, "category": "entrance", "placeId": "gone", "place_day": None},
]


def test_total_spent() -> None:
    assert stats.total_spent(EXPENSES) == 175800.0
    assert stats.total_spent([]) == 0.0


def test_category_totals() -> None:
    assert stats.category_totals(EXPENSES) == {
        "food": 5300.0,
        "accommodation": 150000.0,
        "transport": 20000.0,
        "entrance": 500.0,
    }


def test_category_stats_sorted_by_total() -> None:
    rows = stats.category_stats(EXPENSES)

    assert [r["category"] for r in rows] == ["accommodation", "transport", "food", "entrance"]
    assert rows[2] == {"category": "food", "total_amount": 5300.0, "count": 2}


def test_daily_totals_skip_unattached_expenses() -> None:
    assert stats.daily_totals(EXPENSES) == {1: 154300.0, 2: 1000.0}
    assert set(stats.daily_expenses(EXPENSES)) == {1, 2}


def test_misc_expenses_are_keyed_on_place_id() -> None:
    assert [e["id"] for e in stats.misc_expenses(EXPENSES)] == ["e4"]
    assert [e["id"] for e in stats.orphaned_expenses(EXPENSES)] == ["e5"]


def test_expenses_by_place() -> None:
    assert [e["id"] for e in stats.expenses_by_place(EXPENSES, "p1")] == ["e1"]
    assert stats.expenses_by_place(EXPENSES, "nope") == []


def test_budget_summary() -> None:
    summary = stats.budget_summary(EXPENSES, 3_000_000)

    assert summary["spent"] == 175800.0
    assert summary["remaining"] == 2824200.0
    assert summary["percentUsed"] == 5.9
    assert summary["overBudget"] is False


def test_budget_summary_over_and_zero_budget() -> None:
    assert stats.budget_summary(EXPENSES, 100000)["overBudget"] is True
    assert stats.budget_summary(EXPENSES, 0)["percentUsed"] == 0.0
