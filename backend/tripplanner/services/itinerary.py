"""
Itinerary Service
==================
Explicit application state for one trip: the trip, its places and its
expenses, plus every mutation the planner UI performs on them.

Each mutation validates against the in-memory state, writes through the
repositories, then reloads the affected lists. When a write fails the
previous state is kept untouched and the error is re-raised.

Usage:
    service = ItineraryService.for_trip(db, trip_id)
    service.move_place(active_id="p1", over_id="day-2")
    service.summary()
"""

from __future__ import annotations
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tripplanner.core import stats
from tripplanner.core.categories import (
    DEFAULT_DURATION,
    DEFAULT_PLACE_CATEGORY,
    expense_category_for_place,
)
from tripplanner.core.config import settings
from tripplanner.core.currency import KRW, convert_to_krw, parse_amount
from tripplanner.core.errors import NotFoundError, ReorderFailed, ValidationError
from tripplanner.core.monitoring import track_performance
from tripplanner.core.reorder import (
    changed_positions,
    compute_reorder,
    day_places,
    place_at,
    position_triples,
    without_place,
)
from tripplanner.db.repositories import (
    ExpenseRepository,
    PlaceRepository,
    TripRepository,
    parse_date,
    place_to_dict,
    trip_to_dict,
)

logger = logging.getLogger(__name__)

NULLABLE_PLACE_FIELDS = ("placeId", "operatingHours", "notes")


def ensure_default_trip(db: Session) -> Tuple[Dict[str, Any], bool]:
    """
    Return the configured default trip, creating it on first use.
    A trip whose title contains ``default_trip_keyword`` is reused.

    Returns:
        (trip dict, created flag)
    """
    repo = TripRepository(db)
    existing = repo.find_by_title_keyword(settings.default_trip_keyword)
    if existing is not None:
        return trip_to_dict(existing), False
    trip = repo.create(
        title=settings.default_trip_title,
        description=settings.default_trip_description,
        start_date=settings.default_trip_start,
        end_date=settings.default_trip_end,
    )
    return trip_to_dict(trip), True


class ItineraryService:
    """CRUD + reorder + expense ledger for a single trip."""

    def __init__(
        self,
        db: Session,
        trip_id: str,
        expense_rate: Optional[float] = None,
        budget: Optional[float] = None,
    ):
        self.db = db
        self.trip_id = trip_id
        self.expense_rate = expense_rate if expense_rate is not None else settings.expense_thb_to_krw_rate
        self.budget = budget if budget is not None else settings.budget_krw
        self.trips = TripRepository(db)
        self.place_repo = PlaceRepository(db)
        self.expense_repo = ExpenseRepository(db)
        self.trip: Dict[str, Any] = {}
        self.places: List[Dict[str, Any]] = []
        self.expenses: List[Dict[str, Any]] = []
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # Construction / loading
    # ------------------------------------------------------------------

    @classmethod
    def for_trip(cls, db: Session, trip_id: str, **kwargs: Any) -> "ItineraryService":
        service = cls(db, trip_id, **kwargs)
        service.load()
        return service

    @classmethod
    def for_place(cls, db: Session, place_id: str, **kwargs: Any) -> "ItineraryService":
        place = PlaceRepository(db).require(place_id)
        return cls.for_trip(db, place.trip_id, **kwargs)

    @classmethod
    def for_expense(cls, db: Session, expense_id: str, **kwargs: Any) -> "ItineraryService":
        expense = ExpenseRepository(db).require(expense_id)
        return cls.for_trip(db, expense.trip_id, **kwargs)

    def load(self) -> None:
        self.trip = trip_to_dict(self.trips.require(self.trip_id))
        self._reload_places()
        self._reload_expenses()
        self.error = None

    def _reload_places(self) -> None:
        self.places = [place_to_dict(p) for p in self.place_repo.list_by_trip(self.trip_id)]

    def _reload_expenses(self) -> None:
        self.expenses = self.expense_repo.list_by_trip(self.trip_id)

    # ------------------------------------------------------------------
    # Places
    # ------------------------------------------------------------------

    @property
    def total_days(self) -> int:
        return self.trip["totalDays"]

    def day_places(self, day: int) -> List[Dict[str, Any]]:
        return [dict(p) for p in day_places(self.places, day)]

    def get_place(self, place_id: str) -> Dict[str, Any]:
        for place in self.places:
            if place["id"] == place_id:
                return place
        raise NotFoundError(f"Place not found: {place_id}")

    def _check_day(self, day: Any) -> int:
        try:
            day = int(day)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid day: {day!r}")
        if day < 1 or day > self.total_days:
            raise ValidationError(f"day must be between 1 and {self.total_days}")
        return day

    def add_place(self, name: str, day: Any, order: Optional[int] = None, **fields: Any) -> Dict[str, Any]:
        """
        Add a place. Without an explicit order it goes to the end of its day;
        an explicit order inserts it there and shifts later places down.
        """
        if not name or not str(name).strip():
            raise ValidationError("name is required")
        day = self._check_day(day)
        existing = day_places(self.places, day)
        order = len(existing) + 1 if order is None else min(self._check_order(order), len(existing) + 1)

        shifted = []
        for i, p in enumerate(existing):
            position = i + 1 if i + 1 < order else i + 2
            if position != p["order"]:
                shifted.append({"id": p["id"], "day": day, "order": position})

        fields.setdefault("address", "")
        fields.setdefault("time", "")
        fields["duration"] = fields.get("duration") or DEFAULT_DURATION
        fields["category"] = fields.get("category") or DEFAULT_PLACE_CATEGORY
        place = self.place_repo.create(self.trip_id, shifted=shifted, name=name, day=day, order=order, **fields)
        self._reload_places()
        return place_to_dict(place)

    def update_place(self, place_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update place fields. ``day``/``order`` are positional: the place is
        put at ``order`` of the target day (its end when order is omitted),
        both days are renumbered, and everything commits at once.
        """
        current = self.get_place(place_id)
        fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_PLACE_FIELDS}
        day = self._check_day(fields.pop("day")) if "day" in fields else current["day"]
        order = fields.pop("order", None)
        if order is not None:
            order = self._check_order(order)

        positions: List[Dict[str, Any]] = []
        if day != current["day"] or order is not None:
            moved = place_at(self.places, place_id, day, order)
            if moved is not None:
                positions = changed_positions(self.places, moved)

        place = self.place_repo.update(place_id, fields, positions=positions)
        self._reload_places()
        self._reload_expenses()
        return place_to_dict(place)

    def delete_place(self, place_id: str) -> None:
        """
        Delete a place and renumber the rest of its day in the same commit.
        Expenses attached to it are kept (they become unattached in statistics).
        """
        self.get_place(place_id)
        renumbered = changed_positions(self.places, without_place(self.places, place_id))
        self.place_repo.delete(place_id, renumbered=renumbered)
        self._reload_places()
        self._reload_expenses()

    @staticmethod
    def _check_order(order: Any) -> int:
        try:
            order = int(order)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid order: {order!r}")
        if order < 1:
            raise ValidationError("order must be 1 or greater")
        return order

    def _persist_positions(self, places: List[Dict[str, Any]]) -> None:
        try:
            self.place_repo.bulk_update(position_triples(places))
        except (SQLAlchemyError, NotFoundError) as e:
            self.error = "일정 순서를 저장하지 못했습니다."
            raise ReorderFailed(f"Failed to update places order: {e}") from e

    @track_performance("move_place", describe=lambda self, active_id, over_id: (
        f"trip={self.trip_id} place={active_id} over={over_id}"))
    def move_place(self, active_id: str, over_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Apply a drag-and-drop outcome and persist it in one batch.

        Returns:
            The reloaded place list, or None if the drop was a no-op.

        Raises:
            ReorderFailed: the batch write failed; ``self.places`` still holds
                the previous state and ``self.error`` the user-facing message.
        """
        reordered = compute_reorder(self.places, active_id, over_id, self.total_days)
        if reordered is None:
            return None
        self._persist_positions(reordered)
        self.error = None
        self._reload_places()
        self._reload_expenses()
        logger.info(f"Moved place {active_id} onto {over_id} in trip {self.trip_id}")
        return self.places

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def _to_krw(self, amount: Any, currency: Optional[str]) -> float:
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            raise ValidationError("amount is required")
        if parse_amount(amount, default=None) is None:
            raise ValidationError(f"amount must be numeric: {amount!r}")
        converted = convert_to_krw(amount, currency, self.expense_rate)
        if converted < 0:
            raise ValidationError("amount must not be negative")
        return converted

    def _trip_day_date(self, day: int):
        return parse_date(self.trip["startDate"]) + timedelta(days=day - 1)

    def expenses_for_place(self, place_id: str) -> List[Dict[str, Any]]:
        return stats.expenses_by_place(self.expenses, place_id)

    def add_expense(
        self,
        amount: Any,
        description: str,
        category: str,
        date: Any,
        currency: Optional[str] = KRW,
        place_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an expense; THB amounts are stored converted to KRW."""
        if not description:
            raise ValidationError("description is required")
        if not category:
            raise ValidationError("category is required")
        if place_id is not None:
            self.get_place(place_id)
        amount_krw = self._to_krw(amount, currency)
        expense = self.expense_repo.create(
            self.trip_id,
            amount=amount_krw,
            description=description,
            category=category,
            date=parse_date(date),
            currency=KRW,
            placeId=place_id,
        )
        self._reload_expenses()
        return expense

    def record_place_expense(self, place_id: str, amount: Any, currency: Optional[str] = KRW) -> Dict[str, Any]:
        """
        Set the cost of a place. The first existing expense of the place is
        updated; otherwise a new one is created from the place (name as
        description, category mapped from the place, dated on its trip day).
        """
        place = self.get_place(place_id)
        amount_krw = self._to_krw(amount, currency)
        existing = self.expenses_for_place(place_id)
        if existing:
            return self.update_expense(existing[0]["id"], {"amount": amount_krw})
        return self.add_expense(
            amount=amount_krw,
            description=place["name"],
            category=expense_category_for_place(place["category"]),
            date=self._trip_day_date(place["day"]),
            currency=KRW,
            place_id=place_id,
        )

    def record_misc_expense(self, amount: Any, description: str, category: str, date: Any,
                            currency: Optional[str] = KRW) -> Dict[str, Any]:
        return self.add_expense(amount, description, category, date, currency=currency)

    def update_expense(self, expense_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(fields)
        if not any(e["id"] == expense_id for e in self.expenses):
            raise NotFoundError(f"Expense not found: {expense_id}")
        currency = fields.pop("currency", None)
        if "amount" in fields:
            fields["amount"] = self._to_krw(fields["amount"], currency)
            fields["currency"] = KRW
        elif currency is not None and currency.upper() != KRW:
            raise ValidationError("currency can only change together with amount")
        if fields.get("placeId") is not None:
            self.get_place(fields["placeId"])
        expense = self.expense_repo.update(expense_id, fields)
        self._reload_expenses()
        return expense

    def delete_expense(self, expense_id: str) -> None:
        if not any(e["id"] == expense_id for e in self.expenses):
            raise NotFoundError(f"Expense not found: {expense_id}")
        self.expense_repo.delete(expense_id)
        self._reload_expenses()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def total_spent(self) -> float:
        return stats.total_spent(self.expenses)

    def summary(self) -> Dict[str, Any]:
        """Dashboard numbers, recomputed from the current expense list."""
        per_day = stats.daily_totals(self.expenses)
        return {
            "tripId": self.trip_id,
            "totalSpent": self.total_spent(),
            "categoryTotals": stats.category_totals(self.expenses),
            "dailyTotals": {str(day): total for day, total in sorted(per_day.items())},
            "miscTotal": stats.total_spent(stats.misc_expenses(self.expenses)),
            "orphanedTotal": stats.total_spent(stats.orphaned_expenses(self.expenses)),
            "budget": stats.budget_summary(self.expenses, self.budget),
            "expenseCount": len(self.expenses),
        }
