"""
Repository pattern for data access.
One repository per table; every write is one transaction. Place writes
also carry the positions they displace, and ``PlaceRepository.bulk_update``
applies a whole batch of positions atomically.
Rows are returned to callers as camelCase dictionaries (the wire format).
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tripplanner.core.currency import parse_amount
from tripplanner.core.errors import NotFoundError, ValidationError
from tripplanner.db.models import ChecklistItem, Expense, Place, Trip

logger = logging.getLogger(__name__)


# ============================================================================
# SERIALISATION HELPERS
# ============================================================================

def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def parse_date(value: Any, field: str = "date") -> date:
    """Accept a date, datetime or ISO string ("2025-08-13" or full timestamp)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")


def encode_operating_hours(value: Any) -> Optional[str]:
    """Mapping -> JSON text for storage. Strings are assumed already encoded."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def decode_operating_hours(value: Optional[str]) -> Optional[Any]:
    if value is None or value == "":
        return None
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.warning("Stored operatingHours is not valid JSON; returning raw text")
        return value


def trip_to_dict(trip: Trip) -> Dict[str, Any]:
    return {
        "id": trip.id,
        "title": trip.title,
        "description": trip.description,
        "startDate": _iso(trip.start_date),
        "endDate": _iso(trip.end_date),
        "totalDays": trip.total_days,
        "createdAt": _iso(trip.created_at),
        "updatedAt": _iso(trip.updated_at),
    }


def place_to_dict(place: Place) -> Dict[str, Any]:
    return {
        "id": place.id,
        "name": place.name,
        "address": place.address,
        "time": place.time,
        "duration": place.duration,
        "day": place.day,
        "order": place.order,
        "category": place.category,
        "placeId": place.external_place_id,
        "operatingHours": decode_operating_hours(place.operating_hours),
        "notes": place.notes,
        "tripId": place.trip_id,
        "createdAt": _iso(place.created_at),
        "updatedAt": _iso(place.updated_at),
    }


def expense_to_dict(expense: Expense, place_name: Optional[str] = None,
                    place_day: Optional[int] = None) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "amount": parse_amount(expense.amount),
        "description": expense.description,
        "category": expense.category,
        "date": _iso(expense.date),
        "currency": expense.currency,
        "placeId": expense.place_id,
        "tripId": expense.trip_id,
        "place_name": place_name,
        "place_day": place_day,
        "createdAt": _iso(expense.created_at),
        "updatedAt": _iso(expense.updated_at),
    }


def checklist_item_to_dict(item: ChecklistItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "completed": bool(item.completed),
        "category": item.category,
        "tripId": item.trip_id,
        "createdAt": _iso(item.created_at),
        "updatedAt": _iso(item.updated_at),
    }


def _apply_fields(row: Any, fields: Dict[str, Any], column_map: Dict[str, str]) -> None:
    for key, value in fields.items():
        attr = column_map.get(key)
        if attr is None:
            raise ValidationError(f"Unknown field: {key}")
        setattr(row, attr, value)


# ============================================================================
# TRIPS
# ============================================================================

class TripRepository:
    """Repository for the trips table."""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Trip]:
        """All trips, newest first."""
        return self.db.query(Trip).order_by(Trip.created_at.desc()).all()

    def get_by_id(self, trip_id: str) -> Optional[Trip]:
        return self.db.query(Trip).filter(Trip.id == trip_id).first()

    def require(self, trip_id: str) -> Trip:
        trip = self.get_by_id(trip_id)
        if trip is None:
            raise NotFoundError(f"Trip not found: {trip_id}")
        return trip

    def find_by_title_keyword(self, keyword: str) -> Optional[Trip]:
        """First trip whose title contains ``keyword``."""
        return (
            self.db.query(Trip)
            .filter(Trip.title.contains(keyword))
            .order_by(Trip.created_at.asc())
            .first()
        )

    def create(self, title: str, start_date: Any, end_date: Any,
               description: Optional[str] = None) -> Trip:
        start = parse_date(start_date, "startDate")
        end = parse_date(end_date, "endDate")
        if end < start:
            raise ValidationError("endDate must not be before startDate")
        trip = Trip(title=title, description=description, start_date=start, end_date=end)
        self.db.add(trip)
        self.db.commit()
        self.db.refresh(trip)
        logger.info(f"Created trip {trip.id} ({trip.title}, {trip.total_days} days)")
        return trip


# ============================================================================
# PLACES
# ============================================================================

PLACE_FIELDS = {
    "name": "name",
    "address": "address",
    "time": "time",
    "duration": "duration",
    "day": "day",
    "order": "order",
    "category": "category",
    "placeId": "external_place_id",
    "operatingHours": "operating_hours",
    "notes": "notes",
}


class PlaceRepository:
    """Repository for the places table."""

    def __init__(self, db: Session):
        self.db = db

    def list_by_trip(self, trip_id: str) -> List[Place]:
        """Places of a trip ordered by (day, order)."""
        return (
            self.db.query(Place)
            .filter(Place.trip_id == trip_id)
            .order_by(Place.day.asc(), Place.order.asc())
            .all()
        )

    def get_by_id(self, place_id: str) -> Optional[Place]:
        return self.db.query(Place).filter(Place.id == place_id).first()

    def require(self, place_id: str) -> Place:
        place = self.get_by_id(place_id)
        if place is None:
            raise NotFoundError(f"Place not found: {place_id}")
        return place

    # Every write below takes the ``{id, day, order}`` rows it displaces and
    # commits them together with the row change itself, or not at all.

    def _apply_positions(self, items: List[Dict[str, Any]]) -> None:
        now = datetime.now(timezone.utc)
        for item in items:
            updated = (
                self.db.query(Place)
                .filter(Place.id == item["id"])
                .update(
                    {Place.day: item["day"], Place.order: item["order"], Place.updated_at: now},
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise NotFoundError(f"Place not found: {item['id']}")

    def create(self, trip_id: str, shifted: Optional[Iterable[Dict[str, Any]]] = None, **fields: Any) -> Place:
        """Insert a place; ``shifted`` are the places moved down to make room."""
        shifted = list(shifted or [])
        if "operatingHours" in fields:
            fields["operatingHours"] = encode_operating_hours(fields["operatingHours"])
        try:
            self._apply_positions(shifted)
            place = Place(trip_id=trip_id)
            _apply_fields(place, fields, PLACE_FIELDS)
            self.db.add(place)
            self.db.commit()
        except (SQLAlchemyError, NotFoundError, ValidationError) as e:
            self.db.rollback()
            logger.error(f"Place insert rolled back ({len(shifted)} shifted rows): {e}")
            raise
        if shifted:
            self.db.expire_all()
        self.db.refresh(place)
        logger.info(f"Created place {place.id} ({place.name}) on day {place.day} #{place.order}")
        return place

    def update(self, place_id: str, fields: Dict[str, Any],
               positions: Optional[Iterable[Dict[str, Any]]] = None) -> Place:
        """
        Update place fields. ``positions`` carries the new day/order of this
        place and of every place renumbered around it.
        """
        positions = list(positions or [])
        place = self.require(place_id)
        if "operatingHours" in fields:
            fields = {**fields, "operatingHours": encode_operating_hours(fields["operatingHours"])}
        try:
            self._apply_positions(positions)
            _apply_fields(place, fields, PLACE_FIELDS)
            self.db.commit()
        except (SQLAlchemyError, NotFoundError, ValidationError) as e:
            self.db.rollback()
            logger.error(f"Place update rolled back ({len(positions)} repositioned rows): {e}")
            raise
        if positions:
            self.db.expire_all()
        self.db.refresh(place)
        return place

    def delete(self, place_id: str, renumbered: Optional[Iterable[Dict[str, Any]]] = None) -> None:
        """Delete a place; ``renumbered`` closes the gap it leaves in its day."""
        renumbered = list(renumbered or [])
        place = self.require(place_id)
        try:
            self.db.delete(place)
            self._apply_positions(renumbered)
            self.db.commit()
        except (SQLAlchemyError, NotFoundError) as e:
            self.db.rollback()
            logger.error(f"Place delete rolled back: {e}")
            raise
        if renumbered:
            self.db.expire_all()
        logger.info(f"Deleted place {place_id} ({len(renumbered)} renumbered)")

    def bulk_update(self, items: Iterable[Dict[str, Any]]) -> int:
        """
        Update day/order of many places in ONE transaction.

        Every id must exist; on any failure the whole batch is rolled back
        and the exception propagates, so no partial reorder is ever visible.

        Returns:
            Number of rows updated.
        """
        items = list(items)
        try:
            self._apply_positions(items)
            self.db.commit()
        except (SQLAlchemyError, NotFoundError) as e:
            self.db.rollback()
            logger.error(f"Bulk place update rolled back ({len(items)} rows): {e}")
            raise
        self.db.expire_all()
        logger.info(f"Bulk place update committed: {len(items)} rows")
        return len(items)


# ============================================================================
# EXPENSES
# ============================================================================

EXPENSE_FIELDS = {
    "amount": "amount",
    "description": "description",
    "category": "category",
    "date": "date",
    "currency": "currency",
    "placeId": "place_id",
}


class ExpenseRepository:
    """Repository for the expenses table."""

    def __init__(self, db: Session):
        self.db = db

    def _joined(self):
        return (
            self.db.query(Expense, Place.name, Place.day)
            .outerjoin(Place, Expense.place_id == Place.id)
        )

    def list_by_trip(self, trip_id: str) -> List[Dict[str, Any]]:
        """Expenses of a trip with their place name/day, by date then creation."""
        rows = (
            self._joined()
            .filter(Expense.trip_id == trip_id)
            .order_by(Expense.date.asc(), Expense.created_at.asc())
            .all()
        )
        return [expense_to_dict(expense, name, day) for expense, name, day in rows]

    def get_dict(self, expense_id: str) -> Optional[Dict[str, Any]]:
        row = self._joined().filter(Expense.id == expense_id).first()
        if row is None:
            return None
        expense, name, day = row
        return expense_to_dict(expense, name, day)

    def require(self, expense_id: str) -> Expense:
        expense = self.db.query(Expense).filter(Expense.id == expense_id).first()
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return expense

    def create(self, trip_id: str, **fields: Any) -> Dict[str, Any]:
        if "date" in fields:
            fields["date"] = parse_date(fields["date"])
        expense = Expense(trip_id=trip_id)
        _apply_fields(expense, fields, EXPENSE_FIELDS)
        self.db.add(expense)
        self.db.commit()
        logger.info(f"Created expense {expense.id}: {parse_amount(expense.amount):,.0f} {expense.currency}")
        return self.get_dict(expense.id)

    def update(self, expense_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        expense = self.require(expense_id)
        if "date" in fields:
            fields = {**fields, "date": parse_date(fields["date"])}
        _apply_fields(expense, fields, EXPENSE_FIELDS)
        self.db.commit()
        return self.get_dict(expense_id)

    def delete(self, expense_id: str) -> None:
        expense = self.require(expense_id)
        self.db.delete(expense)
        self.db.commit()
        logger.info(f"Deleted expense {expense_id}")

    def stats_by_category(self, trip_id: str) -> List[Dict[str, Any]]:
        """SUM/COUNT per category, largest total first."""
        total = func.sum(Expense.amount).label("total_amount")
        rows = (
            self.db.query(Expense.category, total, func.count(Expense.id).label("count"))
            .filter(Expense.trip_id == trip_id)
            .group_by(Expense.category)
            .order_by(total.desc())
            .all()
        )
        return [
            {"category": category, "total_amount": parse_amount(amount), "count": count}
            for category, amount, count in rows
        ]


# ============================================================================
# CHECKLIST
# ============================================================================

CHECKLIST_FIELDS = {
    "title": "title",
    "completed": "completed",
    "category": "category",
}


class ChecklistRepository:
    """Repository for the checklist_items table."""

    def __init__(self, db: Session):
        self.db = db

    def list_by_trip(self, trip_id: str, category: Optional[str] = None) -> List[ChecklistItem]:
        query = self.db.query(ChecklistItem).filter(ChecklistItem.trip_id == trip_id)
        if category:
            query = query.filter(ChecklistItem.category == category)
        return query.order_by(ChecklistItem.created_at.asc()).all()

    def require(self, item_id: str) -> ChecklistItem:
        item = self.db.query(ChecklistItem).filter(ChecklistItem.id == item_id).first()
        if item is None:
            raise NotFoundError(f"Checklist item not found: {item_id}")
        return item

    def create(self, trip_id: str, title: str, category: str) -> ChecklistItem:
        item = ChecklistItem(trip_id=trip_id, title=title, category=category, completed=False)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update(self, item_id: str, fields: Dict[str, Any]) -> ChecklistItem:
        item = self.require(item_id)
        _apply_fields(item, fields, CHECKLIST_FIELDS)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete(self, item_id: str) -> None:
        item = self.require(item_id)
        self.db.delete(item)
        self.db.commit()
