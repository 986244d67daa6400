"""
Expense routes.

Endpoints:
  GET    /expenses?tripId=            -- expenses joined with place name/day
  POST   /expenses                    -- create (THB converted to KRW)
  POST   /expenses/place/{placeId}    -- set the cost of a place
  PUT    /expenses/{id}               -- update
  DELETE /expenses/{id}               -- delete
  GET    /expenses/stats?tripId=      -- per-category totals and counts
  GET    /expenses/summary?tripId=    -- totals, per-day totals, budget
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Union
import logging

from tripplanner.core.currency import KRW
from tripplanner.core.rate_limiting import limiter, READ_LIMIT, WRITE_LIMIT
from tripplanner.db.database import get_db
from tripplanner.db.repositories import ExpenseRepository
from tripplanner.services.itinerary import ItineraryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])

Amount = Union[float, str]


class ExpenseCreate(BaseModel):
    amount: Amount = Field(..., description="Decimal-like amount in `currency`")
    description: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    date: str = Field(..., description="YYYY-MM-DD")
    currency: Optional[str] = Field(KRW, description="KRW or THB; stored as KRW")
    place_id: Optional[str] = Field(None, alias="placeId")
    trip_id: str = Field(..., alias="tripId")

    class Config:
        populate_by_name = True


class ExpenseUpdate(BaseModel):
    amount: Optional[Amount] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    date: Optional[str] = None
    currency: Optional[str] = None
    place_id: Optional[str] = Field(None, alias="placeId")

    class Config:
        populate_by_name = True


class PlaceExpense(BaseModel):
    amount: Amount
    currency: Optional[str] = KRW


@router.get("", response_model=List[Dict[str, Any]])
@limiter.limit(READ_LIMIT)
def list_expenses(
    request: Request,
    trip_id: str = Query(..., alias="tripId"),
    db: Session = Depends(get_db),
):
    try:
        return ExpenseRepository(db).list_by_trip(trip_id)
    except SQLAlchemyError as e:
        logger.error(f"Expenses fetch failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch expenses")


@router.post("", status_code=201, response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def create_expense(request: Request, payload: ExpenseCreate, db: Session = Depends(get_db)):
    try:
        service = ItineraryService.for_trip(db, payload.trip_id)
        return service.add_expense(
            amount=payload.amount,
            description=payload.description,
            category=payload.category,
            date=payload.date,
            currency=payload.currency,
            place_id=payload.place_id,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Expense create failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create expense")


@router.get("/stats", response_model=List[Dict[str, Any]])
@limiter.limit(READ_LIMIT)
def expense_stats(
    request: Request,
    trip_id: str = Query(..., alias="tripId"),
    db: Session = Depends(get_db),
):
    """[{category, total_amount, count}] ordered by total_amount desc."""
    try:
        return ExpenseRepository(db).stats_by_category(trip_id)
    except SQLAlchemyError as e:
        logger.error(f"Expense stats failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch expense stats")


@router.get("/summary", response_model=Dict[str, Any])
@limiter.limit(READ_LIMIT)
def expense_summary(
    request: Request,
    trip_id: str = Query(..., alias="tripId"),
    db: Session = Depends(get_db),
):
    return ItineraryService.for_trip(db, trip_id).summary()


@router.post("/place/{place_id}", response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def set_place_expense(request: Request, place_id: str, payload: PlaceExpense, db: Session = Depends(get_db)):
    """Create or overwrite the cost attached to a place."""
    try:
        service = ItineraryService.for_place(db, place_id)
        return service.record_place_expense(place_id, payload.amount, payload.currency)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Place expense failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save place expense")


@router.put("/{expense_id}", response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def update_expense(request: Request, expense_id: str, payload: ExpenseUpdate, db: Session = Depends(get_db)):
    fields = {
        k: v for k, v in payload.model_dump(exclude_unset=True, by_alias=True).items()
        if v is not None or k == "placeId"
    }
    try:
        service = ItineraryService.for_expense(db, expense_id)
        return service.update_expense(expense_id, fields)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Expense update failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update expense")


@router.delete("/{expense_id}")
@limiter.limit(WRITE_LIMIT)
def delete_expense(request: Request, expense_id: str, db: Session = Depends(get_db)):
    try:
        service = ItineraryService.for_expense(db, expense_id)
        service.delete_expense(expense_id)
        return {"message": "Expense deleted successfully"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Expense delete failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete expense")
