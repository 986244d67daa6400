"""
Trip routes.

Endpoints:
  GET  /trips          -- all trips, newest first
  POST /trips          -- create a trip
  POST /trips/ensure   -- get-or-create the configured default trip
  GET  /trips/{id}     -- one trip
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from tripplanner.core.rate_limiting import limiter, READ_LIMIT, WRITE_LIMIT
from tripplanner.db.database import get_db
from tripplanner.db.repositories import TripRepository, trip_to_dict
from tripplanner.services.itinerary import ensure_default_trip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


class TripCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: str = Field(..., alias="startDate", description="YYYY-MM-DD")
    end_date: str = Field(..., alias="endDate", description="YYYY-MM-DD")

    class Config:
        populate_by_name = True


@router.get("", response_model=List[Dict[str, Any]])
@limiter.limit(READ_LIMIT)
def list_trips(request: Request, db: Session = Depends(get_db)):
    try:
        return [trip_to_dict(t) for t in TripRepository(db).list_all()]
    except SQLAlchemyError as e:
        logger.error(f"Trips fetch failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch trips")


@router.post("", status_code=201, response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def create_trip(request: Request, payload: TripCreate, db: Session = Depends(get_db)):
    try:
        trip = TripRepository(db).create(
            title=payload.title,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
        return trip_to_dict(trip)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Trip create failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create trip")


@router.post("/ensure", response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def ensure_trip(request: Request, db: Session = Depends(get_db)):
    """
    Return the default trip, creating it the first time.
    The response carries ``created`` so clients can tell the two apart.
    """
    try:
        trip, created = ensure_default_trip(db)
        return {**trip, "created": created}
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Trip ensure failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create trip")


@router.get("/{trip_id}", response_model=Dict[str, Any])
@limiter.limit(READ_LIMIT)
def get_trip(request: Request, trip_id: str, db: Session = Depends(get_db)):
    return trip_to_dict(TripRepository(db).require(trip_id))
