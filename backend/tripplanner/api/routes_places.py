"""
Place (schedule) routes.

Endpoints:
  GET    /places?tripId=        -- places ordered by (day, order)
  POST   /places                -- add a place
  PUT    /places/{id}           -- update place fields
  DELETE /places/{id}           -- delete a place
  POST   /places/bulk-update    -- transactional batch of {id, day, order}
  POST   /places/move           -- apply a drag-and-drop outcome server-side
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from tripplanner.core.categories import detect_place_category, operating_hours_from_weekday_text, time_range
from tripplanner.core.errors import NotFoundError
from tripplanner.core.monitoring import track_performance
from tripplanner.core.rate_limiting import limiter, READ_LIMIT, WRITE_LIMIT
from tripplanner.db.database import get_db
from tripplanner.db.repositories import PlaceRepository, place_to_dict
from tripplanner.services.itinerary import ItineraryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/places", tags=["places"])


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------

class PlaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    trip_id: str = Field(..., alias="tripId")
    day: int = Field(..., ge=1)
    order: Optional[int] = Field(None, ge=1, description="Defaults to the end of the day")
    address: Optional[str] = None
    time: Optional[str] = Field(None, description="HH:MM-HH:MM")
    start_time: Optional[str] = Field(None, alias="startTime", pattern=r"^\d{1,2}:\d{2}$",
                                      description="Builds `time` from start + duration when `time` is empty")
    duration: Optional[str] = None
    category: Optional[str] = None
    types: Optional[List[str]] = Field(None, description="Search result types, used when category is empty")
    place_id: Optional[str] = Field(None, alias="placeId")
    operating_hours: Optional[Dict[str, Any]] = Field(None, alias="operatingHours")
    weekday_text: Optional[List[str]] = Field(None, alias="weekdayText")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class PlaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=300)
    address: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[str] = None
    day: Optional[int] = Field(None, ge=1)
    order: Optional[int] = Field(None, ge=1)
    category: Optional[str] = None
    place_id: Optional[str] = Field(None, alias="placeId")
    operating_hours: Optional[Dict[str, Any]] = Field(None, alias="operatingHours")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class PlacePosition(BaseModel):
    id: str
    day: int = Field(..., ge=1)
    order: int = Field(..., ge=1)


class BulkUpdateRequest(BaseModel):
    places: List[PlacePosition]


class MoveRequest(BaseModel):
    trip_id: str = Field(..., alias="tripId")
    active_id: str = Field(..., alias="activeId", description="Dragged place id")
    over_id: str = Field(..., alias="overId", description="Place id or day container id (day-N)")

    class Config:
        populate_by_name = True


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=List[Dict[str, Any]])
@limiter.limit(READ_LIMIT)
def list_places(
    request: Request,
    trip_id: str = Query(..., alias="tripId", description="Owning trip"),
    db: Session = Depends(get_db),
):
    try:
        return [place_to_dict(p) for p in PlaceRepository(db).list_by_trip(trip_id)]
    except SQLAlchemyError as e:
        logger.error(f"Places fetch failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch places")


@router.post("", status_code=201, response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def create_place(request: Request, payload: PlaceCreate, db: Session = Depends(get_db)):
    """
    Add a place to a day. Category falls back to the search-result types,
    operating hours to the weekday text of the search result.
    """
    category = payload.category
    if not category and payload.types:
        category = detect_place_category(payload.types)

    operating_hours = payload.operating_hours
    if operating_hours is None and payload.weekday_text is not None:
        operating_hours = operating_hours_from_weekday_text(payload.weekday_text)

    visit_time = payload.time
    if not visit_time and payload.start_time:
        visit_time = time_range(payload.start_time, payload.duration)

    try:
        service = ItineraryService.for_trip(db, payload.trip_id)
        return service.add_place(
            name=payload.name,
            day=payload.day,
            order=payload.order,
            address=payload.address or "",
            time=visit_time or "",
            duration=payload.duration,
            category=category,
            placeId=payload.place_id,
            operatingHours=operating_hours,
            notes=payload.notes,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Place create failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create place")


@router.post("/bulk-update")
@limiter.limit(WRITE_LIMIT)
@track_performance("bulk_update_places", describe=lambda payload, **_: f"rows={len(payload.places)}")
def bulk_update_places(request: Request, payload: BulkUpdateRequest, db: Session = Depends(get_db)):
    """All rows are updated in one transaction, or none are."""
    try:
        updated = PlaceRepository(db).bulk_update(p.model_dump() for p in payload.places)
        return {"message": "Places updated successfully", "updated": updated}
    except (SQLAlchemyError, NotFoundError) as e:
        logger.error(f"Places order update failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update places")


@router.post("/move")
@limiter.limit(WRITE_LIMIT)
def move_place(request: Request, payload: MoveRequest, db: Session = Depends(get_db)):
    """
    Run the drop logic against the stored places and persist the result.
    ``moved`` is false when the drop was a no-op.
    """
    service = ItineraryService.for_trip(db, payload.trip_id)
    places = service.move_place(payload.active_id, payload.over_id)
    return {"moved": places is not None, "places": service.places}


@router.put("/{place_id}", response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def update_place(request: Request, place_id: str, payload: PlaceUpdate, db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude_unset=True, by_alias=True)
    try:
        service = ItineraryService.for_place(db, place_id)
        return service.update_place(place_id, fields)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Place update failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update place")


@router.delete("/{place_id}")
@limiter.limit(WRITE_LIMIT)
def delete_place(request: Request, place_id: str, db: Session = Depends(get_db)):
    try:
        service = ItineraryService.for_place(db, place_id)
        service.delete_place(place_id)
        return {"message": "Place deleted successfully"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Place delete failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete place")
