"""
Packing checklist routes.

Endpoints:
  GET    /checklist?tripId=&category=   -- items, optionally one category
  GET    /checklist/categories          -- available categories
  GET    /checklist/progress?tripId=    -- completed / total
  POST   /checklist                     -- add an item
  PUT    /checklist/{id}                -- edit title/category/completed
  POST   /checklist/{id}/toggle         -- flip completed
  DELETE /checklist/{id}                -- delete
"""

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from tripplanner.core.categories import CHECKLIST_CATEGORIES, DEFAULT_CHECKLIST_CATEGORY
from tripplanner.core.errors import ValidationError
from tripplanner.core.rate_limiting import limiter, READ_LIMIT, WRITE_LIMIT
from tripplanner.db.database import get_db
from tripplanner.db.repositories import ChecklistRepository, TripRepository, checklist_item_to_dict

router = APIRouter(prefix="/checklist", tags=["checklist"])


class ChecklistCreate(BaseModel):
    trip_id: str = Field(..., alias="tripId")
    title: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = DEFAULT_CHECKLIST_CATEGORY

    class Config:
        populate_by_name = True


class ChecklistUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = None
    completed: Optional[bool] = None


def _check_category(category: Optional[str]) -> str:
    category = category or DEFAULT_CHECKLIST_CATEGORY
    if category not in CHECKLIST_CATEGORIES:
        raise ValidationError(f"Unknown checklist category: {category}")
    return category


@router.get("/categories", response_model=List[str])
def list_categories():
    return CHECKLIST_CATEGORIES


@router.get("", response_model=List[Dict[str, Any]])
@limiter.limit(READ_LIMIT)
def list_items(
    request: Request,
    trip_id: str = Query(..., alias="tripId"),
    category: Optional[str] = Query(None, description="Only this category ('전체' for all)"),
    db: Session = Depends(get_db),
):
    if category == "전체":
        category = None
    return [checklist_item_to_dict(i) for i in ChecklistRepository(db).list_by_trip(trip_id, category)]


@router.get("/progress", response_model=Dict[str, Any])
@limiter.limit(READ_LIMIT)
def checklist_progress(request: Request, trip_id: str = Query(..., alias="tripId"), db: Session = Depends(get_db)):
    items = ChecklistRepository(db).list_by_trip(trip_id)
    completed = sum(1 for i in items if i.completed)
    total = len(items)
    return {
        "completed": completed,
        "total": total,
        "percent": round(completed / total * 100) if total else 0,
    }


@router.post("", status_code=201, response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def create_item(request: Request, payload: ChecklistCreate, db: Session = Depends(get_db)):
    TripRepository(db).require(payload.trip_id)
    item = ChecklistRepository(db).create(
        trip_id=payload.trip_id,
        title=payload.title.strip(),
        category=_check_category(payload.category),
    )
    return checklist_item_to_dict(item)


@router.put("/{item_id}", response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def update_item(request: Request, item_id: str, payload: ChecklistUpdate, db: Session = Depends(get_db)):
    fields = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "category" in fields:
        fields["category"] = _check_category(fields["category"])
    return checklist_item_to_dict(ChecklistRepository(db).update(item_id, fields))


@router.post("/{item_id}/toggle", response_model=Dict[str, Any])
@limiter.limit(WRITE_LIMIT)
def toggle_item(request: Request, item_id: str, db: Session = Depends(get_db)):
    repo = ChecklistRepository(db)
    item = repo.require(item_id)
    return checklist_item_to_dict(repo.update(item_id, {"completed": not item.completed}))


@router.delete("/{item_id}")
@limiter.limit(WRITE_LIMIT)
def delete_item(request: Request, item_id: str, db: Session = Depends(get_db)):
    ChecklistRepository(db).delete(item_id)
    return {"message": "Checklist item deleted successfully"}
