"""Reminder endpoints.

WHAT: Owner-scoped reminder CRUD with a filtered, paginated listing
WHY: The frontend reminder list pages through results and shows totals, so the
     listing returns pagination metadata next to the rows

REFERENCES:
  - app/services/reminder_service.py: ReminderRegistry
"""

import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import schemas
from app.database import get_db
from app.deps import get_current_identity
from app.exceptions import NotFoundError
from app.services.auth_service import AuthIdentity
from app.services.reminder_service import MAX_PAGE_SIZE, ReminderRegistry

router = APIRouter(
    prefix="/reminders",
    tags=["Reminders"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        404: {"model": schemas.ErrorResponse, "description": "Reminder not found"},
    }
)


@router.get(
    "",
    response_model=schemas.ReminderListResponse,
    summary="List reminders",
    description="""
    The current user's reminders.

    Filters:
      - active: true = not completed and not yet expired; false = the rest
      - type / priority: exact match

    Pagination uses `limit` + `offset`; `page` (1-based) is accepted as a
    shortcut and wins over `offset`.
    """
)
def list_reminders(
    active: Optional[bool] = Query(None, description="Filter on the derived active flag"),
    type: Optional[str] = Query(None, description="Exact reminder type"),
    priority: Optional[str] = Query(None, description="Exact priority"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    page: Optional[int] = Query(None, ge=1),
    sort_by: str = Query("expiration_date", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    if page is not None:
        offset = (page - 1) * limit

    registry = ReminderRegistry(db)
    filters = {"active": active, "type": type, "priority": priority}
    reminders = registry.list(
        identity.user_id,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
        **filters,
    )
    total = registry.count(identity.user_id, **filters)

    return schemas.ReminderListResponse(
        reminders=[schemas.ReminderOut.model_validate(r) for r in reminders],
        pagination=schemas.PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.post(
    "",
    response_model=schemas.ReminderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create reminder",
)
def create_reminder(
    payload: schemas.ReminderCreate,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    data = payload.model_dump(exclude_unset=True)
    data["user_id"] = identity.user_id
    return ReminderRegistry(db).create(data)


@router.get("/{reminder_id}", response_model=schemas.ReminderOut, summary="Get reminder")
def get_reminder(
    reminder_id: UUID,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    reminder = ReminderRegistry(db).get(reminder_id, identity.user_id)
    if reminder is None:
        raise NotFoundError("Reminder", reminder_id)
    return reminder


@router.patch(
    "/{reminder_id}",
    response_model=schemas.ReminderOut,
    summary="Update reminder",
    description="Partial update; send `isCompleted: true` to complete a reminder.",
)
def update_reminder(
    reminder_id: UUID,
    payload: schemas.ReminderUpdate,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    return ReminderRegistry(db).update(
        reminder_id, identity.user_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{reminder_id}", response_model=schemas.SuccessResponse, summary="Delete reminder")
def delete_reminder(
    reminder_id: UUID,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    ReminderRegistry(db).delete(reminder_id, identity.user_id)
    return schemas.SuccessResponse(detail="Reminder deleted")
