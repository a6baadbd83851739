"""Reminder Registry - dated reminders per user.

WHAT: Owner-scoped CRUD plus a filtered, sorted, paginated listing.
WHY: The "active" flag is derived (not completed and not yet expired), so the
     same definition has to be applied in SQL for filtering and in Python for
     serialization (models.Reminder.is_active).

REFERENCES:
    - app/models.py: Reminder
    - app/routers/reminders.py: HTTP surface (pagination metadata)
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..exceptions import NotFoundError, ValidationError
from ..models import Campaign, Influencer, Reminder, utcnow
from ..utils.dates import parse_datetime

logger = logging.getLogger(__name__)

REMINDER_FIELDS = frozenset({
    "title",
    "description",
    "expiration_date",
    "type",
    "priority",
    "influencer_id",
    "campaign_id",
    "metadata",
    "is_completed",
})

SORT_COLUMNS = {
    "expiration_date": Reminder.expiration_date,
    "created_at": Reminder.created_at,
    "title": Reminder.title,
    # camelCase spellings, as sent by the frontend
    "expirationDate": Reminder.expiration_date,
    "createdAt": Reminder.created_at,
}
SORT_ORDERS = ("asc", "desc")

MAX_PAGE_SIZE = 100


def active_clause(active: bool):
    """SQL condition matching reminders whose derived active flag equals `active`."""
    now = utcnow()
    if active:
        return and_(Reminder.is_completed.is_(False), Reminder.expiration_date > now)
    return or_(Reminder.is_completed.is_(True), Reminder.expiration_date <= now)


class ReminderRegistry:
    """Owns reminder records. Every read and write is scoped to one user."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _clean(self, values: Dict[str, Any], user_id: UUID) -> Dict[str, Any]:
        unknown = set(values) - REMINDER_FIELDS
        if unknown:
            raise ValidationError(f"Unknown reminder field(s): {', '.join(sorted(unknown))}")

        cleaned: Dict[str, Any] = {}
        for field, value in values.items():
            if field == "title":
                value = (value or "").strip()
                if not value:
                    raise ValidationError("Title is required")
            elif field == "expiration_date":
                value = parse_datetime(value, "expiration_date")
                if value is None:
                    raise ValidationError("Expiration date is required")
            elif field in ("type", "priority"):
                if not value:
                    raise ValidationError(f"{field} cannot be empty")
            elif field == "is_completed":
                value = bool(value)
            elif field == "metadata":
                if value is not None and not isinstance(value, dict):
                    raise ValidationError("metadata must be an object")
                field = "metadata_"
            elif field == "influencer_id" and value is not None:
                if self.db.query(Influencer.id).filter(Influencer.id == value).first() is None:
                    raise NotFoundError("Influencer", value)
            elif field == "campaign_id" and value is not None:
                owned = (
                    self.db.query(Campaign.id)
                    .filter(Campaign.id == value, Campaign.user_id == user_id)
                    .first()
                )
                if owned is None:
                    raise NotFoundError("Campaign", value)
            cleaned[field] = value
        return cleaned

    def _filtered_query(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
        type: Optional[str] = None,
        priority: Optional[str] = None,
    ):
        query = self.db.query(Reminder).filter(Reminder.user_id == user_id)
        if active is not None:
            query = query.filter(active_clause(active))
        if type:
            query = query.filter(Reminder.type == type)
        if priority:
            query = query.filter(Reminder.priority == priority)
        return query

    def create(self, data: Dict[str, Any]) -> Reminder:
        """Create a reminder for `data["user_id"]`.

        Past expiration dates are accepted; such a reminder is simply
        inactive from the start.
        """
        values = dict(data)
        user_id = values.pop("user_id", None)
        if user_id is None:
            raise ValidationError("user_id is required")
        if not values.get("title"):
            raise ValidationError("Title is required")
        if values.get("expiration_date") is None:
            raise ValidationError("Expiration date is required")

        cleaned = self._clean(values, user_id)
        reminder = Reminder(user_id=user_id, **cleaned)
        self.db.add(reminder)
        self._commit()
        self.db.refresh(reminder)

        logger.info(f"[REMINDERS] Created reminder {reminder.id} for user {user_id}")
        return reminder

    def list(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
        type: Optional[str] = None,
        priority: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        sort_by: str = "expiration_date",
        sort_order: str = "asc",
    ) -> List[Reminder]:
        """The user's reminders matching every given filter.

        Ordered by `sort_by` (default expiration_date ascending), then
        created_at and id so pages are stable.
        """
        if sort_by not in SORT_COLUMNS:
            raise ValidationError(f"sort_by must be one of: {', '.join(SORT_COLUMNS)}")
        if sort_order not in SORT_ORDERS:
            raise ValidationError("sort_order must be 'asc' or 'desc'")
        if limit is not None and not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise ValidationError("offset must be non-negative")

        direction = "desc" if sort_order == "desc" else "asc"
        order = [
            getattr(column, direction)()
            for column in (SORT_COLUMNS[sort_by], Reminder.created_at, Reminder.id)
        ]

        query = self._filtered_query(user_id, active=active, type=type, priority=priority).order_by(*order)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
        type: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> int:
        """Number of reminders `list` would return without pagination."""
        return self._filtered_query(user_id, active=active, type=type, priority=priority).count()

    def get(self, reminder_id: UUID, user_id: UUID) -> Optional[Reminder]:
        return (
            self.db.query(Reminder)
            .filter(Reminder.id == reminder_id, Reminder.user_id == user_id)
            .first()
        )

    def update(self, reminder_id: UUID, user_id: UUID, partial: Dict[str, Any]) -> Reminder:
        """Merge the supplied fields (including is_completed)."""
        reminder = self.get(reminder_id, user_id)
        if reminder is None:
            raise NotFoundError("Reminder", reminder_id)

        cleaned = self._clean(partial, user_id)
        for field, value in cleaned.items():
            setattr(reminder, field, value)
        reminder.updated_at = utcnow()
        self._commit()
        self.db.refresh(reminder)
        return reminder

    def delete(self, reminder_id: UUID, user_id: UUID) -> None:
        reminder = self.get(reminder_id, user_id)
        if reminder is None:
            raise NotFoundError("Reminder", reminder_id)

        self.db.delete(reminder)
        self._commit()
        logger.info(f"[REMINDERS] Deleted reminder {reminder_id}")
