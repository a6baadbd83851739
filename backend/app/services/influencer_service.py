"""Influencer Directory - CRUD over the shared influencer directory.

WHAT: Create, read, partially update and delete influencers, plus append-only
      helpers for the embedded notes and message log.
WHY: Routers stay thin; every mutation here commits once or rolls back, so a
     failed update never leaves a partial merge behind.

REFERENCES:
  - app/models.py: Influencer, CampaignInfluencer, Reminder
  - app/routers/influencers.py: HTTP surface

Deletion policy:
  Deleting an influencer CASCADES: its campaign associations are deleted and
  reminders pointing at it are unlinked (influencer_id -> NULL).
"""

import logging
import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, selectinload

from ..exceptions import NotFoundError, ValidationError
from ..models import CampaignInfluencer, Influencer, MessageDirectionEnum, Reminder, utcnow

logger = logging.getLogger(__name__)

# Attributes a caller may set through create()/update()
INFLUENCER_FIELDS = frozenset({
    "handle",
    "profile_link",
    "followers",
    "email",
    "rate",
    "categories",
    "followers_age",
    "followers_sex",
    "engagement_rate",
    "platform",
    "brands_worked_with",
    "notes",
    "files",
    "messages",
})

# Columns that may not be set to None
NON_NULLABLE_FIELDS = frozenset({"handle", "followers", "rate", "engagement_rate", "platform"})
LIST_FIELDS = frozenset({"categories", "notes", "files", "messages"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_decimal(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def _as_count(value: Any, field: str) -> int:
    """Non-negative whole number; strings, bools and NaN/inf are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a non-negative integer")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise ValidationError(f"{field} must be a non-negative integer")
    if value < 0:
        raise ValidationError(f"{field} must be a non-negative integer")
    return int(value)


def _with_ids(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Give embedded entries (notes/files/messages) an id and date when missing."""
    normalized = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError("Embedded entries must be objects")
        item = dict(entry)
        if not item.get("id"):
            item["id"] = str(uuid4())
        if not item.get("date"):
            item["date"] = _now_iso()
        normalized.append(item)
    return normalized


def clean_influencer_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize influencer attributes.

    Only the keys present in `values` are checked, which makes this usable
    for both full creates and partial updates.

    Raises:
        ValidationError: Unknown field, null in a required field, or a value
            out of range.
    """
    unknown = set(values) - INFLUENCER_FIELDS
    if unknown:
        raise ValidationError(f"Unknown influencer field(s): {', '.join(sorted(unknown))}")

    cleaned: Dict[str, Any] = {}
    for field, value in values.items():
        if value is None:
            if field in NON_NULLABLE_FIELDS:
                raise ValidationError(f"{field} cannot be null")
            cleaned[field] = [] if field in LIST_FIELDS else None
            continue

        if field == "handle":
            value = str(value).strip()
            if not value:
                raise ValidationError("handle is required")
        elif field == "followers":
            value = _as_count(value, "followers")
        elif field == "rate":
            value = _as_decimal(value, "rate")
            if value < 0:
                raise ValidationError("rate must be non-negative")
        elif field == "engagement_rate":
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ValidationError("engagement_rate must be a number")
            if not math.isfinite(value) or not 0 <= value <= 100:
                raise ValidationError("engagement_rate must be between 0 and 100")
        elif field in ("categories", "brands_worked_with"):
            value = [str(item) for item in value]
        elif field in ("notes", "files", "messages"):
            value = _with_ids(list(value))

        cleaned[field] = value
    return cleaned


def campaign_history(influencer: Influencer) -> List[Dict[str, Any]]:
    """Per-influencer campaign summary, derived from association records.

    This is the denormalized "campaigns" view of an influencer. It is built
    at read time and never persisted.
    """
    history = []
    for link in influencer.campaign_links:
        campaign = link.campaign
        history.append({
            "id": link.campaign_id,
            "association_id": link.id,
            "name": campaign.name if campaign else None,
            "start_date": campaign.start_date if campaign else None,
            "end_date": campaign.end_date if campaign else None,
            "campaign_status": campaign.status if campaign else None,
            "status": link.status,
            "payment": link.rate,
            "performance": link.performance or {},
            "notes": link.notes,
        })
    return history


class InfluencerDirectory:
    """Owns influencer records."""

    def __init__(self, db: Session):
        self.db = db

    def _get_or_raise(self, influencer_id: UUID) -> Influencer:
        influencer = self.get_by_id(influencer_id)
        if influencer is None:
            raise NotFoundError("Influencer", influencer_id)
        return influencer

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def create(self, data: Dict[str, Any]) -> Influencer:
        """Persist a new influencer. `handle` is required."""
        if not data.get("handle"):
            raise ValidationError("handle is required")
        values = clean_influencer_values(data)

        influencer = Influencer(**values)
        self.db.add(influencer)
        self._commit()
        self.db.refresh(influencer)

        logger.info(f"[INFLUENCERS] Created influencer {influencer.id} ({influencer.handle})")
        return influencer

    def get_by_id(self, influencer_id: UUID) -> Optional[Influencer]:
        """Return the influencer, or None when it does not exist."""
        return (
            self.db.query(Influencer)
            .options(selectinload(Influencer.campaign_links).selectinload(CampaignInfluencer.campaign))
            .filter(Influencer.id == influencer_id)
            .first()
        )

    def list_all(self) -> List[Influencer]:
        """Every influencer in the directory, newest first (no pagination)."""
        return (
            self.db.query(Influencer)
            .options(selectinload(Influencer.campaign_links).selectinload(CampaignInfluencer.campaign))
            .order_by(Influencer.created_at.desc())
            .all()
        )

    def update(self, influencer_id: UUID, partial: Dict[str, Any]) -> Influencer:
        """Merge only the supplied fields; everything else is left untouched.

        Raises:
            NotFoundError: No influencer with this id.
            ValidationError: Bad field or value (record unchanged).
        """
        influencer = self._get_or_raise(influencer_id)
        values = clean_influencer_values(partial)

        for field, value in values.items():
            setattr(influencer, field, value)
        influencer.updated_at = utcnow()
        self._commit()
        self.db.refresh(influencer)
        return influencer

    def delete(self, influencer_id: UUID) -> None:
        """Delete the influencer, its campaign associations, and reminder links."""
        influencer = self._get_or_raise(influencer_id)
        link_count = len(influencer.campaign_links)

        self.db.query(Reminder).filter(Reminder.influencer_id == influencer_id).update(
            {"influencer_id": None}, synchronize_session=False
        )
        # ORM cascade removes campaign_links
        self.db.delete(influencer)
        self._commit()

        logger.info(
            f"[INFLUENCERS] Deleted influencer {influencer_id} and {link_count} campaign association(s)"
        )

    # ------------------------------------------------------------------
    # Embedded collections
    # ------------------------------------------------------------------

    def add_note(self, influencer_id: UUID, content: str) -> Dict[str, Any]:
        """Append a note and return it."""
        if not content or not content.strip():
            raise ValidationError("Note content is required")
        influencer = self._get_or_raise(influencer_id)

        note = {"id": str(uuid4()), "content": content.strip(), "date": _now_iso()}
        # Reassign (not append) so SQLAlchemy sees the JSON change
        influencer.notes = [*(influencer.notes or []), note]
        influencer.updated_at = utcnow()
        self._commit()
        return note

    def delete_note(self, influencer_id: UUID, note_id: str) -> None:
        influencer = self._get_or_raise(influencer_id)
        notes = influencer.notes or []
        remaining = [note for note in notes if note.get("id") != note_id]
        if len(remaining) == len(notes):
            raise NotFoundError("Note", note_id)

        influencer.notes = remaining
        influencer.updated_at = utcnow()
        self._commit()

    def add_message(
        self,
        influencer_id: UUID,
        direction: str,
        subject: str,
        content: str,
        date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Append a communication to the influencer's message log."""
        try:
            direction = MessageDirectionEnum(direction).value
        except ValueError:
            raise ValidationError("direction must be 'incoming' or 'outgoing'")
        if not content:
            raise ValidationError("Message content is required")
        influencer = self._get_or_raise(influencer_id)

        message = {
            "id": str(uuid4()),
            "direction": direction,
            "subject": subject or "",
            "content": content,
            "date": date.isoformat() if date else _now_iso(),
        }
        influencer.messages = [*(influencer.messages or []), message]
        influencer.updated_at = utcnow()
        self._commit()
        return message
