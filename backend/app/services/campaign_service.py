"""Campaign Engine - campaigns and their influencer associations.

WHAT:
    - Campaign CRUD scoped to the owning user.
    - Association records (CampaignInfluencer) linking influencers to
      campaigns with per-link status, rate, deliverables and performance.

WHY:
    The association row is the single source of truth. Campaign aggregates
    (see models.Campaign properties) and an influencer's campaign history are
    both read from it, so nothing can drift out of sync.

REFERENCES:
    - app/models.py: Campaign, CampaignInfluencer, Influencer, Reminder
    - app/routers/campaigns.py: HTTP surface

Ownership:
    Every campaign operation takes an optional `user_id`. When given, a
    campaign owned by someone else behaves exactly like a missing one.
    get_influencer_campaigns is the one cross-owner read.
"""

import logging
import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import (
    AssociationStatusEnum,
    Campaign,
    CampaignInfluencer,
    CampaignStatusEnum,
    DeliverableTypeEnum,
    Influencer,
    Reminder,
    utcnow,
)
from ..utils.dates import parse_datetime

logger = logging.getLogger(__name__)

CAMPAIGN_FIELDS = frozenset({
    "name",
    "description",
    "start_date",
    "end_date",
    "budget",
    "status",
    "brief_url",
    "notes",
})

ASSOCIATION_FIELDS = frozenset({
    "status",
    "rate",
    "performance_rating",
    "deliverables",
    "performance",
    "notes",
})

PERFORMANCE_METRICS = frozenset({
    "impressions",
    "engagement",
    "clicks",
    "conversions",
    "reach",
    "saves",
    "shares",
})


# =============================================================================
# VALIDATION
# =============================================================================

def _non_negative_decimal(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be non-negative")
    return amount


def _rating(value: Any) -> int:
    """Whole number 1-5; strings, bools and NaN/inf are rejected."""
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or (isinstance(value, float) and not value.is_integer())
        or not 1 <= value <= 5
    ):
        raise ValidationError("performance_rating must be an integer between 1 and 5")
    return int(value)


def _coerce_enum(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}")


def _clean_deliverables(items: Any) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        raise ValidationError("deliverables must be a list")

    cleaned = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each deliverable must be an object")
        delivered_at = parse_datetime(item.get("delivered_at"), "delivered_at")
        cleaned.append({
            "type": _coerce_enum(DeliverableTypeEnum, item.get("type"), "deliverable type").value,
            "description": item.get("description") or "",
            "completed": bool(item.get("completed", False)),
            "delivered_at": delivered_at.isoformat() if delivered_at else None,
            "url": item.get("url"),
        })
    return cleaned


def _clean_performance(metrics: Any) -> Dict[str, Any]:
    if not isinstance(metrics, dict):
        raise ValidationError("performance must be an object")

    unknown = set(metrics) - PERFORMANCE_METRICS
    if unknown:
        raise ValidationError(f"Unknown performance metric(s): {', '.join(sorted(unknown))}")

    cleaned = {}
    for key, value in metrics.items():
        if value is None:
            continue
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
            or value < 0
        ):
            raise ValidationError(f"performance.{key} must be a non-negative number")
        cleaned[key] = value
    return cleaned


def clean_campaign_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Validate campaign attributes present in `values`."""
    unknown = set(values) - CAMPAIGN_FIELDS
    if unknown:
        raise ValidationError(f"Unknown campaign field(s): {', '.join(sorted(unknown))}")

    cleaned: Dict[str, Any] = {}
    for field, value in values.items():
        if field == "name":
            value = (value or "").strip()
            if not value:
                raise ValidationError("Campaign name is required")
        elif field == "status":
            if value is None:
                raise ValidationError("status cannot be null")
            value = _coerce_enum(CampaignStatusEnum, value, "status")
        elif field in ("start_date", "end_date"):
            value = parse_datetime(value, field)
        elif field == "budget" and value is not None:
            value = _non_negative_decimal(value, "budget")
        cleaned[field] = value
    return cleaned


def clean_association_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Validate association attributes present in `values`."""
    unknown = set(values) - ASSOCIATION_FIELDS
    if unknown:
        raise ValidationError(f"Unknown association field(s): {', '.join(sorted(unknown))}")

    cleaned: Dict[str, Any] = {}
    for field, value in values.items():
        if field == "status":
            if value is None:
                raise ValidationError("status cannot be null")
            value = _coerce_enum(AssociationStatusEnum, value, "status")
        elif field == "rate" and value is not None:
            value = _non_negative_decimal(value, "rate")
        elif field == "performance_rating" and value is not None:
            value = _rating(value)
        elif field == "deliverables":
            value = _clean_deliverables(value) if value is not None else []
        elif field == "performance":
            value = _clean_performance(value) if value is not None else {}
        cleaned[field] = value
    return cleaned


def _check_date_order(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date cannot be before start_date")


# =============================================================================
# ENGINE
# =============================================================================

class CampaignEngine:
    """Owns campaigns and campaign-influencer associations."""

    def __init__(self, db: Session):
        self.db = db

    def _campaign_query(self):
        return self.db.query(Campaign).options(
            selectinload(Campaign.influencer_links).selectinload(CampaignInfluencer.influencer)
        )

    def _get_or_raise(self, campaign_id: UUID, user_id: Optional[UUID] = None) -> Campaign:
        campaign = self.get_by_id(campaign_id, user_id=user_id)
        if campaign is None:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Campaign:
        """Create a campaign owned by `data["user_id"]` (status defaults to draft)."""
        values = dict(data)
        user_id = values.pop("user_id", None)
        if user_id is None:
            raise ValidationError("user_id is required")
        if "name" not in values:
            raise ValidationError("Campaign name is required")

        cleaned = clean_campaign_values(values)
        _check_date_order(cleaned.get("start_date"), cleaned.get("end_date"))
        if cleaned.get("status") is None:
            cleaned["status"] = CampaignStatusEnum.draft

        campaign = Campaign(user_id=user_id, **cleaned)
        self.db.add(campaign)
        self._commit()

        logger.info(f"[CAMPAIGNS] Created campaign {campaign.id} for user {user_id}")
        return self._get_or_raise(campaign.id)

    def get_by_id(self, campaign_id: UUID, user_id: Optional[UUID] = None) -> Optional[Campaign]:
        """Campaign with its associations, or None if absent or not owned by `user_id`."""
        query = self._campaign_query().filter(Campaign.id == campaign_id)
        if user_id is not None:
            query = query.filter(Campaign.user_id == user_id)
        return query.first()

    def list_for_user(self, user_id: UUID) -> List[Campaign]:
        """The user's campaigns, newest first."""
        return (
            self._campaign_query()
            .filter(Campaign.user_id == user_id)
            .order_by(Campaign.created_at.desc())
            .all()
        )

    def update(self, campaign_id: UUID, partial: Dict[str, Any], user_id: Optional[UUID] = None) -> Campaign:
        """Merge the supplied campaign fields.

        Date order is checked against the merged result, so moving only
        `end_date` before the stored `start_date` is rejected too.
        """
        campaign = self._get_or_raise(campaign_id, user_id=user_id)
        cleaned = clean_campaign_values(partial)
        _check_date_order(
            cleaned.get("start_date", campaign.start_date),
            cleaned.get("end_date", campaign.end_date),
        )

        for field, value in cleaned.items():
            setattr(campaign, field, value)
        campaign.updated_at = utcnow()
        self._commit()
        self.db.refresh(campaign)
        return campaign

    def delete(self, campaign_id: UUID, user_id: Optional[UUID] = None) -> None:
        """Delete the campaign and all of its associations."""
        campaign = self._get_or_raise(campaign_id, user_id=user_id)
        link_count = len(campaign.influencer_links)

        self.db.query(Reminder).filter(Reminder.campaign_id == campaign_id).update(
            {"campaign_id": None}, synchronize_session=False
        )
        self.db.delete(campaign)
        self._commit()

        logger.info(f"[CAMPAIGNS] Deleted campaign {campaign_id} and {link_count} association(s)")

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    def add_influencer_to_campaign(
        self,
        campaign_id: UUID,
        influencer_id: UUID,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[UUID] = None,
    ) -> CampaignInfluencer:
        """Link an influencer to a campaign.

        `details` may carry status, rate, performance_rating, deliverables,
        performance and notes. Status defaults to contacted.

        Raises:
            NotFoundError: Campaign (or not owned) or influencer missing.
            ConflictError: The influencer is already in this campaign.
            ValidationError: Bad rating, negative numbers, unknown fields.
        """
        self._get_or_raise(campaign_id, user_id=user_id)
        if self.db.query(Influencer.id).filter(Influencer.id == influencer_id).first() is None:
            raise NotFoundError("Influencer", influencer_id)

        cleaned = clean_association_values(details or {})
        if cleaned.get("status") is None:
            cleaned["status"] = AssociationStatusEnum.contacted

        link = CampaignInfluencer(campaign_id=campaign_id, influencer_id=influencer_id, **cleaned)
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Influencer is already in this campaign")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(link)

        logger.info(f"[CAMPAIGNS] Added influencer {influencer_id} to campaign {campaign_id}")
        return link

    def update_campaign_influencer(
        self,
        association_id: UUID,
        partial: Dict[str, Any],
        campaign_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> CampaignInfluencer:
        """Merge the supplied fields into one association.

        No status transition order is enforced.
        """
        if campaign_id is not None:
            self._get_or_raise(campaign_id, user_id=user_id)

        query = self.db.query(CampaignInfluencer).filter(CampaignInfluencer.id == association_id)
        if campaign_id is not None:
            query = query.filter(CampaignInfluencer.campaign_id == campaign_id)
        link = query.first()
        if link is None:
            raise NotFoundError("Campaign influencer", association_id)

        cleaned = clean_association_values(partial)
        for field, value in cleaned.items():
            setattr(link, field, value)
        link.updated_at = utcnow()
        self._commit()
        self.db.refresh(link)
        return link

    def remove_influencer_from_campaign(
        self,
        campaign_id: UUID,
        influencer_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> None:
        self._get_or_raise(campaign_id, user_id=user_id)
        link = (
            self.db.query(CampaignInfluencer)
            .filter(
                CampaignInfluencer.campaign_id == campaign_id,
                CampaignInfluencer.influencer_id == influencer_id,
            )
            .first()
        )
        if link is None:
            raise NotFoundError("Campaign influencer", influencer_id)

        self.db.delete(link)
        self._commit()
        logger.info(f"[CAMPAIGNS] Removed influencer {influencer_id} from campaign {campaign_id}")

    def get_influencer_campaigns(self, influencer_id: UUID) -> List[CampaignInfluencer]:
        """Every association of an influencer, newest first, with its campaign loaded."""
        if self.db.query(Influencer.id).filter(Influencer.id == influencer_id).first() is None:
            raise NotFoundError("Influencer", influencer_id)

        return (
            self.db.query(CampaignInfluencer)
            .options(selectinload(CampaignInfluencer.campaign))
            .filter(CampaignInfluencer.influencer_id == influencer_id)
            .order_by(CampaignInfluencer.created_at.desc())
            .all()
        )
