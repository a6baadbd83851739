"""SQLAlchemy ORM models and enums.

This module defines the CRM schema using UUID primary keys and explicit
relationships. Campaign aggregates (total influencers, total spent, average
rating) are intentionally NOT columns: they are derived from the
`campaign_influencers` rows at read time (see the Campaign properties).
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship


# Single Base used by the entire application
Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (all DateTime columns store naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


# Enums ---------------------------------------------------------

class CampaignStatusEnum(str, enum.Enum):
    draft = "draft"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class AssociationStatusEnum(str, enum.Enum):
    """Per-influencer progress inside a campaign.

    Expected flow is contacted -> confirmed -> posted -> paid. The order is
    advisory only; nothing rejects out-of-order transitions.
    """
    contacted = "contacted"
    confirmed = "confirmed"
    posted = "posted"
    paid = "paid"


class DeliverableTypeEnum(str, enum.Enum):
    post = "post"
    story = "story"
    reel = "reel"
    video = "video"
    blog = "blog"
    other = "other"


class MessageDirectionEnum(str, enum.Enum):
    incoming = "incoming"
    outgoing = "outgoing"


# Core models ----------------------------------------------------

class User(Base):
    """A person who can log in and own campaigns and reminders.

    Credentials live on the row itself (`password_hash`, bcrypt). Email and
    password are only changed through app/services/auth_service.py.
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Per-user Google API settings (profile page). The key is Fernet-encrypted.
    google_client_id = Column(String, nullable=True)
    google_api_key_enc = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    campaigns = relationship("Campaign", back_populates="user")
    reminders = relationship("Reminder", back_populates="user")

    @property
    def has_google_api_key(self) -> bool:
        return bool(self.google_api_key_enc)

    def __str__(self):
        return f"{self.name} ({self.email})"


class Influencer(Base):
    """A creator tracked in the shared influencer directory.

    `notes`, `files` and `messages` are embedded JSON lists. The per-influencer
    campaign history is not stored here; it is read from `campaign_links`.
    """
    __tablename__ = "influencers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    handle = Column(String, nullable=False)
    profile_link = Column(String, nullable=True)
    followers = Column(Integer, nullable=False, default=0)
    email = Column(String, nullable=True)
    rate = Column(Numeric(12, 2), nullable=False, default=0)
    categories = Column(JSON, nullable=False, default=list)
    followers_age = Column(String, nullable=True)
    followers_sex = Column(String, nullable=True)
    engagement_rate = Column(Float, nullable=False, default=0)
    platform = Column(String, nullable=False, default="Instagram")
    brands_worked_with = Column(JSON, nullable=True)

    notes = Column(JSON, nullable=False, default=list)      # [{id, content, date}]
    files = Column(JSON, nullable=False, default=list)      # metadata only, never content
    messages = Column(JSON, nullable=False, default=list)   # [{id, direction, subject, content, date}]

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    campaign_links = relationship(
        "CampaignInfluencer",
        back_populates="influencer",
        cascade="all, delete-orphan",
        order_by="CampaignInfluencer.created_at.desc()",
    )

    def __str__(self):
        return self.handle


class Campaign(Base):
    """A marketing campaign owned by exactly one user."""
    __tablename__ = "campaigns"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    budget = Column(Numeric(12, 2), nullable=True)
    status = Column(
        Enum(CampaignStatusEnum, values_callable=_enum_values, name="campaignstatusenum"),
        nullable=False,
        default=CampaignStatusEnum.draft,
    )
    brief_url = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="campaigns")

    # Campaign owns its associations: deleting the campaign deletes them.
    influencer_links = relationship(
        "CampaignInfluencer",
        back_populates="campaign",
        cascade="all, delete-orphan",
        order_by="CampaignInfluencer.created_at",
    )

    # Aggregates, derived from influencer_links on every read ---------

    @property
    def total_influencers(self) -> int:
        return len(self.influencer_links)

    @property
    def total_spent(self) -> Decimal:
        # Associations without a rate count as zero
        return sum((Decimal(link.rate or 0) for link in self.influencer_links), Decimal("0"))

    @property
    def average_performance_rating(self) -> Optional[float]:
        ratings = [link.performance_rating for link in self.influencer_links if link.performance_rating is not None]
        if not ratings:
            return None
        return round(sum(ratings) / len(ratings), 1)

    def __str__(self):
        return self.name


class CampaignInfluencer(Base):
    """Association record: one influencer's participation in one campaign.

    At most one row per (campaign_id, influencer_id). The constraint, not
    application locking, serializes concurrent inserts of the same pair.
    """
    __tablename__ = "campaign_influencers"
    __table_args__ = (
        UniqueConstraint("campaign_id", "influencer_id", name="uq_campaign_influencer"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    campaign_id = Column(
        UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    influencer_id = Column(
        UUID(as_uuid=True), ForeignKey("influencers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(
        Enum(AssociationStatusEnum, values_callable=_enum_values, name="associationstatusenum"),
        nullable=False,
        default=AssociationStatusEnum.contacted,
    )
    rate = Column(Numeric(12, 2), nullable=True)
    performance_rating = Column(Integer, nullable=True)  # 1-5
    deliverables = Column(JSON, nullable=False, default=list)
    performance = Column(JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    campaign = relationship("Campaign", back_populates="influencer_links")
    influencer = relationship("Influencer", back_populates="campaign_links")

    def __str__(self):
        return f"{self.influencer_id} in {self.campaign_id} ({self.status})"


class Reminder(Base):
    """A dated reminder owned by a user, optionally tied to an influencer or campaign.

    A reminder is "active" while it is not completed and its expiration date
    is still in the future (see `is_active`).
    """
    __tablename__ = "reminders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    expiration_date = Column(DateTime, nullable=False, index=True)
    type = Column(String, nullable=False, default="general")
    priority = Column(String, nullable=False, default="medium")
    influencer_id = Column(
        UUID(as_uuid=True), ForeignKey("influencers.id", ondelete="SET NULL"), nullable=True
    )
    campaign_id = Column(
        UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True
    )
    # `metadata` is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="reminders")

    @property
    def is_active(self) -> bool:
        return not self.is_completed and self.expiration_date > utcnow()

    def __str__(self):
        return self.title
