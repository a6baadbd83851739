"""Pydantic schemas for request/response payloads.

Attributes are snake_case in Python; on the wire every field uses its
camelCase alias (`followersAge`, `startDate`, ...). Inputs accept either.
"""

from datetime import datetime
from uuid import UUID
from typing import Optional, List, Any, Dict
from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel
from .models import AssociationStatusEnum, CampaignStatusEnum, DeliverableTypeEnum, MessageDirectionEnum


class CamelModel(BaseModel):
    """Base for every payload: camelCase aliases, ORM attribute loading."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# =============================================================================
# AUTH
# =============================================================================

class RegisterRequest(CamelModel):
    """Payload for user registration."""

    email: str = Field(
        description="User email address",
        example="a@x.com"
    )
    password: str = Field(
        description="Password (minimum 6 characters)",
        example="secret1"
    )
    name: str = Field(
        description="User display name",
        example="Alex Doe"
    )


class LoginRequest(CamelModel):
    """Payload for user login."""

    email: str = Field(description="User email address", example="a@x.com")
    password: str = Field(description="User password", example="secret1")


class ChangeEmailRequest(CamelModel):
    """Payload for changing the login email. Requires the current password."""

    current_email: str = Field(description="Email currently on the account")
    new_email: str = Field(description="Email to switch to")
    password: str = Field(description="Current password")


class ChangePasswordRequest(CamelModel):
    """Payload for changing password."""

    email: str = Field(description="Account email")
    current_password: str = Field(description="Current password")
    new_password: str = Field(description="New password (min 6 chars)")


class ProfileUpdate(CamelModel):
    """Payload for the profile settings page. Only sent fields are changed."""

    name: Optional[str] = Field(None, description="User display name")
    google_client_id: Optional[str] = Field(None, description="Google OAuth client id")
    google_api_key: Optional[str] = Field(
        None,
        description="Google API key; stored encrypted, never returned. Empty string clears it."
    )

    model_config = {"extra": "forbid"}


class UserOut(CamelModel):
    """Public representation of a user. Never carries the password hash."""

    id: UUID = Field(
        description="Unique user identifier",
        example="123e4567-e89b-12d3-a456-426614174000"
    )
    email: str = Field(description="User email address", example="a@x.com")
    name: str = Field(description="User display name", example="Alex Doe")
    google_client_id: Optional[str] = Field(None, description="Google OAuth client id")
    has_google_api_key: bool = Field(False, description="Whether a Google API key is stored")
    created_at: datetime
    updated_at: datetime


class AuthResponse(CamelModel):
    """Response from register, login and email change."""

    user: UserOut = Field(description="Authenticated user information")

    model_config = {
        "json_schema_extra": {
            "example": {
                "user": {
                    "id": "123e4567-e89b-12d3-a456-426614174000",
                    "email": "a@x.com",
                    "name": "Alex Doe",
                    "hasGoogleApiKey": False
                }
            }
        }
    }


# =============================================================================
# INFLUENCERS
# =============================================================================

class NoteIn(CamelModel):
    content: str = Field(description="Note text")


class Note(CamelModel):
    """Embedded note. id and date are filled in when missing."""

    id: Optional[str] = None
    content: str
    date: Optional[str] = None


class MessageIn(CamelModel):
    """A logged communication with the influencer."""

    direction: MessageDirectionEnum
    subject: str = ""
    content: str
    date: Optional[datetime] = Field(None, description="When it happened; defaults to now")


class Message(CamelModel):
    id: Optional[str] = None
    direction: MessageDirectionEnum
    subject: str = ""
    content: str
    date: Optional[str] = None


class FileMeta(CamelModel):
    """File metadata only; content is stored elsewhere."""

    id: Optional[str] = None
    name: str
    type: Optional[str] = None
    size: Optional[int] = None
    date: Optional[str] = None
    description: Optional[str] = None


class InfluencerCreate(CamelModel):
    """Payload for adding an influencer to the directory."""

    handle: str = Field(description="Social handle", example="@jane")
    profile_link: Optional[str] = Field(None, example="https://instagram.com/jane")
    followers: int = Field(0, description="Follower count")
    email: Optional[str] = None
    rate: float = Field(0, description="Usual rate per post")
    categories: List[str] = Field(default_factory=list, example=["fashion", "travel"])
    followers_age: Optional[str] = Field(None, example="18-24")
    followers_sex: Optional[str] = Field(None, example="70% female")
    engagement_rate: float = Field(0, description="Percentage, 0-100")
    platform: str = "Instagram"
    brands_worked_with: List[str] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    files: List[FileMeta] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)


class InfluencerUpdate(CamelModel):
    """Partial update. Only fields present in the body are applied."""

    handle: Optional[str] = None
    profile_link: Optional[str] = None
    followers: Optional[int] = None
    email: Optional[str] = None
    rate: Optional[float] = None
    categories: Optional[List[str]] = None
    followers_age: Optional[str] = None
    followers_sex: Optional[str] = None
    engagement_rate: Optional[float] = None
    platform: Optional[str] = None
    brands_worked_with: Optional[List[str]] = None
    notes: Optional[List[Note]] = None
    files: Optional[List[FileMeta]] = None
    messages: Optional[List[Message]] = None

    model_config = {"extra": "forbid"}


class InfluencerCampaignSummary(CamelModel):
    """One row of an influencer's campaign history (derived, never stored)."""

    id: UUID = Field(description="Campaign id")
    association_id: UUID
    name: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    campaign_status: Optional[CampaignStatusEnum] = None
    status: AssociationStatusEnum
    payment: Optional[float] = None
    performance: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None


class InfluencerOut(CamelModel):
    id: UUID
    handle: str
    profile_link: Optional[str] = None
    followers: int
    email: Optional[str] = None
    rate: float
    categories: List[str] = Field(default_factory=list)
    followers_age: Optional[str] = None
    followers_sex: Optional[str] = None
    engagement_rate: float
    platform: str
    brands_worked_with: List[str] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    files: List[FileMeta] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)
    campaigns: List[InfluencerCampaignSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class InfluencerSummary(CamelModel):
    """Compact influencer view embedded in campaign details."""

    id: UUID
    handle: str
    platform: str
    followers: int
    profile_link: Optional[str] = None
    engagement_rate: float


# =============================================================================
# CAMPAIGNS
# =============================================================================

class Deliverable(CamelModel):
    type: DeliverableTypeEnum
    description: str = ""
    completed: bool = False
    delivered_at: Optional[datetime] = None
    url: Optional[str] = None


class Performance(CamelModel):
    """Reported results for one association. All metrics optional."""

    impressions: Optional[float] = None
    engagement: Optional[float] = None
    clicks: Optional[float] = None
    conversions: Optional[float] = None
    reach: Optional[float] = None
    saves: Optional[float] = None
    shares: Optional[float] = None


class CampaignCreate(CamelModel):
    """Payload for creating a campaign. Status defaults to draft."""

    name: str = Field(description="Campaign name", example="Summer")
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[float] = None
    status: Optional[CampaignStatusEnum] = None
    brief_url: Optional[str] = None
    notes: Optional[str] = None


class CampaignUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[float] = None
    status: Optional[CampaignStatusEnum] = None
    brief_url: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"extra": "forbid"}


class CampaignOut(CamelModel):
    """Campaign with aggregates computed from its associations."""

    id: UUID
    user_id: UUID
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[float] = None
    status: CampaignStatusEnum
    brief_url: Optional[str] = None
    notes: Optional[str] = None
    total_influencers: int = 0
    total_spent: float = 0
    average_performance_rating: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class CampaignInfluencerCreate(CamelModel):
    """Payload for adding an influencer to a campaign."""

    influencer_id: UUID
    status: Optional[AssociationStatusEnum] = None
    rate: Optional[float] = None
    performance_rating: Optional[int] = Field(None, description="1-5")
    deliverables: Optional[List[Deliverable]] = None
    performance: Optional[Performance] = None
    notes: Optional[str] = None


class CampaignInfluencerUpdate(CamelModel):
    status: Optional[AssociationStatusEnum] = None
    rate: Optional[float] = None
    performance_rating: Optional[int] = None
    deliverables: Optional[List[Deliverable]] = None
    performance: Optional[Performance] = None
    notes: Optional[str] = None

    model_config = {"extra": "forbid"}


class CampaignInfluencerOut(CamelModel):
    id: UUID
    campaign_id: UUID
    influencer_id: UUID
    status: AssociationStatusEnum
    rate: Optional[float] = None
    performance_rating: Optional[int] = None
    deliverables: List[Deliverable] = Field(default_factory=list)
    performance: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CampaignInfluencerDetail(CampaignInfluencerOut):
    influencer: InfluencerSummary


class CampaignDetail(CampaignOut):
    """Single campaign including its association list (oldest first)."""

    influencers: List[CampaignInfluencerDetail] = Field(
        default_factory=list,
        validation_alias=AliasChoices("influencer_links", "influencers"),
    )


class CampaignSummary(CamelModel):
    id: UUID
    name: str
    status: CampaignStatusEnum
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class InfluencerCampaignOut(CampaignInfluencerOut):
    """An influencer's association plus a summary of the campaign."""

    campaign: CampaignSummary


# =============================================================================
# REMINDERS
# =============================================================================

class ReminderCreate(CamelModel):
    title: str = Field(description="Reminder title", example="Follow up with @jane")
    description: Optional[str] = None
    expiration_date: str = Field(
        description="ISO-8601 datetime; a trailing Z is accepted",
        example="2026-11-01T09:00:00Z"
    )
    type: str = "general"
    priority: str = "medium"
    influencer_id: Optional[UUID] = None
    campaign_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = None


class ReminderUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    expiration_date: Optional[str] = None
    type: Optional[str] = None
    priority: Optional[str] = None
    influencer_id: Optional[UUID] = None
    campaign_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = None
    is_completed: Optional[bool] = None

    model_config = {"extra": "forbid"}


class ReminderOut(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    description: Optional[str] = None
    expiration_date: datetime
    type: str
    priority: str
    influencer_id: Optional[UUID] = None
    campaign_id: Optional[UUID] = None
    # ORM attribute is `metadata_`; `metadata` on a model instance is SQLAlchemy's MetaData
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("metadata_", "metadata")
    )
    is_completed: bool
    active: bool = Field(
        description="Not completed and not yet expired",
        validation_alias=AliasChoices("is_active", "active"),
    )
    created_at: datetime
    updated_at: datetime


class PaginationMeta(CamelModel):
    total: int
    limit: int
    offset: int
    total_pages: int


class ReminderListResponse(CamelModel):
    reminders: List[ReminderOut]
    pagination: PaginationMeta


# =============================================================================
# ANALYTICS
# =============================================================================

class MonthlyPerformance(CamelModel):
    month: str = Field(description="YYYY-MM", example="2026-07")
    campaigns: int
    spend: float
    reach: float
    engagement: float


class StatusCount(CamelModel):
    status: CampaignStatusEnum
    count: int


class TopCampaign(CamelModel):
    id: UUID
    name: str
    status: CampaignStatusEnum
    reach: float
    engagement: float
    spend: float
    roi: float = Field(description="Reach per unit of spend")


class PlatformShare(CamelModel):
    platform: str
    count: int = Field(description="Distinct influencers on this platform")
    reach: float


class AnalyticsSummary(CamelModel):
    """Dashboard figures over the current user's campaigns."""

    total_reach: float
    average_engagement_rate: float
    total_roi: float = Field(description="Total reach per unit of total spend; 0 without spend")
    active_campaigns: int
    total_campaigns: int
    total_spend: float
    total_influencers: int = Field(description="Distinct influencers across the user's campaigns")
    monthly_performance: List[MonthlyPerformance] = Field(
        description="Last six months by campaign creation month, oldest first"
    )
    campaign_status_distribution: List[StatusCount]
    top_performing_campaigns: List[TopCampaign] = Field(
        description="Up to five campaigns with reach > 0, highest reach first"
    )
    platform_distribution: List[PlatformShare]


# =============================================================================
# SHARED
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(
        description="Error message",
        example="Invalid credentials"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "detail": "Invalid credentials"
            }
        }
    }


class SuccessResponse(BaseModel):
    """Standard success response."""

    status: str = Field(default="ok", description="Status message")
    detail: str | None = Field(
        default=None,
        description="Success message",
        example="Operation completed successfully"
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(
        description="Service status",
        example="ok"
    )
