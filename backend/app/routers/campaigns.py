"""Campaign endpoints.

WHAT: Campaign CRUD plus management of the influencers inside a campaign
WHY: Campaigns are owned by one user; every query here is owner-scoped, so a
     campaign belonging to someone else answers 404 exactly like a missing one

REFERENCES:
  - app/services/campaign_service.py: CampaignEngine
  - app/models.py: Campaign aggregates (total_influencers, total_spent, ...)
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import schemas
from app.database import get_db
from app.deps import get_current_identity
from app.exceptions import NotFoundError
from app.services.auth_service import AuthIdentity
from app.services.campaign_service import CampaignEngine

router = APIRouter(
    prefix="/campaigns",
    tags=["Campaigns"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        404: {"model": schemas.ErrorResponse, "description": "Campaign not found"},
    }
)


# ============================================================================
# CAMPAIGNS
# ============================================================================

@router.get(
    "",
    response_model=List[schemas.CampaignOut],
    summary="List campaigns",
    description="The current user's campaigns with aggregates, newest first.",
)
def list_campaigns(
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    return CampaignEngine(db).list_for_user(identity.user_id)


@router.post(
    "",
    response_model=schemas.CampaignDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create campaign",
)
def create_campaign(
    payload: schemas.CampaignCreate,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    data = payload.model_dump(exclude_unset=True)
    data["user_id"] = identity.user_id
    return CampaignEngine(db).create(data)


@router.get("/{campaign_id}", response_model=schemas.CampaignDetail, summary="Get campaign")
def get_campaign(
    campaign_id: UUID,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    campaign = CampaignEngine(db).get_by_id(campaign_id, user_id=identity.user_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)
    return campaign


@router.put(
    "/{campaign_id}",
    response_model=schemas.CampaignDetail,
    summary="Update campaign",
    description="Only fields present in the body change.",
)
def update_campaign(
    campaign_id: UUID,
    payload: schemas.CampaignUpdate,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    return CampaignEngine(db).update(
        campaign_id, payload.model_dump(exclude_unset=True), user_id=identity.user_id
    )


@router.delete(
    "/{campaign_id}",
    response_model=schemas.SuccessResponse,
    summary="Delete campaign",
    description="Deletes the campaign and every influencer association in it.",
)
def delete_campaign(
    campaign_id: UUID,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    CampaignEngine(db).delete(campaign_id, user_id=identity.user_id)
    return schemas.SuccessResponse(detail="Campaign deleted")


# ============================================================================
# CAMPAIGN INFLUENCERS
# ============================================================================

@router.post(
    "/{campaign_id}/influencers",
    response_model=schemas.CampaignInfluencerOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add influencer to campaign",
    responses={
        409: {"model": schemas.ErrorResponse, "description": "Influencer already in campaign"},
    }
)
def add_campaign_influencer(
    campaign_id: UUID,
    payload: schemas.CampaignInfluencerCreate,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    details = payload.model_dump(exclude_unset=True, exclude={"influencer_id"})
    return CampaignEngine(db).add_influencer_to_campaign(
        campaign_id, payload.influencer_id, details, user_id=identity.user_id
    )


@router.patch(
    "/{campaign_id}/influencers/{association_id}",
    response_model=schemas.CampaignInfluencerOut,
    summary="Update campaign influencer",
    description="Partial update of status, rate, rating, deliverables, performance or notes.",
)
def update_campaign_influencer(
    campaign_id: UUID,
    association_id: UUID,
    payload: schemas.CampaignInfluencerUpdate,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    return CampaignEngine(db).update_campaign_influencer(
        association_id,
        payload.model_dump(exclude_unset=True),
        campaign_id=campaign_id,
        user_id=identity.user_id,
    )


@router.delete(
    "/{campaign_id}/influencers/{influencer_id}",
    response_model=schemas.SuccessResponse,
    summary="Remove influencer from campaign",
)
def remove_campaign_influencer(
    campaign_id: UUID,
    influencer_id: UUID,
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    CampaignEngine(db).remove_influencer_from_campaign(
        campaign_id, influencer_id, user_id=identity.user_id
    )
    return schemas.SuccessResponse(detail="Influencer removed from campaign")
