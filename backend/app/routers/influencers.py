"""Influencer directory endpoints.

WHAT: REST API over the shared influencer directory (CRUD, notes, message log,
      campaign history)
WHY: Every authenticated user sees the same directory; campaigns, not
     influencers, carry ownership

REFERENCES:
  - app/services/influencer_service.py: InfluencerDirectory
  - app/services/campaign_service.py: get_influencer_campaigns
  - app/schemas.py: Influencer schemas
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import models, schemas
from app.database import get_db
from app.deps import get_current_identity
from app.exceptions import NotFoundError
from app.services.campaign_service import CampaignEngine
from app.services.influencer_service import InfluencerDirectory, campaign_history

router = APIRouter(
    prefix="/influencers",
    tags=["Influencers"],
    dependencies=[Depends(get_current_identity)],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        404: {"model": schemas.ErrorResponse, "description": "Influencer not found"},
    }
)


def _influencer_to_schema(influencer: models.Influencer) -> schemas.InfluencerOut:
    """Serialize an influencer with its derived campaign history."""
    out = schemas.InfluencerOut.model_validate(influencer)
    out.campaigns = [
        schemas.InfluencerCampaignSummary.model_validate(row)
        for row in campaign_history(influencer)
    ]
    return out


# ============================================================================
# CRUD
# ============================================================================

@router.get(
    "",
    response_model=List[schemas.InfluencerOut],
    summary="List influencers",
    description="Every influencer in the directory, newest first.",
)
def list_influencers(db: Session = Depends(get_db)):
    return [_influencer_to_schema(i) for i in InfluencerDirectory(db).list_all()]


@router.post(
    "",
    response_model=schemas.InfluencerOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create influencer",
)
def create_influencer(payload: schemas.InfluencerCreate, db: Session = Depends(get_db)):
    influencer = InfluencerDirectory(db).create(payload.model_dump(mode="json"))
    return _influencer_to_schema(influencer)


@router.get("/{influencer_id}", response_model=schemas.InfluencerOut, summary="Get influencer")
def get_influencer(influencer_id: UUID, db: Session = Depends(get_db)):
    influencer = InfluencerDirectory(db).get_by_id(influencer_id)
    if influencer is None:
        raise NotFoundError("Influencer", influencer_id)
    return _influencer_to_schema(influencer)


@router.patch(
    "/{influencer_id}",
    response_model=schemas.InfluencerOut,
    summary="Update influencer",
    description="Partial update: only fields present in the body change.",
)
def update_influencer(
    influencer_id: UUID,
    payload: schemas.InfluencerUpdate,
    db: Session = Depends(get_db),
):
    influencer = InfluencerDirectory(db).update(
        influencer_id, payload.model_dump(mode="json", exclude_unset=True)
    )
    return _influencer_to_schema(influencer)


@router.delete(
    "/{influencer_id}",
    response_model=schemas.SuccessResponse,
    summary="Delete influencer",
    description="Also removes the influencer from every campaign and unlinks its reminders.",
)
def delete_influencer(influencer_id: UUID, db: Session = Depends(get_db)):
    InfluencerDirectory(db).delete(influencer_id)
    return schemas.SuccessResponse(detail="Influencer deleted")


# ============================================================================
# NOTES / MESSAGES
# ============================================================================

@router.post(
    "/{influencer_id}/notes",
    response_model=schemas.Note,
    status_code=status.HTTP_201_CREATED,
    summary="Add note",
)
def add_note(influencer_id: UUID, payload: schemas.NoteIn, db: Session = Depends(get_db)):
    return InfluencerDirectory(db).add_note(influencer_id, payload.content)


@router.delete(
    "/{influencer_id}/notes/{note_id}",
    response_model=schemas.SuccessResponse,
    summary="Delete note",
)
def delete_note(influencer_id: UUID, note_id: str, db: Session = Depends(get_db)):
    InfluencerDirectory(db).delete_note(influencer_id, note_id)
    return schemas.SuccessResponse(detail="Note deleted")


@router.post(
    "/{influencer_id}/messages",
    response_model=schemas.Message,
    status_code=status.HTTP_201_CREATED,
    summary="Log message",
)
def add_message(influencer_id: UUID, payload: schemas.MessageIn, db: Session = Depends(get_db)):
    return InfluencerDirectory(db).add_message(
        influencer_id,
        direction=payload.direction.value,
        subject=payload.subject,
        content=payload.content,
        date=payload.date,
    )


# ============================================================================
# CAMPAIGN HISTORY
# ============================================================================

@router.get(
    "/{influencer_id}/campaigns",
    response_model=List[schemas.InfluencerCampaignOut],
    summary="Influencer campaigns",
    description="Every campaign this influencer is part of, newest association first.",
)
def get_influencer_campaigns(influencer_id: UUID, db: Session = Depends(get_db)):
    return CampaignEngine(db).get_influencer_campaigns(influencer_id)
