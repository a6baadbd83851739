"""Analytics endpoint.

WHAT: Dashboard summary over the current user's campaigns
WHY: The analytics page renders totals and distributions in one request

REFERENCES:
  - app/services/analytics_service.py: AnalyticsService
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import schemas
from app.database import get_db
from app.deps import get_current_identity
from app.services.analytics_service import AnalyticsService
from app.services.auth_service import AuthIdentity

router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
    }
)


@router.get(
    "",
    response_model=schemas.AnalyticsSummary,
    summary="Analytics summary",
    description="""
    Aggregates over the caller's campaigns and their influencer associations.

    Reach and engagement come from each association's reported performance;
    spend is the sum of association rates. ROI is reach per unit of spend.
    """
)
def get_analytics(
    db: Session = Depends(get_db),
    identity: AuthIdentity = Depends(get_current_identity),
):
    return AnalyticsService(db).summary(identity.user_id)
