"""Analytics Service - per-user campaign summary for the dashboard.

WHAT:
    Totals (reach, spend, influencers, campaigns), average engagement, a
    reach-per-spend ROI, campaign status distribution, six-month performance,
    top campaigns by reach and the platform mix of the user's influencers.

WHY:
    The association row carries rate and reported performance, so every
    figure is an aggregate over `campaign_influencers` joined to the caller's
    campaigns. Nothing is stored; the summary is computed per request.

REFERENCES:
    - app/models.py: Campaign, CampaignInfluencer, Influencer
    - app/routers/analytics.py: HTTP surface

Metrics are read from the JSON `performance` column with SQLAlchemy's JSON
index operators, which render as JSON_EXTRACT on SQLite and ->> on PostgreSQL.
A missing metric counts as zero.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Campaign, CampaignInfluencer, CampaignStatusEnum, Influencer, utcnow

logger = logging.getLogger(__name__)

MONTHS_SHOWN = 6
TOP_CAMPAIGNS = 5


def _metric(name: str):
    return func.coalesce(CampaignInfluencer.performance[name].as_float(), 0)


def _recent_months(now: datetime, count: int = MONTHS_SHOWN) -> List[str]:
    """`count` YYYY-MM labels ending with the month of `now`, oldest first."""
    year, month = now.year, now.month
    months = []
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def _roi(reach: float, spend: float) -> float:
    # Reach per unit of spend
    return reach / spend if spend > 0 else 0.0


class AnalyticsService:
    """Read-only aggregates over one user's campaigns."""

    def __init__(self, db: Session):
        self.db = db

    def _campaign_rows(self, user_id: UUID):
        spend = func.coalesce(CampaignInfluencer.rate, 0)
        return (
            self.db.query(
                Campaign.id,
                Campaign.name,
                Campaign.status,
                Campaign.created_at,
                func.coalesce(func.sum(spend), 0).label("spend"),
                func.coalesce(func.sum(_metric("reach")), 0).label("reach"),
                func.coalesce(func.sum(_metric("engagement")), 0).label("engagement"),
            )
            .outerjoin(CampaignInfluencer, CampaignInfluencer.campaign_id == Campaign.id)
            .filter(Campaign.user_id == user_id)
            .group_by(Campaign.id, Campaign.name, Campaign.status, Campaign.created_at)
            .all()
        )

    def summary(self, user_id: UUID) -> Dict[str, Any]:
        """Dashboard figures for `user_id`. A user without campaigns gets zeros."""
        rows = self._campaign_rows(user_id)

        influencers, avg_engagement = (
            self.db.query(
                func.count(func.distinct(CampaignInfluencer.influencer_id)),
                func.avg(_metric("engagement")),
            )
            .join(Campaign, Campaign.id == CampaignInfluencer.campaign_id)
            .filter(Campaign.user_id == user_id)
            .one()
        )

        status_counts = (
            self.db.query(Campaign.status, func.count(Campaign.id))
            .filter(Campaign.user_id == user_id)
            .group_by(Campaign.status)
            .all()
        )

        platform_count = func.count(func.distinct(Influencer.id))
        platforms = (
            self.db.query(
                Influencer.platform,
                platform_count,
                func.coalesce(func.sum(_metric("reach")), 0),
            )
            .join(CampaignInfluencer, CampaignInfluencer.influencer_id == Influencer.id)
            .join(Campaign, Campaign.id == CampaignInfluencer.campaign_id)
            .filter(Campaign.user_id == user_id)
            .group_by(Influencer.platform)
            .order_by(platform_count.desc(), Influencer.platform)
            .all()
        )

        total_reach = sum(float(row.reach) for row in rows)
        total_spend = sum(float(row.spend) for row in rows)

        monthly = {
            month: {"month": month, "campaigns": 0, "spend": 0.0, "reach": 0.0, "engagement": 0.0}
            for month in _recent_months(utcnow())
        }
        for row in rows:
            bucket = monthly.get(row.created_at.strftime("%Y-%m"))
            if bucket is None:
                continue
            bucket["campaigns"] += 1
            bucket["spend"] += float(row.spend)
            bucket["reach"] += float(row.reach)
            bucket["engagement"] += float(row.engagement)

        ranked = sorted(
            (row for row in rows if float(row.reach) > 0),
            key=lambda row: float(row.reach),
            reverse=True,
        )[:TOP_CAMPAIGNS]

        logger.info(f"[ANALYTICS] Summary for user {user_id}: {len(rows)} campaigns")
        return {
            "total_reach": total_reach,
            "average_engagement_rate": float(avg_engagement or 0),
            "total_roi": _roi(total_reach, total_spend),
            "active_campaigns": sum(
                count for status, count in status_counts if status == CampaignStatusEnum.active
            ),
            "total_campaigns": len(rows),
            "total_spend": total_spend,
            "total_influencers": influencers or 0,
            "monthly_performance": list(monthly.values()),
            "campaign_status_distribution": [
                {"status": status.value, "count": count} for status, count in status_counts
            ],
            "top_performing_campaigns": [
                {
                    "id": row.id,
                    "name": row.name,
                    "status": row.status.value,
                    "reach": float(row.reach),
                    "engagement": float(row.engagement),
                    "spend": float(row.spend),
                    "roi": _roi(float(row.reach), float(row.spend)),
                }
                for row in ranked
            ],
            "platform_distribution": [
                {"platform": platform, "count": count, "reach": float(reach)}
                for platform, count, reach in platforms
            ],
        }
