"""NUDGE — Campaign Analytics Routes."""

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from nudge.analyzer.effectiveness import get_campaign_effectiveness, get_weekly_trends
from nudge.core.exceptions import NotFoundError
from nudge.database import get_session
from nudge.models.analytics_models import CampaignEffectiveness, WeeklyTrend

router = APIRouter(tags=["Analytics"])

WEEKLY_SUMMARY_WEEKS = 8


@router.get("/campaign-stats/{campaign_id}", response_model=CampaignEffectiveness)
async def campaign_stats(campaign_id: str, session: Session = Depends(get_session)):
    """Effectiveness row for one campaign."""
    rows = get_campaign_effectiveness(session, campaign_id=campaign_id)
    if not rows:
        raise NotFoundError("Campaign", identifier=campaign_id)
    return rows[0]


@router.get("/weekly-summary", response_model=List[WeeklyTrend])
async def weekly_summary(session: Session = Depends(get_session)):
    """Weekly rollup of the last 8 weeks."""
    return get_weekly_trends(session, weeks=WEEKLY_SUMMARY_WEEKS)
