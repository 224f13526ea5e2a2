"""NUDGE — Effectiveness Views (computed at query time, never stored)."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class CampaignEffectiveness(BaseModel):
    """One campaign joined with its engagement counts."""

    campaign_id: str
    campaign_type: str
    created_at: datetime
    threshold_days: int
    status: str
    total_sent: int = 0
    total_failed: int = 0
    total_clicks: int = 0
    unique_clickers: int = 0
    total_battery_checks: int = 0
    unique_battery_checkers: int = 0
    click_through_rate: float = 0.0  # % of sent
    conversion_rate: float = 0.0  # % of sent


class WeeklyTrend(BaseModel):
    """Campaigns of one week rolled up.

    avg_* is the mean of per-campaign rates; overall_* is the rate of the
    summed counts. The two differ whenever campaign sizes differ.
    """

    week_start: date
    campaigns_count: int = 0
    total_sent: int = 0
    total_clicks: int = 0
    total_unique_clickers: int = 0
    total_actions: int = 0
    avg_ctr: float = 0.0
    avg_conversion_rate: float = 0.0
    overall_ctr: float = 0.0
    overall_conversion_rate: float = 0.0


class UserEngagementStats(BaseModel):
    """Population view of per-user engagement."""

    total_users: int = 0
    avg_campaigns_per_user: float = 0.0
    avg_clicks_per_user: float = 0.0
    avg_actions_per_user: float = 0.0
    users_who_clicked: int = 0
    users_who_acted: int = 0
    user_click_rate: float = 0.0
    user_action_rate: float = 0.0


class ResponseTimeStats(BaseModel):
    """Days-to-battery-check distribution for one campaign."""

    campaign_id: str
    avg_response_days: float
    min_response_days: int
    max_response_days: int
    total_responses: int
    same_day_responses: int  # ≤ 1 day
    week_responses: int  # ≤ 7 days
    last_response_at: Optional[datetime] = None
