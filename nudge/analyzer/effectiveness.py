"""NUDGE — Effectiveness Engine.

Read-only views over campaigns, notification logs, clicks and battery checks:
per-campaign effectiveness, weekly trends, user engagement and response times.
Every ratio is guarded against an empty denominator and reported as a
percentage rounded to 2 decimals.
"""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import distinct, func
from sqlmodel import Session, col, select

from nudge.models.analytics_models import (
    CampaignEffectiveness,
    ResponseTimeStats,
    UserEngagementStats,
    WeeklyTrend,
)
from nudge.models.campaign_models import NotificationCampaign, NotificationLog
from nudge.models.tracking_models import BatteryCheckAction, NotificationClick
from nudge.core.logging import get_logger

logger = get_logger("analyzer.effectiveness")


def _rate(numerator: float, denominator: float) -> float:
    return round(numerator / denominator * 100, 2) if denominator > 0 else 0.0


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def week_start(value: datetime) -> date:
    """Monday of the ISO week containing `value`."""
    d = _as_utc(value).date()
    return d - timedelta(days=d.weekday())


def _engagement_counts(
    session: Session, model, campaign_id: Optional[str]
) -> Dict[str, Tuple[int, int]]:
    """campaign_id → (total rows, distinct users) for a fact table."""
    query = select(
        model.campaign_id, func.count(), func.count(distinct(model.user_id))
    ).group_by(model.campaign_id)
    if campaign_id:
        query = query.where(model.campaign_id == campaign_id)
    return {cid: (total, unique) for cid, total, unique in session.exec(query).all()}


# ─────────────────────────────────────────────
# CAMPAIGN EFFECTIVENESS
# ─────────────────────────────────────────────


def get_campaign_effectiveness(
    session: Session,
    campaign_id: Optional[str] = None,
    since: Optional[datetime] = None,
) -> List[CampaignEffectiveness]:
    """One row per campaign, newest first; optionally a single campaign
    or only campaigns created at or after `since`.
    """
    query = select(NotificationCampaign).order_by(
        col(NotificationCampaign.created_at).desc()
    )
    if campaign_id:
        query = query.where(NotificationCampaign.campaign_id == campaign_id)
    if since is not None:
        # created_at is stored as naive UTC
        naive = _as_utc(since).astimezone(timezone.utc).replace(tzinfo=None)
        query = query.where(col(NotificationCampaign.created_at) >= naive)
    campaigns = session.exec(query).all()

    clicks = _engagement_counts(session, NotificationClick, campaign_id)
    checks = _engagement_counts(session, BatteryCheckAction, campaign_id)

    rows: List[CampaignEffectiveness] = []
    for c in campaigns:
        total_clicks, unique_clickers = clicks.get(c.campaign_id, (0, 0))
        total_checks, unique_checkers = checks.get(c.campaign_id, (0, 0))
        sent = c.total_sent or 0
        rows.append(
            CampaignEffectiveness(
                campaign_id=c.campaign_id,
                campaign_type=c.campaign_type,
                created_at=_as_utc(c.created_at),
                threshold_days=c.threshold_days,
                status=str(getattr(c.status, "value", c.status)),
                total_sent=sent,
                total_failed=c.total_failed or 0,
                total_clicks=total_clicks,
                unique_clickers=unique_clickers,
                total_battery_checks=total_checks,
                unique_battery_checkers=unique_checkers,
                click_through_rate=_rate(total_clicks, sent),
                conversion_rate=_rate(total_checks, sent),
            )
        )

    logger.info(f"Computed effectiveness for {len(rows)} campaigns")
    return rows


# ─────────────────────────────────────────────
# WEEKLY TRENDS
# ─────────────────────────────────────────────


def get_weekly_trends(
    session: Session, weeks: int = 8, today: Optional[date] = None
) -> List[WeeklyTrend]:
    """Roll campaigns of the trailing `weeks` weeks up by week, newest first."""
    today = today or datetime.now(timezone.utc).date()
    cutoff = datetime.combine(today - timedelta(weeks=weeks), time.min, timezone.utc)

    by_week: Dict[date, List[CampaignEffectiveness]] = defaultdict(list)
    for row in get_campaign_effectiveness(session, since=cutoff):
        by_week[week_start(row.created_at)].append(row)

    trends: List[WeeklyTrend] = []
    for start in sorted(by_week, reverse=True):
        rows = by_week[start]
        sent = sum(r.total_sent for r in rows)
        clicks = sum(r.total_clicks for r in rows)
        actions = sum(r.total_battery_checks for r in rows)
        trends.append(
            WeeklyTrend(
                week_start=start,
                campaigns_count=len(rows),
                total_sent=sent,
                total_clicks=clicks,
                total_unique_clickers=sum(r.unique_clickers for r in rows),
                total_actions=actions,
                avg_ctr=_mean([r.click_through_rate for r in rows]),
                avg_conversion_rate=_mean([r.conversion_rate for r in rows]),
                overall_ctr=_rate(clicks, sent),
                overall_conversion_rate=_rate(actions, sent),
            )
        )

    logger.info(f"Computed {len(trends)} weekly trend rows over {weeks} weeks")
    return trends


# ─────────────────────────────────────────────
# USER ENGAGEMENT
# ─────────────────────────────────────────────


def _pairs(session: Session, model) -> Set[Tuple[int, str]]:
    rows = session.exec(select(model.user_id, model.campaign_id).distinct()).all()
    return {(user_id, campaign_id) for user_id, campaign_id in rows}


def get_user_engagement_stats(session: Session) -> UserEngagementStats:
    """Per-user received/clicked/acted counts collapsed to population stats.

    Only clicks and checks for a campaign the user actually received count.
    """
    received = _pairs(session, NotificationLog)
    clicked = _pairs(session, NotificationClick) & received
    acted = _pairs(session, BatteryCheckAction) & received

    per_user: Dict[int, List[int]] = defaultdict(lambda: [0, 0, 0])
    for user_id, _ in received:
        per_user[user_id][0] += 1
    for user_id, _ in clicked:
        per_user[user_id][1] += 1
    for user_id, _ in acted:
        per_user[user_id][2] += 1

    total = len(per_user)
    if total == 0:
        return UserEngagementStats()

    users_who_clicked = sum(1 for counts in per_user.values() if counts[1] > 0)
    users_who_acted = sum(1 for counts in per_user.values() if counts[2] > 0)

    return UserEngagementStats(
        total_users=total,
        avg_campaigns_per_user=_mean([c[0] for c in per_user.values()]),
        avg_clicks_per_user=_mean([c[1] for c in per_user.values()]),
        avg_actions_per_user=_mean([c[2] for c in per_user.values()]),
        users_who_clicked=users_who_clicked,
        users_who_acted=users_who_acted,
        user_click_rate=_rate(users_who_clicked, total),
        user_action_rate=_rate(users_who_acted, total),
    )


# ─────────────────────────────────────────────
# RESPONSE TIMES
# ─────────────────────────────────────────────


def get_response_time_analysis(session: Session) -> List[ResponseTimeStats]:
    """Days-to-action per campaign, fastest campaigns first."""
    actions = session.exec(select(BatteryCheckAction)).all()

    grouped: Dict[str, List[BatteryCheckAction]] = defaultdict(list)
    for a in actions:
        grouped[a.campaign_id].append(a)

    stats: List[ResponseTimeStats] = []
    for campaign_id, rows in grouped.items():
        days = [r.days_after_notification for r in rows]
        stats.append(
            ResponseTimeStats(
                campaign_id=campaign_id,
                avg_response_days=_mean(days),
                min_response_days=min(days),
                max_response_days=max(days),
                total_responses=len(days),
                same_day_responses=sum(1 for d in days if d <= 1),
                week_responses=sum(1 for d in days if d <= 7),
                last_response_at=max(_as_utc(r.checked_at) for r in rows),
            )
        )

    stats.sort(key=lambda s: (s.avg_response_days, s.campaign_id))
    logger.info(f"Computed response times for {len(stats)} campaigns")
    return stats
