"""NUDGE — Battery Check (Conversion) Tracker.

A battery check only counts when the user was actually notified for that
lock in that campaign. The elapsed time is measured from the latest matching
notification.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from nudge.core.exceptions import BackendError, NotFoundError, ValidationError
from nudge.core.logging import get_logger
from nudge.models.campaign_models import NotificationLog
from nudge.models.tracking_models import BatteryCheckAction

logger = get_logger("tracking.conversions")

ONE_DAY = timedelta(days=1)


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(sent_at: datetime, now: datetime) -> int:
    """Whole days elapsed, floored, never negative."""
    elapsed = _as_utc(now) - _as_utc(sent_at)
    return max(elapsed // ONE_DAY, 0)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing(**fields: Any) -> list[str]:
    return [name for name, value in fields.items() if _blank(value)]


def _user_id(value: Union[int, str]) -> int:
    """Clients send the id as a number or a numeric string."""
    if isinstance(value, bool):
        raise ValidationError("userId must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(value.strip())
    except ValueError:
        raise ValidationError("userId must be an integer") from None


def record_battery_check(
    session: Session,
    campaign_id: Optional[str],
    user_id: Optional[Union[int, str]],
    lock_id: Optional[str],
    now: Optional[datetime] = None,
) -> int:
    """Record a battery check and return days since the notification."""
    missing = _missing(campaignId=campaign_id, userId=user_id, lockId=lock_id)
    if missing:
        raise ValidationError("Missing required parameters", missing=missing)
    user_id = _user_id(user_id)

    try:
        notification = session.exec(
            select(NotificationLog)
            .where(
                NotificationLog.campaign_id == campaign_id,
                NotificationLog.user_id == user_id,
                NotificationLog.lock_id == str(lock_id),
            )
            .order_by(col(NotificationLog.sent_at).desc())
            .limit(1)
        ).first()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Notification lookup failed: {e}", extra={"campaign_id": campaign_id})
        raise BackendError(
            "Failed to track battery check", service="postgres", original_error=e
        ) from e

    if notification is None:
        raise NotFoundError("Notification", identifier=f"{campaign_id}/{user_id}/{lock_id}")

    days = days_between(notification.sent_at, now or datetime.now(timezone.utc))

    action = BatteryCheckAction(
        campaign_id=campaign_id,
        user_id=user_id,
        lock_id=str(lock_id),
        days_after_notification=days,
    )
    try:
        session.add(action)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error tracking battery check: {e}", extra={"campaign_id": campaign_id})
        raise BackendError(
            "Failed to track battery check", service="postgres", original_error=e
        ) from e

    logger.info(
        f"Battery check tracked: user {user_id}, lock {lock_id}, {days} days after notification",
        extra={"campaign_id": campaign_id},
    )
    return days
