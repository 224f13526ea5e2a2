"""NUDGE — Click Tracker."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from nudge.core.exceptions import BackendError
from nudge.core.logging import get_logger
from nudge.models.tracking_models import NotificationClick

logger = get_logger("tracking.clicks")


def record_click(
    session: Session,
    campaign_id: str,
    user_id: int,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> NotificationClick:
    """Store a click. Unlike delivery logging, failures reach the caller."""
    click = NotificationClick(
        campaign_id=campaign_id,
        user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    try:
        session.add(click)
        session.commit()
        session.refresh(click)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error tracking click: {e}", extra={"campaign_id": campaign_id})
        raise BackendError(
            "Failed to track click", service="postgres", original_error=e
        ) from e

    logger.info(
        f"Click tracked: user {user_id}", extra={"campaign_id": campaign_id}
    )
    return click
