"""NUDGE — Delivery Logger.

Best-effort: a failed insert is logged and never turns a delivered
notification into a failure.
"""

from datetime import datetime, timezone

from sqlmodel import Session

from nudge.core.logging import get_logger
from nudge.models.campaign_models import NotificationLog
from nudge.models.notification_models import Recipient

logger = get_logger("campaign.delivery")


class DeliveryLogger:
    """Appends one notification_logs row per accepted message."""

    def __init__(self, session: Session):
        self.session = session

    def log_sent(self, campaign_id: str, recipient: Recipient) -> bool:
        entry = NotificationLog(
            campaign_id=campaign_id,
            user_id=recipient.user_id,
            lock_id=recipient.lock_id,
            fcm_token=recipient.fcm_token,
            sent_at=datetime.now(timezone.utc),
            status="sent",
        )
        try:
            self.session.add(entry)
            self.session.commit()
            return True
        except Exception as e:
            self.session.rollback()
            logger.error(
                f"Error logging notification for user {recipient.user_id}: {e}",
                extra={"campaign_id": campaign_id},
            )
            return False
