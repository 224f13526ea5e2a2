"""NUDGE — Campaign Recorder.

Owns the notification_campaigns row of one run: inserted as running before
any dispatch work, finalized once at the end.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from nudge.core.exceptions import BackendError, CampaignStateError
from nudge.core.logging import get_logger
from nudge.models.campaign_models import CampaignStatus, NotificationCampaign

logger = get_logger("campaign.recorder")


class CampaignRecorder:
    """Creates and finalizes a single campaign record."""

    def __init__(self, session: Session, campaign_type: str = "battery_reminder"):
        self.session = session
        self.campaign_type = campaign_type
        self.campaign_id: Optional[str] = None

    def start(self, threshold_days: int) -> str:
        """Insert a running campaign and return its fresh id."""
        if self.campaign_id is not None:
            raise CampaignStateError(
                "Campaign already started", details={"campaign_id": self.campaign_id}
            )
        campaign_id = str(uuid.uuid4())
        campaign = NotificationCampaign(
            campaign_id=campaign_id,
            campaign_type=self.campaign_type,
            created_at=datetime.now(timezone.utc),
            threshold_days=threshold_days,
            status=CampaignStatus.RUNNING,
        )
        try:
            self.session.add(campaign)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error creating campaign record: {e}")
            raise BackendError(
                "Could not create campaign record",
                service="postgres",
                details={"campaign_id": campaign_id},
                original_error=e,
            ) from e

        self.campaign_id = campaign_id
        logger.info(
            f"Created campaign record: {campaign_id}", extra={"campaign_id": campaign_id}
        )
        return campaign_id

    def finalize(self, total_sent: int, total_failed: int) -> bool:
        """Write final counts and mark the campaign completed.

        Store failures are logged and reported through the return value only.
        """
        if self.campaign_id is None:
            raise CampaignStateError("Cannot finalize a campaign that was never started")

        try:
            campaign = self.session.get(NotificationCampaign, self.campaign_id)
            if campaign is None:
                logger.warning(
                    f"Campaign {self.campaign_id} not found at finalize",
                    extra={"campaign_id": self.campaign_id},
                )
                return False

            current = CampaignStatus(campaign.status)
            if not current.can_transition_to(CampaignStatus.COMPLETED):
                raise CampaignStateError(
                    f"Illegal transition {current.value} → completed",
                    details={"campaign_id": self.campaign_id},
                )

            campaign.total_sent = total_sent
            campaign.total_failed = total_failed
            campaign.completed_at = datetime.now(timezone.utc)
            campaign.status = CampaignStatus.COMPLETED
            self.session.add(campaign)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Error updating campaign stats: {e}",
                extra={"campaign_id": self.campaign_id},
            )
            return False

        logger.info(
            f"Updated campaign stats: {total_sent} sent, {total_failed} failed",
            extra={"campaign_id": self.campaign_id},
        )
        return True
