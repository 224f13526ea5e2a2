"""NUDGE — Campaign Run Orchestrator.

Runs one battery reminder campaign end to end:
  create campaign → scan stale locks → resolve recipients → dispatch → finalize

The campaign row is created first so every run, including an empty or failed
one, leaves a completed record behind. A failed run is finalized with zero
counts, the same as a run that found nothing to send.
"""

from typing import Optional

from sqlmodel import Session

from nudge.campaign.delivery_logger import DeliveryLogger
from nudge.campaign.dispatcher import NotificationDispatcher
from nudge.campaign.interfaces import (
    LockScanSource,
    PushGateway,
    RecipientSource,
    WaitStrategy,
)
from nudge.campaign.recorder import CampaignRecorder
from nudge.campaign.resolver import RecipientResolver, SqlRecipientSource
from nudge.campaign.scanner import StaleLockScanner
from nudge.campaign.waiting import ConstantDelay
from nudge.config import Settings, settings as default_settings
from nudge.core.logging import get_logger
from nudge.models.notification_models import CampaignRunResult

logger = get_logger("campaign.pipeline")


class CampaignRunner:
    """Wires the campaign stages together for a single run."""

    def __init__(
        self,
        scanner: StaleLockScanner,
        resolver: RecipientResolver,
        recorder: CampaignRecorder,
        dispatcher: NotificationDispatcher,
        threshold_days: int = 30,
    ):
        self.scanner = scanner
        self.resolver = resolver
        self.recorder = recorder
        self.dispatcher = dispatcher
        self.threshold_days = threshold_days

    @classmethod
    def build(
        cls,
        session: Session,
        lock_source: LockScanSource,
        gateway: PushGateway,
        recipient_source: Optional[RecipientSource] = None,
        wait_strategy: Optional[WaitStrategy] = None,
        config: Optional[Settings] = None,
    ) -> "CampaignRunner":
        """Assemble a runner from configuration and the three backends."""
        config = config or default_settings
        return cls(
            scanner=StaleLockScanner(lock_source),
            resolver=RecipientResolver(
                recipient_source or SqlRecipientSource(session),
                chunk_size=config.recipient_chunk_size,
            ),
            recorder=CampaignRecorder(session, campaign_type=config.campaign_type),
            dispatcher=NotificationDispatcher(
                gateway,
                DeliveryLogger(session),
                click_tracking_base_url=config.click_tracking_base_url,
                batch_size=config.batch_size,
                wait_strategy=wait_strategy
                or ConstantDelay(config.batch_delay_seconds),
                campaign_type=config.campaign_type,
            ),
            threshold_days=config.notification_threshold_days,
        )

    async def run(self) -> CampaignRunResult:
        campaign_id = self.recorder.start(self.threshold_days)
        result = CampaignRunResult(
            campaign_id=campaign_id, threshold_days=self.threshold_days
        )
        logger.info(
            f"Starting battery notification campaign (threshold: {self.threshold_days} days)",
            extra={"campaign_id": campaign_id},
        )

        try:
            stale_locks = self.scanner.scan(self.threshold_days)
            result.stale_locks = len(stale_locks)
            if not stale_locks:
                logger.info(
                    "No stale locks found. Campaign completed.",
                    extra={"campaign_id": campaign_id},
                )
                self.recorder.finalize(0, 0)
                return result

            recipients = self.resolver.resolve([lock.lock_id for lock in stale_locks])
            result.recipients = len(recipients)
            if not recipients:
                logger.info(
                    "No users with valid FCM tokens found. Campaign completed.",
                    extra={"campaign_id": campaign_id},
                )
                self.recorder.finalize(0, 0)
                return result

            dispatched = await self.dispatcher.dispatch(
                recipients, campaign_id, self.threshold_days
            )
        except Exception as e:
            logger.error(f"Campaign failed: {e}", extra={"campaign_id": campaign_id})
            self.recorder.finalize(0, 0)
            raise

        result.total_sent = dispatched.total_sent
        result.total_failed = dispatched.total_failed
        self.recorder.finalize(dispatched.total_sent, dispatched.total_failed)

        logger.info(
            f"Campaign completed: {result.total_sent} sent, {result.total_failed} failed "
            f"across {dispatched.batches} batches",
            extra={"campaign_id": campaign_id},
        )
        return result
