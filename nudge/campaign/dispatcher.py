"""NUDGE — Notification Dispatcher.

Sends reminders in fixed-size batches, strictly one batch at a time:
  build messages → multicast → log each delivered message → wait → next batch

A batch the gateway rejects as a whole is counted as failed in full and the
run moves on. Nothing is retried.
"""

from typing import List, Optional

from nudge.campaign.delivery_logger import DeliveryLogger
from nudge.campaign.interfaces import PushGateway, WaitStrategy
from nudge.campaign.resolver import chunked
from nudge.campaign.waiting import ConstantDelay
from nudge.core.logging import get_logger
from nudge.models.notification_models import DispatchResult, PushMessage, Recipient

logger = get_logger("campaign.dispatcher")

DEFAULT_BATCH_SIZE = 100

NOTIFICATION_TITLE = "Battery Check Reminder"

# Platform delivery hints, identical for every message
ANDROID_HINTS = {
    "priority": "high",
    "notification": {"icon": "battery_alert", "color": "#FF6B35"},
}
APNS_HINTS = {"payload": {"aps": {"badge": 1, "sound": "default"}}}


def click_tracking_url(base_url: str, campaign_id: str, user_id: int) -> str:
    return f"{base_url.rstrip('/')}/track-click/{campaign_id}/{user_id}"


def build_message(
    recipient: Recipient,
    campaign_id: str,
    threshold_days: int,
    base_url: str,
    campaign_type: str = "battery_reminder",
) -> PushMessage:
    """Build the FCM message for one recipient."""
    return PushMessage(
        token=recipient.fcm_token,
        title=NOTIFICATION_TITLE,
        body=(
            f"Your lock hasn't been checked in {threshold_days} days. "
            "Please check your battery level."
        ),
        data={
            "type": campaign_type,
            "lock_id": str(recipient.lock_id),
            "campaign_id": campaign_id,
            "click_tracking_url": click_tracking_url(
                base_url, campaign_id, recipient.user_id
            ),
        },
        android=ANDROID_HINTS,
        apns=APNS_HINTS,
    )


class NotificationDispatcher:
    """Batches recipients through the push gateway and tallies outcomes."""

    def __init__(
        self,
        gateway: PushGateway,
        delivery_logger: DeliveryLogger,
        click_tracking_base_url: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        wait_strategy: Optional[WaitStrategy] = None,
        campaign_type: str = "battery_reminder",
    ):
        if batch_size < 1:
            raise ValueError("batch size must be >= 1")
        self.gateway = gateway
        self.delivery_logger = delivery_logger
        self.click_tracking_base_url = click_tracking_base_url
        self.batch_size = batch_size
        self.wait_strategy = wait_strategy or ConstantDelay()
        self.campaign_type = campaign_type

    async def _send_batch(
        self, batch: List[Recipient], campaign_id: str, threshold_days: int
    ) -> tuple[int, int]:
        messages = [
            build_message(
                r,
                campaign_id,
                threshold_days,
                self.click_tracking_base_url,
                self.campaign_type,
            )
            for r in batch
        ]
        response = await self.gateway.send_multicast(messages)

        for recipient, outcome in zip(batch, response.responses):
            if outcome.success:
                self.delivery_logger.log_sent(campaign_id, recipient)
            else:
                logger.error(
                    f"Failed to send to user {recipient.user_id}: {outcome.error}",
                    extra={"campaign_id": campaign_id},
                )

        return response.success_count, response.failure_count

    async def dispatch(
        self, recipients: List[Recipient], campaign_id: str, threshold_days: int
    ) -> DispatchResult:
        result = DispatchResult()
        batches = list(chunked(recipients, self.batch_size))

        for number, batch in enumerate(batches, 1):
            logger.info(
                f"Processing batch {number}/{len(batches)} ({len(batch)} recipients)",
                extra={"campaign_id": campaign_id, "batch": number},
            )
            try:
                sent, failed = await self._send_batch(
                    list(batch), campaign_id, threshold_days
                )
                logger.info(
                    f"Batch sent: {sent} successful, {failed} failed",
                    extra={"campaign_id": campaign_id, "batch": number},
                )
            except Exception as e:
                logger.error(
                    f"Error processing batch {number}: {e}",
                    extra={"campaign_id": campaign_id, "batch": number},
                )
                sent, failed = 0, len(batch)
                result.failed_batches += 1

            result.total_sent += sent
            result.total_failed += failed
            result.batches += 1

            if number < len(batches):
                await self.wait_strategy.wait()

        return result
