"""NUDGE — Battery Reminder Campaign Job.

Runs one full campaign pass and exits: 0 on success, 1 on a fatal error.

    python -m nudge.jobs.run_campaign
"""

import asyncio
import signal
import sys
from typing import Optional

from nudge.campaign.pipeline import CampaignRunner
from nudge.config import Settings, settings
from nudge.connectors.dynamodb.source import DynamoLockSource
from nudge.connectors.fcm.client import FcmClient
from nudge.core.logging import get_logger
from nudge.database import Database
from nudge.models.notification_models import CampaignRunResult

logger = get_logger("jobs.campaign")


async def run_once(db: Database, config: Optional[Settings] = None) -> CampaignRunResult:
    """One campaign against the production backends."""
    config = config or settings
    gateway = FcmClient()
    try:
        with db.session() as session:
            runner = CampaignRunner.build(
                session,
                lock_source=DynamoLockSource(),
                gateway=gateway,
                config=config,
            )
            return await runner.run()
    finally:
        await gateway.close()


def _exit_on_signal(signum, frame) -> None:
    logger.info(f"Received {signal.Signals(signum).name}, closing connections...")
    raise SystemExit(0)


def main() -> int:
    signal.signal(signal.SIGTERM, _exit_on_signal)

    try:
        with Database(settings.effective_database_url) as db:
            db.init_db()
            result = asyncio.run(run_once(db))
    except KeyboardInterrupt:
        logger.info("Received SIGINT, connections closed")
        return 0
    except Exception as e:
        logger.error(f"Battery notification service failed: {e}")
        return 1

    logger.info(
        f"Battery notification service completed: {result.total_sent} sent, "
        f"{result.total_failed} failed",
        extra={"campaign_id": result.campaign_id},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
