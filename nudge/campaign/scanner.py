"""NUDGE — Stale Lock Scanner.

Drives the paginated scan until the source stops returning a continuation
key, and collapses duplicate locks across pages.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from nudge.campaign.interfaces import LockScanSource
from nudge.core.exceptions import BackendError
from nudge.core.logging import get_logger
from nudge.models.notification_models import StaleLock

logger = get_logger("campaign.scanner")


def threshold_timestamp(threshold_days: int, now: Optional[datetime] = None) -> str:
    """ISO-8601 cutoff: anything checked before this is stale."""
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=threshold_days)).isoformat()


class StaleLockScanner:
    """Finds every lock whose battery check is older than the threshold."""

    def __init__(self, source: LockScanSource):
        self.source = source

    def scan(self, threshold_days: int) -> List[StaleLock]:
        threshold_iso = threshold_timestamp(threshold_days)
        logger.info(f"Fetching locks with battery check before {threshold_iso}")

        seen: Dict[str, StaleLock] = {}
        start_key: Optional[Dict[str, Any]] = None
        pages = 0

        while True:
            try:
                page = self.source.scan_page(threshold_iso, start_key)
            except BackendError:
                raise
            except Exception as e:
                logger.error(f"Lock scan failed on page {pages + 1}: {e}")
                raise BackendError(
                    "Stale lock scan failed",
                    service="dynamodb",
                    details={"page": pages + 1},
                    original_error=e,
                ) from e

            pages += 1
            for item in page.items:
                seen.setdefault(item.lock_id, item)
            logger.info(
                f"Scanned page {pages}: {len(page.items)} items (total unique: {len(seen)})"
            )

            start_key = page.last_evaluated_key
            if not start_key:
                break

        logger.info(f"Found {len(seen)} locks with stale battery data in {pages} pages")
        return list(seen.values())
