"""NUDGE — Capability Interfaces.

The campaign pipeline only talks to its backends through these protocols.
Production implementations live under nudge.connectors and
nudge.campaign.resolver; tests pass plain fakes with the same methods.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from nudge.models.notification_models import (
    BatchResponse,
    PushMessage,
    Recipient,
    ScanPage,
)


class LockScanSource(Protocol):
    """Filtered, paginated scan over the lock registry."""

    def scan_page(
        self, threshold_iso: str, start_key: Optional[Dict[str, Any]] = None
    ) -> ScanPage:
        """Return locks checked before `threshold_iso`, starting at `start_key`."""
        ...


class RecipientSource(Protocol):
    """Lock → user → FCM token mapping."""

    def fetch_recipients(self, lock_ids: Sequence[str]) -> List[Recipient]:
        """Return tuples with a non-null token for the given locks (one query)."""
        ...


class PushGateway(Protocol):
    """Multicast push delivery."""

    async def send_multicast(self, messages: List[PushMessage]) -> BatchResponse:
        """Send a batch; per-message outcomes are returned in input order."""
        ...


class WaitStrategy(Protocol):
    """Pause between dispatch batches."""

    async def wait(self) -> None:
        ...
