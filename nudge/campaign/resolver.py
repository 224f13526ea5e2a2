"""NUDGE — Recipient Resolver.

Maps stale lock IDs to (lock, user, FCM token) tuples. The lookup is chunked
so a single IN (...) never exceeds the driver's bind-parameter limit.
"""

from typing import Iterator, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from nudge.campaign.interfaces import RecipientSource
from nudge.core.exceptions import BackendError
from nudge.core.logging import get_logger
from nudge.models.campaign_models import LockUserMapping
from nudge.models.notification_models import Recipient

logger = get_logger("campaign.resolver")

DEFAULT_CHUNK_SIZE = 1000


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    """Consecutive slices of at most `size` items, in order."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for i in range(0, len(items), size):
        yield items[i : i + size]


class SqlRecipientSource:
    """RecipientSource backed by the lock_user_mapping table."""

    def __init__(self, session: Session):
        self.session = session

    def fetch_recipients(self, lock_ids: Sequence[str]) -> List[Recipient]:
        try:
            rows = self.session.exec(
                select(LockUserMapping).where(
                    col(LockUserMapping.lock_id).in_(list(lock_ids)),
                    col(LockUserMapping.fcm_token).is_not(None),
                )
            ).all()
        except SQLAlchemyError:
            # Postgres refuses further statements until the aborted txn is cleared
            self.session.rollback()
            raise
        return [
            Recipient(lock_id=r.lock_id, user_id=r.user_id, fcm_token=r.fcm_token)
            for r in rows
        ]


class RecipientResolver:
    """Resolves recipients chunk by chunk; any chunk failure aborts the call."""

    def __init__(self, source: RecipientSource, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.source = source
        self.chunk_size = chunk_size

    def resolve(self, lock_ids: Sequence[str]) -> List[Recipient]:
        logger.info(f"Fetching users for {len(lock_ids)} locks...")
        recipients: List[Recipient] = []

        for index, chunk in enumerate(chunked(list(lock_ids), self.chunk_size)):
            start = index * self.chunk_size
            try:
                rows = self.source.fetch_recipients(chunk)
            except BackendError:
                raise
            except Exception as e:
                logger.error(
                    f"Error fetching users for locks {start}-{start + len(chunk)}: {e}"
                )
                raise BackendError(
                    "Recipient lookup failed",
                    service="postgres",
                    details={"chunk_start": start, "chunk_size": len(chunk)},
                    original_error=e,
                ) from e
            # Tokens are filtered in SQL; guard fakes and other sources too
            recipients.extend(r for r in rows if r.fcm_token)

        logger.info(f"Found {len(recipients)} users with valid FCM tokens")
        return recipients
