"""
Shared fixtures: in-memory database and fakes for the campaign backends.

The fakes satisfy the capability protocols structurally; nothing subclasses
the production classes.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

import pytest

from nudge.database import Database
from nudge.models.campaign_models import LockUserMapping
from nudge.models.notification_models import (
    BatchResponse,
    PushMessage,
    Recipient,
    ScanPage,
    SendResponse,
    StaleLock,
)


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def db():
    """Fresh in-memory SQLite database with every table created."""
    database = Database("sqlite://")
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def session(db):
    with db.session() as s:
        yield s


# =============================================================================
# FAKES
# =============================================================================


class FakeLockSource:
    """Serves pre-built scan pages and records every call."""

    def __init__(self, pages: List[ScanPage], fail_on_page: Optional[int] = None):
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.calls: list[tuple[str, Optional[dict]]] = []

    def scan_page(self, threshold_iso, start_key=None):
        self.calls.append((threshold_iso, start_key))
        index = len(self.calls) - 1
        if self.fail_on_page is not None and index == self.fail_on_page:
            raise RuntimeError("ProvisionedThroughputExceededException")
        return self.pages[index]


class FakeRecipientSource:
    """Looks lock ids up in a dict; records each chunk it receives."""

    def __init__(self, mapping: dict[str, List[Recipient]], fail_on_call: Optional[int] = None):
        self.mapping = mapping
        self.fail_on_call = fail_on_call
        self.chunks: list[list[str]] = []

    def fetch_recipients(self, lock_ids):
        self.chunks.append(list(lock_ids))
        if self.fail_on_call is not None and len(self.chunks) - 1 == self.fail_on_call:
            raise RuntimeError("too many clients already")
        return [r for lock_id in lock_ids for r in self.mapping.get(lock_id, [])]


class FakeGateway:
    """Multicast fake. `outcome(message)` decides per-message success."""

    def __init__(
        self,
        outcome: Optional[Callable[[PushMessage], bool]] = None,
        raise_on_batch: Optional[set[int]] = None,
    ):
        self.outcome = outcome or (lambda message: True)
        self.raise_on_batch = raise_on_batch or set()
        self.batches: list[list[PushMessage]] = []

    async def send_multicast(self, messages):
        self.batches.append(list(messages))
        if len(self.batches) - 1 in self.raise_on_batch:
            raise RuntimeError("messaging/server-unavailable")
        responses = [
            SendResponse(success=True, message_id=f"projects/p/messages/{i}")
            if self.outcome(m)
            else SendResponse(success=False, error="messaging/registration-token-not-registered")
            for i, m in enumerate(messages)
        ]
        return BatchResponse.from_responses(responses)


class RecordingWait:
    """WaitStrategy that only counts."""

    def __init__(self):
        self.waits = 0

    async def wait(self):
        self.waits += 1


def make_recipients(count: int, start: int = 1) -> List[Recipient]:
    return [
        Recipient(lock_id=str(i), user_id=100 + i, fcm_token=f"token_{100 + i}")
        for i in range(start, start + count)
    ]


def stale_lock(lock_id: str) -> StaleLock:
    return StaleLock(lock_id=lock_id, battery_check_timestamp="2023-01-01T00:00:00Z")


def seed_mapping(session, rows: list[tuple[str, int, Optional[str]]]) -> None:
    for lock_id, user_id, token in rows:
        session.add(LockUserMapping(lock_id=lock_id, user_id=user_id, fcm_token=token))
    session.commit()


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def recording_wait():
    return RecordingWait()
