"""NUDGE — Pipeline Schemas (not persisted)."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class StaleLock(BaseModel):
    """A lock whose battery has not been checked within the threshold."""

    lock_id: str
    battery_check_timestamp: Optional[str] = None


class ScanPage(BaseModel):
    """One page of a DynamoDB scan."""

    items: List[StaleLock] = []
    last_evaluated_key: Optional[Dict[str, Any]] = None


class Recipient(BaseModel):
    """A (lock, user, token) tuple eligible for this run's notification."""

    lock_id: str
    user_id: int
    fcm_token: str


class PushMessage(BaseModel):
    """One FCM message, shaped like the HTTP v1 `message` object."""

    token: str
    title: str
    body: str
    data: Dict[str, str] = {}
    android: Dict[str, Any] = {}
    apns: Dict[str, Any] = {}

    def to_fcm(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "notification": {"title": self.title, "body": self.body},
            "data": self.data,
            "android": self.android,
            "apns": self.apns,
        }


class SendResponse(BaseModel):
    """Outcome of one message inside a multicast."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class BatchResponse(BaseModel):
    """Outcome of one multicast call, in message order."""

    responses: List[SendResponse] = []
    success_count: int = 0
    failure_count: int = 0

    @classmethod
    def from_responses(cls, responses: List[SendResponse]) -> "BatchResponse":
        ok = sum(1 for r in responses if r.success)
        return cls(
            responses=responses, success_count=ok, failure_count=len(responses) - ok
        )


class DispatchResult(BaseModel):
    """Totals across every batch of one dispatch."""

    total_sent: int = 0
    total_failed: int = 0
    batches: int = 0
    failed_batches: int = 0


class CampaignRunResult(BaseModel):
    """Summary of one full campaign run."""

    campaign_id: str
    threshold_days: int
    stale_locks: int = 0
    recipients: int = 0
    total_sent: int = 0
    total_failed: int = 0
