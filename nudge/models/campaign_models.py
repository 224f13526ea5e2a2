"""NUDGE — Campaign & Delivery Models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String
from sqlmodel import SQLModel, Field


class CampaignStatus(str, Enum):
    """Campaign lifecycle. The only legal move is RUNNING → COMPLETED."""

    RUNNING = "running"
    COMPLETED = "completed"

    def can_transition_to(self, target: "CampaignStatus") -> bool:
        return (self, target) in _TRANSITIONS


_TRANSITIONS = {(CampaignStatus.RUNNING, CampaignStatus.COMPLETED)}


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class NotificationCampaign(SQLModel, table=True):
    """One execution of the battery reminder pipeline.

    Written twice: inserted as running at start, updated once at finalize.
    """

    __tablename__ = "notification_campaigns"

    campaign_id: str = Field(primary_key=True, description="uuid4")
    campaign_type: str = Field(default="battery_reminder", index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
    threshold_days: int = Field(description="Staleness window in days")
    status: CampaignStatus = Field(default=CampaignStatus.RUNNING, sa_type=String)
    total_sent: int = Field(default=0)
    total_failed: int = Field(default=0)
    completed_at: Optional[datetime] = Field(default=None)


class LockUserMapping(SQLModel, table=True):
    """Which user owns which lock, and where to push them."""

    __tablename__ = "lock_user_mapping"

    id: Optional[int] = Field(default=None, primary_key=True)
    lock_id: str = Field(index=True)
    user_id: int = Field(index=True)
    fcm_token: Optional[str] = Field(default=None, description="FCM registration token")


class NotificationLog(SQLModel, table=True):
    """Append-only record of one notification accepted by FCM."""

    __tablename__ = "notification_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: str = Field(index=True)
    user_id: int = Field(index=True)
    lock_id: str = Field(index=True)
    fcm_token: str
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = Field(default="sent")
