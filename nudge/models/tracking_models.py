"""NUDGE — Engagement Fact Models (Append-only)."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class NotificationClick(SQLModel, table=True):
    """A user followed the click-tracking link of a notification.

    Written unconditionally, without checking notification_logs.
    """

    __tablename__ = "notification_clicks"

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: str = Field(index=True)
    user_id: int = Field(index=True)
    ip_address: Optional[str] = Field(default=None)
    user_agent: Optional[str] = Field(default=None)
    clicked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BatteryCheckAction(SQLModel, table=True):
    """A user checked the battery after being notified."""

    __tablename__ = "battery_check_actions"

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: str = Field(index=True)
    user_id: int = Field(index=True)
    lock_id: str = Field(index=True)
    days_after_notification: int = Field(ge=0, description="Whole days since sent_at")
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
