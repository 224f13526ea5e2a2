"""NUDGE — Engagement Tracking Routes."""

from typing import Optional, Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlmodel import Session

from nudge.config import settings
from nudge.database import get_session
from nudge.tracking.clicks import record_click
from nudge.tracking.conversions import record_battery_check

router = APIRouter(tags=["Tracking"])


# ── Request / Response Models ──


class BatteryCheckRequest(BaseModel):
    """Request body for POST /track-battery-check. All fields are required,
    but presence is checked by the tracker so a gap is a 400, not a 422.
    """

    campaignId: Optional[Union[str, int]] = None
    userId: Optional[Union[int, str]] = None
    lockId: Optional[Union[int, str]] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"campaignId": "0b7e5c1e-...", "userId": 101, "lockId": "1"},
            ]
        }
    }


class BatteryCheckResponse(BaseModel):
    success: bool = True
    message: str = "Battery check action recorded"
    daysAfterNotification: int


def client_ip(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# ── Endpoints ──


@router.get("/track-click/{campaign_id}/{user_id}", status_code=302)
async def track_click(
    campaign_id: str,
    user_id: int,
    request: Request,
    session: Session = Depends(get_session),
):
    """Record the click and bounce the user into the app."""
    record_click(
        session,
        campaign_id=campaign_id,
        user_id=user_id,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return RedirectResponse(url=f"{settings.deep_link_scheme}battery-check", status_code=302)


@router.post("/track-battery-check", response_model=BatteryCheckResponse)
async def track_battery_check(
    body: Optional[BatteryCheckRequest] = None,
    session: Session = Depends(get_session),
):
    """Record a battery check performed after a reminder."""
    body = body or BatteryCheckRequest()
    days = record_battery_check(
        session,
        campaign_id=None if body.campaignId is None else str(body.campaignId),
        user_id=body.userId,
        lock_id=None if body.lockId is None else str(body.lockId),
    )
    return BatteryCheckResponse(daysAfterNotification=days)
