"""NUDGE — Firebase Cloud Messaging Client.

Multicast over the FCM HTTP v1 API: every message of a batch is posted to
messages:send concurrently and the outcomes are folded into one BatchResponse.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from nudge.config import settings
from nudge.core.exceptions import PushGatewayError
from nudge.core.logging import get_logger
from nudge.models.notification_models import BatchResponse, PushMessage, SendResponse

logger = get_logger("fcm.client")

MAX_CONCURRENT_SENDS = 20
AUTH_STATUS_CODES = {401, 403}


class _TransportFailure(Exception):
    pass


def _error_message(resp: httpx.Response) -> str:
    """Pull the FCM error status/message out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    error = body.get("error", {}) if isinstance(body, dict) else {}
    status = error.get("status", "")
    message = error.get("message", f"HTTP {resp.status_code}")
    return f"{status}: {message}" if status else message


class FcmClient:
    """Async PushGateway for Firebase Cloud Messaging."""

    def __init__(
        self,
        project_id: str | None = None,
        access_token: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.project_id = project_id or settings.fcm_project_id
        self.access_token = access_token or settings.fcm_access_token
        self.base_url = (base_url or settings.fcm_base_url).rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def send_url(self) -> str:
        return f"{self.base_url}/v1/projects/{self.project_id}/messages:send"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Single Message ──

    async def _send_one(
        self, client: httpx.AsyncClient, message: PushMessage
    ) -> SendResponse:
        payload: Dict[str, Any] = {"message": message.to_fcm()}
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            resp = await client.post(self.send_url, json=payload, headers=headers)
        except httpx.RequestError as e:
            raise _TransportFailure(str(e)) from e

        if resp.status_code in AUTH_STATUS_CODES:
            raise PushGatewayError(
                f"FCM rejected credentials: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        if resp.is_success:
            return SendResponse(success=True, message_id=resp.json().get("name"))
        return SendResponse(success=False, error=_error_message(resp))

    # ── Multicast ──

    async def send_multicast(self, messages: List[PushMessage]) -> BatchResponse:
        """Send a batch; raises PushGatewayError when the batch fails as a whole.

        Every send has settled before this returns or raises. Once FCM rejects
        the credentials no further messages are posted; messages already
        delivered stay reported as successes.
        """
        if not messages:
            return BatchResponse()

        client = await self._get_client()
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_SENDS)
        rejected: List[PushGatewayError] = []

        async def bounded(message: PushMessage) -> SendResponse:
            async with semaphore:
                if rejected:
                    return SendResponse(success=False, error="skipped: credentials rejected")
                try:
                    return await self._send_one(client, message)
                except _TransportFailure as e:
                    return SendResponse(success=False, error=f"transport: {e}")
                except PushGatewayError as e:
                    rejected.append(e)
                    return SendResponse(success=False, error=f"auth: {e.message}")

        outcomes = await asyncio.gather(
            *(bounded(m) for m in messages), return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        responses: List[SendResponse] = list(outcomes)

        if not any(r.success for r in responses):
            if rejected:
                raise rejected[0]
            if all((r.error or "").startswith("transport:") for r in responses):
                raise PushGatewayError(
                    f"FCM unreachable for all {len(messages)} messages: {responses[0].error}"
                )

        if rejected:
            logger.error(f"FCM credentials rejected mid-batch: {rejected[0].message}")
        batch = BatchResponse.from_responses(responses)
        logger.info(
            f"FCM multicast: {batch.success_count} successful, {batch.failure_count} failed"
        )
        return batch
