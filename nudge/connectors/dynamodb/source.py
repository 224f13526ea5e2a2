"""NUDGE — DynamoDB Lock Registry Source.

One call = one Scan page. The scanner owns the pagination loop.
"""

from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from nudge.config import settings
from nudge.core.exceptions import BackendError
from nudge.core.logging import get_logger
from nudge.models.notification_models import ScanPage, StaleLock

logger = get_logger("dynamodb.source")

TIMESTAMP_ATTRIBUTE = "battery_check_timestamp"


def _to_stale_lock(item: Dict[str, Any]) -> Optional[StaleLock]:
    """DynamoDB numbers come back as Decimal; lock ids are kept as strings."""
    lock_id = item.get("lock_id")
    if lock_id is None:
        return None
    return StaleLock(
        lock_id=str(lock_id),
        battery_check_timestamp=item.get(TIMESTAMP_ATTRIBUTE),
    )


class DynamoLockSource:
    """LockScanSource over a DynamoDB table."""

    def __init__(self, table: Any = None, table_name: str | None = None):
        if table is None:
            resource = boto3.resource(
                "dynamodb",
                region_name=settings.aws_region,
                endpoint_url=settings.dynamodb_endpoint_url,
            )
            table = resource.Table(table_name or settings.dynamodb_table_name)
        self.table = table

    def scan_page(
        self, threshold_iso: str, start_key: Optional[Dict[str, Any]] = None
    ) -> ScanPage:
        params: Dict[str, Any] = {
            "FilterExpression": Attr(TIMESTAMP_ATTRIBUTE).lt(threshold_iso),
        }
        if start_key:
            params["ExclusiveStartKey"] = start_key

        try:
            result = self.table.scan(**params)
        except (ClientError, BotoCoreError) as e:
            code = ""
            if isinstance(e, ClientError):
                code = e.response.get("Error", {}).get("Code", "")
            raise BackendError(
                f"DynamoDB scan failed: {e}",
                service="dynamodb",
                details={"code": code} if code else None,
                original_error=e,
            ) from e

        items = [lock for lock in map(_to_stale_lock, result.get("Items", [])) if lock]
        skipped = len(result.get("Items", [])) - len(items)
        if skipped:
            logger.warning(f"Skipped {skipped} items without lock_id")
        return ScanPage(items=items, last_evaluated_key=result.get("LastEvaluatedKey"))
