"""
Request models and response formatting.

Rows are rendered as plain dicts: datetimes as ISO-8601 strings and the
stored JSON columns decoded back into objects.
"""
import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel

from hookrelay.models.webhook import Webhook, WebhookRequest, WebhookStat


class CreateWebhookRequest(BaseModel):
    """Request model for registering a webhook."""
    name: Optional[str] = None
    description: Optional[str] = None
    secret: Optional[str] = None


class UpdateWebhookRequest(BaseModel):
    """
    Request model for replacing a webhook.
    
    Full replace: omitted description/secret are stored as null and an
    omitted is_active resets to true.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    secret: Optional[str] = None
    is_active: bool = True


def isoformat(value: datetime | None) -> str | None:
    """ISO-8601 string for a stored timestamp; naive values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _decode_mapping(raw: str | None) -> Any:
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def webhook_to_dict(webhook: Webhook) -> dict:
    """Convert Webhook model to a response dict."""
    return {
        "id": webhook.id,
        "name": webhook.name,
        "endpoint": webhook.endpoint,
        "description": webhook.description,
        "secret": webhook.secret,
        "is_active": bool(webhook.is_active),
        "created_at": isoformat(webhook.created_at),
        "updated_at": isoformat(webhook.updated_at),
    }


def webhook_summary_to_dict(webhook: Webhook, total_requests: int, last_request: datetime | None) -> dict:
    """Webhook dict annotated with its request count and latest request time."""
    data = webhook_to_dict(webhook)
    data["total_requests"] = int(total_requests or 0)
    data["last_request"] = isoformat(last_request)
    return data


def request_to_dict(row: WebhookRequest) -> dict:
    """Convert WebhookRequest model to a response dict."""
    return {
        "id": row.id,
        "webhook_id": row.webhook_id,
        "method": row.method,
        "headers": _decode_mapping(row.headers),
        "body": row.body,
        "query_params": _decode_mapping(row.query_params),
        "ip_address": row.ip_address,
        "user_agent": row.user_agent,
        "response_time": row.response_time,
        "created_at": isoformat(row.created_at),
    }


def stat_to_dict(row: WebhookStat) -> dict:
    """Convert WebhookStat model to a response dict."""
    return {
        "id": row.id,
        "webhook_id": row.webhook_id,
        "date": row.date,
        "total_requests": row.total_requests,
        "success_requests": row.success_requests,
    }
