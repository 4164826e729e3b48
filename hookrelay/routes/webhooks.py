"""
Webhook management API routes.

Registry CRUD plus the read-only request history and stats views.
Every handler runs its store work inside a store_boundary so failures
surface as a static 500 message.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config import Settings
from hookrelay.database import get_db
from hookrelay.dependencies.config import get_settings
from hookrelay.errors import store_boundary
from hookrelay.schemas import (
    CreateWebhookRequest,
    UpdateWebhookRequest,
    request_to_dict,
    stat_to_dict,
    webhook_summary_to_dict,
    webhook_to_dict,
)
from hookrelay.services.query_service import QueryService, parse_bounded_int, parse_webhook_id
from hookrelay.services.webhook_service import WebhookService


router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.get("")
async def list_webhooks(
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """List all webhooks with request counts, newest first."""
    async with store_boundary("Failed to fetch webhooks"):
        rows = await WebhookService(db, config).list_webhooks()

    return [
        webhook_summary_to_dict(webhook, total_requests, last_request)
        for webhook, total_requests, last_request in rows
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_webhook(
    request: CreateWebhookRequest,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """
    Register a new webhook.

    Returns the stored row, including its generated endpoint token.
    """
    async with store_boundary("Failed to create webhook"):
        webhook = await WebhookService(db, config).create_webhook(
            name=request.name,
            description=request.description,
            secret=request.secret
        )

    return webhook_to_dict(webhook)


@router.get("/{webhook_id}")
async def get_webhook(
    webhook_id: str,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """Get a single webhook by ID."""
    async with store_boundary("Failed to fetch webhook", webhook_id=webhook_id):
        webhook = await WebhookService(db, config).get_webhook(parse_webhook_id(webhook_id))

    return webhook_to_dict(webhook)


@router.put("/{webhook_id}")
async def update_webhook(
    webhook_id: str,
    request: UpdateWebhookRequest,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """
    Replace name, description, secret and is_active.

    Omitted description/secret are cleared; omitted is_active means true.
    """
    async with store_boundary("Failed to update webhook", webhook_id=webhook_id):
        webhook = await WebhookService(db, config).update_webhook(
            parse_webhook_id(webhook_id),
            name=request.name,
            description=request.description,
            secret=request.secret,
            is_active=request.is_active
        )

    return webhook_to_dict(webhook)


@router.delete("/{webhook_id}")
async def delete_webhook(
    webhook_id: str,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """Delete a webhook along with its request log and stats."""
    async with store_boundary("Failed to delete webhook", webhook_id=webhook_id):
        await WebhookService(db, config).delete_webhook(parse_webhook_id(webhook_id))

    return {"message": "Webhook deleted successfully"}


@router.get("/{webhook_id}/requests")
async def list_webhook_requests(
    webhook_id: str,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """Paginated request history, most recent first."""
    page_size = parse_bounded_int(limit, "limit", config.DEFAULT_PAGE_SIZE, 1, config.MAX_PAGE_SIZE)
    skip = parse_bounded_int(offset, "offset", 0, 0)

    async with store_boundary("Failed to fetch webhook requests", webhook_id=webhook_id):
        rows = await QueryService(db, config).list_requests(parse_webhook_id(webhook_id), limit=page_size, offset=skip)

    return [request_to_dict(row) for row in rows]


@router.get("/{webhook_id}/stats")
async def get_webhook_stats(
    webhook_id: str,
    days: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """Daily counters for the trailing ``days`` days (default 7), newest first."""
    window = parse_bounded_int(days, "days", config.DEFAULT_STATS_DAYS, 1, config.MAX_STATS_DAYS)

    async with store_boundary("Failed to fetch webhook stats", webhook_id=webhook_id):
        rows = await QueryService(db, config).list_stats(parse_webhook_id(webhook_id), days=window)

    return [stat_to_dict(row) for row in rows]
