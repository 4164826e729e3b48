"""
Read-only queries over the request log and daily stats.

Pagination and window parameters are parsed and clamped here before they
reach a statement; the stats window is bound as a parameter, never
interpolated.
"""
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config import Settings, settings as default_settings
from hookrelay.errors import ValidationError
from hookrelay.models.webhook import WebhookRequest, WebhookStat

# Largest value a 64-bit integer key can hold
MAX_ROW_ID = 2 ** 63 - 1


def parse_bounded_int(raw: str | None, name: str, default: int, minimum: int, maximum: int | None = None) -> int:
    """
    Parse an optional query-string integer and clamp it into range.

    Missing or blank values fall back to ``default``.

    Raises:
        ValidationError: value is present but not an integer
    """
    if raw is None or str(raw).strip() == "":
        value = default
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise ValidationError(f"{name} must be an integer")

    value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def parse_webhook_id(raw: str) -> int | None:
    """Path id as an int, or None when it cannot name a stored webhook."""
    try:
        value = int(raw)
    except ValueError:
        return None
    if value < 1 or value > MAX_ROW_ID:
        return None
    return value


def stats_window_start(days: int, today: date | None = None) -> str:
    """First date (YYYY-MM-DD) of a trailing window of ``days`` days ending today."""
    today = today or datetime.now(timezone.utc).date()
    return (today - timedelta(days=days - 1)).isoformat()


class QueryService:
    """Service for request history and stats lookups."""

    def __init__(self, db: AsyncSession, config: Settings | None = None):
        self.db = db
        self.config = config or default_settings

    async def list_requests(self, webhook_id: int | None, limit: int | None = None, offset: int = 0) -> list[WebhookRequest]:
        """
        Get a page of captured requests for a webhook.

        Args:
            webhook_id: Owning webhook ID
            limit: Page size, clamped to [1, MAX_PAGE_SIZE]
            offset: Rows to skip, at least 0

        Returns:
            Requests, most recent first
        """
        if webhook_id is None:
            return []
        if limit is None:
            limit = self.config.DEFAULT_PAGE_SIZE
        limit = min(max(1, limit), self.config.MAX_PAGE_SIZE)
        offset = max(0, offset)

        stmt = (
            select(WebhookRequest)
            .where(WebhookRequest.webhook_id == webhook_id)
            .order_by(WebhookRequest.created_at.desc(), WebhookRequest.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_stats(self, webhook_id: int | None, days: int | None = None) -> list[WebhookStat]:
        """
        Get daily stats rows for the trailing ``days`` days, newest first.

        ``days=1`` covers today only.
        """
        if webhook_id is None:
            return []
        if days is None:
            days = self.config.DEFAULT_STATS_DAYS
        days = min(max(1, days), self.config.MAX_STATS_DAYS)

        stmt = (
            select(WebhookStat)
            .where(
                WebhookStat.webhook_id == webhook_id,
                WebhookStat.date >= stats_window_start(days)
            )
            .order_by(WebhookStat.date.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
