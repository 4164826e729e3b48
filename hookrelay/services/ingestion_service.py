"""
Ingestion service.

Handles one inbound call on a webhook's public route: resolve the active
webhook, check its shared secret, capture the request, append it to the
request log and bump the day's counters.

SECURITY: secret matching is a plain substring check against the
Authorization header. It stops casual misuse only; it is not a signature.
"""
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config import Settings, settings as default_settings
from hookrelay.errors import NotFoundError, ProcessingError, UnauthorizedError, store_boundary
from hookrelay.logging_config import get_logger
from hookrelay.models.webhook import Webhook, WebhookRequest, WebhookStat
from hookrelay.schemas import utc_timestamp
from hookrelay.services.webhook_service import WebhookService

logger = get_logger(component="ingestion_service")

# Methods whose body is never recorded
BODYLESS_METHODS = {"GET"}

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class CapturedRequest:
    """Loggable snapshot of an inbound call."""
    method: str
    headers: dict
    body: str | None
    query_params: dict
    ip_address: str
    user_agent: str


def is_authorized(webhook: Webhook, authorization: str | None) -> bool:
    """
    True when the webhook has no secret or the header contains it.

    Substring containment, so "Bearer <secret>" and "<secret>" both pass.
    """
    if not webhook.secret:
        return True
    return webhook.secret in (authorization or "")


def today_utc() -> str:
    """Current UTC calendar date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


async def capture_request(request: Request, ip_header: str) -> CapturedRequest:
    """Build a loggable record from the live request. The body is kept as opaque text."""
    method = request.method.upper()
    body = None
    if method not in BODYLESS_METHODS:
        raw = await request.body()
        body = raw.decode("utf-8", errors="replace")

    return CapturedRequest(
        method=method,
        headers=dict(request.headers),
        body=body,
        query_params=dict(request.query_params),
        ip_address=request.headers.get(ip_header) or "unknown",
        user_agent=request.headers.get("user-agent") or "unknown",
    )


def elapsed_ms(started_at: float) -> int:
    """Whole milliseconds since ``started_at`` (a time.monotonic() reading)."""
    return max(0, int((time.monotonic() - started_at) * 1000))


def build_stats_upsert(dialect_name: str, webhook_id: int, date: str):
    """
    Single-statement insert-or-increment for the (webhook_id, date) row.

    Uses the dialect's native ON CONFLICT so concurrent calls never lose an
    increment or hit the unique constraint.
    """
    insert = _UPSERT_DIALECTS.get(dialect_name)
    if insert is None:
        raise ValueError(f"Unsupported database dialect for stats upsert: {dialect_name}")

    stmt = insert(WebhookStat).values(
        webhook_id=webhook_id,
        date=date,
        total_requests=1,
        success_requests=1,
    )
    return stmt.on_conflict_do_update(
        index_elements=[WebhookStat.webhook_id, WebhookStat.date],
        set_={
            "total_requests": WebhookStat.total_requests + 1,
            "success_requests": WebhookStat.success_requests + 1,
        },
    )


class IngestionService:
    """Service for recording inbound webhook calls."""

    def __init__(self, db: AsyncSession, config: Settings | None = None):
        self.db = db
        self.config = config or default_settings

    async def resolve(self, endpoint: str) -> Webhook:
        """
        Look up the active webhook for an endpoint token.

        Raises:
            NotFoundError: unknown, deleted or inactive endpoint
        """
        webhook = await WebhookService(self.db, self.config).get_active_by_endpoint(endpoint)
        if not webhook:
            raise NotFoundError("Webhook not found")
        return webhook

    async def increment_daily_stats(self, webhook_id: int, date: str | None = None):
        """Upsert today's (or ``date``'s) counters for a webhook. Does not commit."""
        stmt = build_stats_upsert(self.db.get_bind().dialect.name, webhook_id, date or today_utc())
        await self.db.execute(stmt)

    async def ingest(self, endpoint: str, request: Request, started_at: float | None = None) -> dict:
        """
        Authenticate, capture and record one inbound call.

        Args:
            endpoint: Endpoint token from the path
            request: The live inbound request
            started_at: time.monotonic() reading when processing began

        Returns:
            Confirmation payload for the caller
        """
        if started_at is None:
            started_at = time.monotonic()

        async with store_boundary("Failed to process webhook", ProcessingError, endpoint=endpoint):
            webhook = await self.resolve(endpoint)

        log = logger.bind(webhook_id=webhook.id, endpoint=endpoint)

        if not is_authorized(webhook, request.headers.get("authorization")):
            log.warning("webhook_rejected", reason="secret_mismatch")
            raise UnauthorizedError("Unauthorized")

        webhook_id = webhook.id
        webhook_name = webhook.name

        try:
            async with store_boundary("Failed to process webhook", ProcessingError, webhook_id=webhook_id):
                captured = await capture_request(request, self.config.CLIENT_IP_HEADER)
                response_time = elapsed_ms(started_at)

                self.db.add(WebhookRequest(
                    webhook_id=webhook_id,
                    method=captured.method,
                    headers=json.dumps(captured.headers),
                    body=captured.body,
                    query_params=json.dumps(captured.query_params),
                    ip_address=captured.ip_address,
                    user_agent=captured.user_agent,
                    response_time=response_time,
                ))
                await self.db.flush()
                await self.increment_daily_stats(webhook_id)
                await self.db.commit()
        except ProcessingError:
            await self.db.rollback()
            raise

        log.info(
            "webhook_received",
            method=captured.method,
            response_time_ms=response_time,
            ip_address=captured.ip_address,
        )

        return {
            "message": "Webhook received successfully",
            "webhook": webhook_name,
            "timestamp": utc_timestamp(),
        }
