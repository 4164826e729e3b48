"""
Webhook registry service.

Creates, reads, updates and deletes webhook definitions and issues the
random endpoint tokens that route inbound traffic.
"""
import secrets
import string

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config import Settings, settings as default_settings
from hookrelay.errors import NotFoundError, StorageError, ValidationError
from hookrelay.logging_config import get_logger
from hookrelay.models.webhook import Webhook, WebhookRequest, WebhookStat

logger = get_logger(component="webhook_service")

ENDPOINT_ALPHABET = string.ascii_lowercase + string.digits


def generate_endpoint(length: int = 26) -> str:
    """
    Generate a random lower-case alphanumeric endpoint token.
    
    26 base-36 characters carry ~134 bits of entropy.
    """
    return "".join(secrets.choice(ENDPOINT_ALPHABET) for _ in range(length))


def validate_name(name) -> str:
    """Return ``name`` if it is a string with visible content."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Webhook name is required")
    return name


class WebhookService:
    """Service for managing registered webhooks."""
    
    def __init__(self, db: AsyncSession, config: Settings | None = None):
        self.db = db
        self.config = config or default_settings
    
    async def list_webhooks(self) -> list[tuple[Webhook, int, object]]:
        """
        List all webhooks with request aggregates, newest first.
        
        Returns:
            (webhook, total_requests, last_request) tuples
        """
        stmt = (
            select(
                Webhook,
                func.count(WebhookRequest.id).label("total_requests"),
                func.max(WebhookRequest.created_at).label("last_request"),
            )
            .outerjoin(WebhookRequest, WebhookRequest.webhook_id == Webhook.id)
            .group_by(Webhook.id)
            .order_by(Webhook.created_at.desc(), Webhook.id.desc())
        )
        result = await self.db.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
    
    async def get_webhook(self, webhook_id: int | None) -> Webhook:
        """
        Get webhook by ID.
        
        Raises:
            NotFoundError: no webhook with this id, or ``webhook_id`` is None
        """
        if webhook_id is None:
            raise NotFoundError("Webhook not found")
        stmt = select(Webhook).where(Webhook.id == webhook_id)
        result = await self.db.execute(stmt)
        webhook = result.scalar_one_or_none()
        if not webhook:
            raise NotFoundError("Webhook not found")
        return webhook
    
    async def get_active_by_endpoint(self, endpoint: str) -> Webhook | None:
        """Get an active webhook by its endpoint token."""
        stmt = select(Webhook).where(
            Webhook.endpoint == endpoint,
            Webhook.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
    
    async def create_webhook(
        self,
        name,
        description: str | None = None,
        secret: str | None = None
    ) -> Webhook:
        """
        Register a new webhook under a fresh endpoint token.
        
        The unique constraint on ``endpoint`` is the only collision check; a
        collision rolls back and draws a new token, up to
        ENDPOINT_MAX_ATTEMPTS times.
        
        Args:
            name: Display name (required, non-empty)
            description: Free-form description (optional)
            secret: Shared secret required on inbound calls (optional)
            
        Returns:
            The freshly read Webhook row
        """
        name = validate_name(name)
        attempts = max(1, self.config.ENDPOINT_MAX_ATTEMPTS)
        
        for attempt in range(attempts):
            endpoint = generate_endpoint(self.config.ENDPOINT_TOKEN_LENGTH)
            webhook = Webhook(
                name=name,
                endpoint=endpoint,
                description=description,
                secret=secret,
                is_active=True
            )
            self.db.add(webhook)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning("endpoint_collision", attempt=attempt + 1)
                continue
            
            await self.db.refresh(webhook)
            logger.info("webhook_created", webhook_id=webhook.id, endpoint=webhook.endpoint)
            return webhook
        
        raise StorageError("Failed to create webhook")
    
    async def update_webhook(
        self,
        webhook_id: int | None,
        name,
        description: str | None,
        secret: str | None,
        is_active: bool
    ) -> Webhook:
        """
        Replace the mutable fields of a webhook.
        
        Every field is overwritten, so omitted optional values become null.
        The endpoint token never changes.
        """
        webhook = await self.get_webhook(webhook_id)
        name = validate_name(name)
        
        webhook.name = name
        webhook.description = description
        webhook.secret = secret
        webhook.is_active = is_active
        webhook.updated_at = func.now()
        
        await self.db.commit()
        await self.db.refresh(webhook)
        logger.info("webhook_updated", webhook_id=webhook.id, is_active=webhook.is_active)
        return webhook
    
    async def delete_webhook(self, webhook_id: int | None) -> None:
        """
        Delete a webhook together with its request log and daily stats.
        
        All three deletes share one transaction.
        """
        webhook = await self.get_webhook(webhook_id)
        
        await self.db.execute(delete(WebhookRequest).where(WebhookRequest.webhook_id == webhook.id))
        await self.db.execute(delete(WebhookStat).where(WebhookStat.webhook_id == webhook.id))
        await self.db.execute(delete(Webhook).where(Webhook.id == webhook.id))
        await self.db.commit()
        logger.info("webhook_deleted", webhook_id=webhook_id)
