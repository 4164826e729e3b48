"""
Webhook models.

A Webhook is a registered inbound endpoint. Every call it receives is
appended to the request log, and each UTC day gets one aggregate row.
"""
from datetime import datetime
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from hookrelay.models.base import Base, TimestampMixin


class Webhook(Base, TimestampMixin):
    """
    Registered webhook endpoint.
    
    ``endpoint`` is the public routing token; it is unique and never reused.
    """
    __tablename__ = "webhooks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    endpoint: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    secret: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true()
    )

    # Relationships
    requests = relationship(
        "WebhookRequest",
        back_populates="webhook",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    stats = relationship(
        "WebhookStat",
        back_populates="webhook",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def __repr__(self):
        return f"<Webhook(id={self.id}, name={self.name}, endpoint={self.endpoint})>"


class WebhookRequest(Base):
    """
    A single captured inbound call. Append-only.
    
    ``headers`` and ``query_params`` hold JSON-encoded mappings.
    """
    __tablename__ = "webhook_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    webhook_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("webhooks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    headers: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    query_params: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="unknown")
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="unknown")
    response_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # milliseconds
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )

    webhook = relationship("Webhook", back_populates="requests")

    def __repr__(self):
        return f"<WebhookRequest(id={self.id}, webhook_id={self.webhook_id}, method={self.method})>"


class WebhookStat(Base):
    """
    Per-webhook, per-UTC-day counters.
    
    Exactly one row per (webhook_id, date); rows are only ever written
    through the conflict-resolving upsert in IngestionService.
    """
    __tablename__ = "webhook_stats"
    __table_args__ = (
        UniqueConstraint("webhook_id", "date", name="uq_webhook_stats_webhook_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    webhook_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("webhooks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD, UTC
    total_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    webhook = relationship("Webhook", back_populates="stats")

    def __repr__(self):
        return f"<WebhookStat(webhook_id={self.webhook_id}, date={self.date}, total={self.total_requests})>"
