"""
Domain errors and the store failure boundary.

Every error carries the HTTP status it maps to. Handlers render them as
``{"error": message}`` so internal details never reach the client.
"""
from contextlib import asynccontextmanager

from hookrelay.logging_config import get_logger
from hookrelay.sentry_config import capture_exception

logger = get_logger(component="errors")


class HookRelayError(Exception):
    """Base error for all HookRelay operations."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(HookRelayError):
    """Malformed or missing required input."""
    status_code = 400


class UnauthorizedError(HookRelayError):
    """Inbound call did not present the webhook secret."""
    status_code = 401


class NotFoundError(HookRelayError):
    """Unknown webhook id or endpoint."""
    status_code = 404


class StorageError(HookRelayError):
    """Store failure in a CRUD or query handler."""
    status_code = 500


class ProcessingError(HookRelayError):
    """Any failure while capturing, persisting or aggregating an inbound call."""
    status_code = 500


@asynccontextmanager
async def store_boundary(message: str, error_class: type[HookRelayError] = StorageError, **context):
    """
    Downgrade unexpected faults inside the block to a static 500 error.
    
    Domain errors pass through untouched. Anything else is logged with its
    traceback, reported to Sentry, and replaced by ``error_class(message)``.
    
    Usage:
        async with store_boundary("Failed to fetch webhooks"):
            rows = await service.list_webhooks()
    """
    try:
        yield
    except HookRelayError:
        raise
    except Exception as e:
        logger.error("store_failure", error_message=message, error_type=type(e).__name__, exc_info=True, **context)
        capture_exception(e)
        raise error_class(message) from e
