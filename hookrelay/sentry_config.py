"""
Sentry configuration for error tracking.

Captures unhandled exceptions and store failures with webhook context.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from hookrelay.config import Settings
from hookrelay.logging_config import get_logger

logger = get_logger(component="sentry")


def configure_sentry(config: Settings) -> bool:
    """
    Initialize Sentry with FastAPI and SQLAlchemy integrations.
    
    Requires SENTRY_DSN to be set; returns False when Sentry stays disabled.
    """
    dsn = config.SENTRY_DSN
    
    if not dsn:
        logger.info("sentry_disabled", reason="SENTRY_DSN not set")
        return False
    
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        before_send=strip_secrets,
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=config.ENVIRONMENT,
        release=config.APP_VERSION,
        send_default_pii=False,
    )
    
    logger.info("sentry_enabled", environment=config.ENVIRONMENT)
    return True


def strip_secrets(event, hint):
    """
    Drop Authorization headers from captured request data.
    
    Inbound webhook callers put their shared secret there.
    """
    headers = event.get("request", {}).get("headers")
    if isinstance(headers, dict):
        for key in list(headers):
            if key.lower() == "authorization":
                headers[key] = "[Filtered]"
    return event


def capture_exception(exc_info=None):
    """
    Capture an exception to Sentry.
    
    Usage:
        try:
            # some code
        except Exception:
            capture_exception()
    """
    if sentry_sdk.get_client().is_active():
        sentry_sdk.capture_exception(exc_info)
