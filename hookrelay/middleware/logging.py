"""
Logging middleware for request/response logging.

Logs all HTTP requests with timing and context, and stamps the arrival
time that ingestion uses for its response_time.
"""
import time
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from hookrelay.routes.metrics import track_request

logger = structlog.get_logger()


def route_template(request: Request) -> str:
    """Matched route path (e.g. /webhook/{endpoint}), or "unmatched"."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests with timing and context.
    
    Adds: route, method, duration_ms, status to every log.
    """
    
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request.state.received_at = time.monotonic()
        
        # Bind context to logger for this request
        request_logger = logger.bind(
            route=request.url.path,
            method=request.method,
        )
        
        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            request_logger.error(
                "request_failed",
                path=request.url.path,
                status_code=500,
                duration_ms=round(duration_ms, 2),
                error=str(e)
            )
            track_request(request.method, route_template(request), 500, duration_ms / 1000)
            raise
        
        duration_ms = (time.time() - start_time) * 1000
        
        request_logger.info(
            "request_completed",
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2)
        )
        track_request(request.method, route_template(request), response.status_code, duration_ms / 1000)
        
        return response
