"""
Settings dependency for FastAPI routes.
"""
from fastapi import Request

from hookrelay.config import Settings


def get_settings(request: Request) -> Settings:
    """
    Settings of the application serving this request.
    
    Usage:
        @router.get("/")
        async def route(config: Settings = Depends(get_settings)):
            ...
    """
    return request.app.state.config
