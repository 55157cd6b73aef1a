import secrets

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from mobile_post_office.config.settings import Settings, get_settings
from mobile_post_office.db.session import get_async_session
from mobile_post_office.exceptions import UnauthorizedError
from mobile_post_office.services.post_service import PostService


async def get_post_service(db: AsyncSession = Depends(get_async_session)) -> PostService:
    # One service (and session) per request
    return PostService(db)


async def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """No-op unless API_KEY is configured; then the X-API-Key header must match it."""
    if not settings.API_KEY:
        return
    if x_api_key is None or not secrets.compare_digest(x_api_key, settings.API_KEY):
        raise UnauthorizedError("Missing or invalid API key")
