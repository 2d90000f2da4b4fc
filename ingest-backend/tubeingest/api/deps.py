import secrets

from fastapi import Header, HTTPException, Request

from tubeingest.core.settings import settings
from tubeingest.services.youtube import YouTubeClient


def _bearer_matches(authorization: str | None, expected: str | None) -> bool:
    if not expected or not authorization:
        return False
    scheme, _, token = authorization.partition(" ")
    return scheme.lower() == "bearer" and secrets.compare_digest(token.strip(), expected)


def require_admin(authorization: str | None = Header(default=None)) -> None:
    """Stand-in for the site's admin session check: Bearer ADMIN_API_TOKEN."""
    if not _bearer_matches(authorization, settings.admin_api_token):
        raise HTTPException(status_code=401, detail="Unauthorized")


def require_cron(authorization: str | None = Header(default=None)) -> None:
    if not _bearer_matches(authorization, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_youtube_client() -> YouTubeClient:
    return YouTubeClient()


def client_origin(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"
