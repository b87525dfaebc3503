"""Request dependencies shared by the routers."""

from typing import Optional

from fastapi import HTTPException, Request

from ..container import Services
from ..errors import PaperMarkError
from ..models import User


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return services


def session_token_from(request: Request, cookie_name: str) -> Optional[str]:
    """Session token from the cookie, else from an Authorization bearer header."""
    session_token = request.cookies.get(cookie_name)
    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header.split(" ", 1)[1].strip()
    return session_token or None


async def get_current_user(request: Request) -> User:
    """Get current user from session token"""
    services = get_services(request)
    session_token = session_token_from(request, services.settings.SESSION_COOKIE_NAME)

    if not session_token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user = await services.identity.resolve(session_token)
    except PaperMarkError as e:
        raise http_error(e)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid session")
    return user


def http_error(error: PaperMarkError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
