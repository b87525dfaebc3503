"""
Auth routes.

Endpoints:
- POST /api/auth/session
- GET /api/auth/me
- POST /api/auth/logout
"""

from fastapi import APIRouter, Depends, Request, Response

from ..container import Services
from ..errors import PaperMarkError
from ..models import SessionExchange, User
from .deps import get_current_user, get_services, http_error, session_token_from


def create_auth_routes() -> APIRouter:
    """Create auth routes."""

    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/session")
    async def create_session(
        body: SessionExchange,
        response: Response,
        services: Services = Depends(get_services)
    ):
        """Exchange session_id for session_token"""
        try:
            session_token, user = await services.identity.exchange(body.session_id)
        except PaperMarkError as e:
            raise http_error(e)

        settings = services.settings
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=session_token,
            httponly=True,
            secure=True,
            samesite="none",
            path="/",
            max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60
        )
        return {"user": user.model_dump(), "session_token": session_token}

    @router.get("/me")
    async def get_me(user: User = Depends(get_current_user)):
        """Get current user info"""
        return user.model_dump()

    @router.post("/logout")
    async def logout(
        request: Request,
        response: Response,
        services: Services = Depends(get_services)
    ):
        """Logout and clear session"""
        cookie_name = services.settings.SESSION_COOKIE_NAME
        session_token = session_token_from(request, cookie_name)
        if session_token:
            try:
                await services.identity.sign_out(session_token)
            except PaperMarkError as e:
                raise http_error(e)

        response.delete_cookie(key=cookie_name, path="/")
        return {"success": True}

    return router
