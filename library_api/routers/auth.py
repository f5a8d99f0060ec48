"""
Authentication Router

Google sign-in with server-side sessions.

Flow:
1. GET /auth/google           -> 302 to Google's consent screen
2. GET /auth/google/callback  -> code exchanged, principal stored in the
                                 session, 302 to LOGIN_SUCCESS_REDIRECT
                                 (or to /auth/failure)
3. GET /auth/user             -> who is logged in
4. GET /auth/logout           -> session destroyed
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from library_api.dependencies import AppSettings, Identity, OptionalPrincipal
from library_api.schemas.principal import PrincipalResponse
from library_api.services.authorization import store_principal
from library_api.services.sessions import regenerate_session

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


def _not_configured() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Google OAuth is not configured"},
    )


@router.get(
    "/google",
    summary="Login with Google",
    description="Redirect to Google's consent screen.",
    responses={
        302: {"description": "Redirect to Google OAuth"},
        400: {"description": "Google OAuth not configured"},
    },
)
async def google_login(request: Request, identity: Identity) -> Response:
    if not identity.is_configured:
        return _not_configured()
    return await identity.redirect_to_consent(request)


@router.get(
    "/google/callback",
    name="google_callback",
    summary="Google OAuth callback",
    description="""
    Google redirects here after the consent screen. On success the
    profile is stored in the session and the browser is sent to the
    configured landing page; on any failure it is sent to /auth/failure.
    """,
    responses={
        302: {"description": "Redirect after login (success or failure)"},
        400: {"description": "Google OAuth not configured"},
    },
)
async def google_callback(
    request: Request,
    identity: Identity,
    settings: AppSettings,
) -> Response:
    if not identity.is_configured:
        return _not_configured()

    principal = await identity.exchange_code(request)
    if principal is None:
        return RedirectResponse(
            url=str(request.url_for("auth_failure")),
            status_code=status.HTTP_302_FOUND,
        )

    # Drop the OAuth state and move to a fresh session id
    store_principal(request.session, principal)
    regenerate_session(request)

    logger.info(f"Google login: {principal.id}")
    return RedirectResponse(
        url=settings.login_success_redirect,
        status_code=status.HTTP_302_FOUND,
    )


@router.get(
    "/failure",
    name="auth_failure",
    status_code=status.HTTP_401_UNAUTHORIZED,
    summary="Login failed",
)
def auth_failure() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"success": False, "error": "Google authentication failed"},
    )


@router.get(
    "/user",
    summary="Get current user",
    responses={
        200: {"description": "The logged-in user's profile"},
        401: {"description": "Not authenticated"},
    },
)
def current_user(principal: OptionalPrincipal) -> JSONResponse:
    if principal is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "error": "Not authenticated"},
        )
    user = PrincipalResponse.from_principal(principal)
    return JSONResponse(content={"success": True, "user": user.model_dump()})


@router.get(
    "/logout",
    summary="Logout",
    description="Clear the principal and destroy the server-side session.",
)
def logout(request: Request, principal: OptionalPrincipal) -> JSONResponse:
    # An emptied session makes the middleware delete the row and expire the cookie
    request.session.clear()
    if principal is not None:
        logger.info(f"Logout: {principal.id}")
    return JSONResponse(content={"success": True, "message": "Logout successful"})
