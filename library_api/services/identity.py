"""
Google Identity Adapter

Wraps Authlib's Starlette OAuth client for the authorization-code flow:

1. redirect_to_consent(): send the browser to Google's consent screen
2. exchange_code(): on the way back, trade the code for tokens and turn the
   OpenID Connect profile into a Principal

The adapter is built from an explicit Settings object in create_app() and
kept on app.state.identity; nothing here reads configuration globally.
Authlib keeps its CSRF state in request.session, which the server-side
session middleware provides.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import RedirectResponse

from library_api.config import Settings
from library_api.schemas.principal import Principal

logger = logging.getLogger(__name__)

GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"
GOOGLE_SCOPES = "openid email profile"
PROVIDER = "google"


def principal_from_userinfo(claims: Mapping[str, Any] | None, provider: str = PROVIDER) -> Principal | None:
    """
    Map OpenID Connect userinfo claims to a Principal.

    Returns None when the profile is missing or has no subject id.
    """
    if not claims or not claims.get("sub"):
        return None

    display_name = claims.get("name") or " ".join(
        part for part in (claims.get("given_name"), claims.get("family_name")) if part
    )
    emails = [claims["email"]] if claims.get("email") else []
    photos = [claims["picture"]] if claims.get("picture") else []

    try:
        return Principal(
            id=str(claims["sub"]),
            display_name=display_name or "",
            emails=emails,
            photos=photos,
            provider=provider,
        )
    except ValidationError:
        logger.warning("Identity provider returned an unusable profile")
        return None


class GoogleIdentityAdapter:
    """OAuth client for Google sign-in."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.oauth = OAuth()
        if settings.google_configured:
            self.oauth.register(
                name=PROVIDER,
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                server_metadata_url=GOOGLE_METADATA_URL,
                client_kwargs={"scope": GOOGLE_SCOPES},
            )

    @property
    def is_configured(self) -> bool:
        return self.settings.google_configured

    def callback_url(self, request: Request) -> str:
        """Configured callback URL, or the callback route on this host."""
        if self.settings.google_callback_url:
            return self.settings.google_callback_url
        return str(request.url_for("google_callback"))

    async def redirect_to_consent(self, request: Request) -> RedirectResponse:
        client = self.oauth.create_client(PROVIDER)
        return await client.authorize_redirect(request, self.callback_url(request))

    async def exchange_code(self, request: Request) -> Principal | None:
        """
        Complete the flow for the current callback request.

        Provider errors, denied consent, state mismatches and transport
        failures are logged and reported as None.
        """
        client = self.oauth.create_client(PROVIDER)
        if client is None:
            logger.error("Google sign-in attempted but OAuth is not configured")
            return None

        try:
            token = await client.authorize_access_token(request)
            claims = token.get("userinfo")
            if not claims:
                claims = await client.userinfo(token=token)
        except OAuthError as e:
            logger.warning(f"Google OAuth failed: {e.error}")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Google OAuth transport error: {e}")
            return None

        principal = principal_from_userinfo(claims)
        if principal is None:
            logger.warning("Google OAuth returned no usable profile")
        return principal
