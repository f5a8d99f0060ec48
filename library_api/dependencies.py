"""
FastAPI Dependencies Module

Reusable pieces injected into route handlers with Depends().

Instead of writing:
    def list_books(db: Session = Depends(get_db)):

Routes write:
    def list_books(db: DbSession):
"""

from typing import Annotated, Any

from fastapi import Body, Depends, Request
from sqlalchemy.orm import Session

from library_api.config import Settings
from library_api.database import get_db
from library_api.schemas.principal import Principal
from library_api.services.authorization import authorize
from library_api.services.identity import GoogleIdentityAdapter


def get_app_settings(request: Request) -> Settings:
    """The Settings object the app was created with."""
    return request.app.state.settings


def get_identity(request: Request) -> GoogleIdentityAdapter:
    """The identity adapter built at startup."""
    return request.app.state.identity


def get_principal(request: Request) -> Principal | None:
    """The logged-in principal, or None."""
    return authorize(request.session)


DbSession = Annotated[Session, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Identity = Annotated[GoogleIdentityAdapter, Depends(get_identity)]
OptionalPrincipal = Annotated[Principal | None, Depends(get_principal)]

# Raw JSON body; the catalog pipeline validates it
JsonBody = Annotated[Any, Body()]
