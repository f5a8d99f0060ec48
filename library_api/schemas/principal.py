"""
Principal Schemas

The principal is the identity attached to a login session. It is built from
the OAuth provider's profile and stored, in full, in the server-side
session under the "user" key.
"""

from pydantic import BaseModel, Field


class Principal(BaseModel):
    """Authenticated identity as stored in the session."""

    id: str = Field(..., min_length=1, description="Provider subject id")
    display_name: str = Field(default="", description="Name shown to the user")
    emails: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    provider: str = Field(default="google")


class PrincipalResponse(BaseModel):
    """
    Shape returned by GET /auth/user.

    Mirrors the stored principal and adds the first email/photo for clients
    that only want one.
    """

    id: str
    displayName: str
    email: str | None = None
    photo: str | None = None
    emails: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    provider: str

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        return cls(
            id=principal.id,
            displayName=principal.display_name,
            email=principal.emails[0] if principal.emails else None,
            photo=principal.photos[0] if principal.photos else None,
            emails=principal.emails,
            photos=principal.photos,
            provider=principal.provider,
        )
