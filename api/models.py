"""
API request and response models for SessionGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignInCredentials(BaseModel):
    """Request body for POST /sign-in.

    No upper bound on the password: an over-long one simply fails to verify.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class Credentials(BaseModel):
    """Request body for POST /sign-up."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        """bcrypt rejects inputs over 72 bytes; multi-byte characters count extra."""
        if len(value.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return value


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Every auth endpoint answers with a single human-readable message."""

    model_config = ConfigDict(frozen=True)

    message: str


class ErrorResponse(BaseModel):
    """Failure body. error carries collaborator detail on store failures only."""

    model_config = ConfigDict(frozen=True)

    message: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
