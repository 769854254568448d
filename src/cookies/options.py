from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


# 400 years; keeps the derived Expires date inside datetime range
MAX_AGE_LIMIT = 400 * 365 * 24 * 60 * 60


class CookieOptions(BaseModel):
    """
    Attributes applied to an outgoing cookie.

    Fields
    - max_age: lifetime in seconds; also emitted as an `Expires` date.
    - expires: explicit expiry (ignored when `max_age` is set).
    - path / domain: scope of the cookie. `path` defaults to "/".
    - secure / http_only / same_site: standard transport flags.
    - signed: sign the value with the writer's signer ("s:" prefix).
    """

    max_age: Optional[int] = Field(default=None, ge=0, le=MAX_AGE_LIMIT, description="Lifetime in seconds")
    expires: Optional[datetime] = None
    path: Optional[str] = "/"
    domain: Optional[str] = None
    secure: bool = False
    http_only: bool = False
    same_site: Optional[Literal["Strict", "Lax", "None"]] = None
    signed: bool = False

    @model_validator(mode="after")
    def _same_site_none_requires_secure(self) -> "CookieOptions":
        if self.same_site == "None" and not self.secure:
            raise ValueError("same_site='None' requires secure=True")
        return self


__all__ = ["CookieOptions", "MAX_AGE_LIMIT"]
