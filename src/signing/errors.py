from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class InvalidInputError(ValueError):
    """Raised when the caller passes something that cannot be signed or configured."""


class FailureReason(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"


@dataclass(frozen=True)
class VerificationFailure:
    """
    Returned (never raised) when a token cannot be trusted.

    Falsy, so `if not result:` reads naturally at call sites. Callers should
    treat the request as unauthenticated and carry on.
    """

    reason: FailureReason
    detail: str = ""

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        if self.detail:
            return f"verification failed ({self.reason.value}): {self.detail}"
        return f"verification failed ({self.reason.value})"


__all__ = ["InvalidInputError", "FailureReason", "VerificationFailure"]
