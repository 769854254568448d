from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import unquote

from signing import Signer, VerificationFailure


logger = logging.getLogger(__name__)

SIGNED_PREFIX = "s:"
JSON_PREFIX = "j:"

SignedCookieValue = Union[str, Any, VerificationFailure]


def _try_decode(value: str) -> str:
    if "%" not in value:
        return value
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


def parse_cookie_header(header: Optional[str]) -> Dict[str, str]:
    """Parse a `Cookie` request header into a name -> value dict.

    - Pairs without "=" are ignored.
    - Surrounding double quotes are stripped and values percent-decoded
      (left raw when they are not valid UTF-8 escapes).
    - The first occurrence of a name wins.
    """
    out: Dict[str, str] = {}
    if not header or not isinstance(header, str):
        return out
    for part in header.split(";"):
        name, eq, value = part.partition("=")
        if not eq:
            continue
        name = name.strip()
        if not name or name in out:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]
        out[name] = _try_decode(value)
    return out


def parse_json_cookie(value: Any) -> Any:
    """Decode a "j:" cookie. Values without the prefix, or with bad JSON, come back unchanged."""
    if not isinstance(value, str) or not value.startswith(JSON_PREFIX):
        return value
    try:
        return json.loads(value[len(JSON_PREFIX):])
    except json.JSONDecodeError:
        return value


@dataclass
class ParsedCookies:
    cookies: Dict[str, Any] = field(default_factory=dict)
    signed_cookies: Dict[str, SignedCookieValue] = field(default_factory=dict)

    def get_signed(self, name: str) -> Optional[Any]:
        """Verified value for `name`, or None when absent or untrusted."""
        value = self.signed_cookies.get(name)
        if isinstance(value, VerificationFailure):
            return None
        return value


class CookieParser:
    """
    Splits request cookies into plain and signed sets.

    With a signer, every "s:" cookie is removed from `cookies` and verified
    into `signed_cookies`. A cookie that fails verification keeps its
    `VerificationFailure` there so callers can see it was tampered with.
    Without a signer "s:" cookies are left alone in `cookies`.
    """

    def __init__(self, signer: Optional[Signer] = None) -> None:
        self._signer = signer

    def parse(self, header: Optional[str]) -> ParsedCookies:
        raw = parse_cookie_header(header)
        result = ParsedCookies()

        for name, value in raw.items():
            if self._signer is not None and value.startswith(SIGNED_PREFIX):
                verified = self._signer.verify_text(value[len(SIGNED_PREFIX):])
                if isinstance(verified, VerificationFailure):
                    logger.info("Signed cookie %r rejected: %s", name, verified.reason.value)
                    result.signed_cookies[name] = verified
                else:
                    result.signed_cookies[name] = parse_json_cookie(verified)
                continue
            result.cookies[name] = parse_json_cookie(value)

        return result


__all__ = [
    "SIGNED_PREFIX",
    "JSON_PREFIX",
    "CookieParser",
    "ParsedCookies",
    "parse_cookie_header",
    "parse_json_cookie",
]
