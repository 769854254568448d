from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Any, List, Optional
from urllib.parse import quote

from signing import InvalidInputError, Signer

from .options import CookieOptions
from .parser import JSON_PREFIX, SIGNED_PREFIX


# RFC 6265 cookie-name token
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# Characters left as-is by encodeURIComponent
_VALUE_SAFE = "-_.!~*'()"
_ATTR_FORBIDDEN = re.compile(r"[;\x00-\x1f\x7f]")


def _http_date(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def _check_attr(label: str, value: str) -> str:
    if _ATTR_FORBIDDEN.search(value):
        raise InvalidInputError(f"cookie {label} contains forbidden characters: {value!r}")
    return value


def serialize_cookie(
    name: str,
    value: str,
    options: Optional[CookieOptions] = None,
    *,
    now: Optional[datetime] = None,
) -> str:
    """Build a `Set-Cookie` header value. `value` is percent-encoded here."""
    if not isinstance(name, str) or not _TOKEN_RE.match(name):
        raise InvalidInputError(f"invalid cookie name: {name!r}")
    if not isinstance(value, str):
        raise InvalidInputError("cookie value must be a string")
    opts = options or CookieOptions()

    parts: List[str] = [f"{name}={quote(value, safe=_VALUE_SAFE)}"]
    if opts.max_age is not None:
        current = now or datetime.now(timezone.utc)
        parts.append(f"Max-Age={int(opts.max_age)}")
        parts.append(f"Expires={_http_date(current + timedelta(seconds=int(opts.max_age)))}")
    elif opts.expires is not None:
        parts.append(f"Expires={_http_date(opts.expires)}")
    if opts.domain:
        parts.append(f"Domain={_check_attr('domain', opts.domain)}")
    if opts.path:
        parts.append(f"Path={_check_attr('path', opts.path)}")
    if opts.http_only:
        parts.append("HttpOnly")
    if opts.secure:
        parts.append("Secure")
    if opts.same_site:
        parts.append(f"SameSite={opts.same_site}")
    return "; ".join(parts)


class CookieWriter:
    """
    Produces `Set-Cookie` values, signing them when asked.

    Non-string values are stored as JSON cookies ("j:" prefix). Signed values
    get the "s:" prefix followed by the signer's token.
    """

    def __init__(self, signer: Optional[Signer] = None) -> None:
        self._signer = signer

    def encode_value(self, value: Any, *, signed: bool = False) -> str:
        if isinstance(value, str):
            text = value
        else:
            text = JSON_PREFIX + json.dumps(value, separators=(",", ":"), sort_keys=True)
        if signed:
            if self._signer is None:
                raise InvalidInputError("signed cookies require a signer with a secret")
            text = SIGNED_PREFIX + self._signer.sign(text)
        return text

    def set_cookie(
        self,
        name: str,
        value: Any,
        options: Optional[CookieOptions] = None,
        *,
        now: Optional[datetime] = None,
        **kwargs: Any,
    ) -> str:
        if options is None:
            opts = CookieOptions(**kwargs)
        elif kwargs:
            opts = CookieOptions.model_validate({**options.model_dump(), **kwargs})
        else:
            opts = options
        encoded = self.encode_value(value, signed=opts.signed)
        return serialize_cookie(name, encoded, opts, now=now)

    def clear_cookie(self, name: str, options: Optional[CookieOptions] = None) -> str:
        base = options or CookieOptions()
        opts = base.model_copy(
            update={
                "max_age": None,
                "expires": datetime(1970, 1, 1, tzinfo=timezone.utc),
                "signed": False,
            }
        )
        return serialize_cookie(name, "", opts)


__all__ = ["CookieWriter", "serialize_cookie"]
