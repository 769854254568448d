"""
Cookie adapter for signed tokens.

Modules:
- parser: Cookie header parsing, signed ("s:") and JSON ("j:") cookies
- writer: Set-Cookie serialization and CookieWriter
- options: CookieOptions model
"""

from .options import CookieOptions
from .parser import CookieParser, ParsedCookies, parse_cookie_header
from .writer import CookieWriter, serialize_cookie

__all__ = [
    "CookieOptions",
    "CookieParser",
    "CookieWriter",
    "ParsedCookies",
    "parse_cookie_header",
    "serialize_cookie",
]
