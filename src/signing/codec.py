from __future__ import annotations

import base64
import binascii
import string
from typing import Protocol

from .errors import InvalidInputError


_B64URL_ALPHABET = frozenset(string.ascii_letters + string.digits + "-_")
# Printable ASCII that still breaks a cookie or header value
_PLAIN_FORBIDDEN = frozenset(";,\"")


class PayloadCodec(Protocol):
    name: str

    def encode(self, payload: bytes, separator: str) -> str: ...

    def decode(self, text: str) -> bytes: ...

    def alphabet_contains(self, ch: str) -> bool: ...


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """
    Strict, canonical decode of unpadded URL-safe base64.

    Rejects foreign characters, impossible lengths and non-zero trailing bits,
    so two different strings never decode to the same bytes.
    """
    if any(ch not in _B64URL_ALPHABET for ch in text):
        raise InvalidInputError("invalid base64url character")
    if len(text) % 4 == 1:
        raise InvalidInputError("invalid base64url length")
    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("invalid base64url data") from exc
    if b64url_encode(data) != text:
        raise InvalidInputError("non-canonical base64url data")
    return data


class Base64UrlCodec:
    """Escapes every payload, so any bytes can be signed."""

    name = "base64url"

    def encode(self, payload: bytes, separator: str) -> str:
        return b64url_encode(payload)

    def decode(self, text: str) -> bytes:
        return b64url_decode(text)

    def alphabet_contains(self, ch: str) -> bool:
        return ch in _B64URL_ALPHABET


class PlainCodec:
    """
    Carries the payload as readable text, without escaping.

    Only printable ASCII that is safe in a header or cookie value is accepted;
    payloads containing the separator cannot be represented either.
    """

    name = "plain"

    def encode(self, payload: bytes, separator: str) -> str:
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidInputError("plain payloads must be valid UTF-8") from exc
        for ch in text:
            if not (" " <= ch <= "~") or ch in _PLAIN_FORBIDDEN:
                raise InvalidInputError(
                    f"plain payloads must be header-safe printable ASCII, got {ch!r}; use the base64url encoding"
                )
        if separator in text:
            raise InvalidInputError(
                f"payload contains the separator {separator!r}; use the base64url encoding to escape it"
            )
        return text

    def decode(self, text: str) -> bytes:
        return text.encode("utf-8")

    def alphabet_contains(self, ch: str) -> bool:
        # Arbitrary text, but the separator is checked per payload on encode.
        return False


_CODECS = {
    Base64UrlCodec.name: Base64UrlCodec,
    PlainCodec.name: PlainCodec,
}


def codec_from_name(name: str) -> PayloadCodec:
    codec_cls = _CODECS.get((name or "").strip().lower())
    if codec_cls is None:
        raise InvalidInputError(
            f"unsupported payload encoding: {name!r} (expected one of {', '.join(sorted(_CODECS))})"
        )
    return codec_cls()


__all__ = [
    "PayloadCodec",
    "Base64UrlCodec",
    "PlainCodec",
    "b64url_encode",
    "b64url_decode",
    "codec_from_name",
]
