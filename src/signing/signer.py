from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, TypeGuard, Union

from .codec import Base64UrlCodec, PayloadCodec, b64url_decode, b64url_encode
from .errors import FailureReason, InvalidInputError, VerificationFailure
from .mac import HmacMac, MacFunction, constant_time_equals
from .secrets import SecretInput, SecretRing, as_ring


logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "."

Payload = Union[str, bytes]
VerifyResult = Union[bytes, VerificationFailure]


def _mac_alphabet_contains(ch: str) -> bool:
    # The mac half is always base64url, whatever the payload codec is.
    return Base64UrlCodec().alphabet_contains(ch)


def _payload_bytes(payload: Any) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    raise InvalidInputError(f"payload must be str or bytes, got {type(payload).__name__}")


@dataclass(frozen=True)
class SignedValue:
    payload: bytes
    signature: bytes
    encoded_payload: str
    separator: str = DEFAULT_SEPARATOR

    def to_token(self) -> str:
        return f"{self.encoded_payload}{self.separator}{b64url_encode(self.signature)}"


class Signer:
    """
    Issues and verifies tamper-evident tokens.

    Token layout: ``<encoded payload><separator><base64url mac>``. The mac is
    computed over the raw payload bytes with the first secret of the ring;
    verification accepts any secret in the ring.

    `verify` never raises on untrusted input. It returns the payload bytes, or
    a `VerificationFailure` saying why the token was rejected.
    """

    def __init__(
        self,
        secret: SecretInput,
        *,
        mac: Optional[MacFunction] = None,
        codec: Optional[PayloadCodec] = None,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        self._ring: SecretRing = as_ring(secret)
        self._mac: MacFunction = mac or HmacMac("sha256")
        self._codec: PayloadCodec = codec or Base64UrlCodec()
        if not isinstance(separator, str) or len(separator) != 1:
            raise InvalidInputError("separator must be a single character")
        if not separator.isascii() or not separator.isprintable() or separator.isspace():
            raise InvalidInputError("separator must be a printable, non-space ASCII character")
        if self._codec.alphabet_contains(separator) or _mac_alphabet_contains(separator):
            raise InvalidInputError(
                f"separator {separator!r} collides with the token alphabet"
            )
        self._separator = separator

    @property
    def separator(self) -> str:
        return self._separator

    @property
    def mac(self) -> MacFunction:
        return self._mac

    @property
    def codec(self) -> PayloadCodec:
        return self._codec

    def __repr__(self) -> str:
        return (
            f"Signer(mac={self._mac.name!r}, codec={self._codec.name!r}, "
            f"separator={self._separator!r}, secrets={len(self._ring)})"
        )

    # -------- Signing --------
    def sign_value(self, payload: Payload) -> SignedValue:
        raw = _payload_bytes(payload)
        encoded = self._codec.encode(raw, self._separator)
        signature = self._mac.compute(self._ring.primary.reveal(), raw)
        return SignedValue(
            payload=raw,
            signature=signature,
            encoded_payload=encoded,
            separator=self._separator,
        )

    def sign(self, payload: Payload) -> str:
        return self.sign_value(payload).to_token()

    # -------- Verification --------
    def verify(self, token: Any) -> VerifyResult:
        if token is None or token == "" or token == b"":
            return self._fail(FailureReason.MISSING)
        if isinstance(token, (bytes, bytearray)):
            try:
                token = bytes(token).decode("ascii")
            except UnicodeDecodeError:
                return self._fail(FailureReason.MALFORMED, "token is not ASCII")
        if not isinstance(token, str):
            return self._fail(FailureReason.MALFORMED, f"unexpected token type {type(token).__name__}")

        encoded, sep, mac_text = token.rpartition(self._separator)
        if not sep:
            return self._fail(FailureReason.MALFORMED, "separator not found")

        try:
            payload = self._codec.decode(encoded)
            given = b64url_decode(mac_text)
        except InvalidInputError as exc:
            return self._fail(FailureReason.MALFORMED, str(exc))
        if len(given) != self._mac.digest_size:
            return self._fail(FailureReason.MALFORMED, "mac has the wrong length")

        # Re-encoding must reproduce the token, otherwise the payload part was
        # something the codec would never emit.
        try:
            if self._codec.encode(payload, self._separator) != encoded:
                return self._fail(FailureReason.MALFORMED, "payload is not canonically encoded")
        except InvalidInputError as exc:
            return self._fail(FailureReason.MALFORMED, str(exc))

        matched = False
        for secret in self._ring:
            expected = self._mac.compute(secret.reveal(), payload)
            if constant_time_equals(expected, given):
                matched = True
        if not matched:
            return self._fail(FailureReason.BAD_SIGNATURE)
        return payload

    def verify_text(self, token: Any) -> Union[str, VerificationFailure]:
        result = self.verify(token)
        if isinstance(result, VerificationFailure):
            return result
        try:
            return result.decode("utf-8")
        except UnicodeDecodeError:
            return self._fail(FailureReason.MALFORMED, "payload is not valid UTF-8")

    def _fail(self, reason: FailureReason, detail: str = "") -> VerificationFailure:
        logger.debug("Token rejected: %s %s", reason.value, detail)
        return VerificationFailure(reason=reason, detail=detail)


def is_failure(result: Any) -> TypeGuard[VerificationFailure]:
    return isinstance(result, VerificationFailure)


# -------- Convenience top-level helpers --------
def sign(payload: Payload, secret: SecretInput, **options: Any) -> str:
    return Signer(secret, **options).sign(payload)


def verify(token: Any, secret: SecretInput, **options: Any) -> VerifyResult:
    return Signer(secret, **options).verify(token)


def verify_text(token: Any, secret: SecretInput, **options: Any) -> Union[str, VerificationFailure]:
    return Signer(secret, **options).verify_text(token)


__all__ = [
    "DEFAULT_SEPARATOR",
    "SignedValue",
    "Signer",
    "is_failure",
    "sign",
    "verify",
    "verify_text",
]
