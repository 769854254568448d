"""
Tamper-evident tokens for opaque values.

Modules:
- signer: Signer (sign / verify), SignedValue and top-level helpers
- mac: MacFunction capability and the HMAC implementation
- codec: payload encodings (base64url, plain)
- secrets: Secret and SecretRing (key rotation)
- config: SignerSettings loaded from the environment or SSM
"""

from .codec import Base64UrlCodec, PayloadCodec, PlainCodec
from .errors import FailureReason, InvalidInputError, VerificationFailure
from .mac import HmacMac, MacFunction, mac_from_name
from .secrets import Secret, SecretRing
from .signer import SignedValue, Signer, is_failure, sign, verify, verify_text

__all__ = [
    "Base64UrlCodec",
    "FailureReason",
    "HmacMac",
    "InvalidInputError",
    "MacFunction",
    "PayloadCodec",
    "PlainCodec",
    "Secret",
    "SecretRing",
    "SignedValue",
    "Signer",
    "VerificationFailure",
    "is_failure",
    "mac_from_name",
    "sign",
    "verify",
    "verify_text",
]
