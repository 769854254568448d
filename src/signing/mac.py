from __future__ import annotations

from typing import Dict, Protocol, Type, runtime_checkable

from cryptography.hazmat.primitives import constant_time, hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from .errors import InvalidInputError


@runtime_checkable
class MacFunction(Protocol):
    """Message authentication capability used by `Signer`."""

    name: str
    digest_size: int

    def compute(self, key: bytes, data: bytes) -> bytes: ...


_ALGORITHMS: Dict[str, Type[hashes.HashAlgorithm]] = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


class HmacMac:
    """HMAC over one of the SHA-2 hashes, backed by `cryptography`."""

    def __init__(self, algorithm: str = "sha256") -> None:
        if not isinstance(algorithm, str):
            raise InvalidInputError(f"mac algorithm must be a string, got {type(algorithm).__name__}")
        algo_cls = _ALGORITHMS.get(algorithm.lower())
        if algo_cls is None:
            raise InvalidInputError(
                f"unsupported mac algorithm: {algorithm!r} (expected one of {', '.join(sorted(_ALGORITHMS))})"
            )
        self._algorithm = algo_cls
        self.name = f"hmac-{algorithm.lower()}"
        self.digest_size = algo_cls.digest_size

    def compute(self, key: bytes, data: bytes) -> bytes:
        h = crypto_hmac.HMAC(key, self._algorithm())
        h.update(data)
        return h.finalize()

    def __repr__(self) -> str:
        return f"HmacMac({self.name!r})"


def mac_from_name(name: str) -> HmacMac:
    """Resolve `sha256`, `hmac-sha256` and friends to a `HmacMac`."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError("mac algorithm name must be a non-empty string")
    norm = name.strip().lower()
    if norm.startswith("hmac-"):
        norm = norm[len("hmac-"):]
    return HmacMac(norm)


def constant_time_equals(a: bytes, b: bytes) -> bool:
    return constant_time.bytes_eq(a, b)


__all__ = ["MacFunction", "HmacMac", "mac_from_name", "constant_time_equals"]
