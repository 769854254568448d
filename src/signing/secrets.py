from __future__ import annotations

from typing import Iterable, Iterator, Tuple, Union

from .errors import InvalidInputError


class Secret:
    """
    An opaque signing key.

    The bytes are only reachable through `reveal()`; `repr`/`str` are masked so
    a secret that ends up in a log line or traceback does not leak.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, bytes, "Secret"]) -> None:
        if isinstance(value, Secret):
            raw = value.reveal()
        elif isinstance(value, str):
            raw = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        else:
            raise InvalidInputError(f"secret must be str or bytes, got {type(value).__name__}")
        if not raw:
            raise InvalidInputError("secret must not be empty")
        self._value = raw

    def reveal(self) -> bytes:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return "Secret('**********')"

    __str__ = __repr__


SecretLike = Union[str, bytes, Secret]


class SecretRing:
    """
    Ordered, non-empty set of secrets.

    The first entry signs new tokens; all entries are accepted on verify, which
    lets an old secret be retired without invalidating tokens already issued.
    """

    __slots__ = ("_secrets",)

    def __init__(self, secrets: Iterable[SecretLike]) -> None:
        if isinstance(secrets, (str, bytes, bytearray, Secret)):
            secrets = [secrets]
        items: Tuple[Secret, ...] = tuple(Secret(s) for s in secrets)
        if not items:
            raise InvalidInputError("at least one secret is required")
        self._secrets = items

    @property
    def primary(self) -> Secret:
        return self._secrets[0]

    def __iter__(self) -> Iterator[Secret]:
        return iter(self._secrets)

    def __len__(self) -> int:
        return len(self._secrets)

    def __repr__(self) -> str:
        return f"SecretRing(<{len(self._secrets)} secret(s)>)"


SecretInput = Union[SecretLike, SecretRing, Iterable[SecretLike]]


def as_ring(secret: SecretInput) -> SecretRing:
    if isinstance(secret, SecretRing):
        return secret
    if secret is None:
        raise InvalidInputError("secret is required")
    return SecretRing(secret)  # type: ignore[arg-type]


__all__ = ["Secret", "SecretRing", "SecretLike", "SecretInput", "as_ring"]
