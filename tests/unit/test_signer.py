from __future__ import annotations

import hashlib

import pytest

from signing import (
    FailureReason,
    InvalidInputError,
    PlainCodec,
    Secret,
    SecretRing,
    Signer,
    VerificationFailure,
    is_failure,
    sign,
    verify,
    verify_text,
)
from signing.mac import HmacMac, MacFunction


PAYLOADS = ["key=val", "", "héllo wörld", "a.b.c", b"\x00\xff\x10binary", "x" * 500]


@pytest.mark.parametrize("payload", PAYLOADS)
def test_roundtrip_returns_payload(payload):
    token = sign(payload, "super secret")
    expected = payload.encode("utf-8") if isinstance(payload, str) else payload
    assert verify(token, "super secret") == expected


def test_key_val_scenario():
    token = sign("key=val", "super secret")

    assert verify_text(token, "super secret") == "key=val"
    assert Signer("super secret").verify_text(token) == "key=val"

    result = verify_text(token, "wrong")
    assert isinstance(result, VerificationFailure)
    assert result.reason is FailureReason.BAD_SIGNATURE


@pytest.mark.parametrize("payload", PAYLOADS)
def test_different_secret_fails(payload):
    token = sign(payload, b"secret-one")
    result = verify(token, b"secret-two")
    assert is_failure(result)
    assert result.reason is FailureReason.BAD_SIGNATURE


def test_sign_is_deterministic():
    signer = Signer("super secret")
    assert signer.sign("key=val") == signer.sign("key=val")
    assert sign("key=val", "super secret") == Signer(Secret("super secret")).sign(b"key=val")


def test_token_alphabet_is_header_safe():
    token = Signer("super secret").sign(b"\xff\xfe arbitrary; bytes=\r\n")
    allowed = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.")
    assert set(token) <= allowed
    assert token.count(".") == 1


@pytest.mark.parametrize("payload", ["key=val", "", "a.b.c"])
def test_any_single_character_mutation_fails(payload):
    signer = Signer("super secret")
    token = signer.sign(payload)
    for i, ch in enumerate(token):
        for replacement in {chr(ord(ch) ^ 1), "A" if ch != "A" else "B", "."}:
            if replacement == ch:
                continue
            mutated = token[:i] + replacement + token[i + 1:]
            assert is_failure(signer.verify(mutated)), f"mutation at {i} -> {replacement!r} verified"


def test_plain_codec_mutations_fail():
    signer = Signer("super secret", codec=PlainCodec())
    token = signer.sign("key=val")
    for i, ch in enumerate(token):
        mutated = token[:i] + chr(ord(ch) ^ 1) + token[i + 1:]
        assert is_failure(signer.verify(mutated))


def test_missing_and_malformed_tokens():
    signer = Signer("super secret")
    assert signer.verify(None).reason is FailureReason.MISSING
    assert signer.verify("").reason is FailureReason.MISSING
    assert signer.verify(12345).reason is FailureReason.MALFORMED
    assert signer.verify("no-separator-here").reason is FailureReason.MALFORMED
    assert signer.verify("a=b.c").reason is FailureReason.MALFORMED

    token = signer.sign("key=val")
    assert signer.verify(token[:-4]).reason is FailureReason.MALFORMED
    assert signer.verify(token + "AAAA").reason is FailureReason.MALFORMED


def test_verify_accepts_ascii_bytes_token():
    signer = Signer("super secret")
    token = signer.sign("key=val")
    assert signer.verify(token.encode("ascii")) == b"key=val"
    assert signer.verify(b"\xff\xfe").reason is FailureReason.MALFORMED


def test_verify_text_rejects_non_utf8_payload():
    signer = Signer("super secret")
    token = signer.sign(b"\xff\xfe")
    assert signer.verify(token) == b"\xff\xfe"
    result = signer.verify_text(token)
    assert is_failure(result)
    assert result.reason is FailureReason.MALFORMED


def test_failure_is_falsy_and_not_raised():
    result = Signer("super secret").verify("garbage")
    assert not result
    assert "malformed" in str(result)


def test_sign_rejects_non_bytes_payload():
    with pytest.raises(InvalidInputError):
        Signer("super secret").sign(42)  # type: ignore[arg-type]
    with pytest.raises(InvalidInputError):
        Signer("super secret").sign(None)  # type: ignore[arg-type]


def test_plain_codec_rejects_unescaped_separator():
    signer = Signer("super secret", codec=PlainCodec())
    assert signer.sign("key=val").startswith("key=val.")
    assert signer.verify_text(signer.sign("key=val")) == "key=val"

    with pytest.raises(InvalidInputError):
        signer.sign("has.separator")
    with pytest.raises(InvalidInputError):
        signer.sign(b"\xff")


def test_plain_codec_with_other_separator_allows_dots():
    signer = Signer("super secret", codec=PlainCodec(), separator="~")
    token = signer.sign("v1.2.3")
    assert token.startswith("v1.2.3~")
    assert signer.verify_text(token) == "v1.2.3"


@pytest.mark.parametrize("separator", ["", "..", "-", "_", "a", "7", " ", "\n", "é"])
def test_invalid_separator_rejected(separator):
    with pytest.raises(InvalidInputError):
        Signer("super secret", separator=separator)


def test_custom_separator_roundtrip():
    signer = Signer("super secret", separator=":")
    token = signer.sign("key=val")
    assert ":" in token and "." not in token
    assert signer.verify_text(token) == "key=val"
    assert is_failure(Signer("super secret").verify(token))


def test_empty_secret_rejected():
    with pytest.raises(InvalidInputError):
        Signer("")
    with pytest.raises(InvalidInputError):
        Signer([])


def test_secret_rotation():
    old = Signer("old secret")
    legacy_token = old.sign("key=val")

    rotated = Signer(["new secret", "old secret"])
    assert rotated.verify_text(legacy_token) == "key=val"

    fresh = rotated.sign("key=val")
    assert fresh != legacy_token
    assert Signer("new secret").verify_text(fresh) == "key=val"
    assert is_failure(old.verify(fresh))


def test_sign_value_exposes_pair():
    signer = Signer("super secret")
    signed = signer.sign_value("key=val")
    assert signed.payload == b"key=val"
    assert len(signed.signature) == 32
    assert signed.to_token() == signer.sign("key=val")


def test_mac_algorithm_is_substitutable():
    class Blake2Mac:
        name = "blake2b-16"
        digest_size = 16

        def compute(self, key: bytes, data: bytes) -> bytes:
            return hashlib.blake2b(data, key=key[:64], digest_size=16).digest()

    mac = Blake2Mac()
    assert isinstance(mac, MacFunction)

    signer = Signer("super secret", mac=mac)
    token = signer.sign("key=val")
    assert signer.verify_text(token) == "key=val"
    # A different primitive produces a different mac length, so the default signer rejects it
    assert Signer("super secret").verify(token).reason is FailureReason.MALFORMED


def test_sha512_signer_roundtrip():
    signer = Signer("super secret", mac=HmacMac("sha512"))
    token = signer.sign("key=val")
    assert len(token.rsplit(".", 1)[1]) == 86
    assert signer.verify_text(token) == "key=val"


def test_repr_does_not_leak_secret():
    signer = Signer(SecretRing(["super secret"]))
    assert "super secret" not in repr(signer)
    assert "hmac-sha256" in repr(signer)


@pytest.mark.parametrize(
    "payload",
    ["a\r\nSet-Cookie: evil=1", "tab\there", "nul\x00", "café", "semi;colon", "com,ma", 'quo"te', "del\x7f"],
)
def test_plain_codec_rejects_header_unsafe_payloads(payload):
    with pytest.raises(InvalidInputError):
        Signer("super secret", codec=PlainCodec()).sign(payload)


def test_plain_codec_token_stays_printable_ascii():
    signer = Signer("super secret", codec=PlainCodec(), separator="~")
    token = signer.sign("user=42 role=admin")
    assert all(" " <= ch <= "~" for ch in token)
    assert signer.verify_text(token) == "user=42 role=admin"


def test_plain_codec_verify_rejects_unsafe_token_payload():
    signer = Signer("super secret", codec=PlainCodec())
    token = signer.sign("key=val")
    mac = token.rsplit(".", 1)[1]
    result = signer.verify("key\r\nval." + mac)
    assert is_failure(result)
    assert result.reason is FailureReason.MALFORMED
