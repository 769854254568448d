from __future__ import annotations

import json
import os
from typing import Any, List, Mapping, Optional

import boto3
from botocore.exceptions import ClientError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .codec import codec_from_name
from .errors import InvalidInputError
from .mac import mac_from_name
from .secrets import Secret, SecretRing
from .signer import DEFAULT_SEPARATOR, Signer


# Environment variable names
ENV_SECRET = "COOKIE_SECRET"
ENV_SECRET_PARAM = "COOKIE_SECRET_PARAM"
ENV_MAC_ALGORITHM = "COOKIE_MAC_ALGORITHM"
ENV_PAYLOAD_ENCODING = "COOKIE_PAYLOAD_ENCODING"
ENV_SEPARATOR = "COOKIE_SEPARATOR"


def _getenv(environ: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    val = environ.get(name)
    return val if val not in (None, "") else default


def parse_secret_list(raw: Optional[str]) -> List[str]:
    """Parse one or more secrets from a JSON array or a comma-separated string.

    A value that is neither a JSON array nor contains a comma is a single
    secret, kept verbatim (spaces included).
    """
    if not raw:
        return []
    stripped = raw.strip()
    if stripped.startswith("["):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"{ENV_SECRET} looks like JSON but does not parse: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise InvalidInputError(f"{ENV_SECRET} JSON must be an array of strings")
        return [item for item in data if item]
    if "," in raw:
        return [tok.strip() for tok in raw.split(",") if tok.strip()]
    return [raw]


def load_ssm_secret(name: str, *, ssm: Optional[Any] = None) -> Optional[str]:
    """Read a SecureString parameter. Returns None if it does not exist."""
    client = ssm or boto3.client("ssm")
    try:
        resp = client.get_parameter(Name=name, WithDecryption=True)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        if code == "ParameterNotFound":
            return None
        raise
    val = resp.get("Parameter", {}).get("Value")
    return val if isinstance(val, str) and val != "" else None


class SignerSettings(BaseModel):
    """
    Validated signer configuration.

    Secrets are held as `Secret` objects so the model's repr never shows them.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    secrets: List[Secret] = Field(..., min_length=1, description="Signing secrets; the first one signs")
    mac_algorithm: str = Field(default="sha256")
    payload_encoding: str = Field(default="base64url")
    separator: str = Field(default=DEFAULT_SEPARATOR, min_length=1, max_length=1)

    @field_validator("secrets", mode="before")
    @classmethod
    def _coerce_secrets(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [Secret(v) for v in value]
        return value

    @field_validator("mac_algorithm")
    @classmethod
    def _check_mac(cls, value: str) -> str:
        return mac_from_name(value).name

    @field_validator("payload_encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        return codec_from_name(value).name

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        ssm: Optional[Any] = None,
    ) -> "SignerSettings":
        env = os.environ if environ is None else environ

        raw_secret = _getenv(env, ENV_SECRET)
        param_name = _getenv(env, ENV_SECRET_PARAM)
        if raw_secret is None and param_name:
            raw_secret = load_ssm_secret(param_name, ssm=ssm)
            if raw_secret is None:
                raise RuntimeError(f"SSM parameter {param_name} named by {ENV_SECRET_PARAM} is missing or empty")
        secrets = parse_secret_list(raw_secret)
        if not secrets:
            raise RuntimeError(
                f"Missing required configuration: set {ENV_SECRET} or {ENV_SECRET_PARAM}"
            )

        return cls(
            secrets=secrets,
            mac_algorithm=_getenv(env, ENV_MAC_ALGORITHM, "sha256"),
            payload_encoding=_getenv(env, ENV_PAYLOAD_ENCODING, "base64url"),
            separator=_getenv(env, ENV_SEPARATOR, DEFAULT_SEPARATOR),
        )

    def build_signer(self) -> Signer:
        return Signer(
            SecretRing(self.secrets),
            mac=mac_from_name(self.mac_algorithm),
            codec=codec_from_name(self.payload_encoding),
            separator=self.separator,
        )


__all__ = [
    "ENV_SECRET",
    "ENV_SECRET_PARAM",
    "ENV_MAC_ALGORITHM",
    "ENV_PAYLOAD_ENCODING",
    "ENV_SEPARATOR",
    "SignerSettings",
    "load_ssm_secret",
    "parse_secret_list",
]
