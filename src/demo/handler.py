from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from cookies import CookieOptions, CookieParser, CookieWriter
from signing import Signer, VerificationFailure
from signing.config import ENV_SECRET, ENV_SECRET_PARAM, SignerSettings


ENV_LOG_LEVEL = "LOG_LEVEL"

# Cookie issued on every signed request
DEMO_COOKIE_NAME = "key"
DEMO_COOKIE_VALUE = "val"

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level = (os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _cookie_header(event: Mapping[str, Any]) -> Optional[str]:
    headers = event.get("headers") or {}
    if not isinstance(headers, Mapping):
        return None
    for name, value in headers.items():
        if isinstance(name, str) and name.lower() == "cookie" and isinstance(value, str):
            return value
    # HTTP API (payload v2) sends cookies as a list
    cookies = event.get("cookies")
    if isinstance(cookies, list):
        return "; ".join(c for c in cookies if isinstance(c, str))
    return None


def _render_signed(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: (False if isinstance(v, VerificationFailure) else v) for k, v in values.items()}


def handle(event: Mapping[str, Any], signer: Optional[Signer] = None) -> Dict[str, Any]:
    """Echo the request's cookies, issuing the signed demo cookie when a signer is available."""
    parsed = CookieParser(signer).parse(_cookie_header(event))

    set_cookies: List[str] = []
    body: Dict[str, Any] = {"cookies": parsed.cookies}
    if signer is not None:
        writer = CookieWriter(signer)
        set_cookies.append(
            writer.set_cookie(DEMO_COOKIE_NAME, DEMO_COOKIE_VALUE, CookieOptions(signed=True))
        )
        body["signedCookies"] = _render_signed(parsed.signed_cookies)

    rejected = [k for k, v in parsed.signed_cookies.items() if isinstance(v, VerificationFailure)]
    logger.info(
        "cookies=%d signed=%d rejected=%d",
        len(parsed.cookies),
        len(parsed.signed_cookies) - len(rejected),
        len(rejected),
    )

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "multiValueHeaders": {"Set-Cookie": set_cookies},
        "body": json.dumps(body, sort_keys=True),
    }


def _signer_from_env() -> Optional[Signer]:
    if not (os.environ.get(ENV_SECRET) or os.environ.get(ENV_SECRET_PARAM)):
        logger.warning("No %s configured; serving unsigned cookies only", ENV_SECRET)
        return None
    return SignerSettings.from_env().build_signer()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    _configure_logging()
    return handle(event, _signer_from_env())
