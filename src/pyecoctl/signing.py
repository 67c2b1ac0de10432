"""Request signing for the EcoFlow Open API.

Every call carries four headers: ``accessKey``, ``nonce``, ``timestamp`` and
``sign``. The signature is the hex HMAC-SHA256 (keyed with the secret key) of
the request parameters flattened to ``key=value`` pairs, followed by the
``accessKey``, ``nonce`` and ``timestamp`` pairs:

    params.cfgEnergyBackup.energyBackupEn=true&...&sn=XX&accessKey=AK&nonce=123456&timestamp=1700000000000

Nested mappings flatten to dotted keys, list items to ``key[i]``. Flattened
parameters are sorted by key before joining; the credential pairs are always
appended last in fixed order.
"""

from __future__ import annotations

import hashlib
import hmac
import random
import time
from collections.abc import Mapping
from typing import Any


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_params(params: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested request parameters to signature key/value pairs.

    Args:
        params: Query parameters or JSON body
        prefix: Key prefix for nested values (used by recursion)

    Returns:
        Flat mapping of dotted keys to string values

    Example:
        >>> flatten_params({"sn": "X", "params": {"a": True, "b": [1, 2]}})
        {'sn': 'X', 'params.a': 'true', 'params.b[0]': '1', 'params.b[1]': '2'}
    """
    flat: dict[str, str] = {}
    for key, value in params.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        _flatten_value(full_key, value, flat)
    return flat


def _flatten_value(key: str, value: Any, flat: dict[str, str]) -> None:
    if isinstance(value, Mapping):
        flat.update(flatten_params(value, key))
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten_value(f"{key}[{index}]", item, flat)
    elif value is not None:
        flat[key] = _format_value(value)


def build_sign_string(
    params: Mapping[str, Any] | None,
    access_key: str,
    nonce: str,
    timestamp: str,
) -> str:
    """Build the string that is HMAC-signed for a request."""
    flat = flatten_params(params or {})
    query = "&".join(f"{key}={flat[key]}" for key in sorted(flat))
    auth = f"accessKey={access_key}&nonce={nonce}&timestamp={timestamp}"
    return f"{query}&{auth}" if query else auth


def sign(secret_key: str, message: str) -> str:
    """Return the hex HMAC-SHA256 of ``message`` keyed with ``secret_key``."""
    return hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def generate_nonce() -> str:
    """Return a random six digit nonce."""
    return str(random.randint(100000, 999999))


def current_timestamp() -> str:
    """Return the current time in milliseconds since the epoch."""
    return str(int(time.time() * 1000))


def signed_headers(
    access_key: str,
    secret_key: str,
    params: Mapping[str, Any] | None = None,
    *,
    nonce: str | None = None,
    timestamp: str | None = None,
) -> dict[str, str]:
    """Build the authentication headers for one request.

    Args:
        access_key: Developer access key
        secret_key: Developer secret key
        params: Query parameters or JSON body included in the signature
        nonce: Fixed nonce (generated when omitted)
        timestamp: Fixed timestamp in ms (current time when omitted)

    Returns:
        Headers to merge into the request
    """
    nonce = nonce or generate_nonce()
    timestamp = timestamp or current_timestamp()
    message = build_sign_string(params, access_key, nonce, timestamp)
    return {
        "accessKey": access_key,
        "nonce": nonce,
        "timestamp": timestamp,
        "sign": sign(secret_key, message),
    }


__all__ = [
    "build_sign_string",
    "current_timestamp",
    "flatten_params",
    "generate_nonce",
    "sign",
    "signed_headers",
]
