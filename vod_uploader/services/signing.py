"""
Request signing for the control-plane API and object storage.

Control plane: HMAC over ``METHOD + host + path + "?" + sorted params``
(Tencent Cloud API v2 style). Object storage: COS ``q-sign-algorithm=sha1``
Authorization header, wired into httpx as an ``httpx.Auth``.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import random
import time
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from ..models import SigningContext

SIGNATURE_METHOD = "HmacSHA256"

_DIGESTS = {
    "HmacSHA1": hashlib.sha1,
    "HmacSHA256": hashlib.sha256,
}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_source_string(method: str, host: str, path: str, params: Mapping[str, Any]) -> str:
    # Keys containing "_" are signed with "." in their place.
    query = "&".join(
        f"{key.replace('_', '.')}={_stringify(params[key])}" for key in sorted(params)
    )
    return f"{method.upper()}{host}{path}?{query}"


def sign_params(
    signing: SigningContext,
    host: str,
    path: str,
    params: Mapping[str, Any],
    timestamp: Optional[int] = None,
    nonce: Optional[int] = None,
    signature_method: str = SIGNATURE_METHOD,
) -> Dict[str, Any]:
    """
    Return ``params`` extended with the common fields and ``Signature``.

    Args:
        signing: Credentials and request method
        host: API host (no scheme)
        path: API path
        params: Action parameters (``Action``, ``Region`` and the action's own)
        timestamp: Unix time override, for tests
        nonce: Nonce override, for tests
        signature_method: HmacSHA1 or HmacSHA256

    Returns:
        New dict ready to be sent as query string or form body
    """
    if signature_method not in _DIGESTS:
        raise ValueError(f"Unsupported signature method: {signature_method}")

    signed: Dict[str, Any] = {k: v for k, v in params.items() if v is not None}
    signed["SecretId"] = signing.secret_id
    signed["Timestamp"] = int(time.time()) if timestamp is None else timestamp
    signed["Nonce"] = random.randint(1, 2**31 - 1) if nonce is None else nonce
    signed["SignatureMethod"] = signature_method

    source = build_source_string(signing.method, host, path, signed)
    digest = hmac.new(
        signing.secret_key.encode("utf-8"),
        source.encode("utf-8"),
        _DIGESTS[signature_method],
    ).digest()
    signed["Signature"] = base64.b64encode(digest).decode("ascii")
    return signed


def _hmac_sha1_hex(key: str, message: str) -> str:
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha1).hexdigest()


def _canonical(pairs: Mapping[str, str]) -> tuple[str, str]:
    lowered = {quote(k.lower(), safe=""): quote(str(v), safe="") for k, v in pairs.items()}
    keys = sorted(lowered)
    return ";".join(keys), "&".join(f"{k}={lowered[k]}" for k in keys)


def cos_authorization(
    secret_id: str,
    secret_key: str,
    method: str,
    path: str,
    headers: Mapping[str, str],
    params: Optional[Mapping[str, str]] = None,
    start: Optional[int] = None,
    expires_in: int = 3600,
) -> str:
    """Build a COS Authorization header value valid for ``expires_in`` seconds."""
    start = int(time.time()) if start is None else start
    key_time = f"{start};{start + expires_in}"
    sign_key = _hmac_sha1_hex(secret_key, key_time)

    header_list, http_headers = _canonical(headers)
    param_list, http_params = _canonical(params or {})
    http_string = f"{method.lower()}\n{path}\n{http_params}\n{http_headers}\n"
    string_to_sign = (
        f"sha1\n{key_time}\n{hashlib.sha1(http_string.encode('utf-8')).hexdigest()}\n"
    )
    signature = _hmac_sha1_hex(sign_key, string_to_sign)

    return (
        f"q-sign-algorithm=sha1&q-ak={secret_id}"
        f"&q-sign-time={key_time}&q-key-time={key_time}"
        f"&q-header-list={header_list}&q-url-param-list={param_list}"
        f"&q-signature={signature}"
    )


class CosAuth(httpx.Auth):
    """httpx auth flow that signs each request for COS."""

    def __init__(
        self,
        secret_id: str,
        secret_key: str,
        expires_in: int,
        token: Optional[str] = None,
    ):
        self._secret_id = secret_id
        self._secret_key = secret_key
        self._expires_in = expires_in
        self._token = token

    def auth_flow(self, request: httpx.Request):
        if self._token:
            request.headers["x-cos-security-token"] = self._token
        signed_headers = {"host": request.url.netloc.decode("ascii")}
        params = dict(request.url.params)
        request.headers["Authorization"] = cos_authorization(
            self._secret_id,
            self._secret_key,
            request.method,
            request.url.path,
            signed_headers,
            params,
            expires_in=self._expires_in,
        )
        yield request
