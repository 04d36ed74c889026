"""HTTP adapter for the VOD control-plane API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..models import SigningContext, VodConfig
from .signing import sign_params

logger = logging.getLogger(__name__)

ACTION_APPLY_UPLOAD = "ApplyUpload"
ACTION_COMMIT_UPLOAD = "CommitUpload"


class VodAPIClient:
    """
    HTTP client adapter for control-plane calls.

    Implements IControlPlaneClient protocol. One call is one request; attempt
    budgets belong to the apply/commit use cases.
    """

    def __init__(
        self,
        config: VodConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        scheme: str = "https",
    ):
        self._config = config
        self._transport = transport
        self._base_url = f"{scheme}://{config.api_host}"
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._config.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def call(self, signing: SigningContext, action: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sign and send one action.

        Returns:
            Decoded JSON body

        Raises:
            httpx.HTTPError: transport failure or 4xx/5xx status
            ValueError: body is not a JSON object
        """
        if not self._client:
            raise RuntimeError("VodAPIClient not initialized. Use 'async with' context.")

        payload = sign_params(
            signing,
            self._config.api_host,
            self._config.api_path,
            {"Action": action, "Region": self._config.region, **params},
        )
        method = signing.method.upper()
        logger.debug("Control-plane request: action=%s method=%s", action, method)

        if method == "GET":
            response = await self._client.get(self._config.api_path, params=payload)
        else:
            response = await self._client.request(method, self._config.api_path, data=payload)
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected {action} response: {response.text}")
        return body

    async def apply_upload(self, signing: SigningContext, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.call(signing, ACTION_APPLY_UPLOAD, params)

    async def commit_upload(self, signing: SigningContext, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.call(signing, ACTION_COMMIT_UPLOAD, params)
