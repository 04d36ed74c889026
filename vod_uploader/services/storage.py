"""
Storage Service - Single Responsibility: move file bytes to object storage.

Wraps an httpx client signed for COS. A session must be shut down after use;
``async with`` does that on every exit path.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import AsyncGenerator, Optional

import httpx

from ..models import ApplyResult, SigningContext, TransferDescriptor
from .signing import CosAuth

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
TRANSFER_TIMEOUT = httpx.Timeout(60.0, write=300.0)


async def _iter_file(path: Path, chunk_size: int = CHUNK_SIZE) -> AsyncGenerator[bytes, None]:
    """Yield file chunks, reading in a worker thread."""
    with open(path, "rb") as fh:
        while True:
            chunk = await asyncio.to_thread(fh.read, chunk_size)
            if not chunk:
                break
            yield chunk


class CosTransferSession:
    """
    Transfer session for COS-compatible object storage.

    Implements ITransferSession protocol.

    Usage:
        async with CosTransferSession("ap-guangzhou", sid, skey, 86400) as session:
            await session.upload_object(descriptor)
    """

    def __init__(
        self,
        region: str,
        secret_id: str,
        secret_key: str,
        expires_in: int,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        chunk_size: int = CHUNK_SIZE,
        scheme: str = "https",
    ):
        self._region = region
        self._auth = CosAuth(secret_id, secret_key, expires_in, token=token)
        self._transport = transport
        self._chunk_size = chunk_size
        self._scheme = scheme
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_apply(
        cls,
        apply_result: ApplyResult,
        signing: SigningContext,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "CosTransferSession":
        """
        Build a session for the destinations granted by apply.

        Temporary credentials from the apply response take precedence over
        the account credentials.
        """
        region = apply_result.storage_region_v5 or apply_result.storage_region
        if not region:
            raise ValueError("apply result has no storage region")

        cert = apply_result.temp_certificate
        if cert:
            return cls(region, cert.secret_id, cert.secret_key, signing.expiry, token=cert.token, transport=transport)
        return cls(region, signing.secret_id, signing.secret_key, signing.expiry, transport=transport)

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def object_url(self, bucket: str, destination_path: str) -> str:
        path = destination_path if destination_path.startswith("/") else f"/{destination_path}"
        return f"{self._scheme}://{bucket}.cos.{self._region}.myqcloud.com{path}"

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            auth=self._auth,
            timeout=TRANSFER_TIMEOUT,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        await self.shutdown()

    async def shutdown(self) -> None:
        """Close the underlying client. Safe to call more than once."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("Transfer session closed")

    async def upload_object(self, descriptor: TransferDescriptor) -> None:
        """
        PUT one local file to ``bucket`` at ``destination_path``.

        Raises:
            httpx.HTTPError: on transport failure or non-2xx status
        """
        if not self._client:
            raise RuntimeError("CosTransferSession not open. Use 'async with' context.")

        local_path = Path(descriptor.local_path)
        size = local_path.stat().st_size
        url = self.object_url(descriptor.bucket, descriptor.destination_path)

        logger.debug("PUT %s (%d bytes) -> %s", local_path.name, size, url)
        chunks = _iter_file(local_path, self._chunk_size)
        try:
            response = await self._client.put(
                url,
                content=chunks,
                headers={"Content-Length": str(size)},
            )
        finally:
            # Closes the file handle when the PUT stops mid-stream.
            await chunks.aclose()
        response.raise_for_status()
