"""Transfer phase: hand each asset to the object-storage session."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..models import ApplyResult, TransferDescriptor, UploadRequest
from ..protocols import ITransferSession

logger = logging.getLogger(__name__)


def build_transfer_descriptors(apply_result: ApplyResult, request: UploadRequest) -> List[TransferDescriptor]:
    """Video first; cover only when the request has one."""
    bucket = apply_result.bucket_name
    descriptors = [
        TransferDescriptor(
            bucket=bucket,
            destination_path=apply_result.video.storage_path,
            local_path=Path(request.video_path),
        )
    ]
    if request.has_cover:
        descriptors.append(
            TransferDescriptor(
                bucket=bucket,
                destination_path=apply_result.cover.storage_path,
                local_path=Path(request.cover_path),
            )
        )
    return descriptors


class TransferAssetsUseCase:
    """Upload video then cover through an open session. No retry."""

    async def execute(
        self,
        session: ITransferSession,
        apply_result: ApplyResult,
        request: UploadRequest,
    ) -> List[TransferDescriptor]:
        descriptors = build_transfer_descriptors(apply_result, request)
        for kind, descriptor in zip(("video", "cover"), descriptors):
            await session.upload_object(descriptor)
            logger.info("%s upload cos success: %s", kind, descriptor.destination_path)
        return descriptors
