"""
vod_uploader - apply, transfer and commit a video upload to cloud VOD.

The upload is a three-phase protocol:
- apply: ask the control plane for storage destinations and credentials
- transfer: PUT the video (then the cover) to object storage
- commit: confirm the upload so the control plane publishes it

Usage:
    from vod_uploader import VodUploader, VodConfig

    config = VodConfig(secret_id, secret_key)
    async with VodUploader(config) as vod:
        # Video only
        result = await vod.upload(video_path)

        # Video + cover + task flow
        result = await vod.upload(video_path, cover_path, procedure="QCVB_SimpleProcessFile")

    print(result.file_id, result.video_url)
"""
from .exceptions import HandleError, ParameterError, VodError
from .models import (
    ApplyResult,
    CommitResult,
    SigningContext,
    TransferDescriptor,
    UploadPhase,
    UploadRequest,
    VodConfig,
)
from .orchestrator import VodUploader
from .services import CosTransferSession, VodAPIClient

__version__ = "0.1.0"
__all__ = [
    # Main
    "VodUploader",
    # Models
    "VodConfig",
    "SigningContext",
    "UploadRequest",
    "ApplyResult",
    "CommitResult",
    "TransferDescriptor",
    "UploadPhase",
    # Errors
    "VodError",
    "ParameterError",
    "HandleError",
    # Services
    "VodAPIClient",
    "CosTransferSession",
]
