"""Apply phase: request storage destinations from the control plane."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..exceptions import HandleError
from ..models import ApplyResult, SigningContext, UploadPhase, UploadRequest
from ..protocols import IControlPlaneClient
from .retry import run_with_attempts

logger = logging.getLogger(__name__)


def _file_type(path: Path) -> str:
    return Path(path).suffix.lstrip(".").lower()


def build_apply_params(request: UploadRequest) -> Dict[str, Any]:
    """ApplyUpload parameters for a validated request."""
    video_path = Path(request.video_path)
    params: Dict[str, Any] = {
        "videoType": _file_type(video_path),
        "videoName": video_path.stem,
        "videoSize": video_path.stat().st_size,
    }
    if request.cover_path is not None:
        params["coverType"] = _file_type(request.cover_path)
    if request.procedure:
        params["procedure"] = request.procedure
    return params


class ApplyUploadUseCase:
    """Call ApplyUpload with a bounded attempt budget."""

    def __init__(self, retry_delay: float = 0.5):
        self._retry_delay = retry_delay

    async def execute(
        self,
        api: IControlPlaneClient,
        signing: SigningContext,
        request: UploadRequest,
        max_attempts: int = 3,
    ) -> ApplyResult:
        params = build_apply_params(request)

        outcome = await run_with_attempts(
            "apply upload",
            lambda: api.apply_upload(signing, params),
            ApplyResult.from_dict,
            max_attempts,
            self._retry_delay,
        )

        if outcome.result is None or not outcome.result.success:
            logger.error("apply upload fail, result=%s", outcome.detail)
            raise HandleError("apply upload fail", outcome.detail, UploadPhase.APPLYING)

        result = outcome.result
        if not result.bucket_name or result.video is None:
            logger.error("apply upload returned no video destination, result=%s", result.to_json())
            raise HandleError("apply upload returned no video destination", result.to_json(), UploadPhase.APPLYING)
        if request.has_cover and result.cover is None:
            logger.error("apply upload returned no cover destination, result=%s", result.to_json())
            raise HandleError("apply upload returned no cover destination", result.to_json(), UploadPhase.APPLYING)

        logger.info("apply upload success, result=%s", result.to_json())
        return result
