"""Commit phase: tell the control plane the bytes are in place."""
from __future__ import annotations

import logging

from ..exceptions import HandleError
from ..models import ApplyResult, CommitResult, SigningContext, UploadPhase
from ..protocols import IControlPlaneClient
from .retry import run_with_attempts

logger = logging.getLogger(__name__)


class CommitUploadUseCase:
    """Call CommitUpload with a bounded attempt budget."""

    def __init__(self, retry_delay: float = 0.5):
        self._retry_delay = retry_delay

    async def execute(
        self,
        api: IControlPlaneClient,
        signing: SigningContext,
        apply_result: ApplyResult,
        max_attempts: int = 3,
    ) -> CommitResult:
        params = {"vodSessionKey": apply_result.vod_session_key}

        outcome = await run_with_attempts(
            "commit upload",
            lambda: api.commit_upload(signing, params),
            CommitResult.from_dict,
            max_attempts,
            self._retry_delay,
        )

        if outcome.result is None or not outcome.result.success:
            logger.error("commit upload fail, result=%s", outcome.detail)
            # Detail is the apply body, not the commit body.
            raise HandleError("commit upload fail", apply_result.to_json(), UploadPhase.COMMITTING)

        logger.info("commit upload success, result=%s", outcome.result.to_json())
        return outcome.result
