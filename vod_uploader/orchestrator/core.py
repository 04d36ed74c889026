"""Core orchestrator - sequences validate, apply, transfer and commit."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ParameterError
from ..models import CommitResult, UploadPhase, UploadRequest, VodConfig
from ..protocols import IControlPlaneClient, ITransferSessionFactory
from ..services.api_client import VodAPIClient
from ..services.storage import CosTransferSession
from ..services.validator import validate_upload_request
from ..use_cases import ApplyUploadUseCase, CommitUploadUseCase, TransferAssetsUseCase

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _as_path(value: Optional[PathLike]) -> Optional[Path]:
    if value is None:
        return None
    return Path(value).expanduser()


class VodUploader:
    """
    Uploads a video (and optional cover) to VOD using injected collaborators.

    Holds only read-only configuration; concurrent ``upload`` calls are
    independent.

    Usage:
        config = VodConfig(secret_id, secret_key)
        async with VodUploader(config) as vod:
            result = await vod.upload("movie.mp4", "cover.jpg", procedure="QCVB_SimpleProcessFile")
            print(result.file_id)
    """

    def __init__(
        self,
        config: VodConfig,
        api_client: Optional[IControlPlaneClient] = None,
        session_factory: Optional[ITransferSessionFactory] = None,
    ):
        """
        Initialize uploader with dependencies.

        Args:
            config: Credentials, signature validity and attempt budgets
            api_client: Control-plane client; a VodAPIClient is opened in __aenter__ if omitted
            session_factory: Builds the transfer session from an ApplyResult
        """
        self._config = config
        self._external_api = api_client
        self._session_factory = session_factory or CosTransferSession.from_apply
        self._api: Optional[IControlPlaneClient] = api_client
        self._owned_api: Optional[VodAPIClient] = None

        self._apply = ApplyUploadUseCase(config.retry_delay)
        self._transfer = TransferAssetsUseCase()
        self._commit = CommitUploadUseCase(config.retry_delay)

    @property
    def config(self) -> VodConfig:
        return self._config

    async def __aenter__(self):
        if self._external_api is None:
            self._owned_api = VodAPIClient(self._config)
            await self._owned_api.__aenter__()
            self._api = self._owned_api
        return self

    async def __aexit__(self, *args):
        if self._owned_api:
            await self._owned_api.__aexit__(*args)
            self._owned_api = None
            self._api = None

    async def upload(
        self,
        video_path: Optional[PathLike],
        cover_path: Optional[PathLike] = None,
        procedure: Optional[str] = None,
    ) -> CommitResult:
        """
        Run the full apply, transfer, commit sequence.

        Args:
            video_path: Local video file
            cover_path: Local cover image (optional)
            procedure: Task flow to run after upload (optional)

        Returns:
            CommitResult of a successful commit

        Raises:
            ParameterError: invalid input, raised before any network call
            HandleError: apply or commit exhausted its attempts
            Exception: any transfer error, unmodified
        """
        request = UploadRequest(
            secret_id=self._config.secret_id,
            secret_key=self._config.secret_key,
            video_path=_as_path(video_path),
            cover_path=_as_path(cover_path),
            procedure=procedure,
        )

        phase = UploadPhase.VALIDATING
        try:
            validate_upload_request(request)

            if self._api is None:
                raise RuntimeError("VodUploader not initialized. Use 'async with' context.")

            signing = self._config.signing_context()

            phase = UploadPhase.APPLYING
            apply_result = await self._apply.execute(
                self._api, signing, request, self._config.apply_retries
            )

            phase = UploadPhase.TRANSFERRING
            try:
                async with self._session_factory(apply_result, signing) as session:
                    await self._transfer.execute(session, apply_result, request)
            except Exception:
                logger.error("upload cos fail", exc_info=True)
                raise

            phase = UploadPhase.COMMITTING
            result = await self._commit.execute(
                self._api, signing, apply_result, self._config.commit_retries
            )
        except ParameterError as exc:
            logger.error("upload %s: %s", UploadPhase.FAILED.value, exc)
            raise
        except Exception:
            logger.debug("upload %s during %s", UploadPhase.FAILED.value, phase.value)
            raise

        logger.info("upload %s: file_id=%s", UploadPhase.DONE.value, result.file_id)
        return result

    async def upload_video(self, video_path: PathLike) -> CommitResult:
        """Upload a video only."""
        return await self.upload(video_path)

    async def upload_with_cover(self, video_path: PathLike, cover_path: PathLike) -> CommitResult:
        """Upload a video and its cover."""
        return await self.upload(video_path, cover_path)
