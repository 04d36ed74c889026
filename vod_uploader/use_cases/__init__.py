"""Application use cases for the three upload phases."""

from .apply_upload import ApplyUploadUseCase, build_apply_params
from .commit_upload import CommitUploadUseCase
from .retry import AttemptOutcome, is_retryable, run_with_attempts
from .transfer import TransferAssetsUseCase, build_transfer_descriptors

__all__ = [
    "ApplyUploadUseCase",
    "build_apply_params",
    "CommitUploadUseCase",
    "AttemptOutcome",
    "is_retryable",
    "run_with_attempts",
    "TransferAssetsUseCase",
    "build_transfer_descriptors",
]
