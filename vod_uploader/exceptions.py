"""Exceptions raised by the upload workflow."""
from typing import Optional

from .models import UploadPhase


class VodError(Exception):
    """Base class for upload workflow errors."""


class ParameterError(VodError):
    """Raised when upload input is missing or invalid. Never retried."""

    def __init__(self, message: str):
        super().__init__(message)
        self.phase = UploadPhase.VALIDATING


class HandleError(VodError):
    """
    Raised when a control-plane phase exhausted its attempts or reported failure.

    ``detail`` holds the serialized response body for operator inspection.
    """

    def __init__(self, message: str, detail: Optional[str] = None, phase: Optional[UploadPhase] = None):
        super().__init__(message)
        self.detail = detail
        self.phase = phase

    def __str__(self) -> str:
        message = super().__str__()
        if self.detail:
            return f"{message}: {self.detail}"
        return message
