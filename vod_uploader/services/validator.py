"""Upload input validation. Runs before any network call."""
from pathlib import Path

from ..exceptions import ParameterError
from ..models import UploadRequest


def _is_file(path) -> bool:
    return Path(path).is_file()


def validate_upload_request(request: UploadRequest) -> None:
    """
    Raise ParameterError naming the first offending field.

    Args:
        request: Upload input

    Raises:
        ParameterError: empty credentials, missing video, or a path that is not a file
    """
    if not request.secret_id:
        raise ParameterError("secretId is null")

    if not request.secret_key:
        raise ParameterError("secretKey is null")

    if request.video_path is None:
        raise ParameterError("videoPath is null")

    if not _is_file(request.video_path):
        raise ParameterError("videoPath is invalid")

    if request.cover_path is not None and not _is_file(request.cover_path):
        raise ParameterError("coverPath is invalid")
