"""Services for vod_uploader."""
from .api_client import VodAPIClient
from .signing import CosAuth, cos_authorization, sign_params
from .storage import CosTransferSession
from .validator import validate_upload_request

__all__ = [
    "VodAPIClient",
    "CosAuth",
    "cos_authorization",
    "sign_params",
    "CosTransferSession",
    "validate_upload_request",
]
