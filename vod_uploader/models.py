"""
Models for vod_uploader.

Immutable dataclasses for configuration, requests and control-plane results.
"""
import json
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


DEFAULT_SIGN_EXPIRED = 24 * 3600
DEFAULT_RETRY_TIME = 3


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        from .exceptions import ParameterError

        raise ParameterError(f"{name} must be an integer, got {raw!r}") from None


def _as_int(value: Any, default: int = -1) -> int:
    """Response code as int; anything unparseable counts as a failure code."""
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


class UploadPhase(Enum):
    """Orchestrator state."""
    VALIDATING = "validating"
    APPLYING = "applying"
    TRANSFERRING = "transferring"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class VodConfig:
    """Immutable configuration set at construction time."""
    secret_id: str
    secret_key: str
    sign_expired: int = DEFAULT_SIGN_EXPIRED
    apply_retries: int = DEFAULT_RETRY_TIME
    commit_retries: int = DEFAULT_RETRY_TIME
    retry_delay: float = 0.5
    region: str = "gz"
    api_host: str = "vod.api.qcloud.com"
    api_path: str = "/v2/index.php"
    request_method: str = "GET"
    timeout: int = 60

    def __post_init__(self):
        from .exceptions import ParameterError

        if self.apply_retries < 1:
            raise ParameterError(f"apply retry time must be >= 1, got {self.apply_retries}")
        if self.commit_retries < 1:
            raise ParameterError(f"commit retry time must be >= 1, got {self.commit_retries}")
        if self.sign_expired <= 0:
            raise ParameterError(f"sign expired must be > 0, got {self.sign_expired}")
        if self.retry_delay < 0:
            raise ParameterError(f"retry delay must be >= 0, got {self.retry_delay}")

    @property
    def retry_time(self) -> int:
        """Attempt budget shared by apply and commit (the larger if they differ)."""
        return max(self.apply_retries, self.commit_retries)

    def with_retry_time(self, retry_time: int) -> "VodConfig":
        """Copy with the same attempt budget for apply and commit."""
        return replace(self, apply_retries=retry_time, commit_retries=retry_time)

    def signing_context(self) -> "SigningContext":
        return SigningContext(
            secret_id=self.secret_id,
            secret_key=self.secret_key,
            method=self.request_method,
            expiry=self.sign_expired,
        )

    @classmethod
    def from_env(cls, **overrides) -> "VodConfig":
        """
        Build config from VOD_* environment variables.

        Keyword overrides win over the environment when not None.

        Raises:
            ParameterError: numeric variable is not an integer, or a value is out of range
        """
        retry_time = _env_int("VOD_RETRY_TIME", DEFAULT_RETRY_TIME)
        values: Dict[str, Any] = {
            "secret_id": os.getenv("VOD_SECRET_ID", ""),
            "secret_key": os.getenv("VOD_SECRET_KEY", ""),
            "sign_expired": _env_int("VOD_SIGN_EXPIRED", DEFAULT_SIGN_EXPIRED),
            "apply_retries": retry_time,
            "commit_retries": retry_time,
            "region": os.getenv("VOD_REGION", "gz"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass(frozen=True)
class SigningContext:
    """Values needed to authenticate outbound calls."""
    secret_id: str
    secret_key: str
    method: str = "GET"
    expiry: int = DEFAULT_SIGN_EXPIRED


@dataclass(frozen=True)
class UploadRequest:
    """Immutable upload input."""
    secret_id: str
    secret_key: str
    video_path: Optional[Path]
    cover_path: Optional[Path] = None
    procedure: Optional[str] = None

    @property
    def has_cover(self) -> bool:
        return self.cover_path is not None


@dataclass(frozen=True)
class AssetTarget:
    """Storage destination granted for one asset."""
    storage_path: str
    storage_signature: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["AssetTarget"]:
        if not isinstance(data, dict) or not data.get("storagePath"):
            return None
        return cls(
            storage_path=str(data["storagePath"]),
            storage_signature=data.get("storageSignature"),
        )


@dataclass(frozen=True)
class TempCertificate:
    """Temporary object-storage credentials."""
    secret_id: str
    secret_key: str
    token: Optional[str] = None
    expired_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TempCertificate"]:
        if not isinstance(data, dict) or not data.get("secretId") or not data.get("secretKey"):
            return None
        return cls(
            secret_id=data["secretId"],
            secret_key=data["secretKey"],
            token=data.get("token"),
            expired_time=data.get("expiredTime"),
        )


def _to_json(raw: Dict[str, Any]) -> str:
    return json.dumps(raw, ensure_ascii=False, sort_keys=True)


@dataclass(frozen=True)
class ApplyResult:
    """Decoded ApplyUpload response."""
    code: int
    message: str = ""
    code_desc: str = ""
    storage_bucket: Optional[str] = None
    storage_app_id: Optional[str] = None
    storage_region: Optional[str] = None
    storage_region_v5: Optional[str] = None
    video: Optional[AssetTarget] = None
    cover: Optional[AssetTarget] = None
    vod_session_key: Optional[str] = None
    temp_certificate: Optional[TempCertificate] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_fail(self) -> bool:
        return self.code != 0

    @property
    def success(self) -> bool:
        return not self.is_fail

    @property
    def bucket_name(self) -> Optional[str]:
        """Full bucket name; COS buckets are addressed as ``<bucket>-<appid>``."""
        if not self.storage_bucket:
            return None
        if self.storage_app_id and not self.storage_bucket.endswith(f"-{self.storage_app_id}"):
            return f"{self.storage_bucket}-{self.storage_app_id}"
        return self.storage_bucket

    def to_json(self) -> str:
        return _to_json(self.raw)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplyResult":
        return cls(
            code=_as_int(data.get("code")),
            message=data.get("message") or "",
            code_desc=data.get("codeDesc") or "",
            storage_bucket=_as_str(data.get("storageBucket")),
            storage_app_id=_as_str(data.get("storageAppId")),
            storage_region=_as_str(data.get("storageRegion")),
            storage_region_v5=_as_str(data.get("storageRegionV5")),
            video=AssetTarget.from_dict(data.get("video")),
            cover=AssetTarget.from_dict(data.get("cover")),
            vod_session_key=data.get("vodSessionKey"),
            temp_certificate=TempCertificate.from_dict(data.get("tempCertificate")),
            raw=data,
        )


@dataclass(frozen=True)
class CommitResult:
    """Decoded CommitUpload response - the terminal artifact of an upload."""
    code: int
    message: str = ""
    code_desc: str = ""
    file_id: Optional[str] = None
    video_url: Optional[str] = None
    cover_url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_fail(self) -> bool:
        return self.code != 0

    @property
    def success(self) -> bool:
        return not self.is_fail

    def to_json(self) -> str:
        return _to_json(self.raw)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommitResult":
        video = _as_dict(data.get("video"))
        cover = _as_dict(data.get("cover"))
        file_id = data.get("fileId")
        return cls(
            code=_as_int(data.get("code")),
            message=data.get("message") or "",
            code_desc=data.get("codeDesc") or "",
            file_id=str(file_id) if file_id is not None else None,
            video_url=video.get("url"),
            cover_url=cover.get("url"),
            raw=data,
        )


@dataclass(frozen=True)
class TransferDescriptor:
    """One object transfer: where the bytes go and where they come from."""
    bucket: str
    destination_path: str
    local_path: Path
