"""Shared fixtures for vod_uploader tests."""
import pytest

APPLY_OK = {
    "code": 0,
    "message": "",
    "codeDesc": "Success",
    "video": {"storageSignature": "sig-v", "storagePath": "/1250000000/f0/video.mp4"},
    "cover": {"storageSignature": "sig-c", "storagePath": "/1250000000/f0/cover.jpg"},
    "storageAppId": 1250000000,
    "storageBucket": "vodgzp",
    "storageRegion": "gzp",
    "storageRegionV5": "ap-guangzhou",
    "domain": {"vodDomain": "vod.example.com"},
    "vodSessionKey": "session-key-1",
}

APPLY_FAIL = {"code": 4000, "message": "invalid videoType", "codeDesc": "InvalidParameter"}

COMMIT_OK = {
    "code": 0,
    "message": "",
    "codeDesc": "Success",
    "fileId": "5285890781763144364",
    "video": {"url": "http://vod.example.com/f0.mp4", "verify_content": "abc"},
    "cover": {"url": "http://vod.example.com/f0.jpg"},
}

COMMIT_FAIL = {"code": 10009, "message": "session expired", "codeDesc": "SessionExpired"}


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "movie.mp4"
    path.write_bytes(b"fake video content")
    return path


@pytest.fixture
def cover_file(tmp_path):
    path = tmp_path / "poster.jpg"
    path.write_bytes(b"fake cover content")
    return path


@pytest.fixture
def apply_ok():
    return dict(APPLY_OK)


@pytest.fixture
def apply_fail():
    return dict(APPLY_FAIL)


@pytest.fixture
def commit_ok():
    return dict(COMMIT_OK)


@pytest.fixture
def commit_fail():
    return dict(COMMIT_FAIL)
