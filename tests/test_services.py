"""Tests for the control-plane client and the transfer session."""

import httpx
import pytest

from vod_uploader.models import ApplyResult, SigningContext, TransferDescriptor, VodConfig
from vod_uploader.services.api_client import VodAPIClient
from vod_uploader.services.storage import CosTransferSession


def _json_handler(captured, body, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code, json=body)
    return handler


class TestVodAPIClient:
    @pytest.fixture
    def config(self):
        return VodConfig("sid", "skey", region="gz")

    @pytest.fixture
    def signing(self, config):
        return config.signing_context()

    @pytest.mark.asyncio
    async def test_apply_upload_sends_signed_get(self, config, signing, apply_ok):
        captured = []
        transport = httpx.MockTransport(_json_handler(captured, apply_ok))

        async with VodAPIClient(config, transport=transport) as api:
            body = await api.apply_upload(signing, {"videoType": "mp4"})

        assert body == apply_ok
        request = captured[0]
        assert request.method == "GET"
        assert request.url.host == "vod.api.qcloud.com"
        assert request.url.path == "/v2/index.php"
        params = request.url.params
        assert params["Action"] == "ApplyUpload"
        assert params["Region"] == "gz"
        assert params["videoType"] == "mp4"
        assert params["SecretId"] == "sid"
        assert params["Signature"]

    @pytest.mark.asyncio
    async def test_commit_upload_action(self, config, signing, commit_ok):
        captured = []
        transport = httpx.MockTransport(_json_handler(captured, commit_ok))

        async with VodAPIClient(config, transport=transport) as api:
            body = await api.commit_upload(signing, {"vodSessionKey": "k"})

        assert body["fileId"] == commit_ok["fileId"]
        assert captured[0].url.params["Action"] == "CommitUpload"
        assert captured[0].url.params["vodSessionKey"] == "k"

    @pytest.mark.asyncio
    async def test_post_method_sends_form_body(self, signing, apply_ok):
        captured = []
        transport = httpx.MockTransport(_json_handler(captured, apply_ok))
        config = VodConfig("sid", "skey", request_method="POST")

        async with VodAPIClient(config, transport=transport) as api:
            await api.apply_upload(config.signing_context(), {"videoType": "mp4"})

        request = captured[0]
        assert request.method == "POST"
        assert b"Action=ApplyUpload" in request.content

    @pytest.mark.asyncio
    async def test_server_error_raises(self, config, signing):
        transport = httpx.MockTransport(_json_handler([], {"error": "boom"}, status_code=502))

        async with VodAPIClient(config, transport=transport) as api:
            with pytest.raises(httpx.HTTPStatusError):
                await api.apply_upload(signing, {})

    @pytest.mark.asyncio
    async def test_non_object_body_raises(self, config, signing):
        transport = httpx.MockTransport(_json_handler([], ["not", "an", "object"]))

        async with VodAPIClient(config, transport=transport) as api:
            with pytest.raises(ValueError, match="Unexpected ApplyUpload response"):
                await api.apply_upload(signing, {})

    @pytest.mark.asyncio
    async def test_requires_context(self, config, signing):
        api = VodAPIClient(config)
        with pytest.raises(RuntimeError, match="not initialized"):
            await api.apply_upload(signing, {})


class TestCosTransferSession:
    @pytest.mark.asyncio
    async def test_upload_object_puts_file(self, video_file):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        descriptor = TransferDescriptor("vodgzp-1250000000", "/1250000000/f0/video.mp4", video_file)
        async with CosTransferSession(
            "ap-guangzhou", "sid", "skey", 3600, token="tok", transport=httpx.MockTransport(handler)
        ) as session:
            await session.upload_object(descriptor)

        request = captured[0]
        assert request.method == "PUT"
        assert request.url.host == "vodgzp-1250000000.cos.ap-guangzhou.myqcloud.com"
        assert request.url.path == "/1250000000/f0/video.mp4"
        assert request.content == b"fake video content"
        assert request.headers["Content-Length"] == str(len(b"fake video content"))
        assert request.headers["x-cos-security-token"] == "tok"
        assert request.headers["Authorization"].startswith("q-sign-algorithm=sha1&q-ak=sid&")

    @pytest.mark.asyncio
    async def test_upload_object_streams_in_chunks(self, tmp_path):
        payload = b"x" * 10
        path = tmp_path / "big.mp4"
        path.write_bytes(payload)
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request.content)
            return httpx.Response(200)

        async with CosTransferSession(
            "ap-guangzhou", "sid", "skey", 3600, transport=httpx.MockTransport(handler), chunk_size=3
        ) as session:
            await session.upload_object(TransferDescriptor("b-1", "big.mp4", path))

        assert captured == [payload]

    @pytest.mark.asyncio
    async def test_upload_error_propagates(self, video_file):
        transport = httpx.MockTransport(lambda request: httpx.Response(403, text="AccessDenied"))

        async with CosTransferSession("ap-guangzhou", "sid", "skey", 3600, transport=transport) as session:
            with pytest.raises(httpx.HTTPStatusError):
                await session.upload_object(TransferDescriptor("b-1", "/v.mp4", video_file))

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self):
        session = CosTransferSession("ap-guangzhou", "sid", "skey", 3600)
        async with session:
            assert session.is_open is True
            await session.shutdown()
            assert session.is_open is False
        assert session.is_open is False

    @pytest.mark.asyncio
    async def test_upload_requires_open_session(self, video_file):
        session = CosTransferSession("ap-guangzhou", "sid", "skey", 3600)
        with pytest.raises(RuntimeError, match="not open"):
            await session.upload_object(TransferDescriptor("b-1", "/v.mp4", video_file))

    def test_from_apply_prefers_temp_certificate(self, apply_ok):
        apply_ok["tempCertificate"] = {"secretId": "tmp-id", "secretKey": "tmp-key", "token": "tok"}
        session = CosTransferSession.from_apply(
            ApplyResult.from_dict(apply_ok), SigningContext("sid", "skey", "GET", 900)
        )
        request = httpx.Request("PUT", session.object_url("vodgzp-1250000000", "/a.mp4"))
        signed = next(session._auth.auth_flow(request))
        assert "q-ak=tmp-id" in signed.headers["Authorization"]
        assert signed.headers["x-cos-security-token"] == "tok"

    def test_from_apply_uses_account_credentials_and_expiry(self, apply_ok):
        session = CosTransferSession.from_apply(
            ApplyResult.from_dict(apply_ok), SigningContext("sid", "skey", "GET", 900)
        )
        assert session.object_url("vodgzp-1250000000", "a.mp4") == (
            "https://vodgzp-1250000000.cos.ap-guangzhou.myqcloud.com/a.mp4"
        )
        request = httpx.Request("PUT", session.object_url("vodgzp-1250000000", "/a.mp4"))
        fields = dict(
            part.split("=", 1) for part in next(session._auth.auth_flow(request)).headers["Authorization"].split("&")
        )
        start, end = (int(v) for v in fields["q-key-time"].split(";"))
        assert fields["q-ak"] == "sid"
        assert end - start == 900

    def test_from_apply_requires_region(self, apply_ok):
        del apply_ok["storageRegionV5"]
        del apply_ok["storageRegion"]
        with pytest.raises(ValueError, match="no storage region"):
            CosTransferSession.from_apply(ApplyResult.from_dict(apply_ok), SigningContext("sid", "skey"))


class _BrokenPipeTransport(httpx.AsyncBaseTransport):
    """Reads the first body chunk, then fails the write."""

    async def handle_async_request(self, request):
        async for _ in request.stream:
            raise httpx.WriteError("broken pipe")
        raise AssertionError("empty body")


@pytest.mark.asyncio
async def test_failed_put_closes_file_stream(monkeypatch, video_file):
    closed = []

    async def tracking_iter(path, chunk_size):
        try:
            yield b"first"
            yield b"second"
        finally:
            closed.append(path)

    monkeypatch.setattr("vod_uploader.services.storage._iter_file", tracking_iter)

    async with CosTransferSession("ap-guangzhou", "sid", "skey", 3600, transport=_BrokenPipeTransport()) as session:
        with pytest.raises(httpx.WriteError):
            await session.upload_object(TransferDescriptor("b-1", "/v.mp4", video_file))

    assert closed == [video_file]
