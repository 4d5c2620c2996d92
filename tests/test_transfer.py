"""Tests for the httpx transfer client."""
import hashlib
import hmac
import json
from urllib.parse import parse_qs

import httpx
import pytest

from publisher.errors import TransferFailed
from publisher.models import PublishConfig, SessionContext
from publisher.services.device import DeviceProfile
from publisher.services.transfer import HTTPTransferClient, sign_fields

SESSION = SessionContext(
    uuid="uuid-1",
    csrf_token="csrf-1",
    account_id="42",
    cookies={"sessionid": "sess-1"},
)
CONFIG = PublishConfig(api_url="https://api.example/api/v1/", signature_key="secret")


def _client(handler) -> HTTPTransferClient:
    return HTTPTransferClient(
        SESSION,
        DeviceProfile.from_string(),
        CONFIG,
        transport=httpx.MockTransport(handler),
    )


def test_sign_fields():
    signed = sign_fields({"a": 1, "b": "x"}, "secret", "4")

    body = '{"a":1,"b":"x"}'
    digest = hmac.new(b"secret", body.encode(), hashlib.sha256).hexdigest()
    assert signed == {"ig_sig_key_version": "4", "signed_body": f"{digest}.{body}"}


class TestHTTPTransferClient:
    @pytest.mark.asyncio
    async def test_signed_post(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "ok", "media": {"code": "xyz"}})

        async with _client(handler) as client:
            response = await client.send(
                "media/configure/", {"upload_id": "1", "caption": "hi"}, params={"video": 1}
            )

        assert response.ok
        assert response.body["media"]["code"] == "xyz"

        request = seen[0]
        assert str(request.url) == "https://api.example/api/v1/media/configure/?video=1"
        assert request.headers["User-Agent"].startswith("Instagram 10.26.0 Android (24/7.0;")
        assert "sessionid=sess-1" in request.headers["Cookie"]

        form = parse_qs(request.content.decode())
        assert form["ig_sig_key_version"] == ["4"]
        digest, body = form["signed_body"][0].split(".", 1)
        assert json.loads(body) == {"upload_id": "1", "caption": "hi"}
        assert digest == hmac.new(b"secret", body.encode(), hashlib.sha256).hexdigest()

    @pytest.mark.asyncio
    async def test_unsigned_multipart(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "ok"})

        async with _client(handler) as client:
            await client.send(
                "upload/photo/",
                {"upload_id": "7", "is_sidecar": "1"},
                multipart=True,
                signed=False,
                files={"photo": ("pending_media_7.jpg", b"JPEGDATA", "application/octet-stream")},
            )

        request = seen[0]
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        content = request.content
        assert b'name="upload_id"' in content
        assert b'filename="pending_media_7.jpg"' in content
        assert b"JPEGDATA" in content
        assert b"signed_body" not in content

    @pytest.mark.asyncio
    async def test_form_values_are_flattened(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "ok"})

        async with _client(handler) as client:
            await client.send("upload/video/", {"hflip": False, "rect": [1, 2]}, signed=False)

        form = parse_qs(seen[0].content.decode())
        assert form["hflip"] == ["false"]
        assert form["rect"] == ["[1,2]"]

    @pytest.mark.asyncio
    async def test_send_bytes(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"result": "done"})

        async with _client(handler) as client:
            response = await client.send_bytes(
                "https://upload.example/3", b"chunk", {"Content-Range": "bytes 0-4/5"}
            )

        assert response.http_ok
        assert seen[0].content == b"chunk"
        assert seen[0].headers["Content-Range"] == "bytes 0-4/5"

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        async with _client(handler) as client:
            response = await client.send("media/configure/", {})

        assert not response.ok
        assert response.body == {"status": "fail", "message": "Bad Gateway"}
        assert response.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_transport_error_becomes_transfer_failed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransferFailed, match="connection refused"):
                await client.send("upload/photo/", {}, signed=False)
            with pytest.raises(TransferFailed):
                await client.send_bytes("https://upload.example/3", b"x", {})

    @pytest.mark.asyncio
    async def test_requires_context(self):
        client = HTTPTransferClient(SESSION)
        with pytest.raises(RuntimeError, match="async with"):
            await client.send("media/configure/", {})
