"""Tests for the single-asset uploader."""
import json

import pytest
from unittest.mock import AsyncMock, Mock

from PIL import Image

from publisher.errors import InvalidInput, TransferFailed
from publisher.models import Destination, SessionContext, TransferResponse
from publisher.services.photo_upload import PhotoUploadService

SESSION = SessionContext(uuid="uuid-1", csrf_token="csrf-1", account_id="42")


@pytest.fixture
def mock_client():
    client = Mock()
    client.send = AsyncMock(return_value=TransferResponse(200, {"status": "ok"}))
    return client


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (640, 640), color=(0, 120, 255)).save(path, format="JPEG")
    return path


class TestUploadPhoto:
    @pytest.mark.asyncio
    async def test_timeline_request(self, mock_client, photo):
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())

        upload_id = await service.upload_photo(Destination.TIMELINE, photo)

        endpoint, fields = mock_client.send.call_args.args
        kwargs = mock_client.send.call_args.kwargs
        assert endpoint == "upload/photo/"
        assert kwargs["multipart"] is True
        assert kwargs["signed"] is False
        assert fields["upload_id"] == upload_id
        assert fields["_uuid"] == "uuid-1"
        assert fields["_csrftoken"] == "csrf-1"
        assert json.loads(fields["image_compression"]) == {
            "lib_name": "jt", "lib_version": "1.3.0", "quality": "87",
        }
        assert "is_sidecar" not in fields

        filename, data, _ = kwargs["files"]["photo"]
        assert filename.startswith("pending_media_") and filename.endswith(".jpg")
        assert data == photo.read_bytes()

    @pytest.mark.asyncio
    async def test_album_sets_sidecar(self, mock_client, photo):
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())

        await service.upload_photo("album", photo)

        fields = mock_client.send.call_args.args[1]
        assert fields["is_sidecar"] == "1"
        assert "media_type" not in fields

    @pytest.mark.asyncio
    async def test_custom_upload_id(self, mock_client, photo):
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())
        assert await service.upload_photo("story", photo, upload_id="123") == "123"

    @pytest.mark.asyncio
    async def test_missing_file(self, mock_client, tmp_path):
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())

        with pytest.raises(InvalidInput):
            await service.upload_photo("timeline", tmp_path / "missing.jpg")
        mock_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_upload(self, mock_client, photo):
        mock_client.send.return_value = TransferResponse(200, {"status": "fail", "message": "bad image"})
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())

        with pytest.raises(TransferFailed, match="bad image"):
            await service.upload_photo("timeline", photo)

    @pytest.mark.asyncio
    async def test_http_error(self, mock_client, photo):
        mock_client.send.return_value = TransferResponse(500, {})
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())

        with pytest.raises(TransferFailed) as excinfo:
            await service.upload_photo("timeline", photo)
        assert excinfo.value.status_code == 500


class TestUploadVideoThumbnail:
    @pytest.mark.asyncio
    async def test_reuses_video_upload_id(self, mock_client, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"\x00" * 32)
        probe = Mock()
        probe.video_thumbnail.return_value = b"\xff\xd8jpeg"
        service = PhotoUploadService(mock_client, SESSION, probe=probe)

        upload_id = await service.upload_video_thumbnail("timeline", video, "1700000000000")

        assert upload_id == "1700000000000"
        fields = mock_client.send.call_args.args[1]
        assert fields["upload_id"] == "1700000000000"
        assert mock_client.send.call_args.kwargs["files"]["photo"][1] == b"\xff\xd8jpeg"
        assert "media_type" not in fields

    @pytest.mark.asyncio
    async def test_album_thumbnail_is_marked_as_video(self, mock_client, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"\x00" * 32)
        probe = Mock()
        probe.video_thumbnail.return_value = b"jpeg"
        service = PhotoUploadService(mock_client, SESSION, probe=probe)

        await service.upload_video_thumbnail("album", video, "1")

        fields = mock_client.send.call_args.args[1]
        assert fields["is_sidecar"] == "1"
        assert fields["media_type"] == "2"

    @pytest.mark.asyncio
    async def test_requires_upload_id(self, mock_client, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"\x00")
        service = PhotoUploadService(mock_client, SESSION, probe=Mock())

        with pytest.raises(InvalidInput):
            await service.upload_video_thumbnail("timeline", video, "")
