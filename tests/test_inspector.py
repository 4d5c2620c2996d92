"""Tests for the asset inspector and probe."""
import subprocess

import pytest
from pathlib import Path
from unittest.mock import Mock

from PIL import Image

from publisher.errors import InvalidInput, PolicyViolation
from publisher.models import AssetDescriptor, Destination, MediaKind
from publisher.services.inspector import AssetInspector
from publisher.services.probe import FFmpegProbe


def _make_image(path: Path, size=(1080, 1080)) -> Path:
    Image.new("RGB", size, color=(200, 30, 30)).save(path, format="JPEG")
    return path


def _video(width=1080, height=1920, duration=10.0, path=Path("clip.mp4")):
    return AssetDescriptor(path, MediaKind.VIDEO, width, height, duration=duration)


def _photo(width=1080, height=1080, path=Path("photo.jpg")):
    return AssetDescriptor(path, MediaKind.PHOTO, width, height)


class TestInspect:
    def test_photo_descriptor(self, tmp_path):
        path = _make_image(tmp_path / "square.jpg", (800, 600))
        descriptor = AssetInspector().inspect(path, MediaKind.PHOTO)

        assert descriptor.kind is MediaKind.PHOTO
        assert (descriptor.width, descriptor.height) == (800, 600)
        assert descriptor.duration is None

    def test_inspect_is_repeatable(self, tmp_path):
        path = _make_image(tmp_path / "square.jpg")
        inspector = AssetInspector()
        assert inspector.inspect(path, "photo") == inspector.inspect(path, "photo")

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInput, match="does not exist"):
            AssetInspector().inspect(tmp_path / "nope.jpg", MediaKind.PHOTO)

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "text.jpg"
        path.write_text("definitely not a jpeg")
        with pytest.raises(InvalidInput, match="not an image"):
            AssetInspector().inspect(path, MediaKind.PHOTO)

    def test_unknown_kind(self, tmp_path):
        path = _make_image(tmp_path / "a.jpg")
        with pytest.raises(InvalidInput, match="Unsupported media kind"):
            AssetInspector().inspect(path, "gif")

    def test_video_uses_probe(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00" * 16)
        probe = Mock()
        probe.video_details.return_value = {"width": 720, "height": 1280, "duration": 7.25}

        descriptor = AssetInspector(probe).inspect(path, MediaKind.VIDEO)

        probe.video_details.assert_called_once_with(path)
        assert descriptor.is_video
        assert descriptor.duration == 7.25
        assert descriptor.duration_ms == 7250

    def test_video_without_stream(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00" * 16)
        probe = Mock()
        probe.video_details.side_effect = InvalidInput("has no video stream")

        with pytest.raises(InvalidInput, match="no video stream"):
            AssetInspector(probe).inspect(path, MediaKind.VIDEO)

    @pytest.mark.asyncio
    async def test_inspect_async(self, tmp_path):
        path = _make_image(tmp_path / "a.jpg", (1000, 800))
        descriptor = await AssetInspector().inspect_async(path, MediaKind.PHOTO)
        assert descriptor.width == 1000


class TestValidate:
    def test_timeline_accepts_square_photo(self):
        AssetInspector(Mock()).validate(Destination.TIMELINE, _photo())

    @pytest.mark.parametrize("width", [319, 1081])
    def test_photo_width_bounds(self, width):
        with pytest.raises(PolicyViolation, match="width"):
            AssetInspector(Mock()).validate("timeline", _photo(width=width, height=width))

    def test_timeline_aspect_ratio(self):
        with pytest.raises(PolicyViolation, match="aspect ratio"):
            AssetInspector(Mock()).validate("timeline", _photo(width=1080, height=1920))

    def test_story_aspect_ratio(self):
        inspector = AssetInspector(Mock())
        inspector.validate("story", _photo(width=1080, height=1920))
        with pytest.raises(PolicyViolation, match="aspect ratio"):
            inspector.validate("story", _photo(width=1080, height=1080))

    def test_story_video_duration(self):
        inspector = AssetInspector(Mock())
        inspector.validate("story", _video(duration=15.0))
        with pytest.raises(PolicyViolation, match="duration"):
            inspector.validate("story", _video(duration=15.5))

    def test_timeline_video_duration(self):
        inspector = AssetInspector(Mock())
        inspector.validate("timeline", _video(width=1080, height=1080, duration=60.0))
        with pytest.raises(PolicyViolation, match="duration"):
            inspector.validate("timeline", _video(width=1080, height=1080, duration=2.9))

    def test_album_uses_timeline_limits(self):
        with pytest.raises(PolicyViolation):
            AssetInspector(Mock()).validate("album", _video(width=1080, height=1920))

    def test_direct_has_no_limits(self):
        AssetInspector(Mock()).validate("direct_v2", _video(width=100, height=2000, duration=500))


class TestFFmpegProbe:
    def test_missing_binary(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00")
        probe = FFmpegProbe(ffprobe="ffprobe-does-not-exist-here")
        with pytest.raises(InvalidInput, match="not available"):
            probe.video_details(path)

    def test_video_details_parses_ffprobe_json(self, tmp_path, monkeypatch):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00")
        stdout = (
            b'{"streams": [{"codec_name": "h264", "width": 720, "height": 1280}],'
            b' "format": {"duration": "12.480000"}}'
        )
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr=b"")

        monkeypatch.setattr(subprocess, "run", fake_run)

        details = FFmpegProbe().video_details(path)

        assert details == {"width": 720, "height": 1280, "duration": 12.48, "codec": "h264"}
        assert calls[0][0] == "ffprobe"
        assert str(path) in calls[0]

    def test_video_details_without_stream(self, tmp_path, monkeypatch):
        path = tmp_path / "audio.mp4"
        path.write_bytes(b"\x00")
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kwargs: subprocess.CompletedProcess(
                cmd, 0, stdout=b'{"streams": [], "format": {"duration": "3.0"}}', stderr=b""
            ),
        )
        with pytest.raises(InvalidInput, match="no video stream"):
            FFmpegProbe().video_details(path)

    def test_thumbnail_falls_back_to_first_frame(self, tmp_path, monkeypatch):
        path = tmp_path / "short.mp4"
        path.write_bytes(b"\x00")
        offsets = []

        def fake_run(cmd, **kwargs):
            offset = cmd[cmd.index("-ss") + 1]
            offsets.append(offset)
            stdout = b"" if offset == "00:00:01" else b"\xff\xd8frame"
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr=b"")

        monkeypatch.setattr(subprocess, "run", fake_run)

        assert FFmpegProbe().video_thumbnail(path) == b"\xff\xd8frame"
        assert offsets == ["00:00:01", "0"]

    def test_thumbnail_without_any_frame(self, tmp_path, monkeypatch):
        path = tmp_path / "broken.mp4"
        path.write_bytes(b"\x00")
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout=b"", stderr=b""),
        )
        with pytest.raises(InvalidInput, match="thumbnail"):
            FFmpegProbe().video_thumbnail(path)
