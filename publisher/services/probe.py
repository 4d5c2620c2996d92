"""
Asset Probe - Single Responsibility: read dimensions/duration from local files.

Uses Pillow for images and ffprobe/ffmpeg for videos.
"""
import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Tuple

from PIL import Image, UnidentifiedImageError

from ..errors import InvalidInput
from ..protocols import IAssetProbe

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 30
THUMBNAIL_OFFSET = "00:00:01"
FIRST_FRAME_OFFSET = "0"


def _run(cmd, path: Path, binary: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            timeout=PROBE_TIMEOUT,
        )
    except FileNotFoundError as exc:
        raise InvalidInput(f"{binary} is not available on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise InvalidInput(f"{binary} timed out on {path.name}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or b"").decode("utf-8", errors="replace").strip()
        raise InvalidInput(f"{binary} failed on {path.name}: {stderr[:300]}") from exc


class FFmpegProbe(IAssetProbe):
    """Probe backed by Pillow (photos) and the ffmpeg suite (videos)."""

    def __init__(self, ffprobe: str = "ffprobe", ffmpeg: str = "ffmpeg"):
        self._ffprobe = ffprobe
        self._ffmpeg = ffmpeg

    def image_size(self, path: Path) -> Tuple[int, int]:
        path = Path(path)
        try:
            with Image.open(path) as img:
                return img.size
        except (UnidentifiedImageError, OSError) as exc:
            raise InvalidInput(f'File "{path}" is not an image.') from exc

    def video_details(self, path: Path) -> Dict[str, Any]:
        path = Path(path)
        proc = _run(
            [
                self._ffprobe,
                "-v", "error",
                "-select_streams", "v:0",
                "-show_entries", "stream=width,height,codec_name:format=duration",
                "-of", "json",
                str(path),
            ],
            path,
            "ffprobe",
        )
        try:
            payload = json.loads(proc.stdout or b"{}")
        except ValueError as exc:
            raise InvalidInput(f"ffprobe returned invalid JSON for {path.name}") from exc

        streams = payload.get("streams") or []
        if not streams:
            raise InvalidInput(f'File "{path}" has no video stream.')
        stream = streams[0]

        try:
            width = int(stream["width"])
            height = int(stream["height"])
            duration = float((payload.get("format") or {})["duration"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f'Could not read video details of "{path}".') from exc

        if width <= 0 or height <= 0 or duration <= 0:
            raise InvalidInput(f'File "{path}" has no usable video stream.')

        logger.debug(
            "Probed video %s: %dx%d %.3fs codec=%s",
            path.name, width, height, duration, stream.get("codec_name"),
        )
        return {
            "width": width,
            "height": height,
            "duration": duration,
            "codec": stream.get("codec_name"),
        }

    def video_thumbnail(self, path: Path) -> bytes:
        path = Path(path)
        try:
            frame = self._extract_frame(path, THUMBNAIL_OFFSET)
        except InvalidInput as exc:
            logger.debug("Seeking to %s failed: %s", THUMBNAIL_OFFSET, exc)
            frame = b""
        if not frame:
            # clips shorter than the offset yield no frame there
            logger.debug("No frame at %s in %s, using the first frame", THUMBNAIL_OFFSET, path.name)
            frame = self._extract_frame(path, FIRST_FRAME_OFFSET)
        if not frame:
            raise InvalidInput(f'Could not extract a thumbnail from "{path}".')
        return frame

    def _extract_frame(self, path: Path, offset: str) -> bytes:
        proc = _run(
            [
                self._ffmpeg,
                "-v", "error",
                "-ss", offset,
                "-i", str(path),
                "-vframes", "1",
                "-f", "mjpeg",
                "-",
            ],
            path,
            "ffmpeg",
        )
        return proc.stdout or b""
