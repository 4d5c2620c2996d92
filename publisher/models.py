"""
Models for publisher module.

Immutable dataclasses following Single Responsibility Principle.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidInput

logger = logging.getLogger(__name__)


class MediaKind(Enum):
    """Kind of a local media file."""
    PHOTO = "photo"
    VIDEO = "video"


class Destination(Enum):
    """Feed an asset is attached to."""
    TIMELINE = "timeline"
    STORY = "story"
    ALBUM = "album"
    DIRECT = "direct_v2"  # only used when requesting a video upload session

    @classmethod
    def parse(cls, value) -> "Destination":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise InvalidInput(f'Bad target feed "{value}".') from None


@dataclass(frozen=True)
class AssetDescriptor:
    """Local file metadata needed before transfer."""
    path: Path
    kind: MediaKind
    width: int
    height: int
    duration: Optional[float] = None  # seconds, video only

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def duration_ms(self) -> Optional[int]:
        """Duration rounded up to whole milliseconds."""
        if self.duration is None:
            return None
        return int(math.ceil(self.duration * 1000))

    @property
    def rounded_length(self) -> Optional[float]:
        """Duration rounded to one decimal, as configure payloads expect it."""
        if self.duration is None:
            return None
        return round(self.duration, 1)


@dataclass(frozen=True)
class InternalMetadata:
    """Carries an asset's upload id and descriptor from upload to configure."""
    upload_id: str
    descriptor: AssetDescriptor


@dataclass(frozen=True)
class Location:
    """A venue the media is geotagged with."""
    external_id: str
    external_id_source: str
    name: str
    lat: float
    lng: float
    address: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Location":
        try:
            return cls(
                external_id=str(data["external_id"]),
                external_id_source=str(data["external_id_source"]),
                name=str(data["name"]),
                lat=float(data["lat"]),
                lng=float(data["lng"]),
                address=str(data.get("address") or ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f"Invalid location: {exc}") from exc

    def to_payload(self) -> Dict[str, Any]:
        return {
            f"{self.external_id_source}_id": self.external_id,
            "name": self.name,
            "lat": self.lat,
            "lng": self.lng,
            "address": self.address,
            "external_source": self.external_id_source,
        }


@dataclass(frozen=True)
class ReelMention:
    """A positioned user mention on a story video."""
    user_id: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    def __post_init__(self):
        for name in ("x", "y", "width", "height", "rotation"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                raise InvalidInput(f"Reel mention {name} must be within [0, 1], got {value!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReelMention":
        if not isinstance(data, Mapping):
            raise InvalidInput(f"Reel mention must be a mapping, got {data!r}")
        try:
            return cls(
                user_id=str(data["user_id"]),
                x=data["x"],
                y=data["y"],
                width=data["width"],
                height=data["height"],
                rotation=data.get("rotation", 0.0),
            )
        except KeyError as exc:
            raise InvalidInput(f"Reel mention is missing {exc}") from exc

    def to_payload(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "user_id": self.user_id,
        }


@dataclass(frozen=True)
class ExternalMetadata:
    """Caller-supplied metadata, already sanitized."""
    caption: str = ""
    location: Optional[Location] = None
    usertags: Optional[Tuple[Any, ...]] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ExternalMetadata":
        """
        Build from a loose user mapping.

        Non-string captions become "", locations that are neither a Location
        nor a parseable location mapping are dropped.
        """
        if isinstance(data, ExternalMetadata):
            return data
        data = data or {}

        caption = data.get("caption")
        if not isinstance(caption, str):
            caption = ""

        location = data.get("location")
        if isinstance(location, Mapping):
            try:
                location = Location.from_mapping(location)
            except InvalidInput as exc:
                logger.debug("Ignoring location: %s", exc)
                location = None
        elif not isinstance(location, Location):
            location = None

        usertags = data.get("usertags")
        if usertags is not None:
            if isinstance(usertags, (str, bytes, Mapping)):
                raise InvalidInput(f"usertags must be a list, got {usertags!r}")
            try:
                usertags = tuple(usertags)
            except TypeError:
                raise InvalidInput(f"usertags must be a list, got {usertags!r}") from None

        return cls(caption=caption, location=location, usertags=usertags)

    def reel_mentions(self) -> List[ReelMention]:
        return [
            tag if isinstance(tag, ReelMention) else ReelMention.from_mapping(tag)
            for tag in (self.usertags or ())
        ]


@dataclass(frozen=True)
class AlbumItem:
    """One already-uploaded item of a multi-item post."""
    kind: MediaKind
    internal: InternalMetadata
    usertags: Optional[Sequence[Any]] = None

    @property
    def upload_id(self) -> str:
        return self.internal.upload_id


@dataclass(frozen=True)
class ChunkRange:
    """Half-open byte range [start, end) of one video chunk."""
    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def content_range(self, total: int) -> str:
        return f"bytes {self.start}-{self.end - 1}/{total}"


@dataclass(frozen=True)
class UploadSession:
    """Server-issued parameters for one chunked video transfer."""
    upload_id: str
    upload_url: str
    job: str
    path: Path
    total_bytes: int = 0
    chunks: Tuple[ChunkRange, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TransferResponse:
    """Status code and decoded body of one API call."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def http_ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def ok(self) -> bool:
        return self.http_ok and self.body.get("status", "ok") == "ok"

    @property
    def message(self) -> str:
        message = self.body.get("message")
        if isinstance(message, str) and message:
            return message
        return f"HTTP {self.status_code}"


@dataclass(frozen=True)
class SessionContext:
    """Authenticated session values injected into every request."""
    uuid: str
    csrf_token: str
    account_id: str
    cookies: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PublishConfig:
    """Immutable configuration for publishing operations."""
    api_url: str = "https://i.instagram.com/api/v1/"
    timeout: int = 60
    user_agent_version: str = "10.26.0"
    signature_key: str = ""
    signature_key_version: str = "4"
    configure_attempts: int = 5
    chunk_attempts: int = 10
    retry_delay: float = 1.0
