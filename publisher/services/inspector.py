"""
Asset Inspector - Single Responsibility: describe and validate local media.

Uses the injected probe for the actual file reading.
"""
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from ..errors import InvalidInput, PolicyViolation
from ..models import AssetDescriptor, Destination, MediaKind
from ..protocols import IAssetProbe
from .probe import FFmpegProbe


@dataclass(frozen=True)
class MediaPolicy:
    """Legal ranges for one destination."""
    min_aspect_ratio: float
    max_aspect_ratio: float
    min_duration: float
    max_duration: float
    min_photo_width: int = 320
    max_photo_width: int = 1080


TIMELINE_POLICY = MediaPolicy(
    min_aspect_ratio=0.8,
    max_aspect_ratio=1.91,
    min_duration=3.0,
    max_duration=60.0,
)

STORY_POLICY = MediaPolicy(
    min_aspect_ratio=0.56,
    max_aspect_ratio=0.67,
    min_duration=3.0,
    max_duration=15.0,
)

POLICIES: Dict[Destination, MediaPolicy] = {
    Destination.TIMELINE: TIMELINE_POLICY,
    Destination.ALBUM: TIMELINE_POLICY,
    Destination.STORY: STORY_POLICY,
}


class AssetInspector:
    """
    Derives AssetDescriptors from local files and checks them against
    destination policies.

    Pure function of file contents; holds no mutable state.
    """

    def __init__(
        self,
        probe: Optional[IAssetProbe] = None,
        policies: Optional[Dict[Destination, MediaPolicy]] = None,
    ):
        self._probe = probe or FFmpegProbe()
        self._policies = policies or POLICIES

    def inspect(self, path: Path, kind: MediaKind) -> AssetDescriptor:
        """
        Describe a local media file.

        Args:
            path: Path to the file
            kind: Declared media kind

        Returns:
            AssetDescriptor

        Raises:
            InvalidInput: file missing, unreadable or not decodable as ``kind``
        """
        path = Path(path)
        try:
            kind = MediaKind(kind)
        except ValueError:
            raise InvalidInput(f"Unsupported media kind: {kind!r}") from None

        if not path.is_file():
            raise InvalidInput(f'The {kind.value} file "{path}" does not exist on disk.')

        if kind is MediaKind.PHOTO:
            width, height = self._probe.image_size(path)
            return AssetDescriptor(path=path, kind=kind, width=int(width), height=int(height))

        details = self._probe.video_details(path)
        return AssetDescriptor(
            path=path,
            kind=kind,
            width=int(details["width"]),
            height=int(details["height"]),
            duration=float(details["duration"]),
        )

    async def inspect_async(self, path: Path, kind: MediaKind) -> AssetDescriptor:
        """Inspect in the default executor (probing blocks)."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.inspect, path, kind)

    def validate(self, destination: Destination, descriptor: AssetDescriptor) -> None:
        """
        Raise PolicyViolation if the asset can't be posted to ``destination``.
        """
        destination = Destination.parse(destination)
        policy = self._policies.get(destination)
        if policy is None:
            # Direct sessions have no published limits.
            return

        name = descriptor.path.name
        if descriptor.height <= 0 or descriptor.width <= 0:
            raise PolicyViolation(f'Media "{name}" has an invalid resolution.')

        if descriptor.kind is MediaKind.PHOTO:
            if not policy.min_photo_width <= descriptor.width <= policy.max_photo_width:
                raise PolicyViolation(
                    f'Photo "{name}" width {descriptor.width}px is outside '
                    f"{policy.min_photo_width}-{policy.max_photo_width}px."
                )

        ratio = descriptor.aspect_ratio
        if not policy.min_aspect_ratio <= ratio <= policy.max_aspect_ratio:
            raise PolicyViolation(
                f'Media "{name}" aspect ratio {ratio:.2f} is outside '
                f"{policy.min_aspect_ratio}-{policy.max_aspect_ratio} for {destination.value}."
            )

        if descriptor.is_video:
            duration = descriptor.duration or 0.0
            if not policy.min_duration <= duration <= policy.max_duration:
                raise PolicyViolation(
                    f'Video "{name}" duration {duration:.1f}s is outside '
                    f"{policy.min_duration:g}-{policy.max_duration:g}s for {destination.value}."
                )
