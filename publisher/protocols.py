"""
Protocols (Interfaces) for Dependency Inversion.

Following Interface Segregation Principle - small, focused interfaces.
"""
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .models import TransferResponse


@runtime_checkable
class ITransferClient(Protocol):
    """Interface for sending API requests."""

    async def send(
        self,
        endpoint: str,
        fields: Mapping[str, Any],
        multipart: bool = False,
        signed: bool = True,
        files: Optional[Mapping[str, Tuple[str, bytes, str]]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> TransferResponse:
        """POST fields (optionally multipart or signed) to an API endpoint."""
        ...

    async def send_bytes(
        self,
        url: str,
        data: bytes,
        headers: Mapping[str, str],
    ) -> TransferResponse:
        """POST raw bytes to an absolute URL."""
        ...


@runtime_checkable
class IAssetProbe(Protocol):
    """Interface for local media probing."""

    def image_size(self, path: Path) -> Tuple[int, int]:
        """Return (width, height) of an image."""
        ...

    def video_details(self, path: Path) -> Dict[str, Any]:
        """Return {"width", "height", "duration"} of a video's first stream."""
        ...

    def video_thumbnail(self, path: Path) -> bytes:
        """Return a JPEG frame of a video."""
        ...


@runtime_checkable
class IDeviceProfile(Protocol):
    """Interface for the device fields sent with configure requests."""

    manufacturer: str
    model: str
    android_version: int
    android_release: str

    def to_payload(self) -> Dict[str, Any]:
        ...
