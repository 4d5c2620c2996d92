"""Services for publisher module."""
from .album import AlbumAggregator
from .configure import ConfigureEngine
from .device import DeviceProfile
from .ids import generate_upload_id
from .inspector import AssetInspector, MediaPolicy
from .photo_upload import PhotoUploadService
from .probe import FFmpegProbe
from .retry import configure_with_retries
from .transfer import HTTPTransferClient, sign_fields
from .video_upload import VideoUploadService, plan_chunks

__all__ = [
    "AlbumAggregator",
    "AssetInspector",
    "ConfigureEngine",
    "DeviceProfile",
    "FFmpegProbe",
    "HTTPTransferClient",
    "MediaPolicy",
    "PhotoUploadService",
    "VideoUploadService",
    "configure_with_retries",
    "generate_upload_id",
    "plan_chunks",
    "sign_fields",
]
