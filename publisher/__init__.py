"""
Publisher - upload and configure photos, videos and albums.

Follows SOLID principles:
- Single Responsibility: Each service handles one stage (inspect, upload, configure)
- Open/Closed: New feeds get a new configure builder
- Liskov Substitution: Services implement protocols
- Interface Segregation: Small focused interfaces
- Dependency Injection: Services injected into orchestrator

Usage:
    from publisher import PublishOrchestrator, SessionContext

    session = SessionContext(uuid=uuid, csrf_token=token, account_id="123",
                             cookies={"sessionid": sessionid})

    async with PublishOrchestrator(session) as publisher:
        # Photo to the timeline, with caption and location
        await publisher.upload_single_photo("timeline", photo_path, {
            "caption": "hello",
            "location": {"external_id": "1", "external_id_source": "facebook_places",
                         "name": "Cafe", "lat": 40.4, "lng": -3.7},
        })

        # Story video (chunked transfer + configure retries)
        await publisher.upload_single_video("story", video_path)

        # Album of 2-10 items
        await publisher.upload_album([
            {"type": "photo", "file": "a.jpg"},
            {"type": "video", "file": "b.mp4"},
        ], {"caption": "trip"})
"""
from .errors import (
    ConfigureFailed,
    InvalidInput,
    PolicyViolation,
    PublisherError,
    TransferFailed,
)
from .models import (
    AlbumItem,
    AssetDescriptor,
    Destination,
    ExternalMetadata,
    InternalMetadata,
    Location,
    MediaKind,
    PublishConfig,
    ReelMention,
    SessionContext,
)
from .orchestrator import PublishOrchestrator

__version__ = "0.1.0"
__all__ = [
    # Main
    "PublishOrchestrator",
    # Models
    "AlbumItem",
    "AssetDescriptor",
    "Destination",
    "ExternalMetadata",
    "InternalMetadata",
    "Location",
    "MediaKind",
    "PublishConfig",
    "ReelMention",
    "SessionContext",
    # Errors
    "PublisherError",
    "InvalidInput",
    "PolicyViolation",
    "TransferFailed",
    "ConfigureFailed",
]
