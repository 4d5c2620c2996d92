"""Device profile injected into configure payloads and the user agent."""
from dataclasses import dataclass
from typing import Any, Dict

from ..errors import InvalidInput

DEFAULT_DEVICE_STRING = "24/7.0; 380dpi; 1080x1920; OnePlus; ONEPLUS A3010; OnePlus3T; qcom"


@dataclass(frozen=True)
class DeviceProfile:
    """Android device identity the session was created with."""
    android_version: int
    android_release: str
    dpi: str
    resolution: str
    manufacturer: str
    model: str
    device: str
    cpu: str

    @classmethod
    def from_string(cls, device_string: str = DEFAULT_DEVICE_STRING) -> "DeviceProfile":
        """
        Parse a device string of the form
        "<api>/<release>; <dpi>; <WxH>; <manufacturer>; <model>; <device>; <cpu>".
        """
        parts = [part.strip() for part in device_string.split(";")]
        if len(parts) != 7 or "/" not in parts[0]:
            raise InvalidInput(f'Bad device string "{device_string}".')

        api, release = parts[0].split("/", 1)
        try:
            android_version = int(api)
        except ValueError:
            raise InvalidInput(f'Bad Android API level "{api}".') from None

        return cls(
            android_version=android_version,
            android_release=release,
            dpi=parts[1],
            resolution=parts[2],
            manufacturer=parts[3],
            model=parts[4],
            device=parts[5],
            cpu=parts[6],
        )

    @property
    def device_string(self) -> str:
        return "; ".join([
            f"{self.android_version}/{self.android_release}",
            self.dpi,
            self.resolution,
            self.manufacturer,
            self.model,
            self.device,
            self.cpu,
        ])

    def user_agent(self, app_version: str, locale: str = "en_US") -> str:
        return f"Instagram {app_version} Android ({self.device_string}; {locale})"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "manufacturer": self.manufacturer,
            "model": self.model,
            "android_version": self.android_version,
            "android_release": self.android_release,
        }
