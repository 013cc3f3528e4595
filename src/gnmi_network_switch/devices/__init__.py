"""Device profiles and the provider registry."""
import logging
from typing import Iterable, Optional

from ..gnmi.client import GNMIClient
from ..gnmi.transport import GNMITransport
from .base import DeviceConfig, DeviceProfile
from .nxos import NXOS_MODEL, NXOS_PROFILE
from .openconfig import OPENCONFIG_PROFILE

logger = logging.getLogger(__name__)

__all__ = [
    "DeviceConfig",
    "DeviceProfile",
    "ProviderRegistry",
    "default_registry",
    "NXOS_MODEL",
    "NXOS_PROFILE",
    "OPENCONFIG_PROFILE",
]


class ProviderRegistry:
    """Maps device types to profiles.

    Built once at startup and passed to whatever needs to resolve a device
    family; there is no process-wide registry.
    """

    def __init__(self, profiles: Optional[Iterable[DeviceProfile]] = None):
        self._profiles: dict[str, DeviceProfile] = {}
        for profile in profiles or ():
            self.register(profile)

    def register(self, profile: DeviceProfile) -> None:
        """Register a profile under its name."""
        name = profile.name.lower()
        if name in self._profiles:
            raise ValueError(f"Device type already registered: {name}")
        self._profiles[name] = profile

    def get(self, device_type: str) -> DeviceProfile:
        """Get the profile for a device type."""
        name = device_type.lower()
        if name not in self._profiles:
            raise ValueError(f"Unknown device type: {device_type}")
        return self._profiles[name]

    def names(self) -> list[str]:
        """Registered device types."""
        return sorted(self._profiles)

    def __contains__(self, device_type: str) -> bool:
        return device_type.lower() in self._profiles

    async def connect(
        self,
        device_id: str,
        config: DeviceConfig,
        transport: GNMITransport,
    ) -> GNMIClient:
        """Negotiate with a device using its profile and per-device overrides."""
        profile = self.get(config.type)
        max_paths = config.max_paths_per_request or profile.max_paths_per_request
        logger.debug(
            f"Connecting to {device_id} ({profile.name}) at {config.target}, "
            f"max_paths_per_request={max_paths}"
        )
        return await GNMIClient.connect(
            transport,
            required_model=profile.required_model,
            encodings=profile.encodings,
            skip_version_check=config.skip_version_check,
            dry_run=config.dry_run,
            max_paths_per_request=max_paths,
            device_id=device_id,
        )


def default_registry() -> ProviderRegistry:
    """Registry with the built-in NX-OS and OpenConfig profiles."""
    return ProviderRegistry([NXOS_PROFILE, OPENCONFIG_PROFILE])
