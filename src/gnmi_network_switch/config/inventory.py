"""Device inventory management from YAML configuration."""
import logging
from dataclasses import fields
from pathlib import Path
from typing import Optional

import yaml

from ..devices.base import DeviceConfig

logger = logging.getLogger(__name__)

_CONFIG_FIELDS = {f.name for f in fields(DeviceConfig)}


class DeviceInventory:
    """Manages the gNMI device inventory loaded from YAML config.

    ```yaml
    defaults:
      password_env: GNMI_PASSWORD
      max_paths_per_request: 20

    devices:
      leaf-1:
        type: nxos
        name: "Leaf 1"
        host: 10.0.0.11
        username: admin
      spine-1:
        type: openconfig
        name: "Spine 1"
        host: 10.0.0.1
        username: admin
        dry_run: true
    ```
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config()
        self._config: dict = {}
        self._load_config()

    def _find_config(self) -> str:
        """Find the devices.yaml config file."""
        search_paths = [
            Path.cwd() / "configs" / "devices.yaml",
            Path.cwd() / "devices.yaml",
            Path.home() / ".config" / "switchsync" / "devices.yaml",
            Path("/etc/switchsync/devices.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return str(path)

        raise FileNotFoundError(
            "Could not find devices.yaml. Create one in ./configs/devices.yaml"
        )

    def _load_config(self) -> None:
        """Load the YAML configuration."""
        with open(self.config_path) as f:
            self._config = yaml.safe_load(f) or {}

        # Apply defaults
        defaults = self._config.get("defaults", {})
        for device_id, device_config in self._config.get("devices", {}).items():
            for key, value in defaults.items():
                if key not in device_config:
                    device_config[key] = value

    def get_device_ids(self) -> list[str]:
        """Get all device IDs."""
        return list(self._config.get("devices", {}).keys())

    def get_raw_config(self, device_id: str) -> dict:
        """Get raw config dict for a device."""
        devices = self._config.get("devices", {})
        if device_id not in devices:
            raise KeyError(f"Unknown device: {device_id}")
        return devices[device_id]

    def get_device_config(self, device_id: str) -> DeviceConfig:
        """Get typed config for a device.

        Keys that are not DeviceConfig fields are kept in ``extra``.
        """
        raw = dict(self.get_raw_config(device_id))
        extra = {k: raw.pop(k) for k in list(raw) if k not in _CONFIG_FIELDS}
        if extra:
            logger.debug(f"Device {device_id}: extra config keys {sorted(extra)}")
        raw.setdefault("name", device_id)
        try:
            return DeviceConfig(extra={**raw.pop("extra", {}), **extra}, **raw)
        except TypeError as e:
            raise ValueError(f"Invalid config for device {device_id}: {e}") from e

    def get_devices_by_type(self, device_type: str) -> list[str]:
        """Get device IDs filtered by type."""
        return [
            device_id
            for device_id, config in self._config.get("devices", {}).items()
            if config.get("type") == device_type
        ]
