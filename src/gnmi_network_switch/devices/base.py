"""Base device definitions for gNMI-managed switches."""
import os
from dataclasses import dataclass, field
from typing import Optional

from ..gnmi.dispatcher import DEFAULT_MAX_PATHS_PER_REQUEST
from ..gnmi.schema import Encoding, Model


@dataclass
class DeviceConfig:
    """Configuration for a gNMI device."""
    type: str
    name: str
    host: str
    username: str
    port: int = 9339
    password: Optional[str] = None
    password_env: str = "NETWORK_PASSWORD"
    timeout: int = 30
    retries: int = 3
    retry_delay: float = 2
    # gNMI options
    tls: bool = True
    verify_ssl: bool = True
    skip_version_check: bool = False
    dry_run: bool = False
    max_paths_per_request: Optional[int] = None
    extra: dict = field(default_factory=dict)

    def get_password(self) -> str:
        """Get password from config or environment variable."""
        if self.password:
            return self.password
        return os.environ.get(self.password_env, "")

    @property
    def target(self) -> str:
        """``host:port`` dial target."""
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class DeviceProfile:
    """Per device-family gNMI settings."""
    name: str
    description: str = ""
    # Model whose (name, version) the device must report
    required_model: Optional[Model] = None
    # Client encodings in preference order
    encodings: tuple[Encoding, ...] = (Encoding.JSON, Encoding.JSON_IETF)
    max_paths_per_request: int = DEFAULT_MAX_PATHS_PER_REQUEST
