"""Wire message definitions for the gNMI engine.

Mirrors the subset of the gNMI protobuf messages the engine uses, as plain
dataclasses so that transports can map them onto their own stubs.
"""
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional

from .path import Path


class Encoding(IntEnum):
    """gNMI encodings (protobuf enum values)."""
    JSON = 0
    BYTES = 1
    PROTO = 2
    ASCII = 3
    JSON_IETF = 4


class DataType(str, Enum):
    """Data type selector of a Get request."""
    ALL = "all"
    CONFIG = "config"
    STATE = "state"
    OPERATIONAL = "operational"


class ValueKind(str, Enum):
    """Variant of a TypedValue."""
    STRING = "string_val"
    INT = "int_val"
    UINT = "uint_val"
    BOOL = "bool_val"
    BYTES = "bytes_val"
    FLOAT = "float_val"
    DOUBLE = "double_val"
    DECIMAL = "decimal_val"
    LEAFLIST = "leaflist_val"
    ANY = "any_val"
    JSON = "json_val"
    JSON_IETF = "json_ietf_val"
    ASCII = "ascii_val"
    PROTO_BYTES = "proto_bytes"


@dataclass(frozen=True)
class TypedValue:
    """A single value on the wire, tagged with its variant."""
    kind: ValueKind
    value: Any = None


@dataclass(frozen=True)
class Update:
    """A path/value pair."""
    path: Path
    val: TypedValue


@dataclass
class Notification:
    """Ordered updates and deletes; also the diff engine's delta."""
    updates: list[Update] = field(default_factory=list)
    deletes: list[Path] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.updates and not self.deletes

    @property
    def total_paths(self) -> int:
        return len(self.updates) + len(self.deletes)


@dataclass(frozen=True)
class Model:
    """A YANG model reported by the device."""
    name: str
    organization: str = ""
    version: str = ""


@dataclass(frozen=True)
class Capabilities:
    """Negotiated device capabilities, immutable for the connection's life."""
    supported_encodings: frozenset[Encoding] = frozenset()
    supported_models: tuple[Model, ...] = ()
    gnmi_version: str = ""

    def supports_model(self, name: str, version: Optional[str] = None) -> bool:
        return any(
            m.name == name and (version is None or m.version == version)
            for m in self.supported_models
        )


# --- RPC messages ---

@dataclass
class CapabilityRequest:
    pass


@dataclass
class CapabilityResponse:
    supported_encodings: list[Encoding] = field(default_factory=list)
    supported_models: list[Model] = field(default_factory=list)
    gnmi_version: str = ""


@dataclass
class GetRequest:
    paths: list[Path] = field(default_factory=list)
    type: DataType = DataType.CONFIG
    encoding: Encoding = Encoding.JSON


@dataclass
class GetResponse:
    notifications: list[Notification] = field(default_factory=list)


@dataclass
class SetRequest:
    deletes: list[Path] = field(default_factory=list)
    replaces: list[Update] = field(default_factory=list)
    updates: list[Update] = field(default_factory=list)

    @property
    def total_paths(self) -> int:
        return len(self.deletes) + len(self.replaces) + len(self.updates)


@dataclass
class SetResponse:
    """Opaque per-device result; only success/failure matters."""
    results: list[Any] = field(default_factory=list)
    timestamp: int = 0
