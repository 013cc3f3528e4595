"""gNMI engine - declarative configuration of switches over gNMI.

Synchronizes schema-typed desired configuration with a device:
- Capability negotiation and encoding selection
- Typed reads of configuration subtrees
- Minimal diffs with whole-entry list deletes and ignore paths
- Chunked Set requests with dry-run support

Usage:
    from gnmi_network_switch.gnmi import GNMIClient, GNMIEngine

    client = await GNMIClient.connect(transport, required_model=NXOS_MODEL)
    engine = GNMIEngine(client)
    await engine.synchronize(desired_config)
"""

from .client import GNMIClient
from .codec import UNSET_MARKER, decode, encode, is_unset, scalar_to_wire
from .diff import compute_diff, summarize_diff
from .dispatcher import DEFAULT_MAX_PATHS_PER_REQUEST, Dispatcher, DispatchResult
from .engine import (
    DeleteOperation,
    DesiredConfig,
    EditOperation,
    GNMIEngine,
    PatchOperation,
    ReplaceOperation,
    SyncResult,
)
from .errors import (
    DeviceUnavailableError,
    DiffComputationError,
    GNMIError,
    InvalidPathError,
    NotFoundError,
    ProtocolViolationError,
    SchemaValidationError,
    SynchronizationError,
    UnexpectedValueTypeError,
    UnsupportedDeviceError,
    UnsupportedEncodingError,
    UnsupportedValueKindError,
    ValueNilError,
    WriteError,
)
from .negotiator import NegotiationResult, negotiate
from .path import Path, PathElem, format_path, join_paths, matches_prefix, parse_path
from .schema import Capabilities, DataType, Encoding, Model, Notification, TypedValue, Update
from .transport import GNMITransport, StatusCode, TransportError
from .tree import SchemaNode, Unset, validate_tree

__all__ = [
    # Entry points
    "GNMIClient",
    "GNMIEngine",
    "ReplaceOperation",
    "PatchOperation",
    "EditOperation",
    "DeleteOperation",
    "DesiredConfig",
    "SyncResult",
    # Paths
    "Path",
    "PathElem",
    "parse_path",
    "format_path",
    "join_paths",
    "matches_prefix",
    # Values and trees
    "UNSET_MARKER",
    "Unset",
    "encode",
    "decode",
    "is_unset",
    "scalar_to_wire",
    "SchemaNode",
    "validate_tree",
    # Components (for advanced use)
    "compute_diff",
    "summarize_diff",
    "Dispatcher",
    "DispatchResult",
    "DEFAULT_MAX_PATHS_PER_REQUEST",
    "negotiate",
    "NegotiationResult",
    # Wire
    "Capabilities",
    "DataType",
    "Encoding",
    "Model",
    "Notification",
    "TypedValue",
    "Update",
    "GNMITransport",
    "StatusCode",
    "TransportError",
    # Errors
    "GNMIError",
    "InvalidPathError",
    "DeviceUnavailableError",
    "UnsupportedEncodingError",
    "UnsupportedDeviceError",
    "ValueNilError",
    "NotFoundError",
    "ProtocolViolationError",
    "DiffComputationError",
    "UnsupportedValueKindError",
    "UnexpectedValueTypeError",
    "SchemaValidationError",
    "WriteError",
    "SynchronizationError",
]
