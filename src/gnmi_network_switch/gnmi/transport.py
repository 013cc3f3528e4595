"""Transport interface for the gNMI RPCs.

The engine talks to devices only through ``GNMITransport``. A concrete
transport maps the wire dataclasses in ``schema`` onto its own stubs
(e.g. generated gRPC stubs) and reports RPC failures as ``TransportError``.
"""
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from .errors import DeviceUnavailableError
from .schema import (
    CapabilityRequest,
    CapabilityResponse,
    GetRequest,
    GetResponse,
    SetRequest,
    SetResponse,
)


class StatusCode(str, Enum):
    """RPC status codes (subset of the gRPC codes)."""
    OK = "ok"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
    INVALID_ARGUMENT = "invalid_argument"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    FAILED_PRECONDITION = "failed_precondition"
    ABORTED = "aborted"
    UNIMPLEMENTED = "unimplemented"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    UNAUTHENTICATED = "unauthenticated"


class TransportError(Exception):
    """An RPC failed at the transport level."""

    def __init__(self, code: StatusCode, details: str = ""):
        self.code = code
        self.details = details
        super().__init__(f"rpc error: code = {code.value} desc = {details}")

    @property
    def unavailable(self) -> bool:
        return self.code == StatusCode.UNAVAILABLE


@runtime_checkable
class GNMITransport(Protocol):
    """Async gNMI transport: Capabilities, Get and Set."""

    async def capabilities(self, request: CapabilityRequest) -> CapabilityResponse:
        """Run the Capabilities RPC."""
        ...

    async def get(self, request: GetRequest) -> GetResponse:
        """Run the Get RPC."""
        ...

    async def set(self, request: SetRequest) -> SetResponse:
        """Run the Set RPC."""
        ...

    async def close(self) -> None:
        """Release the underlying channel."""
        ...


def raise_for_unavailable(
    err: TransportError,
    operation: str,
    path: Optional[str] = None,
) -> None:
    """Re-raise an UNAVAILABLE transport error as ``DeviceUnavailableError``."""
    if err.unavailable:
        raise DeviceUnavailableError(
            f"device is not reachable: {err.details or err.code.value}",
            path=path,
            operation=operation,
        ) from err
