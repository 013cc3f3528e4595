"""Error kinds raised by the gNMI engine.

Every error carries the operation and path it relates to (when known) so the
caller can log it verbatim. Underlying causes are chained with ``raise ... from``.
"""
from typing import Optional


class GNMIError(Exception):
    """Base class for all gNMI engine errors."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.message = message
        self.path = path
        self.operation = operation
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.operation:
            parts.append(self.operation)
        if self.path:
            parts.append(f"path '{self.path}'")
        if parts:
            return f"{' '.join(parts)}: {self.message}"
        return self.message


class InvalidPathError(GNMIError, ValueError):
    """Malformed path string or path value."""
    pass


class DeviceUnavailableError(GNMIError):
    """Target device is not reachable through gNMI."""
    pass


class UnsupportedEncodingError(GNMIError):
    """Device and client share no JSON encoding."""
    pass


class UnsupportedDeviceError(GNMIError):
    """Device does not report the required model version."""
    pass


class ValueNilError(GNMIError):
    """Path is valid but has no configured value on the device."""
    pass


class NotFoundError(GNMIError):
    """No response section matched the requested path."""
    pass


class ProtocolViolationError(GNMIError):
    """Response shape violates the one-section-per-path invariant."""
    pass


class DiffComputationError(GNMIError):
    """Trees could not be diffed (untyped or mismatched schema)."""
    pass


class UnsupportedValueKindError(GNMIError):
    """Value kind has no JSON wire representation."""
    pass


class UnexpectedValueTypeError(GNMIError):
    """Wire value variant does not match the negotiated encoding."""
    pass


class SchemaValidationError(GNMIError):
    """Tree violates its own schema constraints."""
    pass


class WriteError(GNMIError):
    """A Set request failed."""
    pass


class SynchronizationError(GNMIError):
    """A declared operation failed during synchronization."""
    pass
