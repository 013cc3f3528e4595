"""Capability negotiation.

Runs once per connection: one Capabilities RPC, encoding selection from a
fixed preference order, and (unless skipped) a check that the device reports
the required model version. No retries happen here; ``DeviceUnavailableError``
is left to the caller (see ``utils.connection.with_retry``).
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..utils.logging_config import timed
from .errors import UnsupportedDeviceError, UnsupportedEncodingError
from .schema import Capabilities, CapabilityRequest, Encoding, Model
from .transport import GNMITransport, TransportError, raise_for_unavailable

logger = logging.getLogger(__name__)

DEFAULT_ENCODINGS: tuple[Encoding, ...] = (Encoding.JSON, Encoding.JSON_IETF)


@dataclass(frozen=True)
class NegotiationResult:
    """Outcome of a successful negotiation."""
    capabilities: Capabilities
    encoding: Encoding


@timed("capabilities")
async def negotiate(
    transport: GNMITransport,
    required_model: Optional[Model] = None,
    encodings: Sequence[Encoding] = DEFAULT_ENCODINGS,
    skip_version_check: bool = False,
) -> NegotiationResult:
    """
    Negotiate encoding and verify the device model.

    Args:
        transport: Transport to the device
        required_model: Model whose (name, version) must be reported
        encodings: Client encodings in preference order
        skip_version_check: Do not verify ``required_model``

    Returns:
        NegotiationResult with the immutable capabilities and chosen encoding

    Raises:
        DeviceUnavailableError: Device unreachable
        UnsupportedEncodingError: No mutually supported encoding
        UnsupportedDeviceError: Required model version not reported
    """
    try:
        res = await transport.capabilities(CapabilityRequest())
    except TransportError as e:
        raise_for_unavailable(e, "capabilities")
        raise

    supported = frozenset(Encoding(e) for e in res.supported_encodings)
    encoding = next((e for e in encodings if e in supported), None)
    if encoding is None:
        raise UnsupportedEncodingError(
            f"target device does not support a JSON encoding "
            f"(device: {sorted(e.name for e in supported)}, "
            f"client: {[e.name for e in encodings]})",
            operation="capabilities",
        )

    capabilities = Capabilities(
        supported_encodings=supported,
        supported_models=tuple(res.supported_models),
        gnmi_version=res.gnmi_version,
    )

    if required_model is not None and not skip_version_check:
        if not capabilities.supports_model(required_model.name, required_model.version):
            raise UnsupportedDeviceError(
                f"target device does not report model {required_model.name} "
                f"version {required_model.version}",
                operation="capabilities",
            )

    logger.debug(
        f"Negotiated encoding {encoding.name} "
        f"({len(capabilities.supported_models)} models, gNMI {capabilities.gnmi_version or 'n/a'})"
    )
    return NegotiationResult(capabilities=capabilities, encoding=encoding)
