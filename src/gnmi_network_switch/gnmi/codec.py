"""Value codec between raw JSON bytes and gNMI typed values.

Two JSON variants are supported, ``JSON`` and ``JSON_IETF``. They are
wire-incompatible, so a connection sticks to the one chosen during
capability negotiation.
"""
import base64
import json
from decimal import Decimal
from enum import Enum
from typing import Any

from .errors import (
    UnexpectedValueTypeError,
    UnsupportedEncodingError,
    UnsupportedValueKindError,
)
from .schema import Encoding, TypedValue, ValueKind

# Leaves set to this marker are reset to "unset" on the device.
UNSET_MARKER = "DME_UNSET_PROPERTY_MARKER"

_JSON_KINDS = {
    Encoding.JSON: ValueKind.JSON,
    Encoding.JSON_IETF: ValueKind.JSON_IETF,
}

_SCALAR_KINDS = {
    ValueKind.STRING,
    ValueKind.INT,
    ValueKind.UINT,
    ValueKind.BOOL,
    ValueKind.BYTES,
    ValueKind.FLOAT,
    ValueKind.DOUBLE,
}


def is_unset(value: Any) -> bool:
    """True if ``value`` is the explicit-unset sentinel."""
    return isinstance(value, str) and value == UNSET_MARKER


def _json_kind(encoding: Encoding) -> ValueKind:
    try:
        return _JSON_KINDS[Encoding(encoding)]
    except (KeyError, ValueError):
        raise UnsupportedEncodingError(f"no JSON value variant for encoding {encoding!r}")


def encode(data: bytes, encoding: Encoding) -> TypedValue:
    """Wrap schema-compliant JSON bytes as the variant for ``encoding``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return TypedValue(_json_kind(encoding), bytes(data))


def decode(value: TypedValue, encoding: Encoding) -> bytes:
    """Unwrap JSON bytes from a typed value.

    Raises:
        UnexpectedValueTypeError: If the variant does not match ``encoding``.
    """
    expected = _json_kind(encoding)
    if value is None or value.kind != expected:
        got = value.kind.value if value is not None else "None"
        raise UnexpectedValueTypeError(
            f"unexpected value type: expected {expected.value}, got {got}"
        )
    data = value.value
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _to_json_literal(value: Any) -> Any:
    """Map a Python scalar to the object ``json.dumps`` should emit."""
    if isinstance(value, bool):
        return value
    if isinstance(value, Enum):
        return _to_json_literal(value.value)
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Decimal):
        raise UnsupportedValueKindError("decimal values are not supported in JSON encoding")
    if isinstance(value, (list, tuple, set, frozenset)):
        raise UnsupportedValueKindError("leaf-list values are not supported in JSON encoding")
    raise UnsupportedValueKindError(f"unsupported value kind {type(value).__name__}")


def scalar_to_wire(value: Any, encoding: Encoding = Encoding.JSON) -> TypedValue:
    """Convert a single scalar leaf value to its JSON wire form.

    Accepts Python scalars (str, bool, int, float, bytes, str-Enum, the unset
    marker) or a ``TypedValue`` of a scalar variant. A ``TypedValue`` that is
    already in the target JSON variant passes through unchanged.

    Raises:
        UnsupportedValueKindError: For leaf-lists, decimals, any/ascii/proto
            values and anything else without a JSON representation.
    """
    kind = _json_kind(encoding)
    if isinstance(value, TypedValue):
        if value.kind == kind:
            return value
        if value.kind not in _SCALAR_KINDS:
            raise UnsupportedValueKindError(f"unsupported value type {value.kind.value}")
        value = value.value

    literal = _to_json_literal(value)
    try:
        data = json.dumps(literal, allow_nan=False)
    except ValueError as e:
        raise UnsupportedValueKindError(f"non-finite float {value!r} has no JSON representation") from e
    return TypedValue(kind, data.encode("utf-8"))


def wire_to_scalar(value: TypedValue) -> Any:
    """Best-effort inverse of ``scalar_to_wire`` used for logging and previews."""
    if value.kind in (ValueKind.JSON, ValueKind.JSON_IETF):
        return json.loads(value.value) if value.value else None
    return value.value
