"""Schema-typed configuration trees.

Configuration subtrees are pydantic models deriving from ``SchemaNode``.
Each field is one of:

- a scalar leaf (str, int, bool, float, bytes or a str Enum), ``None`` when absent
- a nested ``SchemaNode`` child, ``None`` when absent
- a keyed list, ``dict[str, EntryNode]`` keyed by the entry's composite key

Every node class exposes an explicit ``NodeSchema`` descriptor (fields in
declaration order, classified as leaf/child/list, plus the entry key leaves)
that the diff engine walks. The descriptor is resolved once per class.

Example:

    class NtpProvider(SchemaNode):
        list_keys: ClassVar[tuple[str, ...]] = ("name",)

        name: Optional[str] = None
        vrf: Optional[str] = Field(None, alias="vrf")

    class NtpProviders(SchemaNode):
        providers: Optional[dict[str, NtpProvider]] = Field(None, alias="NtpProvider-list")
"""
import base64
import json
import types
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Literal, Optional, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .codec import is_unset
from .errors import SchemaValidationError
from .schema import Capabilities

# Type for leaves that may be reset explicitly, e.g. ``Optional[Union[int, Unset]]``.
Unset = Literal["DME_UNSET_PROPERTY_MARKER"]

LEAF = "leaf"
CHILD = "child"
LIST = "list"


@dataclass(frozen=True)
class FieldSpec:
    """Descriptor for one schema field."""
    attr: str
    name: str
    kind: str
    node_cls: Optional[type] = None
    is_bytes: bool = False


@dataclass(frozen=True)
class NodeSchema:
    """Descriptor for a schema node class."""
    fields: tuple[FieldSpec, ...]
    keys: tuple[str, ...] = ()

    @property
    def leaves(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.kind == LEAF)

    @property
    def children(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.kind == CHILD)

    @property
    def lists(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.kind == LIST)

    def by_name(self, name: str) -> Optional[FieldSpec]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


_SCHEMAS: dict[type, NodeSchema] = {}


def _union_members(annotation: Any) -> list[Any]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return [a for a in get_args(annotation) if a is not type(None)]
    return [annotation]


def _classify(attr: str, name: str, annotation: Any) -> FieldSpec:
    members = _union_members(annotation)
    for m in members:
        if isinstance(m, type) and issubclass(m, SchemaNode):
            return FieldSpec(attr, name, CHILD, m)
        if get_origin(m) is dict:
            args = get_args(m)
            if len(args) == 2 and isinstance(args[1], type) and issubclass(args[1], SchemaNode):
                return FieldSpec(attr, name, LIST, args[1])
    return FieldSpec(attr, name, LEAF, is_bytes=any(m is bytes for m in members))


def _key_str(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def leaf_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def _strip_unset(obj: Any) -> Any:
    """Drop leaves holding the unset marker from decoded device JSON."""
    if isinstance(obj, dict):
        return {k: _strip_unset(v) for k, v in obj.items() if not is_unset(v)}
    if isinstance(obj, list):
        return [_strip_unset(v) for v in obj]
    return obj


class SchemaNode(BaseModel):
    """Base class for schema-typed configuration nodes."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )

    # YANG names of the key leaves when the node is a list entry.
    list_keys: ClassVar[tuple[str, ...]] = ()
    # Reset to ``to_default()`` instead of being deleted.
    defaultable: ClassVar[bool] = False

    @classmethod
    def schema_descriptor(cls) -> NodeSchema:
        """Return the (cached) descriptor for this node class."""
        schema = _SCHEMAS.get(cls)
        if schema is None:
            fields = tuple(
                _classify(attr, info.alias or attr, info.annotation)
                for attr, info in cls.model_fields.items()
            )
            schema = NodeSchema(fields=fields, keys=tuple(cls.list_keys))
            for key in schema.keys:
                spec = schema.by_name(key)
                if spec is None or spec.kind != LEAF:
                    raise TypeError(f"{cls.__name__}: key '{key}' is not a leaf")
            _SCHEMAS[cls] = schema
        return schema

    @model_validator(mode="before")
    @classmethod
    def _coerce_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        schema = cls.schema_descriptor()
        data = dict(data)
        for spec in schema.fields:
            for k in (spec.name, spec.attr):
                if k not in data or data[k] is None:
                    continue
                if spec.kind == LIST:
                    data[k] = keyed_entries(spec.node_cls, data[k])
                elif spec.is_bytes and isinstance(data[k], str) and not is_unset(data[k]):
                    data[k] = base64.b64decode(data[k])
        return data

    @model_validator(mode="after")
    def _check_key_leaves(self):
        for key in type(self).schema_descriptor().keys:
            spec = type(self).schema_descriptor().by_name(key)
            if getattr(self, spec.attr) is None:
                raise ValueError(f"list entry key leaf '{key}' is not set")
        return self

    # --- keys ---

    def entry_key(self) -> dict[str, str]:
        """Key leaves of this list entry, YANG name to string value."""
        schema = type(self).schema_descriptor()
        return {
            key: _key_str(getattr(self, schema.by_name(key).attr))
            for key in schema.keys
        }

    def list_key(self) -> str:
        """Composite key string used as the keyed-list mapping key."""
        key = self.entry_key()
        if len(key) == 1:
            return next(iter(key.values()))
        return ",".join(f"{k}={v}" for k, v in sorted(key.items()))

    # --- serialization ---

    def to_yang(self) -> dict[str, Any]:
        """Return the JSON-ready dict of this node (YANG names, lists as arrays)."""
        out: dict[str, Any] = {}
        for spec in type(self).schema_descriptor().fields:
            value = getattr(self, spec.attr)
            if value is None:
                continue
            if spec.kind == LEAF:
                out[spec.name] = leaf_json(value)
            elif spec.kind == CHILD:
                out[spec.name] = value.to_yang()
            else:
                out[spec.name] = [value[k].to_yang() for k in sorted(value)]
        return out

    def marshal(self, capabilities: Optional[Capabilities] = None) -> bytes:
        """Serialize for the device. Override for capability-specific output."""
        return json.dumps(self.to_yang(), allow_nan=False).encode("utf-8")

    @classmethod
    def unmarshal(cls, data: bytes, capabilities: Optional[Capabilities] = None) -> "SchemaNode":
        """Decode device JSON into a node of this class.

        Leaves holding the unset marker are treated as absent. Some devices
        wrap a single requested list entry in an array; that is unwrapped.
        """
        try:
            obj = json.loads(data)
        except ValueError as e:
            raise SchemaValidationError(f"invalid JSON payload: {e}") from e
        if cls.list_keys and isinstance(obj, list) and len(obj) == 1:
            obj = obj[0]
        try:
            return cls.model_validate(_strip_unset(obj))
        except ValidationError as e:
            raise SchemaValidationError(f"payload does not match {cls.__name__}: {e}") from e

    def to_default(self) -> "SchemaNode":
        """Schema-default value of this node; key leaves are kept."""
        schema = type(self).schema_descriptor()
        keys = {schema.by_name(k).attr: getattr(self, schema.by_name(k).attr) for k in schema.keys}
        return type(self)(**keys)


def keyed_entries(entry_cls: type, value: Any) -> dict[str, SchemaNode]:
    """Build a keyed-list mapping from a JSON array or a mapping of entries."""
    items = value.values() if isinstance(value, dict) else value
    if not isinstance(items, (list, tuple)) and not isinstance(value, dict):
        raise ValueError(f"expected list of {entry_cls.__name__} entries")
    out: dict[str, SchemaNode] = {}
    for item in items:
        entry = item if isinstance(item, entry_cls) else entry_cls.model_validate(item)
        key = entry.list_key()
        if key in out:
            raise ValueError(f"duplicate {entry_cls.__name__} key '{key}'")
        out[key] = entry
    return out


def validate_tree(node: SchemaNode) -> None:
    """Check ``node`` against its own schema constraints.

    Raises:
        SchemaValidationError: If the tree is not a ``SchemaNode`` or any
            field or keyed-list entry is invalid.
    """
    if not isinstance(node, SchemaNode):
        raise SchemaValidationError(f"expected schema node, got {type(node).__name__}")
    try:
        type(node).model_validate(node.to_yang())
    except ValidationError as e:
        raise SchemaValidationError(f"{type(node).__name__} failed validation: {e}") from e
    except (AttributeError, TypeError, ValueError) as e:
        raise SchemaValidationError(f"{type(node).__name__} is malformed: {e}") from e
    _check_list_keys(node)


def _check_list_keys(node: SchemaNode) -> None:
    for spec in type(node).schema_descriptor().fields:
        value = getattr(node, spec.attr)
        if value is None:
            continue
        if spec.kind == CHILD:
            _check_list_keys(value)
        elif spec.kind == LIST:
            for key, entry in value.items():
                if not isinstance(entry, spec.node_cls):
                    raise SchemaValidationError(
                        f"'{spec.name}' entry '{key}' is not a {spec.node_cls.__name__}"
                    )
                if entry.list_key() != key:
                    raise SchemaValidationError(
                        f"'{spec.name}' entry stored under '{key}' has key '{entry.list_key()}'"
                    )
                _check_list_keys(entry)
