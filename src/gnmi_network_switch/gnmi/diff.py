"""Diff engine for schema-typed configuration trees.

Computes the minimal gNMI notification that turns the observed subtree into
the desired one:

1. Leaf diff: leaves that are new or changed in ``desired`` become updates,
   leaves only present in ``observed`` become delete candidates.
2. List entries present in ``observed`` but missing from ``desired`` are
   deleted as a whole (one delete on the entry path).
3. Leaf deletes under a deleted entry are dropped.
4. Deletes whose path is also updated are dropped.
5. Updates targeting the key leaf of their enclosing list entry are dropped.
6. Paths under an ignore path are dropped (ignore paths are relative to the
   diffed subtree).
7. Remaining paths are prefixed with the subtree root.
8. Update values are converted to the negotiated JSON encoding.
"""
from typing import Any, Optional, Union

from .codec import is_unset, scalar_to_wire, wire_to_scalar
from .errors import DiffComputationError, GNMIError, UnsupportedValueKindError
from .path import Path, as_path, join_paths, matches_prefix
from .schema import Encoding, Notification, Update
from .tree import CHILD, LEAF, SchemaNode, leaf_json

_MISSING = object()


def _collect_leaves(
    node: Optional[SchemaNode],
    base: Path,
    out: dict[Path, Any],
    keep_unset: bool,
) -> None:
    """Flatten ``node`` into relative leaf paths, in declaration/key order."""
    if node is None:
        return
    for spec in type(node).schema_descriptor().fields:
        value = getattr(node, spec.attr)
        if value is None:
            continue
        if spec.kind == LEAF:
            if is_unset(value) and not keep_unset:
                continue
            out[base.child(spec.name)] = value
        elif spec.kind == CHILD:
            _collect_leaves(value, base.child(spec.name), out, keep_unset)
        else:
            for key in sorted(value):
                entry = value[key]
                _collect_leaves(entry, base.child(spec.name, entry.entry_key()), out, keep_unset)


def _removed_entries(
    observed: SchemaNode,
    desired: Optional[SchemaNode],
    base: Path,
    out: list[Path],
) -> None:
    """Collect entry paths of keyed lists that ``desired`` no longer contains.

    Entries present on both sides are descended into; removed entries are
    not, so nothing nested under a removed entry is reported twice.
    """
    for spec in type(observed).schema_descriptor().fields:
        if spec.kind == LEAF:
            continue
        current = getattr(observed, spec.attr)
        if current is None:
            continue
        wanted = getattr(desired, spec.attr) if desired is not None else None
        if spec.kind == CHILD:
            _removed_entries(current, wanted, base.child(spec.name), out)
            continue

        wanted_by_key = {e.list_key(): e for e in (wanted or {}).values()}
        for key in sorted(current):
            entry = current[key]
            entry_path = base.child(spec.name, entry.entry_key())
            match = wanted_by_key.get(entry.list_key())
            if match is None:
                out.append(entry_path)
            else:
                _removed_entries(entry, match, entry_path, out)


def _same(observed: Any, desired: Any) -> bool:
    if observed is _MISSING:
        return False
    return leaf_json(observed) == leaf_json(desired)


def modifies_list_key(path: Path) -> bool:
    """True if ``path`` addresses a key leaf of its enclosing list entry.

    e.g. ``.../Prof-list[name=default]/vrf-items/Vrf-list[name=mgmt0]/name``
    """
    if len(path.elems) < 2:
        return False
    last, prev = path.elems[-1], path.elems[-2]
    return last.name in prev.keys


def _ignored(path: Path, ignore: tuple[Path, ...]) -> bool:
    return any(matches_prefix(path, p) for p in ignore)


def compute_diff(
    root: Union[str, Path],
    observed: Optional[SchemaNode],
    desired: SchemaNode,
    *ignore: Union[str, Path],
    encoding: Encoding = Encoding.JSON,
) -> Notification:
    """
    Compute the notification that makes ``observed`` match ``desired``.

    Args:
        root: Path both trees are rooted at
        observed: Tree read from the device (``None`` when not configured)
        desired: Desired tree
        *ignore: Paths relative to ``root`` excluded from the result
        encoding: Negotiated JSON encoding for update values

    Returns:
        Notification with ordered deletes and updates

    Raises:
        DiffComputationError: If the trees are not comparable schema nodes
        UnsupportedValueKindError: If a leaf value has no JSON form
    """
    if not isinstance(desired, SchemaNode):
        raise DiffComputationError(f"desired value is not a schema node: {type(desired).__name__}")
    if observed is not None and type(observed) is not type(desired):
        raise DiffComputationError(
            f"cannot diff {type(observed).__name__} against {type(desired).__name__}"
        )

    root_path = as_path(root)
    ignore_paths = tuple(as_path(p) for p in ignore)

    try:
        got: dict[Path, Any] = {}
        want: dict[Path, Any] = {}
        _collect_leaves(observed, Path(), got, keep_unset=False)
        _collect_leaves(desired, Path(), want, keep_unset=True)

        updates: list[tuple[Path, Any]] = []
        for path, value in want.items():
            current = got.get(path, _MISSING)
            if is_unset(value) and current is _MISSING:
                continue
            if not _same(current, value):
                updates.append((path, value))
        leaf_deletes = [p for p in got if p not in want]

        entry_deletes: list[Path] = []
        if observed is not None:
            _removed_entries(observed, desired, Path(), entry_deletes)
    except GNMIError:
        raise
    except (AttributeError, TypeError, KeyError, ValueError) as e:
        raise DiffComputationError(f"failed to compute diff: {e}", path=str(root_path)) from e

    leaf_deletes = [
        p for p in leaf_deletes
        if not any(matches_prefix(p, d) for d in entry_deletes)
    ]
    updated = {p for p, _ in updates}
    deletes = [p for p in leaf_deletes + entry_deletes if p not in updated]
    # Relative paths: a diff rooted at a list entry still writes that entry's key.
    updates = [(p, v) for p, v in updates if not modifies_list_key(p)]

    n = Notification()
    for path in deletes:
        if _ignored(path, ignore_paths):
            continue
        n.deletes.append(join_paths(root_path, path))
    for path, value in updates:
        if _ignored(path, ignore_paths):
            continue
        full = join_paths(root_path, path)
        try:
            val = scalar_to_wire(value, encoding)
        except UnsupportedValueKindError as e:
            raise UnsupportedValueKindError(e.message, path=str(full), operation="diff") from e
        n.updates.append(Update(path=full, val=val))
    return n


def summarize_diff(n: Notification) -> str:
    """
    Create a human-readable summary of a notification.

    Useful for dry-run output and logging.
    """
    if n.empty:
        return "No changes needed - current state matches desired state"

    lines = [f"Changes to apply ({n.total_paths} paths):"]
    for path in n.deletes:
        lines.append(f"  [-] {path}")
    for u in n.updates:
        lines.append(f"  [~] {u.path} = {wire_to_scalar(u.val)!r}")
    return "\n".join(lines)
