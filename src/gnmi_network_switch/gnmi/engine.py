"""Update orchestrator - the public entry point of the gNMI engine.

A desired-configuration producer declares an ordered list of operations:

- ``ReplaceOperation``: replace the whole subtree at a path
- ``PatchOperation``: merge a subtree into the device, keeping values it
  does not mention
- ``EditOperation``: read the subtree, diff it against the desired value
  (minus ignore paths) and send only the changes
- ``DeleteOperation``: delete the subtree (or reset it to its default when
  the node class is defaultable)

Replace and patch read the subtree first and send nothing when the device
already holds the desired value.

Operations run strictly in the declared order; a later operation may depend
on an earlier one having taken effect (e.g. enabling a feature before
configuring it).

Usage:
    engine = GNMIEngine(client)
    await engine.synchronize(ntp_config)
"""
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union, runtime_checkable

from .diff import compute_diff
from .errors import GNMIError, SynchronizationError, ValueNilError
from .path import Path, as_path
from .tree import SchemaNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaceOperation:
    """Replace the subtree at ``path`` with ``value``."""
    path: Union[str, Path]
    value: SchemaNode
    kind = "replace"


@dataclass(frozen=True)
class PatchOperation:
    """Merge ``value`` into the subtree at ``path`` with one Set update."""
    path: Union[str, Path]
    value: SchemaNode
    kind = "patch"


@dataclass(frozen=True)
class EditOperation:
    """Merge ``value`` into the subtree at ``path`` via a diff.

    ``ignore_paths`` are relative to ``value`` and excluded from the diff.
    """
    path: Union[str, Path]
    value: SchemaNode
    ignore_paths: tuple[Union[str, Path], ...] = field(default_factory=tuple)
    kind = "edit"


@dataclass(frozen=True)
class DeleteOperation:
    """Delete the subtree at ``path``.

    If ``value`` is given and its class is defaultable, the subtree is reset
    to ``value.to_default()`` instead.
    """
    path: Union[str, Path]
    value: Optional[SchemaNode] = None
    kind = "delete"


Operation = Union[ReplaceOperation, PatchOperation, EditOperation, DeleteOperation]


@runtime_checkable
class DesiredConfig(Protocol):
    """Producer of declared operations.

    ``to_operations`` may be a plain or an async method; it receives the
    client so it can read current device state when it needs to.
    """

    def to_operations(self, client: Any) -> Any:
        ...


@dataclass
class SyncResult:
    """Outcome of a synchronization."""
    operations: int = 0
    replaced: list[str] = field(default_factory=list)
    patched: list[str] = field(default_factory=list)
    edited: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    paths_changed: int = 0


class GNMIEngine:
    """Run desired-configuration producers against one device client."""

    def __init__(self, client):
        """
        Initialize the engine.

        Args:
            client: Connected GNMIClient
        """
        self.client = client

    async def synchronize(self, producer: DesiredConfig) -> SyncResult:
        """
        Apply the producer's declared operations in order.

        Raises:
            SynchronizationError: An operation failed (cause chained)
        """
        operations = await self._resolve(producer, "to_operations")
        return await self.run(operations)

    async def reset(self, producer: Any) -> SyncResult:
        """Apply the producer's reset operations (``reset_operations``) in order."""
        operations = await self._resolve(producer, "reset_operations")
        return await self.run(operations)

    async def run(self, operations: list[Operation]) -> SyncResult:
        """Execute already-declared operations strictly in order."""
        result = SyncResult()
        for op in operations:
            path = op.path
            try:
                path = as_path(op.path)
                if isinstance(op, ReplaceOperation):
                    if not await self.client.replace_subtree(path, op.value):
                        result.unchanged.append(str(path))
                    result.replaced.append(str(path))
                elif isinstance(op, PatchOperation):
                    if not await self.client.patch_subtree(path, op.value):
                        result.unchanged.append(str(path))
                    result.patched.append(str(path))
                elif isinstance(op, EditOperation):
                    result.paths_changed += await self._edit(path, op)
                    result.edited.append(str(path))
                elif isinstance(op, DeleteOperation):
                    await self.client.delete_subtree(path, op.value)
                    result.deleted.append(str(path))
                else:
                    raise SynchronizationError(f"unsupported operation type '{type(op).__name__}'")
            except SynchronizationError:
                raise
            except GNMIError as e:
                raise SynchronizationError(
                    f"failed to apply {op.kind} operation: {e}",
                    path=str(path),
                    operation=op.kind,
                ) from e
            result.operations += 1

        logger.info(
            f"Synchronized {result.operations} operations "
            f"({len(result.replaced)} replace, {len(result.patched)} patch, "
            f"{len(result.edited)} edit, "
            f"{len(result.deleted)} delete, {len(result.unchanged)} unchanged, "
            f"{result.paths_changed} paths changed)"
        )
        return result

    async def _edit(self, path: Path, op: EditOperation) -> int:
        desired = op.value
        try:
            observed = await self.client.get(path, type(desired))
        except ValueNilError:
            # Not configured yet: diff against an empty tree.
            observed = None

        n = compute_diff(path, observed, desired, *op.ignore_paths, encoding=self.client.encoding)
        if n.empty:
            logger.debug(f"{path} is already up-to-date")
            return 0
        await self.client.apply(n)
        return n.total_paths

    async def _resolve(self, producer: Any, method: str) -> list[Operation]:
        fn = getattr(producer, method, None)
        if fn is None:
            raise SynchronizationError(f"{type(producer).__name__} does not implement {method}()")
        try:
            operations = fn(self.client)
            if inspect.isawaitable(operations):
                operations = await operations
        except GNMIError as e:
            raise SynchronizationError(
                f"{type(producer).__name__}.{method}() failed: {e}", operation=method
            ) from e
        return list(operations)
