"""gNMI client: reads and writes schema-typed configuration subtrees.

A client is bound to one device connection. Capabilities and encoding are
negotiated once in ``GNMIClient.connect`` and never change afterwards, so a
client can be shared by concurrent readers. Writers must be serialized per
device by the caller.
"""
import logging
from typing import Optional, Sequence, TypeVar, Union

from ..utils.logging_config import timed
from .codec import decode, encode
from .dispatcher import DEFAULT_MAX_PATHS_PER_REQUEST, Dispatcher, DispatchResult
from .errors import (
    NotFoundError,
    ProtocolViolationError,
    SchemaValidationError,
    ValueNilError,
    WriteError,
)
from .negotiator import DEFAULT_ENCODINGS, negotiate
from .path import Path, as_path
from .schema import (
    Capabilities,
    DataType,
    Encoding,
    GetRequest,
    Model,
    Notification,
    SetRequest,
    Update,
)
from .transport import GNMITransport, TransportError, raise_for_unavailable
from .tree import SchemaNode, validate_tree

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=SchemaNode)


class GNMIClient:
    """
    Client for one gNMI device connection.

    Usage:
        client = await GNMIClient.connect(transport, required_model=NXOS_MODEL)
        ntp = await client.get("System/time-items", TimeItems)
    """

    def __init__(
        self,
        transport: GNMITransport,
        capabilities: Capabilities,
        encoding: Encoding,
        dry_run: bool = False,
        max_paths_per_request: int = DEFAULT_MAX_PATHS_PER_REQUEST,
        device_id: Optional[str] = None,
    ):
        self.transport = transport
        self.capabilities = capabilities
        self.encoding = encoding
        self.dry_run = dry_run
        self.device_id = device_id
        self.dispatcher = Dispatcher(
            transport,
            max_paths_per_request=max_paths_per_request,
            dry_run=dry_run,
            device_id=device_id,
        )

    @classmethod
    async def connect(
        cls,
        transport: GNMITransport,
        required_model: Optional[Model] = None,
        encodings: Sequence[Encoding] = DEFAULT_ENCODINGS,
        skip_version_check: bool = False,
        dry_run: bool = False,
        max_paths_per_request: int = DEFAULT_MAX_PATHS_PER_REQUEST,
        device_id: Optional[str] = None,
    ) -> "GNMIClient":
        """Negotiate capabilities and return a ready client."""
        result = await negotiate(
            transport,
            required_model=required_model,
            encodings=encodings,
            skip_version_check=skip_version_check,
        )
        logger.info(
            f"Connected to {device_id or 'device'}: encoding={result.encoding.name}"
            f"{' (dry-run)' if dry_run else ''}"
        )
        return cls(
            transport,
            result.capabilities,
            result.encoding,
            dry_run=dry_run,
            max_paths_per_request=max_paths_per_request,
            device_id=device_id,
        )

    @property
    def max_paths_per_request(self) -> int:
        return self.dispatcher.max_paths_per_request

    # --- reads ---

    async def get(
        self,
        path: Union[str, Path],
        node_cls: type[N],
        data_type: DataType = DataType.CONFIG,
    ) -> N:
        """
        Read the subtree at ``path`` into a ``node_cls`` instance.

        Raises:
            ValueNilError: Path is valid but not configured
            NotFoundError: No response section for the path
            ProtocolViolationError: Malformed response shape
            UnexpectedValueTypeError: Value variant does not match encoding
        """
        (node,) = await self.get_many([(path, node_cls)], data_type=data_type)
        return node

    async def get_state(self, path: Union[str, Path], node_cls: type[N]) -> N:
        """Read operational state at ``path``."""
        return await self.get(path, node_cls, data_type=DataType.STATE)

    @timed("get")
    async def get_many(
        self,
        requests: Sequence[tuple[Union[str, Path], type[SchemaNode]]],
        data_type: DataType = DataType.CONFIG,
    ) -> list[SchemaNode]:
        """Read several subtrees in one Get RPC, one response section per path."""
        if not requests:
            return []
        paths = [as_path(p) for p, _ in requests]
        label = ", ".join(str(p) for p in paths)

        try:
            res = await self.transport.get(
                GetRequest(paths=paths, type=data_type, encoding=self.encoding)
            )
        except TransportError as e:
            raise_for_unavailable(e, "get", label)
            raise

        if not res.notifications:
            raise NotFoundError("no notification in response", path=label, operation="get")
        # One notification per requested path.
        if len(res.notifications) != len(paths):
            raise ProtocolViolationError(
                f"unexpected number of notifications: got {len(res.notifications)}, "
                f"want {len(paths)}",
                path=label,
                operation="get",
            )

        nodes = []
        for path, (_, node_cls), n in zip(paths, requests, res.notifications):
            if not n.updates:
                raise ValueNilError("value is not defined", path=str(path), operation="get")
            if len(n.updates) > 1:
                raise ProtocolViolationError(
                    f"unexpected number of updates: {len(n.updates)}",
                    path=str(path),
                    operation="get",
                )
            data = decode(n.updates[0].val, self.encoding)
            # Some devices return an empty value instead of NotFound for
            # valid but unconfigured paths.
            if not data.strip():
                raise ValueNilError("value is not defined", path=str(path), operation="get")
            nodes.append(node_cls.unmarshal(data, self.capabilities))
        return nodes

    # --- writes ---

    @timed("replace")
    async def replace_subtree(self, path: Union[str, Path], node: SchemaNode) -> bool:
        """
        Validate ``node`` and replace the whole subtree at ``path`` with it.

        The subtree is read first; nothing is sent when the device already
        holds exactly ``node``.

        Returns:
            True if a Set was sent (or would be, in dry-run mode)

        Raises:
            SchemaValidationError: Tree violates its schema
            WriteError: The Set request failed
        """
        return await self._write(as_path(path), node, patch=False)

    @timed("patch")
    async def patch_subtree(self, path: Union[str, Path], node: SchemaNode) -> bool:
        """
        Merge ``node`` into the subtree at ``path``.

        Same as ``replace_subtree`` but sent as a Set update, so device
        values that ``node`` does not mention are kept.
        """
        return await self._write(as_path(path), node, patch=True)

    async def _write(self, path: Path, node: SchemaNode, patch: bool) -> bool:
        operation = "patch" if patch else "replace"
        try:
            validate_tree(node)
        except SchemaValidationError as e:
            raise SchemaValidationError(e.message, path=str(path), operation=operation) from e
        try:
            payload = node.marshal(self.capabilities)
        except (TypeError, ValueError) as e:
            raise SchemaValidationError(
                f"failed to marshal value: {e}", path=str(path), operation=operation
            ) from e

        try:
            current = await self.get(path, type(node))
        except ValueNilError:
            current = None
        if current is not None and current.to_yang() == node.to_yang():
            logger.debug(f"{path}: configuration is already up-to-date")
            return False

        logger.debug(f"{operation.capitalize()} {path}: {payload.decode('utf-8', 'replace')}")
        if self.dry_run:
            logger.info(f"DRY RUN: {operation} {path}")
            return True
        update = Update(path=path, val=encode(payload, self.encoding))
        if patch:
            request = SetRequest(updates=[update])
        else:
            request = SetRequest(replaces=[update])
        await self._set(request, path, operation)
        return True

    @timed("delete")
    async def delete_subtree(
        self,
        path: Union[str, Path],
        node: Optional[SchemaNode] = None,
    ) -> None:
        """
        Delete the subtree at ``path``.

        If ``node``'s class is defaultable, the subtree is replaced with the
        node's schema default instead of being deleted.
        """
        path = as_path(path)
        if node is not None and type(node).defaultable:
            logger.debug(f"Resetting {path} to default")
            await self.replace_subtree(path, node.to_default())
            return

        logger.debug(f"Deleting {path}")
        if self.dry_run:
            logger.info(f"DRY RUN: delete {path}")
            return
        await self._set(SetRequest(deletes=[path]), path, "delete")

    async def apply(self, n: Notification) -> DispatchResult:
        """Apply a diff notification through the dispatcher."""
        return await self.dispatcher.apply(n)

    async def _set(self, request: SetRequest, path: Path, operation: str = "set") -> None:
        try:
            await self.transport.set(request)
        except TransportError as e:
            raise_for_unavailable(e, operation, str(path))
            raise WriteError(f"set rpc failed: {e}", path=str(path), operation=operation) from e

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()
