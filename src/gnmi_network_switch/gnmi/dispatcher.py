"""Dispatcher for applying notifications to devices.

Splits a notification into bounded Set requests (deletes first, then
updates) and sends them in order. There is no rollback: chunks sent before
a failing chunk stay applied, and the next synchronization computes only
the remaining delta.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, TypeVar

from ..utils.logging_config import timed_section
from .diff import summarize_diff
from .errors import WriteError
from .schema import Notification, SetRequest
from .transport import GNMITransport, TransportError, raise_for_unavailable

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATHS_PER_REQUEST = 20

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


@dataclass
class DispatchResult:
    """Result of applying a notification."""
    dry_run: bool = False
    requests_sent: int = 0
    paths_deleted: list[str] = field(default_factory=list)
    paths_updated: list[str] = field(default_factory=list)

    @property
    def total_paths(self) -> int:
        return len(self.paths_deleted) + len(self.paths_updated)


class Dispatcher:
    """Send notifications to a device in bounded-size Set requests."""

    def __init__(
        self,
        transport: GNMITransport,
        max_paths_per_request: int = DEFAULT_MAX_PATHS_PER_REQUEST,
        dry_run: bool = False,
        device_id: Optional[str] = None,
    ):
        """
        Initialize dispatcher.

        Args:
            transport: Transport to the device
            max_paths_per_request: Upper bound of paths per Set request
            dry_run: Log the would-be changes without sending them
            device_id: Device identifier for logs
        """
        if max_paths_per_request < 1:
            raise ValueError(f"max_paths_per_request must be >= 1, got {max_paths_per_request}")
        self.transport = transport
        self.max_paths_per_request = max_paths_per_request
        self.dry_run = dry_run
        self.device_id = device_id

    async def apply(self, n: Notification) -> DispatchResult:
        """
        Apply a notification.

        Args:
            n: Notification with deletes and updates

        Returns:
            DispatchResult with the paths sent

        Raises:
            DeviceUnavailableError: Device became unreachable
            WriteError: A Set request failed; later chunks were not sent
        """
        result = DispatchResult(dry_run=self.dry_run)

        if n.empty:
            logger.debug("Nothing to apply")
            return result

        if self.dry_run:
            logger.info(f"DRY RUN: {summarize_diff(n)}")
            result.paths_deleted = [str(p) for p in n.deletes]
            result.paths_updated = [str(u.path) for u in n.updates]
            return result

        logger.debug(summarize_diff(n))

        delete_chunks = list(chunked(n.deletes, self.max_paths_per_request))
        update_chunks = list(chunked(n.updates, self.max_paths_per_request))
        total = len(delete_chunks) + len(update_chunks)

        requests = [SetRequest(deletes=c) for c in delete_chunks]
        requests += [SetRequest(updates=c) for c in update_chunks]

        for index, request in enumerate(requests, start=1):
            paths = [str(p) for p in request.deletes] + [str(u.path) for u in request.updates]
            await self._send(request, index, total, paths)
            result.requests_sent += 1
            result.paths_deleted.extend(str(p) for p in request.deletes)
            result.paths_updated.extend(str(u.path) for u in request.updates)

        logger.info(
            f"Applied {result.total_paths} paths in {result.requests_sent} requests "
            f"({len(result.paths_deleted)} deletes, {len(result.paths_updated)} updates)"
        )
        return result

    async def _send(self, request: SetRequest, index: int, total: int, paths: list[str]) -> None:
        """Send one chunk."""
        kind = "delete" if request.deletes else "update"
        first = paths[0] if paths else None
        try:
            async with timed_section(
                "set_chunk", device_id=self.device_id, chunk=f"{index}/{total}", paths=len(paths)
            ):
                res = await self.transport.set(request)
        except TransportError as e:
            raise_for_unavailable(e, f"set chunk {index}/{total}", first)
            raise WriteError(
                f"{kind} chunk {index}/{total} ({len(paths)} paths) failed: {e}",
                path=first,
                operation="set",
            ) from e
        logger.debug(f"Set chunk {index}/{total} ({kind}, {len(paths)} paths): {res}")
