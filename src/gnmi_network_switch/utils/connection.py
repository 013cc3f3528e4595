"""Connection management with retry logic for gNMI devices."""
import asyncio
import inspect
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar, Union

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from ..config.inventory import DeviceInventory
from ..devices import ProviderRegistry
from ..devices.base import DeviceConfig
from ..gnmi.client import GNMIClient
from ..gnmi.errors import DeviceUnavailableError
from ..gnmi.transport import GNMITransport

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Only reachability is retried; negotiation mismatches are terminal.
RETRYABLE_EXCEPTIONS = (
    DeviceUnavailableError,
    ConnectionRefusedError,
    ConnectionResetError,
    TimeoutError,
)

TransportFactory = Callable[[str, DeviceConfig], Union[GNMITransport, Awaitable[GNMITransport]]]


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable:
    """Decorator factory for retry logic with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        exceptions: Tuple of exception types to retry on
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(exceptions),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            return await func(*args, **kwargs)  # type: ignore[misc]

        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(exceptions),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            return func(*args, **kwargs)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    return decorator


class ConnectionManager:
    """Keeps one negotiated GNMIClient per device.

    Connection setup is retried on reachability errors using the device's
    ``retries``/``retry_delay`` settings. The manager does not serialize
    synchronizations; callers run at most one per device at a time.
    """

    def __init__(
        self,
        inventory: DeviceInventory,
        registry: ProviderRegistry,
        transport_factory: TransportFactory,
    ):
        self.inventory = inventory
        self.registry = registry
        self.transport_factory = transport_factory
        self._clients: dict[str, GNMIClient] = {}
        self._health_status: dict[str, bool] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get_client(self, device_id: str) -> GNMIClient:
        """Get or create a negotiated client for a device.

        Connection setup is serialized per device, so a device that is
        retrying does not hold up clients for other devices.
        """
        lock = self._locks.setdefault(device_id, asyncio.Lock())
        async with lock:
            client = self._clients.get(device_id)
            if client is not None:
                if self._health_status.get(device_id, False):
                    return client
                # Unhealthy, renegotiate
                await self._close_client(device_id)

            config = self.inventory.get_device_config(device_id)
            connect = with_retry(
                max_attempts=max(config.retries, 1),
                min_wait=config.retry_delay,
                max_wait=max(config.retry_delay * 5, config.retry_delay),
            )(self._create_client)
            client = await connect(device_id, config)
            self._clients[device_id] = client
            self._health_status[device_id] = True
            return client

    async def _create_client(self, device_id: str, config: DeviceConfig) -> GNMIClient:
        """Open a transport and negotiate; the transport is closed on failure."""
        transport = self.transport_factory(device_id, config)
        if inspect.isawaitable(transport):
            transport = await transport
        try:
            return await self.registry.connect(device_id, config, transport)
        except Exception:
            await transport.close()
            raise

    async def _close_client(self, device_id: str) -> None:
        """Close and remove a client."""
        client = self._clients.pop(device_id, None)
        self._health_status.pop(device_id, None)
        if client is None:
            return
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Error closing connection to {device_id}: {e}")

    async def close_all(self) -> None:
        """Close all managed clients."""
        for device_id in list(self._clients.keys()):
            await self._close_client(device_id)

    def mark_unhealthy(self, device_id: str) -> None:
        """Mark a client as unhealthy so the next get_client renegotiates."""
        self._health_status[device_id] = False
