"""Logging configuration for switchsync.

Provides configurable logging with:
- File-based logging with rotation
- Console output for real-time debugging
- Performance timing of gNMI RPCs (separate perf log)

Environment Variables:
    SWITCHSYNC_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    SWITCHSYNC_LOG_FILE: Path to log file (default: ~/.switchsync/switchsync.log)
    SWITCHSYNC_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    SWITCHSYNC_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from gnmi_network_switch.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("get")
    async def get(self, path):
        ...

    async with timed_section("set_chunk", device_id="leaf-1", paths=20):
        ...
"""
import asyncio
import functools
import logging
import os
import time
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("switchsync.perf")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("SWITCHSYNC_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".switchsync" / "switchsync.log"
    path_str = os.environ.get("SWITCHSYNC_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging() -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects SWITCHSYNC_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for RPC timing
    """
    log_level = get_log_level()
    log_file = get_log_file()
    max_size_mb = int(os.environ.get("SWITCHSYNC_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("SWITCHSYNC_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "switchsync-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    # Package logger; module loggers propagate to it
    pkg_logger = logging.getLogger("gnmi_network_switch")
    pkg_logger.setLevel(logging.DEBUG)
    pkg_logger.addHandler(console_handler)
    pkg_logger.addHandler(file_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.addHandler(perf_handler)
    perf_logger.addHandler(console_handler)
    perf_logger.propagate = False

    pkg_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")
    perf_logger.info(f"Performance logging to: {perf_log_file}")


def _format_perf(operation: str, device_id: Optional[str], elapsed: float, status: str) -> str:
    return f"{operation:20s} | {device_id or 'N/A':15s} | {elapsed:8.2f}ms | {status}"


def timed(operation: str, device_id: Optional[str] = None):
    """Decorator to log execution time of sync/async functions.

    Args:
        operation: Name of the operation (e.g., "get", "set", "capabilities")
        device_id: Optional device identifier (can also be inferred from self.device_id)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            dev_id = device_id
            if dev_id is None and args and hasattr(args[0], 'device_id'):
                dev_id = args[0].device_id

            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.info(_format_perf(operation, dev_id, elapsed, "OK"))
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(_format_perf(operation, dev_id, elapsed, f"FAIL: {e}"))
                raise

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            dev_id = device_id
            if dev_id is None and args and hasattr(args[0], 'device_id'):
                dev_id = args[0].device_id

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.info(_format_perf(operation, dev_id, elapsed, "OK"))
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(_format_perf(operation, dev_id, elapsed, f"FAIL: {e}"))
                raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


@asynccontextmanager
async def timed_section(operation: str, device_id: Optional[str] = None, **extra):
    """Async context manager for timing code sections.

    Usage:
        async with timed_section("set_chunk", device_id="leaf-1", chunk=2):
            await transport.set(request)
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        msg = _format_perf(operation, device_id, elapsed, "OK")
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.info(msg)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = _format_perf(operation, device_id, elapsed, f"FAIL: {e}")
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise
