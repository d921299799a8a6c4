"""Protocol configuration and time sources.

``OtpCryptoConfig`` is an immutable value passed explicitly to each
pipeline. A process-wide holder is available for applications that want one
(``initialize`` / ``instance``); replacing an installed config requires
``force_reinitialize=True``. Constructing ``OtpCryptoConfig`` directly never
touches the holder, so tests can build as many isolated configs as they need.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

from .types import (
    DEFAULT_SKEW_WINDOWS,
    DEFAULT_WINDOW_SECONDS,
    MAX_SKEW_WINDOWS,
    MIN_MASTER_KEY_SIZE,
    PROTOCOL_VERSION,
)

logger = logging.getLogger(__name__)


class TimeProvider(Protocol):
    """Source of the current UTC time in whole epoch seconds."""

    def now_epoch_seconds(self) -> int:
        ...


class SystemTimeProvider:
    """Reads the system clock."""

    def now_epoch_seconds(self) -> int:
        return int(time.time())


class FixedTimeProvider:
    """A manually controlled clock for tests and simulations."""

    def __init__(self, epoch_seconds: int) -> None:
        self._epoch_seconds = _require_non_negative(epoch_seconds)

    def now_epoch_seconds(self) -> int:
        return self._epoch_seconds

    def set_now(self, epoch_seconds: int) -> None:
        self._epoch_seconds = _require_non_negative(epoch_seconds)

    def advance(self, seconds: int) -> None:
        """Move the clock by ``seconds`` (may be negative, but not below zero)."""
        self._epoch_seconds = _require_non_negative(self._epoch_seconds + seconds)


def _require_non_negative(value: int) -> int:
    if value < 0:
        raise ValueError(f"epoch seconds must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class OtpCryptoConfig:
    """Immutable protocol parameters.

    Attributes:
        master_key: Shared secret used as HKDF input (at least 32 bytes).
        salt: Optional HKDF salt.
        info: Optional HKDF info; a fixed protocol constant is recommended.
        protocol_version: Wire version, must match exactly on both sides.
        window_seconds: Size of a time window in seconds.
        skew_windows: Accepted distance between a message window and the
            verifier's current window (0..2).
        time_provider: Clock used for the current window.
    """

    master_key: bytes = field(repr=False)
    salt: Optional[bytes] = field(default=None, repr=False)
    info: Optional[bytes] = None
    protocol_version: int = PROTOCOL_VERSION
    window_seconds: int = DEFAULT_WINDOW_SECONDS
    skew_windows: int = DEFAULT_SKEW_WINDOWS
    time_provider: TimeProvider = field(default_factory=SystemTimeProvider, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.master_key, (bytes, bytearray, memoryview)):
            raise ValueError("master_key must be bytes")
        if len(self.master_key) < MIN_MASTER_KEY_SIZE:
            raise ValueError(f"master_key must be at least {MIN_MASTER_KEY_SIZE} bytes")
        for name in ("protocol_version", "window_seconds", "skew_windows"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
        if self.protocol_version < 1:
            raise ValueError("protocol_version must be >= 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be a positive integer")
        if not 0 <= self.skew_windows <= MAX_SKEW_WINDOWS:
            raise ValueError(f"skew_windows must be between 0 and {MAX_SKEW_WINDOWS}")
        for name in ("salt", "info"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, (bytes, bytearray, memoryview)):
                raise ValueError(f"{name} must be bytes or None")
        if not callable(getattr(self.time_provider, "now_epoch_seconds", None)):
            raise ValueError("time_provider must provide now_epoch_seconds()")

        # Own immutable copies so later mutation of caller buffers has no effect
        object.__setattr__(self, "master_key", bytes(self.master_key))
        if self.salt is not None:
            object.__setattr__(self, "salt", bytes(self.salt))
        if self.info is not None:
            object.__setattr__(self, "info", bytes(self.info))

    def window_for_epoch_seconds(self, epoch_seconds: int) -> int:
        """floor(epoch_seconds / window_seconds)."""
        if epoch_seconds < 0:
            raise ValueError("epoch_seconds must be non-negative")
        return epoch_seconds // self.window_seconds

    def current_window(self) -> int:
        """Window index for the configured clock's current time."""
        return self.window_for_epoch_seconds(self.time_provider.now_epoch_seconds())


# Process-wide holder

_lock = threading.Lock()
_instance: Optional[OtpCryptoConfig] = None


def initialize(*, force_reinitialize: bool = False, **kwargs) -> OtpCryptoConfig:
    """
    Create and install the process-wide config.

    Args:
        force_reinitialize: Replace an already installed config
        **kwargs: Fields of OtpCryptoConfig

    Returns:
        The installed config

    Raises:
        RuntimeError: If a config is installed and force_reinitialize is False
        ValueError: If the parameters are invalid
    """
    global _instance
    with _lock:
        if _instance is not None and not force_reinitialize:
            raise RuntimeError(
                "OtpCryptoConfig is already initialized; "
                "pass force_reinitialize=True to replace it"
            )
        config = OtpCryptoConfig(**kwargs)
        if _instance is not None:
            logger.info("Replacing process-wide OtpCryptoConfig")
        _instance = config
        return config


def instance() -> OtpCryptoConfig:
    """Return the process-wide config, raising RuntimeError if not initialized."""
    config = _instance
    if config is None:
        raise RuntimeError("OtpCryptoConfig is not initialized; call initialize() first")
    return config


def is_initialized() -> bool:
    return _instance is not None


def reset() -> None:
    """Remove the process-wide config (test teardown)."""
    global _instance
    with _lock:
        _instance = None
