"""
Polling waiter for WiFi radio and link state transitions.
Evaluates a named boolean check at a fixed interval until it holds or a timeout elapses.
"""

import logging
import threading
import time
from typing import Callable, Dict, Mapping, Optional

from wifiwand.errors import InvalidArgumentError, WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_WAIT_INTERVAL = 0.5

WAIT_TARGETS = ("on", "off", "connected", "disconnected")
TARGET_ALIASES = {"conn": "connected", "disc": "disconnected"}


class StatusWaiter:
    """
    Waits for one of a fixed set of named conditions to become true.

    The waiter knows nothing about WiFi; the owning client supplies a
    zero-argument callable for each target name.
    """

    def __init__(
            self,
            predicates: Mapping[str, Callable[[], bool]],
            default_interval: float = DEFAULT_WAIT_INTERVAL,
            sleep: Callable[[float], None] = time.sleep,
            clock: Callable[[], float] = time.monotonic):
        """
        Args:
            predicates: Mapping of target name ("on", "off", "connected", "disconnected") to check
            default_interval: Poll interval used when wait_for() is not given one
            sleep: Sleep function (injected by tests)
            clock: Monotonic clock function (injected by tests)
        """
        unknown = sorted(set(predicates) - set(WAIT_TARGETS))
        if unknown:
            raise InvalidArgumentError(f"Unknown wait target(s): {unknown}")
        if default_interval <= 0:
            raise InvalidArgumentError(f"Poll interval must be positive, was {default_interval}")

        self._predicates: Dict[str, Callable[[], bool]] = dict(predicates)
        self.default_interval = default_interval
        self._sleep = sleep
        self._clock = clock

    @staticmethod
    def normalize_target(target) -> str:
        name = str(target).strip().lower()
        return TARGET_ALIASES.get(name, name)

    def wait_for(
            self,
            target: str,
            timeout: Optional[float] = None,
            poll_interval: Optional[float] = None,
            cancel_event: Optional[threading.Event] = None) -> None:
        """
        Block until the named condition holds.

        Args:
            target: One of "on", "off", "connected", "disconnected" ("conn"/"disc" also accepted)
            timeout: Seconds to wait before giving up; None waits indefinitely
            poll_interval: Seconds between checks; None uses the default interval
            cancel_event: Optional event that aborts the wait when set

        Raises:
            InvalidArgumentError: Unknown target, non-positive interval or negative timeout
            WaitTimeoutError: The condition did not hold within timeout seconds
            WaitCancelledError: cancel_event was set before the condition held
        """
        name = self.normalize_target(target)
        predicate = self._predicates.get(name)
        if predicate is None:
            raise InvalidArgumentError(
                f"Wait target must be one of {sorted(self._predicates)}. Was: {target!r}")

        interval = self.default_interval if poll_interval is None else poll_interval
        if interval <= 0:
            raise InvalidArgumentError(f"Poll interval must be positive, was {interval}")
        if timeout is not None and timeout < 0:
            raise InvalidArgumentError(f"Timeout must not be negative, was {timeout}")

        logger.debug(f"Waiting for {name}, interval={interval}s, timeout={timeout}s")

        if predicate():
            logger.debug(f"{name} already satisfied; no wait needed")
            return

        start = self._clock()
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise WaitCancelledError(name)

            elapsed = self._clock() - start
            if timeout is not None and elapsed >= timeout:
                logger.debug(f"Gave up waiting for {name} after {elapsed:.2f}s")
                raise WaitTimeoutError(name, timeout)

            if predicate():
                logger.debug(f"{name} reached after {elapsed:.2f}s")
                return

            self._pause(interval, timeout, elapsed, cancel_event)
            logger.debug(f"Still waiting for {name} ({self._clock() - start:.2f}s elapsed)")

    def _pause(self, interval, timeout, elapsed, cancel_event) -> None:
        # Never sleep past the deadline.
        if timeout is not None:
            interval = max(0.0, min(interval, timeout - elapsed))
        if cancel_event is not None:
            cancel_event.wait(interval)
        else:
            self._sleep(interval)
