# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Deadline and cancellation propagated through blocking deployment calls."""

import logging
import threading
import time
import typing

from exceptions import CancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cancellation signal with an optional deadline.

    The build host holds on to the token and calls cancel() to abort a running deployment, or
    constructs it with a timeout matching its own build timeout.

    Attrs:
        cancelled: Whether the token was cancelled or its deadline has passed.
    """

    def __init__(self, timeout: typing.Optional[float] = None):
        """Construct the token.

        Args:
            timeout: Seconds from now after which the token counts as cancelled. None for no
                deadline.
        """
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self) -> None:
        """Cancel the token, waking up any waiter."""
        logger.info("Cancellation requested.")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether the token is cancelled.

        Returns:
            True if cancel() was called or the deadline passed.
        """
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> typing.Optional[float]:
        """Get the time left until the deadline.

        Returns:
            Seconds until the deadline, never negative. None if there is no deadline.
        """
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """Raise if the token is cancelled.

        Raises:
            CancelledError: if the token was cancelled or its deadline passed.
        """
        if self.cancelled:
            raise CancelledError("Deployment cancelled.")

    def cap(self, seconds: float) -> float:
        """Limit a blocking call duration to the time left on the token.

        Args:
            seconds: The duration the caller wants to block for.

        Returns:
            The smaller of seconds and the remaining time.
        """
        remaining = self.remaining()
        if remaining is None:
            return seconds
        return min(seconds, remaining)

    def wait(self, seconds: float) -> None:
        """Sleep for the given duration, waking up early on cancellation.

        Args:
            seconds: Time in seconds to sleep.

        Raises:
            CancelledError: if the token was cancelled before or during the wait.
        """
        self.raise_if_cancelled()
        self._event.wait(self.cap(seconds))
        self.raise_if_cancelled()
