"""
Per-request cancellation and deadline signal passed to actions and validators
"""

import threading
import time


class RequestCancelled(Exception):
    """
    Raised by RequestContext.check when the request was cancelled or its
    deadline has passed.
    """


class RequestContext:
    """
    Carries the cancellation state and the optional deadline of a request.
    Actions and validation steps are expected to check it cooperatively; the
    dispatcher never interrupts them.
    """

    def __init__(self, deadline: float | None = None) -> None:
        # Deadline, as a time.monotonic() value
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, timeout: float | None) -> 'RequestContext':
        """
        Creates a context expiring timeout seconds from now (never if timeout
        is None).
        """

        if timeout is None:
            return cls()

        return cls(time.monotonic() + timeout)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def cancel(self) -> None:
        """
        Marks the request as cancelled.
        """

        self._cancelled.set()

    def remaining(self) -> float | None:
        """
        Returns the number of seconds before the deadline (possibly negative),
        or None if the context has no deadline.
        """

        if self._deadline is None:
            return None

        return self._deadline - time.monotonic()

    def check(self) -> None:
        """
        Raises RequestCancelled if the request was cancelled or has expired.
        """

        if self.cancelled:
            raise RequestCancelled("Request cancelled")

        if self.expired:
            raise RequestCancelled("Request deadline exceeded")

    def __repr__(self) -> str:
        return (f"<{self.__class__.__name__} deadline={self._deadline!r} "
            f"cancelled={self.cancelled}>")
