"""
Reconcile Context

Cancellation and deadline propagation for a single reconciliation call. Every
cluster call, precondition and postcondition receives the same context and is
expected to call check() before doing work and to wait through sleep().
"""

import threading
import time
from typing import Optional

from .exceptions import ReconciliationCancelledError


class ReconcileContext:
    """Carries cancellation and an optional deadline through a reconcile call"""

    def __init__(self, timeout: Optional[float] = None, _event: Optional[threading.Event] = None,
                 _deadline: Optional[float] = None):
        """
        Initialize reconcile context

        Args:
            timeout: Seconds until the context expires (None for no deadline)
        """
        self._event = _event or threading.Event()
        self._deadline = _deadline
        if timeout is not None:
            deadline = time.monotonic() + timeout
            self._deadline = deadline if self._deadline is None else min(self._deadline, deadline)

    @classmethod
    def background(cls) -> 'ReconcileContext':
        """Context that is never cancelled and has no deadline"""
        return cls()

    def child(self, timeout: Optional[float] = None) -> 'ReconcileContext':
        """
        Derive a context sharing this context's cancellation

        Args:
            timeout: Additional deadline; the earlier of both deadlines wins

        Returns:
            ReconcileContext cancelled together with its parent
        """
        return ReconcileContext(timeout=timeout, _event=self._event, _deadline=self._deadline)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it"""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, None when there is no deadline"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """
        Raise if the context is done

        Raises:
            ReconciliationCancelledError: If cancelled or past the deadline
        """
        if self.cancelled:
            raise ReconciliationCancelledError("reconciliation cancelled")
        if self.expired:
            raise ReconciliationCancelledError("reconciliation deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """
        Wait for the given time unless the context is cancelled first

        Raises:
            ReconciliationCancelledError: If the context is done before or while waiting
        """
        self.check()
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(seconds)
        self.check()
