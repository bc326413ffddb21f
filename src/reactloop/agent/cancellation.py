"""Cooperative cancellation tokens.

A ``CancellationToken`` can be polled (``is_cancelled``) or subscribed to
(``add_listener``). ``linked_token`` derives a per-call token that trips when
either its parent trips or a timeout elapses, and always releases its timer
and parent subscription on exit.

Tokens are meant to be used from the event loop thread.
"""

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from reactloop.core.errors import OperationCancelledError

logger = logging.getLogger(__name__)

CancelListener = Callable[[str], None]


class CancellationToken:
    """Cooperative cancellation signal.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled, token.reason
        (True, 'user_cancelled')
    """

    __slots__ = ("_cancelled", "_reason", "_listeners")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._listeners: list[CancelListener] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        """Why the token tripped, or None while it has not."""
        return self._reason

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def cancel(self, reason: str = "user_cancelled") -> None:
        """Trip the token and notify listeners. Later calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)

    def add_listener(self, listener: CancelListener) -> Callable[[], None]:
        """Call ``listener(reason)`` when the token trips.

        If the token already tripped the listener runs immediately.

        Returns:
            A function that detaches the listener. Safe to call more than once.
        """
        if self._cancelled:
            listener(self._reason or "user_cancelled")
            return lambda: None

        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelledError(self._reason or "user_cancelled")

    async def wait(self) -> str:
        """Suspend until the token trips and return the reason."""
        if self._cancelled:
            return self._reason or "user_cancelled"
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

        def _resolve(reason: str) -> None:
            if not future.done():
                future.set_result(reason)

        unsubscribe = self.add_listener(_resolve)
        try:
            return await future
        finally:
            unsubscribe()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled}, reason={self._reason!r})"


@contextmanager
def linked_token(
    parent: CancellationToken | None = None,
    timeout: float | None = None,
) -> Iterator[CancellationToken]:
    """Derive a token that trips on ``parent`` or after ``timeout`` seconds.

    Whichever source fires first wins and sets the reason (the parent's
    reason, or ``"timeout"``). The timer is cancelled and the parent listener
    detached on every exit path.

    Must be entered while an event loop is running when ``timeout`` is set.
    """
    child = CancellationToken()
    timer: asyncio.TimerHandle | None = None
    detach: Callable[[], None] | None = None
    try:
        if parent is not None:
            detach = parent.add_listener(child.cancel)
        if timeout is not None and not child.is_cancelled:
            timer = asyncio.get_running_loop().call_later(timeout, child.cancel, "timeout")
        yield child
    finally:
        if timer is not None:
            timer.cancel()
        if detach is not None:
            detach()
