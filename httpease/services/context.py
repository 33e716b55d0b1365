"""Cancellation and deadline signal passed into every call."""

from __future__ import annotations

import asyncio
import time
from typing import Iterator, List, Optional, Tuple, Type, cast

from httpease.services.errors import (
    CancellationError,
    CanceledError,
    DeadlineExceededError,
)


def _wake(waiter: "asyncio.Future[None]") -> None:
    if not waiter.done():
        waiter.set_result(None)


class Context:
    """Cancellation signal with an optional monotonic deadline.

    Contexts form a tree: a child is done as soon as its parent is, and its
    deadline is never later than the parent's. Use :meth:`background` for the
    root and the ``with_*`` methods to derive children.
    """

    def __init__(
        self, parent: Optional["Context"] = None, deadline: Optional[float] = None
    ):
        self._parent = parent
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline
        self._cause: Optional[Type[CancellationError]] = None
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, "asyncio.Future[None]"]] = []

    @classmethod
    def background(cls) -> "Context":
        """Return a root context that is never done on its own."""
        return cls()

    def with_cancel(self) -> "Context":
        return Context(self)

    def with_timeout(self, seconds: float) -> "Context":
        return Context(self, time.monotonic() + seconds)

    def with_deadline(self, deadline: float) -> "Context":
        """Derive a child that expires at ``deadline`` (``time.monotonic`` clock)."""
        return Context(self, deadline)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        if self._cause is not None:
            return
        self._cause = CanceledError
        for loop, waiter in list(self._waiters):
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(_wake, waiter)

    def err(self) -> Optional[CancellationError]:
        """Return why the context is done, or ``None`` while it is live."""
        if self._cause is not None:
            return self._cause()
        if self._parent is not None:
            parent_err = self._parent.err()
            if parent_err is not None:
                return parent_err
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._cause = DeadlineExceededError
            return self._cause()
        return None

    def done(self) -> bool:
        return self.err() is not None

    async def wait(self) -> CancellationError:
        """Suspend until the context is done and return the cause."""
        err = self.err()
        if err is not None:
            return err

        loop = asyncio.get_running_loop()
        waiter: "asyncio.Future[None]" = loop.create_future()
        entry = (loop, waiter)
        lineage = list(self._lineage())
        for ctx in lineage:
            ctx._waiters.append(entry)
        try:
            await asyncio.wait_for(waiter, timeout=self.remaining())
        except asyncio.TimeoutError:
            # the loop clock may fire marginally ahead of time.monotonic()
            if self._cause is None:
                self._cause = DeadlineExceededError
        finally:
            for ctx in lineage:
                ctx._waiters.remove(entry)

        return cast(CancellationError, self.err())

    def _lineage(self) -> Iterator["Context"]:
        ctx: Optional[Context] = self
        while ctx is not None:
            yield ctx
            ctx = ctx._parent

    def __repr__(self) -> str:
        state = "live" if self._cause is None else self._cause.__name__
        return f"Context(deadline={self._deadline!r}, state={state})"
