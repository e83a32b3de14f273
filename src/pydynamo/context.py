from __future__ import annotations

import contextvars
import threading
import time
import weakref
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, TypeVar

from .errors import DeadlineExceededError, OperationCancelledError

R = TypeVar("R")

_current: contextvars.ContextVar[Context | None] = contextvars.ContextVar("pydynamo_context", default=None)


class Context:
    """Deadline and cancellation scope for one or more service calls.

    A child context is cancelled with its parent and never outlives the
    parent's deadline.

    Cancellation and expiry release the caller blocked in
    :func:`run_in_context`; they do not interrupt the call itself, which keeps
    running on its dispatch thread until it returns on its own.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        parent: Context | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []
        self._children: weakref.WeakSet[Context] = weakref.WeakSet()

        deadline = clock() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

        if parent is not None:
            parent._adopt(self)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def cancelled(self) -> bool:
        return self._cancelled

    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    def done(self) -> bool:
        return self._cancelled or self.expired()

    def error(self) -> OperationCancelledError | None:
        if self._cancelled:
            return OperationCancelledError("context canceled")
        if self.expired():
            return DeadlineExceededError("context deadline exceeded")
        return None

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
            children = list(self._children)
        for callback in callbacks:
            callback()
        for child in children:
            child.cancel()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        callback()
        return lambda: None

    def wait(self, timeout: float | None = None) -> bool:
        woken = threading.Event()
        unregister = self.on_cancel(woken.set)
        try:
            remaining = self.remaining()
            if remaining is not None:
                timeout = remaining if timeout is None else min(timeout, remaining)
            woken.wait(timeout)
        finally:
            unregister()
        return self.done()

    def _adopt(self, child: Context) -> None:
        with self._lock:
            if not self._cancelled:
                self._children.add(child)
                return
        child.cancel()

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


def background() -> Context:
    return Context()


def with_timeout(seconds: float, parent: Context | None = None) -> Context:
    return Context(timeout=seconds, parent=parent)


def with_cancel(parent: Context | None = None) -> Context:
    return Context(parent=parent)


def current_context() -> Context | None:
    return _current.get()


def run_in_context(ctx: Context, fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Run ``fn`` on a daemon thread and wait for it while ``ctx`` is live.

    If ``ctx`` ends first, the context's error is raised and the thread is
    left to finish ``fn``; its result or exception is discarded.
    """
    err = ctx.error()
    if err is not None:
        raise err

    future: Future[R] = Future()

    def call() -> None:
        if not future.set_running_or_notify_cancel():
            return
        _current.set(ctx)
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    woken = threading.Event()
    future.add_done_callback(lambda _: woken.set())
    unregister = ctx.on_cancel(woken.set)
    worker = threading.Thread(
        target=contextvars.copy_context().run,
        args=(call,),
        name="pydynamo-dispatch",
        daemon=True,
    )
    try:
        worker.start()
        woken.wait(ctx.remaining())
    finally:
        unregister()

    if future.done():
        return future.result()

    err = ctx.error()
    raise err if err is not None else DeadlineExceededError("context deadline exceeded")
