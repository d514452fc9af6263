from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Any, Callable

from flask_socketio import SocketIO


logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellation token for a scheduled callback."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"<TimerHandle {self.name} {state}>"


class Scheduler:
    """Interface shared by the live and the manual scheduler."""

    def now_ms(self) -> int:
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callable[[TimerHandle], None], name: str = "") -> TimerHandle:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[TimerHandle], None], name: str = "") -> TimerHandle:
        raise NotImplementedError

    def spawn(self, fn: Callable[..., Any], *args: Any) -> None:
        raise NotImplementedError


class SocketIOScheduler(Scheduler):
    """Runs timers as Socket.IO background tasks (eventlet or threads)."""

    def __init__(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_every(self, interval, callback, name=""):
        handle = TimerHandle(name)

        def _runner() -> None:
            while True:
                self.socketio.sleep(interval)
                if handle.cancelled:
                    break
                try:
                    callback(handle)
                except Exception:
                    logger.exception(f"[timer-error] {name}")
                    handle.cancel()
                    break

        self.socketio.start_background_task(_runner)
        return handle

    def call_later(self, delay, callback, name=""):
        handle = TimerHandle(name)

        def _runner() -> None:
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            handle.cancel()
            try:
                callback(handle)
            except Exception:
                logger.exception(f"[timer-error] {name}")

        self.socketio.start_background_task(_runner)
        return handle

    def spawn(self, fn, *args):
        self.socketio.start_background_task(fn, *args)


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler: nothing fires until ``advance`` is called.

    Background jobs passed to ``spawn`` run inline.
    """

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self._now_ms = start_ms
        self._seq = itertools.count()
        self._queue: list[tuple[int, int, TimerHandle, float | None, Callable[[TimerHandle], None]]] = []

    def now_ms(self) -> int:
        return self._now_ms

    def _push(self, due_ms, handle, interval, callback) -> None:
        heapq.heappush(self._queue, (due_ms, next(self._seq), handle, interval, callback))

    def call_every(self, interval, callback, name=""):
        handle = TimerHandle(name)
        self._push(self._now_ms + int(interval * 1000), handle, interval, callback)
        return handle

    def call_later(self, delay, callback, name=""):
        handle = TimerHandle(name)
        self._push(self._now_ms + int(delay * 1000), handle, None, callback)
        return handle

    def spawn(self, fn, *args):
        fn(*args)

    @property
    def pending(self) -> list[TimerHandle]:
        return [entry[2] for entry in self._queue if not entry[2].cancelled]

    def advance(self, seconds: float) -> None:
        target = self._now_ms + int(seconds * 1000)
        while self._queue and self._queue[0][0] <= target:
            due_ms, _, handle, interval, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now_ms = due_ms
            if interval is None:
                handle.cancel()
            else:
                self._push(due_ms + int(interval * 1000), handle, interval, callback)
            callback(handle)
        self._now_ms = target
