"""Single-worker task queue.

All mutations of smb.conf and of the account database run on one thread,
one at a time, in submission order.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Deque

from sambadmin.errors import QueueShutdownError

logger = logging.getLogger(__name__)


class _WorkItem:
    def __init__(self, future: Future, fn: Callable, args, kwargs):
        self.future = future
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self):
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as exc:
            logger.debug(f"Task {getattr(self.fn, '__name__', self.fn)!s} failed: {exc}")
            self.future.set_exception(exc)
        else:
            self.future.set_result(result)


class TaskQueue:
    def __init__(self, maxsize: int = 100, name: str = "sambadmin-worker"):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.maxsize = maxsize
        self._items: Deque[_WorkItem] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._thread = threading.Thread(target=self._worker, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        with self._cond:
            return len(self._items)

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """Enqueue ``fn`` and return its future without waiting.

        Blocks while the queue is full; raises :class:`QueueShutdownError`
        once the queue is shut down.
        """
        future: Future = Future()
        item = _WorkItem(future, fn, args, kwargs)
        with self._cond:
            while not self._closed and len(self._items) >= self.maxsize:
                self._cond.wait()
            if self._closed:
                raise QueueShutdownError("Task queue is shut down.")
            self._items.append(item)
            self._cond.notify_all()
        return future

    def submit_sync(self, fn: Callable, *args, **kwargs) -> Any:
        """Enqueue ``fn``, wait for it and return its result or raise its error."""
        if threading.current_thread() is self._thread:
            # already on the worker; queueing would wait on ourselves
            return fn(*args, **kwargs)
        return self.submit(fn, *args, **kwargs).result()

    def shutdown(self) -> None:
        """Stop accepting work, drop queued items and wait for the running one."""
        with self._cond:
            self._closed = True
            dropped = list(self._items)
            self._items.clear()
            self._cond.notify_all()

        for item in dropped:
            if item.future.set_running_or_notify_cancel():
                item.future.set_exception(QueueShutdownError("Task queue shut down before the task ran."))
        if dropped:
            logger.warning(f"Dropped {len(dropped)} queued task(s) on shutdown")

        if threading.current_thread() is not self._thread:
            self._thread.join()

    def _worker(self):
        while True:
            with self._cond:
                while not self._items and not self._closed:
                    self._cond.wait()
                if self._closed:
                    return
                item = self._items.popleft()
                self._cond.notify_all()
            item.run()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
