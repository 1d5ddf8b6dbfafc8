# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Background worker loop — an asyncio event loop in a daemon thread.

Used for detached work started from a thread that has no running loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Coroutine
from concurrent.futures import Future
from typing import Any, TypeVar

from taskguard.kernel.exceptions import WorkerLoopException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class WorkerLoop:
    """Owns one event loop running forever in a daemon thread.

    The loop is started lazily on first use and can be restarted after
    :meth:`stop`.
    """

    def __init__(self, name: str = "taskguard-worker-loop") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        """The worker's event loop, or None when not started."""
        return self._loop

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> asyncio.AbstractEventLoop:
        """Start the loop thread if needed and return the running loop."""
        with self._lock:
            if self._loop is not None and self.is_running:
                return self._loop
            loop = asyncio.new_event_loop()
            ready = threading.Event()
            thread = threading.Thread(target=self._run, args=(loop, ready), name=self._name, daemon=True)
            thread.start()
            ready.wait()
            self._loop = loop
            self._thread = thread
            logger.debug("Started worker loop %s", self._name)
            return loop

    def _run(self, loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(ready.set)
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule *callback* on the worker loop from any thread."""
        loop = self.start()
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError as exc:
            raise WorkerLoopException(f"Worker loop {self._name} is shutting down") from exc

    def submit(self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        """Run *coro* on the worker loop and return a concurrent Future."""
        loop = self.start()
        try:
            return asyncio.run_coroutine_threadsafe(coro, loop)
        except RuntimeError as exc:
            coro.close()
            raise WorkerLoopException(f"Worker loop {self._name} is shutting down") from exc

    def stop(self, timeout: float | None = None) -> None:
        """Stop the loop and join its thread.

        Must not be called from the worker thread itself.
        """
        with self._lock:
            loop, thread = self._loop, self._thread
            if loop is None or thread is None:
                return
            if thread is threading.current_thread():
                raise WorkerLoopException(f"Worker loop {self._name} cannot stop itself")
            self._loop = None
            self._thread = None
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        logger.debug("Stopped worker loop %s", self._name)
