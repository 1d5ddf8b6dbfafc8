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
"""DetachedRunner — explicit detach combinator for fire-and-forget work."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import Counter
from collections.abc import Coroutine
from typing import Any

from taskguard.core.config import Config
from taskguard.core.properties import WorkerProperties
from taskguard.execution.adapters.inline_executor import InlineContinuationExecutor
from taskguard.execution.adapters.thread_executor import ThreadPoolContinuationExecutor
from taskguard.execution.adapters.worker_loop import WorkerLoop
from taskguard.execution.ports.outbound import ContinuationExecutorPort
from taskguard.kernel.exceptions import WorkerLoopException
from taskguard.kernel.types import GuardOutcome

logger = logging.getLogger(__name__)


class DetachedRunner:
    """Owns detached tasks until they settle.

    asyncio keeps only weak references to tasks, so a task nobody holds can
    be garbage collected mid-flight; the runner keeps a strong reference
    until the task is done. A detached task that ends with an exception is
    reported to its loop's exception handler, which is the only place such
    a failure becomes visible.

    Work detached from a thread with a running loop becomes a task on that
    loop. Work detached from a thread without one runs on the runner's
    :class:`WorkerLoop`.

    Usage::

        runner = DetachedRunner()
        runner.detach(send_email(user))
        ...
        await runner.stop()
    """

    def __init__(
        self,
        continuation_executor: ContinuationExecutorPort | None = None,
        worker_loop: WorkerLoop | None = None,
    ) -> None:
        self._inline = InlineContinuationExecutor()
        self._pool: ContinuationExecutorPort = continuation_executor or ThreadPoolContinuationExecutor()
        self._worker = worker_loop or WorkerLoop()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._outcomes: Counter[GuardOutcome] = Counter()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> DetachedRunner:
        """Build a runner sized by the ``taskguard.worker`` section."""
        props = config.bind(WorkerProperties)
        return cls(
            continuation_executor=ThreadPoolContinuationExecutor(
                max_workers=props.max_workers,
                thread_name_prefix=props.thread_name_prefix,
            ),
            worker_loop=WorkerLoop(name=props.loop_thread_name),
        )

    @property
    def worker_loop(self) -> WorkerLoop:
        return self._worker

    @property
    def pending_count(self) -> int:
        """Number of detached tasks that have not settled yet."""
        return len(self._tasks)

    @property
    def outcomes(self) -> Counter[GuardOutcome]:
        """Snapshot of terminal guard outcomes recorded so far."""
        with self._lock:
            return Counter(self._outcomes)

    def continuation_executor(self, continue_on_captured_context: bool) -> ContinuationExecutorPort:
        """Executor for the code that runs after a guarded await."""
        return self._inline if continue_on_captured_context else self._pool

    def record(self, outcome: GuardOutcome) -> None:
        with self._lock:
            self._outcomes[outcome] += 1

    def target_loop(self) -> asyncio.AbstractEventLoop | None:
        """Loop a detach from the current thread would use, if already known."""
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return self._worker.loop

    def detach(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> None:
        """Schedule *coro* without giving the caller a handle to it."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                self._worker.call_soon(self._start, coro, name)
            except WorkerLoopException:
                coro.close()
                raise
            return
        self._start(coro, name)

    def _start(self, coro: Coroutine[Any, Any, Any], name: str | None) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        task.get_loop().call_exception_handler(
            {
                "message": f"Unhandled exception in detached task {task.get_name()}",
                "exception": exc,
                "task": task,
            }
        )

    async def _drain_current_loop(self) -> None:
        loop = asyncio.get_running_loop()
        current = asyncio.current_task()
        while True:
            pending = [t for t in list(self._tasks) if t.get_loop() is loop and t is not current and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def drain(self) -> None:
        """Wait until every detached task has settled.

        Failures are not raised here; they were already reported to the
        owning loop's exception handler.
        """
        await self._drain_current_loop()
        worker_loop = self._worker.loop
        if worker_loop is not None and worker_loop is not asyncio.get_running_loop() and self._worker.is_running:
            await asyncio.wrap_future(self._worker.submit(self._drain_current_loop()))

    def drain_blocking(self, timeout: float | None = None) -> None:
        """Wait for work detached onto the worker loop, from a thread without a loop."""
        if self._worker.loop is None:
            return
        self._worker.submit(self._drain_current_loop()).result(timeout)

    async def _cancel_current_loop(self) -> None:
        loop = asyncio.get_running_loop()
        current = asyncio.current_task()
        pending = [t for t in list(self._tasks) if t.get_loop() is loop and t is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def stop(self, wait: bool = True) -> None:
        """Drain (or cancel) detached work, then release executors and the worker loop."""
        if wait:
            await self.drain()
        else:
            await self._cancel_current_loop()
            worker_loop = self._worker.loop
            if worker_loop is not None and worker_loop is not asyncio.get_running_loop() and self._worker.is_running:
                await asyncio.wrap_future(self._worker.submit(self._cancel_current_loop()))
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._pool.shutdown, wait)
        await loop.run_in_executor(None, self._worker.stop)
        _release_default(self)
        logger.debug("Detached runner stopped (outcomes=%s)", dict(self.outcomes))

    def close(self, timeout: float | None = None) -> None:
        """Synchronous counterpart of :meth:`stop` for callers without a loop."""
        self.drain_blocking(timeout)
        self._pool.shutdown(wait=True)
        self._worker.stop(timeout)
        _release_default(self)


_default_runner: DetachedRunner | None = None
_default_lock = threading.Lock()


def default_runner() -> DetachedRunner:
    """Process-wide runner used by guard() when none is passed."""
    global _default_runner
    with _default_lock:
        if _default_runner is None:
            _default_runner = DetachedRunner.from_config(Config.from_defaults())
        return _default_runner


def set_default_runner(runner: DetachedRunner | None) -> DetachedRunner | None:
    """Replace the process-wide runner. Returns the previous one."""
    global _default_runner
    with _default_lock:
        previous, _default_runner = _default_runner, runner
        return previous


def _release_default(runner: DetachedRunner) -> None:
    # A stopped default runner is replaced on the next default_runner() call.
    global _default_runner
    with _default_lock:
        if _default_runner is runner:
            _default_runner = None
