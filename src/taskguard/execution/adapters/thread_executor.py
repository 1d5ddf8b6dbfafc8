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
"""Thread pool continuation executor — the non-captured context."""

from __future__ import annotations

import asyncio
import contextvars
import functools
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


class ThreadPoolContinuationExecutor:
    """Runs continuations on a ThreadPoolExecutor worker thread.

    The caller's context variables are copied into the worker thread, the
    same way :func:`asyncio.to_thread` does it. The pool is created on first
    use and recreated on the next use after :meth:`shutdown`.
    """

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "taskguard-continuation") -> None:
        self._max_workers = max_workers
        self._thread_name_prefix = thread_name_prefix
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix=self._thread_name_prefix,
                )
            return self._executor

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run *func* in the thread pool and await its result."""
        loop = asyncio.get_running_loop()
        ctx = contextvars.copy_context()
        call = functools.partial(ctx.run, func, *args)
        return await loop.run_in_executor(self._pool(), call)

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the thread pool, optionally waiting for running continuations."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
