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
"""Tests for the background WorkerLoop."""

from __future__ import annotations

import asyncio
import threading

import pytest

from taskguard.execution.adapters.worker_loop import WorkerLoop
from taskguard.kernel.exceptions import WorkerLoopException


async def current_thread_name() -> str:
    await asyncio.sleep(0)
    return threading.current_thread().name


class TestWorkerLoop:
    def test_not_running_until_used(self) -> None:
        worker = WorkerLoop()
        assert worker.loop is None
        assert not worker.is_running

    def test_submit_runs_on_named_thread(self) -> None:
        worker = WorkerLoop(name="test-loop")
        try:
            assert worker.submit(current_thread_name()).result(timeout=5) == "test-loop"
            assert worker.is_running
        finally:
            worker.stop(timeout=5)

    def test_call_soon_runs_callback(self) -> None:
        worker = WorkerLoop()
        done = threading.Event()
        try:
            worker.call_soon(done.set)
            assert done.wait(timeout=5)
        finally:
            worker.stop(timeout=5)

    def test_stop_joins_thread(self) -> None:
        worker = WorkerLoop()
        worker.start()
        worker.stop(timeout=5)
        assert not worker.is_running
        assert worker.loop is None

    def test_restart_after_stop(self) -> None:
        worker = WorkerLoop()
        first = worker.start()
        worker.stop(timeout=5)
        try:
            second = worker.start()
            assert second is not first
            assert worker.submit(current_thread_name()).result(timeout=5) == worker.name
        finally:
            worker.stop(timeout=5)

    def test_stop_from_worker_thread_rejected(self) -> None:
        worker = WorkerLoop()

        async def stop_self() -> None:
            worker.stop()

        try:
            with pytest.raises(WorkerLoopException):
                worker.submit(stop_self()).result(timeout=5)
        finally:
            worker.stop(timeout=5)
