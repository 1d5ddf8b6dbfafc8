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
"""Tests for DetachedRunner and the default runner."""

from __future__ import annotations

import asyncio
import inspect
import threading
import time
from typing import Any

import pytest

from taskguard.core.config import Config
from taskguard.execution.adapters.inline_executor import InlineContinuationExecutor
from taskguard.execution.adapters.thread_executor import ThreadPoolContinuationExecutor
from taskguard.execution.adapters.worker_loop import WorkerLoop
from taskguard.guard.catch import guard
from taskguard.guard.runner import DetachedRunner, default_runner, set_default_runner
from taskguard.kernel.exceptions import WorkerLoopException
from taskguard.kernel.types import GuardOutcome


async def fail_after(exc: BaseException, delay: float = 0.01) -> None:
    await asyncio.sleep(delay)
    raise exc


class ClosedWorkerLoop(WorkerLoop):
    """Worker loop that refuses every callback, as one that is shutting down does."""

    def call_soon(self, callback: Any, *args: Any) -> None:
        raise WorkerLoopException(f"Worker loop {self.name} is shutting down")


class RecordingThreadPoolExecutor(ThreadPoolContinuationExecutor):
    def __init__(self) -> None:
        super().__init__(max_workers=1)
        self.shutdown_threads: list[threading.Thread] = []

    def shutdown(self, wait: bool = True) -> None:
        self.shutdown_threads.append(threading.current_thread())
        super().shutdown(wait)


class TestDetach:
    @pytest.mark.asyncio
    async def test_detach_tracks_task_until_done(self) -> None:
        runner = DetachedRunner()
        gate = asyncio.Event()

        runner.detach(gate.wait(), name="gated")
        assert runner.pending_count == 1

        gate.set()
        await runner.drain()
        assert runner.pending_count == 0
        await runner.stop()

    @pytest.mark.asyncio
    async def test_failed_task_reported_to_loop_exception_handler(self) -> None:
        runner = DetachedRunner()
        reported: list[dict[str, Any]] = []
        asyncio.get_running_loop().set_exception_handler(lambda loop, context: reported.append(context))
        error = RuntimeError("detached failure")

        async def failing() -> None:
            raise error

        runner.detach(failing(), name="failing")
        await runner.drain()

        assert len(reported) == 1
        assert reported[0]["exception"] is error
        assert "failing" in reported[0]["message"]
        await runner.stop()

    @pytest.mark.asyncio
    async def test_drain_waits_for_work_detached_while_draining(self) -> None:
        runner = DetachedRunner()
        results: list[str] = []

        async def child() -> None:
            await asyncio.sleep(0.01)
            results.append("child")

        async def parent() -> None:
            await asyncio.sleep(0.01)
            runner.detach(child())
            results.append("parent")

        runner.detach(parent())
        await runner.drain()

        assert results == ["parent", "child"]
        await runner.stop()

    @pytest.mark.asyncio
    async def test_stop_without_wait_cancels_pending(self) -> None:
        runner = DetachedRunner()
        completed = False

        async def long_running() -> None:
            nonlocal completed
            await asyncio.sleep(10)
            completed = True

        runner.detach(long_running())
        await runner.stop(wait=False)

        assert not completed
        assert runner.pending_count == 0


class TestOutcomes:
    def test_record_counts_outcomes(self) -> None:
        runner = DetachedRunner()
        runner.record(GuardOutcome.SUCCEEDED)
        runner.record(GuardOutcome.SUCCEEDED)
        runner.record(GuardOutcome.UNMATCHED_FAILURE)

        assert runner.outcomes[GuardOutcome.SUCCEEDED] == 2
        assert runner.outcomes[GuardOutcome.UNMATCHED_FAILURE] == 1
        assert runner.outcomes[GuardOutcome.CANCELLED] == 0

    def test_outcomes_is_a_snapshot(self) -> None:
        runner = DetachedRunner()
        snapshot = runner.outcomes
        runner.record(GuardOutcome.SUCCEEDED)
        assert snapshot[GuardOutcome.SUCCEEDED] == 0

    def test_continuation_executor_selection(self) -> None:
        runner = DetachedRunner()
        assert isinstance(runner.continuation_executor(True), InlineContinuationExecutor)
        assert isinstance(runner.continuation_executor(False), ThreadPoolContinuationExecutor)
        runner.close()


class TestFromConfig:
    def test_worker_loop_named_from_config(self) -> None:
        config = Config({"taskguard": {"worker": {"loop_thread_name": "my-loop", "max_workers": 2}}})
        runner = DetachedRunner.from_config(config)
        assert runner.worker_loop.name == "my-loop"
        runner.close()

    def test_defaults_used_for_missing_keys(self) -> None:
        runner = DetachedRunner.from_config(Config({}))
        assert runner.worker_loop.name == "taskguard-worker-loop"
        runner.close()


class TestDefaultRunner:
    def test_default_runner_is_shared(self) -> None:
        previous = set_default_runner(None)
        try:
            assert default_runner() is default_runner()
        finally:
            created = set_default_runner(previous)
            if created is not None:
                created.close()

    def test_set_default_runner_replaces_instance(self) -> None:
        custom = DetachedRunner()
        previous = set_default_runner(custom)
        try:
            assert default_runner() is custom
        finally:
            set_default_runner(previous)
            custom.close()

    @pytest.mark.asyncio
    async def test_stopped_default_runner_is_replaced(self) -> None:
        previous = set_default_runner(None)
        try:
            first = default_runner()
            await first.stop()
            second = default_runner()
            assert second is not first
        finally:
            created = set_default_runner(previous)
            if created is not None:
                created.close()


class TestStoppedRunner:
    @pytest.mark.asyncio
    async def test_guard_after_stop_still_runs_handler(self) -> None:
        runner = DetachedRunner()
        await runner.stop()
        calls: list[BaseException] = []

        guard(fail_after(ValueError("x")), ValueError, calls.append, runner=runner)
        await runner.drain()

        assert [str(exc) for exc in calls] == ["x"]
        assert runner.outcomes == {GuardOutcome.HANDLED_SUPPRESSED: 1}
        await runner.stop()

    @pytest.mark.asyncio
    async def test_stop_releases_thread_pool_off_the_loop_thread(self) -> None:
        executor = RecordingThreadPoolExecutor()
        runner = DetachedRunner(continuation_executor=executor)

        await runner.stop()

        assert len(executor.shutdown_threads) == 1
        assert executor.shutdown_threads[0] is not threading.current_thread()

    @pytest.mark.asyncio
    async def test_stop_without_wait_marks_running_handler_cancelled(self) -> None:
        runner = DetachedRunner()
        handler_started = threading.Event()

        def slow_handler(exc: BaseException) -> None:
            handler_started.set()
            time.sleep(0.2)

        guard(fail_after(ValueError("x")), ValueError, slow_handler, runner=runner)
        await asyncio.get_running_loop().run_in_executor(None, handler_started.wait, 5)
        await runner.stop(wait=False)

        assert runner.outcomes[GuardOutcome.CANCELLED] == 1
        assert runner.outcomes[GuardOutcome.HANDLER_FAILED] == 0

    def test_refused_detach_closes_the_operation(self) -> None:
        runner = DetachedRunner(worker_loop=ClosedWorkerLoop())
        operation = fail_after(ValueError("x"))

        with pytest.raises(WorkerLoopException):
            guard(operation, ValueError, lambda exc: None, runner=runner)

        assert inspect.getcoroutinestate(operation) == inspect.CORO_CLOSED
        assert runner.pending_count == 0
        assert runner.outcomes == {}
