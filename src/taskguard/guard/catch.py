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
"""Background exception guard — fire-and-forget with typed exception capture."""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from taskguard.context.configured import ConfiguredAwaitable
from taskguard.guard.runner import DetachedRunner, default_runner
from taskguard.kernel.exceptions import InvalidArgumentException, WorkerLoopException
from taskguard.kernel.types import GuardOutcome

ExceptionKind = type[BaseException] | tuple[type[BaseException], ...]

logger = logging.getLogger(__name__)


def guard(
    operation: Awaitable[Any] | concurrent.futures.Future[Any],
    exception_kind: ExceptionKind,
    handler: Callable[[Any], Any],
    continue_on_captured_context: bool | None = None,
    suppress_rethrow: bool = True,
    *,
    runner: DetachedRunner | None = None,
) -> None:
    """Run *operation* in the background and catch *exception_kind*.

    Returns immediately; the caller gets no handle to the detached work.
    When the operation fails with an instance of *exception_kind*
    (subclasses included), *handler* is called once with the exception.
    With ``suppress_rethrow=False`` the exception is raised again after the
    handler returns. Any exception leaving the detached frame is reported to
    the event loop's exception handler, never to the caller.

    Args:
        operation: Coroutine, task, future, ``concurrent.futures.Future`` or
            any awaitable. Passing a :class:`ConfiguredAwaitable` supplies the
            default for *continue_on_captured_context*.
        exception_kind: Exception class, or tuple of classes, to intercept.
        handler: Called with the matched exception. An awaitable result is
            awaited before the guard settles.
        continue_on_captured_context: ``True`` runs the handler on the event
            loop thread; ``False`` runs it on a worker thread. ``None`` takes
            the flag from a ConfiguredAwaitable, else ``False``.
        suppress_rethrow: Swallow the matched exception after handling.
        runner: Runner owning the detached task (default: process-wide runner).

    Raises:
        InvalidArgumentException: If an argument is missing or unusable.
            Nothing is scheduled in that case.
        WorkerLoopException: If the runner's worker loop is shutting down.
    """
    try:
        _validate(operation, exception_kind, handler)
    except InvalidArgumentException:
        _discard(operation)
        raise

    if continue_on_captured_context is None:
        continue_on_captured_context = (
            operation.continue_on_captured_context if isinstance(operation, ConfiguredAwaitable) else False
        )

    runner = runner or default_runner()
    _check_loop_affinity(operation, runner)

    frame = _guarded(
        operation,
        exception_kind,
        handler,
        continue_on_captured_context,
        suppress_rethrow,
        runner,
    )
    try:
        runner.detach(frame, name=f"taskguard:{_describe(operation)}")
    except WorkerLoopException:
        _discard(operation)
        raise


def catch(
    exception_kind: ExceptionKind,
    handler: Callable[[Any], Any],
    continue_on_captured_context: bool | None = None,
    suppress_rethrow: bool = True,
    *,
    runner: DetachedRunner | None = None,
) -> Callable[[Awaitable[Any]], None]:
    """Curried :func:`guard`: ``catch(KeyError, on_missing)(lookup())``."""

    def apply(operation: Awaitable[Any]) -> None:
        guard(
            operation,
            exception_kind,
            handler,
            continue_on_captured_context,
            suppress_rethrow,
            runner=runner,
        )

    return apply


async def _guarded(
    operation: Any,
    exception_kind: ExceptionKind,
    handler: Callable[[Any], Any],
    continue_on_captured_context: bool,
    suppress_rethrow: bool,
    runner: DetachedRunner,
) -> None:
    outcome = GuardOutcome.PENDING
    try:
        await _as_awaitable(operation)
        outcome = GuardOutcome.SUCCEEDED
    except exception_kind as exc:
        try:
            executor = runner.continuation_executor(continue_on_captured_context)
            result = await executor.run(handler, exc)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            outcome = GuardOutcome.CANCELLED
            raise
        except BaseException:
            outcome = GuardOutcome.HANDLER_FAILED
            raise
        if not suppress_rethrow:
            outcome = GuardOutcome.HANDLED_RETHROWN
            raise
        outcome = GuardOutcome.HANDLED_SUPPRESSED
    except asyncio.CancelledError:
        outcome = GuardOutcome.CANCELLED
        raise
    except BaseException:
        outcome = GuardOutcome.UNMATCHED_FAILURE
        raise
    finally:
        runner.record(outcome)
        logger.debug(
            "Guard settled: outcome=%s exception_kind=%s operation=%s",
            outcome.value,
            _kind_name(exception_kind),
            _describe(operation),
        )


def _as_awaitable(operation: Any) -> Awaitable[Any]:
    if isinstance(operation, ConfiguredAwaitable):
        operation = operation.operation
    if isinstance(operation, concurrent.futures.Future):
        return asyncio.wrap_future(operation)
    return operation


def _validate(operation: Any, exception_kind: Any, handler: Any) -> None:
    if operation is None:
        raise InvalidArgumentException("operation must not be None", argument="operation")
    if handler is None:
        raise InvalidArgumentException("handler must not be None", argument="handler")
    if not callable(handler):
        raise InvalidArgumentException(
            f"handler must be callable, got {type(handler).__name__}",
            argument="handler",
        )

    target = operation.operation if isinstance(operation, ConfiguredAwaitable) else operation
    if not (inspect.isawaitable(target) or isinstance(target, concurrent.futures.Future)):
        raise InvalidArgumentException(
            f"operation must be awaitable, got {type(target).__name__}",
            argument="operation",
        )

    kinds = exception_kind if isinstance(exception_kind, tuple) else (exception_kind,)
    if not kinds or not all(isinstance(k, type) and issubclass(k, BaseException) for k in kinds):
        raise InvalidArgumentException(
            f"exception_kind must be an exception class or a tuple of them, got {exception_kind!r}",
            argument="exception_kind",
        )


def _check_loop_affinity(operation: Any, runner: DetachedRunner) -> None:
    """Reject asyncio futures that cannot be awaited where the frame will run."""
    target = operation.operation if isinstance(operation, ConfiguredAwaitable) else operation
    if not asyncio.isfuture(target):
        return
    if target.get_loop() is not runner.target_loop():
        raise InvalidArgumentException(
            "operation is bound to a different event loop than the one the guard would run on",
            argument="operation",
        )


def _discard(operation: Any) -> None:
    # The guard owns a coroutine it was handed; close it so it is not
    # reported as never awaited.
    target = operation.operation if isinstance(operation, ConfiguredAwaitable) else operation
    if inspect.iscoroutine(target):
        target.close()


def _describe(operation: Any) -> str:
    target = operation.operation if isinstance(operation, ConfiguredAwaitable) else operation
    qualname = getattr(target, "__qualname__", None)
    if qualname:
        return qualname
    if isinstance(target, asyncio.Task):
        return target.get_name()
    return type(target).__name__


def _kind_name(exception_kind: ExceptionKind) -> str:
    if isinstance(exception_kind, tuple):
        return "(" + ", ".join(k.__name__ for k in exception_kind) + ")"
    return exception_kind.__name__
