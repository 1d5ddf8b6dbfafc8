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
"""Continuation-context shorthands for awaitables.

asyncio always resumes a coroutine on the event loop that awaits it, so at a
plain ``await`` site the captured/non-captured distinction is a no-op: both
wrappers await exactly like the operation they wrap. The flag travels with
the wrapper and is honoured where taskguard schedules a continuation itself,
i.e. when the wrapper is handed to :func:`taskguard.guard.guard`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Generator
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ConfiguredAwaitable(Generic[T]):
    """An awaitable paired with a continuation-context preference."""

    __slots__ = ("_operation", "_continue_on_captured_context")

    def __init__(self, operation: Awaitable[T], continue_on_captured_context: bool) -> None:
        self._operation = operation
        self._continue_on_captured_context = continue_on_captured_context

    @property
    def operation(self) -> Awaitable[T]:
        return self._operation

    @property
    def continue_on_captured_context(self) -> bool:
        return self._continue_on_captured_context

    def __await__(self) -> Generator[Any, None, T]:
        return self._operation.__await__()

    def __repr__(self) -> str:
        mode = "captured" if self._continue_on_captured_context else "non_captured"
        return f"<ConfiguredAwaitable {mode} {self._operation!r}>"


def configure(operation: Awaitable[T], continue_on_captured_context: bool) -> ConfiguredAwaitable[T]:
    """Pair *operation* with a continuation-context preference."""
    return ConfiguredAwaitable(operation, continue_on_captured_context)


def captured(operation: Awaitable[T]) -> ConfiguredAwaitable[T]:
    """Resume on the context that started the wait (the running event loop)."""
    return configure(operation, True)


def non_captured(operation: Awaitable[T]) -> ConfiguredAwaitable[T]:
    """Allow the continuation to resume on an arbitrary worker context."""
    return configure(operation, False)
