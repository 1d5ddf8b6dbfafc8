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
"""Continuation executor port — where the code after an await runs."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class ContinuationExecutorPort(Protocol):
    """Port for running a synchronous continuation on some execution context."""

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run *func* with *args* and return its result."""
        ...

    def shutdown(self, wait: bool = True) -> None:
        """Release resources held by the executor."""
        ...
