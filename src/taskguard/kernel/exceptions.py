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
"""Exception hierarchy for taskguard.

All library exceptions inherit from TaskGuardException. Each concrete
exception also inherits from the closest builtin so callers that only know
about ``ValueError`` or ``RuntimeError`` still catch them.

Failures raised by a guarded operation are never wrapped in these types:
they are delivered to the handler or reported to the event loop as-is.
"""

from __future__ import annotations


class TaskGuardException(Exception):
    """Base exception for all taskguard errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "INVALID_ARGUMENT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class InvalidArgumentException(TaskGuardException, ValueError):
    """A guard was called with a missing or unusable argument.

    Raised synchronously, before anything is scheduled.
    """

    def __init__(self, message: str, argument: str, context: dict | None = None) -> None:
        super().__init__(message, code="INVALID_ARGUMENT", context=context)
        self.argument = argument


class WorkerLoopException(TaskGuardException, RuntimeError):
    """The background worker loop cannot accept work."""
