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
"""Outcome enum for guarded operations."""

from __future__ import annotations

from enum import Enum


class GuardOutcome(Enum):
    """State of a single guard invocation.

    ``PENDING`` is entered when the guard is called; exactly one of the
    other members is reached once the guarded operation settles.
    """

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    HANDLED_SUPPRESSED = "HANDLED_SUPPRESSED"
    HANDLED_RETHROWN = "HANDLED_RETHROWN"
    HANDLER_FAILED = "HANDLER_FAILED"
    UNMATCHED_FAILURE = "UNMATCHED_FAILURE"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not GuardOutcome.PENDING

    @property
    def escapes(self) -> bool:
        """Whether the detached frame ends with an exception reported to the loop."""
        return self in (
            GuardOutcome.HANDLED_RETHROWN,
            GuardOutcome.HANDLER_FAILED,
            GuardOutcome.UNMATCHED_FAILURE,
        )
