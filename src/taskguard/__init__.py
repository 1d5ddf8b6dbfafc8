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
"""taskguard — convenience wrappers around asyncio task primitives.

    from taskguard import guard, captured, non_captured

    guard(refresh_cache(), ConnectionError, log_refresh_failure)
"""

from taskguard.context import ConfiguredAwaitable, captured, configure, non_captured
from taskguard.guard import DetachedRunner, catch, default_runner, guard, set_default_runner
from taskguard.kernel import (
    GuardOutcome,
    InvalidArgumentException,
    TaskGuardException,
    WorkerLoopException,
)
from taskguard.logging import configure_logging

__version__ = "0.1.0"

__all__ = [
    # Context shorthands
    "ConfiguredAwaitable",
    "captured",
    "configure",
    "non_captured",
    # Guard
    "DetachedRunner",
    "catch",
    "default_runner",
    "guard",
    "set_default_runner",
    # Kernel
    "GuardOutcome",
    "InvalidArgumentException",
    "TaskGuardException",
    "WorkerLoopException",
    # Logging
    "configure_logging",
]
