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
"""LoggingPort — how applications embedding taskguard render its log records."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from taskguard.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """Contract for rendering the records taskguard emits.

    taskguard modules log through stdlib loggers under the ``taskguard``
    namespace (guard outcomes at DEBUG on ``taskguard.guard.catch``). An
    implementation decides how those records reach an output.
    """

    @property
    def handler(self) -> logging.Handler | None:
        """Root handler installed by :meth:`configure`, if any."""
        ...

    def configure(self, config: Config) -> None:
        """Apply the ``taskguard.logging`` section (levels and format)."""
        ...

    def get_logger(self, name: str) -> Any: ...

    def set_level(self, name: str, level: str) -> None: ...
