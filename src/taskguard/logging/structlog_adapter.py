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
"""StructlogAdapter — default LoggingPort implementation using structlog.

taskguard modules log through stdlib ``logging.getLogger(__name__)``. The
adapter installs one root handler whose ``ProcessorFormatter`` runs those
records through the same processor chain as structlog's own loggers, so a
``Guard settled`` record from ``taskguard.guard.catch`` is rendered with
level, logger name and timestamp, as console text or JSON.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from taskguard.core.config import Config


def _shared_processors() -> list[structlog.types.Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


class StructlogAdapter:
    """Default logging adapter backed by structlog."""

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}
        self._handler: logging.Handler | None = None

    @property
    def handler(self) -> logging.Handler | None:
        """Root handler installed by the last :meth:`configure` call."""
        return self._handler

    def configure(self, config: Config) -> None:
        """Configure structlog and the root logger from ``taskguard.logging``."""
        level_section = dict(config.get_section("taskguard.logging.level"))
        self._root_level = str(config.get("taskguard.logging.level.root", level_section.pop("root", "INFO"))).upper()
        level_section.pop("root", None)
        self._module_levels = {k: str(v).upper() for k, v in level_section.items()}
        self._format = str(config.get("taskguard.logging.format", "console")).lower()

        shared = _shared_processors()
        structlog.configure(
            processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self._install_handler(shared)
        self._apply_levels()

    def get_logger(self, name: str) -> Any:
        """Get a structlog BoundLogger by name."""
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the log level for a specific stdlib logger."""
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _renderer(self) -> structlog.types.Processor:
        if self._format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer()

    def _install_handler(self, shared: list[structlog.types.Processor]) -> None:
        formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                self._renderer(),
            ],
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logging.basicConfig(
            handlers=[handler],
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )
        self._handler = handler

    def _apply_levels(self) -> None:
        for module, level in self._module_levels.items():
            self.set_level(module, level)


def configure_logging(config: Config | None = None) -> StructlogAdapter:
    """Configure structlog from *config* (library defaults when omitted)."""
    adapter = StructlogAdapter()
    adapter.configure(config if config is not None else Config.from_defaults())
    return adapter
