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
"""taskguard execution contexts — where continuations and detached frames run.

The port is exported directly; the default adapters are re-exported for
convenience.
"""

from taskguard.execution.ports.outbound import ContinuationExecutorPort

from taskguard.execution.adapters.inline_executor import InlineContinuationExecutor
from taskguard.execution.adapters.thread_executor import ThreadPoolContinuationExecutor
from taskguard.execution.adapters.worker_loop import WorkerLoop

__all__ = [
    # Port
    "ContinuationExecutorPort",
    # Adapters
    "InlineContinuationExecutor",
    "ThreadPoolContinuationExecutor",
    "WorkerLoop",
]
