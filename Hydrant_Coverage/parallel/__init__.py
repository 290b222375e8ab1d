"""
Dedicated worker process for the coverage engine.

Module Structure:
- messages.py: Request/response type constants and message builders
- coverage_engine.py: CoverageEngine session object (state + dispatch)
- coverage_worker.py: run_worker() process loop
- worker_client.py: CoverageWorkerClient (process, listener, callbacks)
"""

from Hydrant_Coverage.parallel import messages
from Hydrant_Coverage.parallel.coverage_engine import CoverageEngine
from Hydrant_Coverage.parallel.coverage_worker import run_worker
from Hydrant_Coverage.parallel.worker_client import (
    CoverageWorkerClient,
    WorkerNotRunningError,
)

__all__ = [
    "messages",
    "CoverageEngine",
    "run_worker",
    "CoverageWorkerClient",
    "WorkerNotRunningError",
]
