"""
Coverage worker process entry point.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Run one CoverageEngine in a dedicated process and serve
request messages from an inbox queue, one at a time, in arrival order.

Key Design:
- run_worker() is a module-level function so it can be the target of a
  "spawn" Process (picklable by reference)
- Messages are handled strictly sequentially; a long precompute delays
  later requests but never interleaves with them
- Each response is put on the outbox as soon as it is produced, so
  progress messages reach the client while the pass is still running
- A None message or a "shutdown" request ends the loop after the ack

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import os
from typing import Any, Optional

import psutil

from Hydrant_Coverage.config_types import AppConfig
from Hydrant_Coverage.logging_setup import setup_logging
from Hydrant_Coverage.parallel import messages
from Hydrant_Coverage.parallel.coverage_engine import CoverageEngine

logger = logging.getLogger("HydrantCoverage.Parallel.Worker")


def _log_resource_usage(stage: str) -> None:
    """
    Log worker memory and CPU usage at key stages.

    Args:
        stage: Description of current stage (e.g., "after precompute_address_distances")
    """
    try:
        process = psutil.Process()
        mem_mb = process.memory_info().rss / (1024 * 1024)
        cpu_pct = process.cpu_percent()
        logger.debug(f"[{stage}] Memory: {mem_mb:.0f}MB, CPU: {cpu_pct:.1f}%")
    except psutil.Error as e:
        logger.debug(f"[{stage}] Resource monitoring failed: {e}")


def run_worker(inbox: Any, outbox: Any, config: Optional[AppConfig] = None) -> None:
    """
    Serve requests until shutdown.

    Args:
        inbox: Queue of request message dicts (None also means shutdown)
        outbox: Queue receiving every response message dict
        config: AppConfig for the engine (defaults when None)
    """
    config = config or AppConfig()
    setup_logging(config.logging.level, config.logging.log_file)
    track_resources = config.worker.log_resource_usage

    engine = CoverageEngine(config)
    logger.info(f"🏭 Coverage worker started (pid {os.getpid()})")

    while True:
        message = inbox.get()
        if message is None:
            logger.info("🛑 Inbox closed; coverage worker exiting")
            break

        msg_type = message.get("type") if isinstance(message, dict) else None
        for response in engine.handle(message):
            outbox.put(response)

        if track_resources:
            _log_resource_usage(f"after {msg_type}")

        if msg_type == messages.SHUTDOWN:
            logger.info("🛑 Shutdown requested; coverage worker exiting")
            break
