"""
Client for the dedicated coverage worker process.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Own the worker process, send it requests, and route its
responses back to the caller without blocking the caller's thread.

Key Design:
- The worker runs run_worker() in a multiprocessing Process; requests go
  over an inbox Queue, responses come back over an outbox Queue
- A daemon listener thread drains the outbox and dispatches by request_id
- Every request gets a fresh integer request_id; callers either
  wait(request_id) or pass a callback that fires on the terminal response
- Readiness flags (hydrant_index_ready, stations_index_ready,
  address_distances_ready) mirror the worker state
- When the hydrant index or station set is rebuilt after addresses were
  precomputed, the client drops its cached summary and queues one
  precompute over the stored address set; further index changes ride on
  that refresh until its response arrives

Usage:
    with CoverageWorkerClient() as client:
        client.wait(client.build_hydrant_index(hydrants))
        client.wait(client.set_stations(stations))
        client.wait(client.precompute_address_distances(addresses))
        result = client.wait(client.request_zone_analysis(zone))

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import itertools
import logging
import multiprocessing
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from Hydrant_Coverage.config_types import AppConfig
from Hydrant_Coverage.parallel import messages
from Hydrant_Coverage.parallel.coverage_worker import run_worker

logger = logging.getLogger("HydrantCoverage.Parallel.Client")

ResponseCallback = Callable[[Dict[str, Any]], None]


class WorkerNotRunningError(RuntimeError):
    """Raised when a request is sent before start() or after stop()."""


@dataclass
class _PendingRequest:
    request_id: int
    request_type: str
    callback: Optional[ResponseCallback] = None
    done: threading.Event = field(default_factory=threading.Event)
    response: Optional[Dict[str, Any]] = None


class CoverageWorkerClient:
    """
    Message-passing handle on one coverage worker process.

    Args:
        config: AppConfig passed to the worker (defaults when None)
        progress_callback: Called with each progress data dict
            ({"task", "current", "total"}) from the listener thread
        auto_refresh_distances: Re-run the precompute after the hydrant
            index or station set changes underneath a ready table
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        progress_callback: Optional[ResponseCallback] = None,
        auto_refresh_distances: bool = True,
    ):
        self.config = config or AppConfig()
        self.progress_callback = progress_callback
        self.auto_refresh_distances = auto_refresh_distances

        self.hydrant_index_ready = False
        self.stations_index_ready = False
        self.address_distances_ready = False
        self.global_summary: Optional[Dict[str, Any]] = None
        self.progress: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None

        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._pending: Dict[int, _PendingRequest] = {}
        self._process = None
        self._inbox = None
        self._outbox = None
        self._listener: Optional[threading.Thread] = None
        self._stopping = threading.Event()
        # Worker holds a distance table (or its address set) to refresh
        self._has_address_table = False
        self._refresh_pending = False
        self._refresh_request_id: Optional[int] = None

    # ═══════════════════════════════════════════════════════════════════════
    # 🔁 LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def start(self) -> "CoverageWorkerClient":
        """Spawn the worker process and the listener thread."""
        if self.is_running:
            return self

        ctx = multiprocessing.get_context(self.config.worker.start_method)
        self._inbox = ctx.Queue()
        self._outbox = ctx.Queue()
        self._stopping.clear()
        self._process = ctx.Process(
            target=run_worker,
            args=(self._inbox, self._outbox, self.config),
            name="HydrantCoverageWorker",
            daemon=True,
        )
        self._process.start()

        self._listener = threading.Thread(
            target=self._listen, name="HydrantCoverageListener", daemon=True
        )
        self._listener.start()
        logger.info(f"🏭 Coverage worker process started (pid {self._process.pid})")
        return self

    def stop(self) -> None:
        """Ask the worker to shut down, then join process and listener."""
        if self._process is None:
            return

        timeout = self.config.worker.join_timeout_s
        if self._process.is_alive():
            try:
                request_id = self._submit(messages.SHUTDOWN, {})
                self.wait(request_id, timeout=timeout)
            except (WorkerNotRunningError, TimeoutError) as e:
                logger.warning(f"⚠️ Worker did not acknowledge shutdown: {e}")

        self._process.join(timeout)
        if self._process.is_alive():
            logger.warning("⚠️ Worker still alive after join timeout; terminating")
            self._process.terminate()
            self._process.join(timeout)

        self._stopping.set()
        if self._listener is not None:
            self._listener.join(timeout)
        self._fail_pending("Coverage worker stopped")

        self._process = None
        self._listener = None
        logger.info("🛑 Coverage worker process stopped")

    def __enter__(self) -> "CoverageWorkerClient":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ═══════════════════════════════════════════════════════════════════════
    # 📨 REQUESTS
    # ═══════════════════════════════════════════════════════════════════════

    def _submit(
        self,
        msg_type: str,
        data: Dict[str, Any],
        callback: Optional[ResponseCallback] = None,
    ) -> int:
        if not self.is_running:
            raise WorkerNotRunningError("Coverage worker is not running; call start()")
        with self._lock:
            request_id = next(self._ids)
            self._pending[request_id] = _PendingRequest(request_id, msg_type, callback)
        self._inbox.put(messages.make_message(msg_type, request_id, data))
        logger.debug(f"📤 Sent {msg_type} (request {request_id})")
        return request_id

    def build_hydrant_index(
        self, hydrants: List[Dict[str, Any]], callback: Optional[ResponseCallback] = None
    ) -> int:
        """Send hydrant records; returns the request_id."""
        with self._lock:
            self.hydrant_index_ready = False
        return self._submit(messages.BUILD_HYDRANT_INDEX, {"hydrants": hydrants}, callback)

    def set_stations(
        self, stations: List[Dict[str, Any]], callback: Optional[ResponseCallback] = None
    ) -> int:
        """Send station records; returns the request_id."""
        with self._lock:
            self.stations_index_ready = False
        return self._submit(messages.SET_STATIONS, {"stations": stations}, callback)

    def precompute_address_distances(
        self,
        addresses: Optional[List[Dict[str, Any]]] = None,
        callback: Optional[ResponseCallback] = None,
    ) -> int:
        """
        Request the address distance pass.

        Args:
            addresses: Address records; None re-runs over the worker's
                stored address set
        """
        with self._lock:
            self.address_distances_ready = False
        data = {} if addresses is None else {"addresses": addresses}
        return self._submit(messages.PRECOMPUTE_ADDRESS_DISTANCES, data, callback)

    def request_zone_analysis(
        self, zone: Any, callback: Optional[ResponseCallback] = None
    ) -> int:
        """
        Request statistics for one zone polygon (GeoJSON Feature/geometry).

        Several analyses may be in flight; each response carries its own
        request_id and fires only its own callback.
        """
        return self._submit(messages.ANALYZE_ZONE, {"zone": zone}, callback)

    def wait(self, request_id: int, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Block until the terminal response for request_id arrives.

        Returns:
            The response message dict (type may be "error")

        Raises:
            KeyError: Unknown or already-collected request_id
            TimeoutError: No terminal response within timeout seconds
        """
        with self._lock:
            pending = self._pending.get(request_id)
        if pending is None:
            raise KeyError(f"No pending request with id {request_id}")
        if not pending.done.wait(timeout):
            raise TimeoutError(
                f"Request {request_id} ({pending.request_type}) timed out after {timeout}s"
            )
        with self._lock:
            self._pending.pop(request_id, None)
        return pending.response

    # ═══════════════════════════════════════════════════════════════════════
    # 📬 RESPONSE ROUTING
    # ═══════════════════════════════════════════════════════════════════════

    def _listen(self) -> None:
        poll = self.config.worker.poll_interval_s
        while not self._stopping.is_set():
            try:
                message = self._outbox.get(timeout=poll)
            except queue.Empty:
                if self._process is not None and not self._process.is_alive():
                    exitcode = self._process.exitcode
                    if exitcode not in (0, None):
                        logger.error(f"❌ Coverage worker exited with code {exitcode}")
                        self._fail_pending(f"Coverage worker exited with code {exitcode}")
                        return
                continue
            except (EOFError, OSError) as e:
                logger.error(f"❌ Worker outbox closed: {e}")
                self._fail_pending("Coverage worker connection lost")
                return
            self._dispatch(message)

    def _dispatch(self, message: Dict[str, Any]) -> None:
        msg_type = message.get("type")
        request_id = message.get("request_id")
        data = message.get("data") or {}

        if msg_type == messages.PROGRESS:
            self.progress = data
            if self.progress_callback is not None:
                self._safe_call(self.progress_callback, data)
            return

        refresh = False
        with self._lock:
            pending = self._pending.get(request_id)
            if msg_type == messages.HYDRANT_INDEX_READY:
                self.hydrant_index_ready = True
                refresh = self._table_dropped()
            elif msg_type == messages.STATIONS_INDEX_READY:
                self.stations_index_ready = True
                refresh = self._table_dropped()
            elif msg_type == messages.ADDRESS_DISTANCES_READY:
                self.address_distances_ready = True
                self.global_summary = data.get("summary")
                self._has_address_table = True
                self._release_refresh()
            elif msg_type == messages.ERROR:
                self.last_error = data.get("message")
                if self._refresh_pending and request_id == self._refresh_request_id:
                    self._release_refresh()
            if pending is not None and pending.callback is not None:
                # Callback requests are never collected by wait()
                self._pending.pop(request_id, None)

        if msg_type == messages.ERROR:
            logger.warning(
                f"⚠️ Worker error for {data.get('request_type')} "
                f"(request {request_id}): {data.get('message')}"
            )

        if pending is None:
            logger.debug(f"📥 Unsolicited {msg_type} (request {request_id})")
        else:
            pending.response = message
            if pending.callback is not None:
                self._safe_call(pending.callback, message)
            pending.done.set()

        if refresh:
            logger.info("♻️ Index changed; refreshing address distances")
            try:
                refresh_id = self.precompute_address_distances(
                    None, callback=self._ignore_response
                )
            except WorkerNotRunningError as e:
                logger.warning(f"⚠️ Address distance refresh skipped: {e}")
                with self._lock:
                    self._release_refresh()
            else:
                with self._lock:
                    if self._refresh_pending:
                        self._refresh_request_id = refresh_id

    def _table_dropped(self) -> bool:
        """Mark the table stale; True if the caller should queue a refresh."""
        # Caller holds self._lock
        if not self._has_address_table:
            return False
        self.address_distances_ready = False
        self.global_summary = None
        if (
            self._refresh_pending
            or not self.auto_refresh_distances
            or self._stopping.is_set()
        ):
            return False
        self._refresh_pending = True
        return True

    def _release_refresh(self) -> None:
        # Caller holds self._lock
        self._refresh_pending = False
        self._refresh_request_id = None

    @staticmethod
    def _ignore_response(message: Dict[str, Any]) -> None:
        pass

    @staticmethod
    def _safe_call(callback: ResponseCallback, payload: Dict[str, Any]) -> None:
        try:
            callback(payload)
        except Exception:
            logger.exception("❌ Response callback raised")

    def _fail_pending(self, reason: str) -> None:
        with self._lock:
            outstanding = [p for p in self._pending.values() if not p.done.is_set()]
        for pending in outstanding:
            pending.response = messages.make_error(
                reason, pending.request_id, pending.request_type
            )
            if pending.callback is not None:
                self._safe_call(pending.callback, pending.response)
            pending.done.set()
