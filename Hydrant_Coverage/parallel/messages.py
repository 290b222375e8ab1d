"""
Message protocol between the worker client and the coverage worker.

Every message is a plain dict (picklable, JSON-friendly apart from inf):

    {"type": str, "request_id": int, "data": dict}

Responses echo the request_id of the request that produced them, so a
caller can keep several zone analyses in flight at once.

Request types          -> terminal response type
    build_hydrant_index          -> hydrant_index_ready
    set_stations                 -> stations_index_ready
    precompute_address_distances -> address_distances_ready (+ progress)
    analyze_zone                 -> zone_analysis_ready
    shutdown                     -> shutdown_ack
    (any failure)                -> error
"""

from typing import Any, Dict, Optional

# ═══════════════════════════════════════════════════════════════════════════
# 📨 REQUEST TYPES
# ═══════════════════════════════════════════════════════════════════════════

BUILD_HYDRANT_INDEX = "build_hydrant_index"
SET_STATIONS = "set_stations"
PRECOMPUTE_ADDRESS_DISTANCES = "precompute_address_distances"
ANALYZE_ZONE = "analyze_zone"
SHUTDOWN = "shutdown"

# ═══════════════════════════════════════════════════════════════════════════
# 📬 RESPONSE TYPES
# ═══════════════════════════════════════════════════════════════════════════

HYDRANT_INDEX_READY = "hydrant_index_ready"
STATIONS_INDEX_READY = "stations_index_ready"
ADDRESS_DISTANCES_READY = "address_distances_ready"
ZONE_ANALYSIS_READY = "zone_analysis_ready"
PROGRESS = "progress"
SHUTDOWN_ACK = "shutdown_ack"
ERROR = "error"

RESPONSE_FOR_REQUEST: Dict[str, str] = {
    BUILD_HYDRANT_INDEX: HYDRANT_INDEX_READY,
    SET_STATIONS: STATIONS_INDEX_READY,
    PRECOMPUTE_ADDRESS_DISTANCES: ADDRESS_DISTANCES_READY,
    ANALYZE_ZONE: ZONE_ANALYSIS_READY,
    SHUTDOWN: SHUTDOWN_ACK,
}

# Responses after which no more messages arrive for that request_id
TERMINAL_TYPES = frozenset(RESPONSE_FOR_REQUEST.values()) | {ERROR}


def make_message(
    msg_type: str, request_id: Optional[int] = None, data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build a protocol message dict."""
    return {"type": msg_type, "request_id": request_id, "data": data or {}}


def make_error(
    message: str, request_id: Optional[int] = None, request_type: Optional[str] = None
) -> Dict[str, Any]:
    """Build an error response carrying a human-readable message."""
    return make_message(
        ERROR, request_id, {"message": message, "request_type": request_type}
    )


def is_terminal(message: Dict[str, Any]) -> bool:
    """True if this response finishes its request."""
    return message.get("type") in TERMINAL_TYPES
