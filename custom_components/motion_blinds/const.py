"""Constants for the Motion Blinds integration and gateway library."""

from __future__ import annotations

from enum import IntEnum

# ── Home Assistant integration ──────────────────────────────────────
DOMAIN = "motion_blinds"
MANUFACTURER = "Motion"

CONF_KEY = "key"
CONF_BLINDS = "blinds"
CONF_DEVICE_TYPE = "device_type"
CONF_POLL_INTERVAL = "poll_interval"

DEFAULT_GATEWAY_NAME = "Motion Blinds Gateway"
DEFAULT_POLL_INTERVAL = 60  # seconds
MIN_POLL_INTERVAL = 5  # seconds
INITIAL_STATUS_DELAY = 1.0  # seconds
SETUP_RETRIES = 3
SETUP_RETRY_DELAY = 3.0  # seconds

# ── Network ─────────────────────────────────────────────────────────
UDP_PORT = 32100
MULTICAST_ADDRESS = "238.0.0.18"
MULTICAST_PORT = 32101  # gateway Report frames

CONNECT_TIMEOUT = 10.0  # seconds
REQUEST_TIMEOUT = 5.0  # seconds
RECONNECT_DELAY = 5.0  # seconds

# ── Message kinds ───────────────────────────────────────────────────
MSG_GET_DEVICE_LIST = "GetDeviceList"
MSG_READ_DEVICE = "ReadDevice"
MSG_WRITE_DEVICE = "WriteDevice"
MSG_REPORT = "Report"

ACK_SUFFIX = "Ack"

# Kinds whose payload carries a status reading for a single device
STATUS_MESSAGE_TYPES: frozenset[str] = frozenset({
    MSG_READ_DEVICE + ACK_SUFFIX,
    MSG_WRITE_DEVICE + ACK_SUFFIX,
    MSG_REPORT,
})

# ── Device types ────────────────────────────────────────────────────
GATEWAY_DEVICE_TYPE = "02000001"
BLIND_DEVICE_TYPE = "10000000"


class Operation(IntEnum):
    """Operation codes understood by WriteDevice."""

    CLOSE = 0
    OPEN = 1
    STOP = 2
    STATUS_QUERY = 5


# ── Position model ──────────────────────────────────────────────────
# Protocol: 0 = fully open, 100 = fully closed.
# Host:     0 = fully closed, 100 = fully open.
POSITION_MIN = 0
POSITION_MAX = 100

POSITION_STATE_DECREASING = "decreasing"  # closing
POSITION_STATE_INCREASING = "increasing"  # opening
POSITION_STATE_STOPPED = "stopped"

# ── Movement tracking ───────────────────────────────────────────────
POSITION_TOLERANCE = 2
MOVEMENT_TIMEOUT = 90.0  # seconds
STOP_REFRESH_DELAY = 0.5  # seconds

# Gaps between status polls after a command (seconds), roughly 50s total
POLL_INTERVALS: tuple[float, ...] = (
    (0.3,) * 7
    + (0.5,) * 6
    + (1.0,) * 5
    + (2.0,) * 5
    + (5.0,) * 6
)
