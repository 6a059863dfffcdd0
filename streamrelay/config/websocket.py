"""WebSocket protocol configuration and constants."""

from __future__ import annotations

import os

WS_ENDPOINT_PATH = "/ws"

# Envelope keys
WS_KEY_TYPE = "type"
WS_KEY_SESSION_ID = "session_id"
WS_KEY_REQUEST_ID = "request_id"
WS_KEY_PAYLOAD = "payload"

WS_UNKNOWN_SESSION_ID = "unknown"
WS_UNKNOWN_REQUEST_ID = "unknown"

# Message types
WS_MSG_CHAT_COMPLETION = "chat.completion"
WS_MSG_CHUNK = "chunk"
WS_MSG_CANCEL = "cancel"
WS_MSG_CANCELLED = "cancelled"

# Close codes
WS_CLOSE_CLIENT_REQUEST_CODE = 1000
WS_CLOSE_BUSY_CODE = 4002
WS_CLOSE_IDLE_CODE = 4000
WS_CLOSE_MAX_DURATION_CODE = 4003
WS_CLOSE_SEND_TIMEOUT_CODE = 4004

WS_CLOSE_IDLE_REASON = "idle timeout"
WS_CLOSE_MAX_DURATION_REASON = "max connection duration reached"
WS_CLOSE_SEND_TIMEOUT_REASON = "client not reading"

# Idle watchdog (connection level; the relay has its own stall watchdog)
WS_IDLE_TIMEOUT_S = float(os.getenv("WS_IDLE_TIMEOUT_S", "150"))
WS_WATCHDOG_TICK_S = float(os.getenv("WS_WATCHDOG_TICK_S", "5"))
WS_MAX_CONNECTION_DURATION_S = float(os.getenv("WS_MAX_CONNECTION_DURATION_S", "3600"))

# Upper bound on a single send to a client before the connection is treated as gone.
WS_SEND_TIMEOUT_S = float(os.getenv("WS_SEND_TIMEOUT_S", "10"))

# Inbound client messages above this size are rejected before decoding. 0 disables the check.
WS_MAX_MESSAGE_BYTES = max(0, int(os.getenv("WS_MAX_MESSAGE_BYTES", str(1024 * 1024))))

# Errors (payload.code values)
WS_ERROR_SERVER_AT_CAPACITY = "server_at_capacity"
WS_ERROR_INVALID_MESSAGE = "invalid_message"
WS_ERROR_INVALID_PAYLOAD = "invalid_payload"
WS_ERROR_RELAY_BUSY = "relay_busy"
WS_ERROR_INTERNAL = "internal_error"

__all__ = [
    "WS_ENDPOINT_PATH",
    "WS_KEY_TYPE",
    "WS_KEY_SESSION_ID",
    "WS_KEY_REQUEST_ID",
    "WS_KEY_PAYLOAD",
    "WS_UNKNOWN_SESSION_ID",
    "WS_UNKNOWN_REQUEST_ID",
    "WS_MSG_CHAT_COMPLETION",
    "WS_MSG_CHUNK",
    "WS_MSG_CANCEL",
    "WS_MSG_CANCELLED",
    "WS_CLOSE_CLIENT_REQUEST_CODE",
    "WS_CLOSE_BUSY_CODE",
    "WS_CLOSE_IDLE_CODE",
    "WS_CLOSE_MAX_DURATION_CODE",
    "WS_CLOSE_IDLE_REASON",
    "WS_CLOSE_MAX_DURATION_REASON",
    "WS_CLOSE_SEND_TIMEOUT_CODE",
    "WS_CLOSE_SEND_TIMEOUT_REASON",
    "WS_IDLE_TIMEOUT_S",
    "WS_WATCHDOG_TICK_S",
    "WS_MAX_CONNECTION_DURATION_S",
    "WS_SEND_TIMEOUT_S",
    "WS_MAX_MESSAGE_BYTES",
    "WS_ERROR_SERVER_AT_CAPACITY",
    "WS_ERROR_INVALID_MESSAGE",
    "WS_ERROR_INVALID_PAYLOAD",
    "WS_ERROR_RELAY_BUSY",
    "WS_ERROR_INTERNAL",
]
