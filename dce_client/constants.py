# =============================================================================
# DCE Python Client -- Protocol Constants
# =============================================================================

# -- Environment ---------------------------------------------------------------

ENV_SOCKET_URL = "DCE_SOCKET_URL"
ENV_DEBUG = "DCE_DEBUG"

# -- Timing (seconds) --------------------------------------------------------

CONNECT_POLL_INTERVAL = 1.0  # open-connection barrier
READY_POLL_INTERVAL = 0.5  # manifest barrier
CONNECTION_TIMEOUT = 10.0

# -- Messages ------------------------------------------------------------------

MAX_MESSAGE_SIZE = 1_048_576  # 1 MB

MSG_TYPE_SERVICE = "service"

STATUS_ERROR = "error"

# -- Wire fields ---------------------------------------------------------------

FIELD_ACTION = "action"
FIELD_DATA = "data"
FIELD_CMD_ID = "cmd_id"
FIELD_CALLBACKS = "callbacks"
FIELD_MSG_TYPE = "msg_type"
FIELD_STATUS = "status"
FIELD_ERROR = "error"
FIELD_ERROR_DATA = "error_data"
FIELD_CONSUMERS = "consumers"

# -- WebSocket close codes -----------------------------------------------------

WS_CLOSE_NORMAL = 1000
