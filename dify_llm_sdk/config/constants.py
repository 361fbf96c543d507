"""
Dify Provider Constants

Central location for endpoint defaults, environment variable names and the
wire-level markers the stream translator relies on.
"""

# Endpoint defaults
DEFAULT_BASE_URL = "https://api.dify.ai/v1"
CHAT_MESSAGES_PATH = "/chat-messages"
PROVIDER_NAME = "dify.chat"

# Environment variables read by DifyProviderSettings.from_env()
API_KEY_ENV_VAR = "DIFY_API_KEY"
BASE_URL_ENV_VAR = "DIFY_BASE_URL"

# Response modes accepted by the chat-messages endpoint
RESPONSE_MODE_STREAMING = "streaming"
RESPONSE_MODE_BLOCKING = "blocking"
DEFAULT_RESPONSE_MODE = RESPONSE_MODE_STREAMING

# Per-call headers consumed by the request builder (never forwarded upstream)
USER_ID_HEADER = "user-id"
CHAT_ID_HEADER = "chat-id"
DEFAULT_USER_ID = "you_should_pass_user-id"

# Reasoning markup embedded in answer text
THINK_START_MARKER = "<think>\n"
THINK_END_MARKER = "\n</think>"

# Downstream identifiers
ANSWER_TEXT_ID = "answer"
PROVIDER_METADATA_KEY = "difyWorkflowData"
FINISH_REASON_STOP = "stop"

# HTTP
DEFAULT_TIMEOUT_SECONDS = 300.0
