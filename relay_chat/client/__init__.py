"""Chat client logic, independent of any UI toolkit.

Responsibilities:
    - Conversation state and its pure reducer
    - Persistence of conversation and system prompt to durable storage
    - Consumption of the relay's streamed reply
    - Submission lifecycle (placeholder, incremental updates, finalization)
"""

from relay_chat.client.controller import ChatController
from relay_chat.client.persistence import load_state, persist_state
from relay_chat.client.state import ChatState, reduce
from relay_chat.client.stream import CancelToken, ChatRequestError, stream_reply

__all__ = [
    "CancelToken",
    "ChatController",
    "ChatRequestError",
    "ChatState",
    "load_state",
    "persist_state",
    "reduce",
    "stream_reply",
]
