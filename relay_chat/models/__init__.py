"""Pydantic models shared by the relay and the chat client.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Role: Speaker of a turn (user, assistant, system)
    - Turn: Individual message in the conversation
    - ChatConfig: Optional request configuration (system prompt override)
    - ChatRequest: Incoming relay request payload
    - TokenPayload: Backend event payload carrying a token fragment
"""

from relay_chat.models.schemas import (
    ChatConfig,
    ChatRequest,
    Conversation,
    Role,
    TokenPayload,
    Turn,
)

__all__ = ["ChatConfig", "ChatRequest", "Conversation", "Role", "TokenPayload", "Turn"]
