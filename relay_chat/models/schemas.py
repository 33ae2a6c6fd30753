from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Role(str, Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Turn(BaseModel):
    """A single role-tagged message in the conversation.

    Attributes:
        role: The speaker (user, assistant, or system).
        content: The message text, possibly containing markdown.
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatConfig(BaseModel):
    """Per-request options sent alongside the conversation.

    Attributes:
        system_message: Optional system prompt override, prepended by the relay.
    """

    model_config = ConfigDict(populate_by_name=True)

    system_message: str | None = Field(None, alias="systemMessage")


class ChatRequest(BaseModel):
    """Request payload for the relay endpoint.

    Attributes:
        messages: Full ordered conversation history.
        config: Optional request configuration.
    """

    messages: list[Turn]
    config: ChatConfig | None = None


class TokenPayload(BaseModel):
    """JSON payload of a single backend stream event."""

    response: str | None = None


Conversation = TypeAdapter(list[Turn])
