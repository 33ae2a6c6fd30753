"""Conversation state and the pure reducer that evolves it.

Every change to the chat goes through ``reduce``. Side effects (persistence,
rendering) subscribe to the resulting transitions elsewhere.
"""

from pydantic import BaseModel, ConfigDict

from relay_chat.models.schemas import Role, Turn


class ChatState(BaseModel):
    """Application state of the chat client.

    Attributes:
        messages: Conversation turns, including the assistant placeholder
            while a reply is streaming.
        system_prompt: System prompt override, empty when unset.
        is_streaming: Whether a reply is in flight. Input is disabled while set.
        error: Description of the last failed submission, if any.
    """

    model_config = ConfigDict(frozen=True)

    messages: tuple[Turn, ...] = ()
    system_prompt: str = ""
    is_streaming: bool = False
    error: str | None = None

    @property
    def history(self) -> tuple[Turn, ...]:
        """Committed conversation, without the in-flight placeholder."""
        if self.is_streaming:
            return self.messages[:-1]
        return self.messages


class Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class TurnSubmitted(Action):
    """User sent a message; a reply placeholder is opened."""

    content: str


class ReplyUpdated(Action):
    """Full accumulated reply text so far."""

    content: str


class ReplyFinished(Action):
    """Reply stream closed. A placeholder that never received text is dropped."""


class ReplyFailed(Action):
    """Reply stream failed.

    Partial text is kept. A placeholder that never received text is dropped,
    so only the user turn remains.
    """

    error: str


class ConversationCleared(Action):
    pass


class SystemPromptChanged(Action):
    content: str


def _finalize(state: ChatState, error: str | None) -> ChatState:
    messages = state.messages
    if state.is_streaming and messages and not messages[-1].content:
        messages = messages[:-1]
    return state.model_copy(
        update={"messages": messages, "is_streaming": False, "error": error}
    )


def reduce(state: ChatState, action: Action) -> ChatState:
    """Return the state that results from applying ``action`` to ``state``.

    Args:
        state: Current state. Never modified.
        action: The transition to apply.

    Returns:
        The new state, or ``state`` itself when the action does not apply.
    """
    if isinstance(action, TurnSubmitted):
        if state.is_streaming:
            return state
        messages = (
            *state.messages,
            Turn(role=Role.USER, content=action.content),
            Turn(role=Role.ASSISTANT, content=""),
        )
        return state.model_copy(
            update={"messages": messages, "is_streaming": True, "error": None}
        )

    if isinstance(action, ReplyUpdated):
        if not state.is_streaming:
            return state
        placeholder = Turn(role=Role.ASSISTANT, content=action.content)
        return state.model_copy(update={"messages": (*state.messages[:-1], placeholder)})

    if isinstance(action, ReplyFinished):
        if not state.is_streaming:
            return state
        return _finalize(state, None)

    if isinstance(action, ReplyFailed):
        if not state.is_streaming:
            return state
        return _finalize(state, action.error)

    if isinstance(action, ConversationCleared):
        # Clearing mid-stream would orphan the running reply.
        if state.is_streaming:
            return state
        return state.model_copy(update={"messages": (), "error": None})

    if isinstance(action, SystemPromptChanged):
        return state.model_copy(update={"system_prompt": action.content})

    raise TypeError(f"Unknown action: {type(action).__name__}")
