"""Chat controller driving submissions against the relay.

Owns the current ChatState. Each dispatched action is reduced, persisted,
then announced to listeners (the UI re-renders from there).
"""

import logging
from collections.abc import Callable

import httpx

from relay_chat.client.persistence import Storage, load_state, persist_state
from relay_chat.client.state import (
    Action,
    ChatState,
    ConversationCleared,
    ReplyFailed,
    ReplyFinished,
    ReplyUpdated,
    SystemPromptChanged,
    TurnSubmitted,
    reduce,
)
from relay_chat.client.stream import CancelToken, ChatRequestError, stream_reply

logger = logging.getLogger(__name__)

Listener = Callable[[ChatState], None]


class ChatController:
    """Conversation owner for one chat client.

    Only one reply streams at a time; ``submit`` is a no-op while one is open.
    """

    def __init__(self, storage: Storage, http_client: httpx.AsyncClient) -> None:
        """Initialize the controller from durable storage.

        Args:
            storage: Durable key-value storage for conversation and prompt.
            http_client: HTTP client whose base URL points at the relay.
        """
        self._storage = storage
        self._http = http_client
        self._listeners: list[Listener] = []
        self._cancel: CancelToken | None = None
        self.state = load_state(storage)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> ChatState:
        """Apply an action, persist the transition and notify listeners."""
        previous = self.state
        self.state = reduce(previous, action)
        if self.state is not previous:
            persist_state(self._storage, previous, self.state)
            for listener in self._listeners:
                listener(self.state)
        return self.state

    async def submit(self, text: str) -> None:
        """Send a user message and stream the assistant reply into the state.

        Failures are recorded on ``state.error``; the partial reply is kept.

        Args:
            text: The user's message. Blank input is ignored.
        """
        if not text.strip():
            return
        if self.state.is_streaming:
            logger.warning("Ignoring submission while a reply is streaming")
            return

        self.dispatch(TurnSubmitted(content=text))
        history = self.state.history
        token = self._cancel = CancelToken()
        accumulated = ""

        try:
            async for chunk in stream_reply(
                self._http, history, self.state.system_prompt, token
            ):
                accumulated += chunk
                self.dispatch(ReplyUpdated(content=accumulated))
        except ChatRequestError as e:
            logger.error(f"Relay rejected chat request: {e}")
            self.dispatch(ReplyFailed(error=f"Request failed ({e})"))
        except httpx.HTTPError as e:
            logger.error(f"Chat stream failed: {e}")
            self.dispatch(ReplyFailed(error=f"Connection failed: {e}"))
        else:
            self.dispatch(ReplyFinished())
        finally:
            self._cancel = None
            # Release input even if the task itself was cancelled.
            if self.state.is_streaming:
                self.dispatch(ReplyFinished())

    def cancel(self) -> None:
        """Stop consuming the in-flight reply after the current chunk."""
        if self._cancel is not None:
            self._cancel.cancel()

    def clear(self) -> None:
        self.dispatch(ConversationCleared())

    def set_system_prompt(self, text: str) -> None:
        self.dispatch(SystemPromptChanged(content=text.strip()))
