"""Mirroring of chat state to durable key-value storage.

Storage is any mutable string mapping. The UI passes NiceGUI's per-browser
``app.storage.user``; tests pass a plain dict.

Slots:
    - chat_messages: JSON list of ``{role, content}`` turns
    - system_message: plain system prompt string

Both slots follow the same rule: a non-empty value is written, an empty
value removes the slot.
"""

import logging
from collections.abc import MutableMapping

from pydantic import ValidationError

from relay_chat.client.state import ChatState
from relay_chat.models.schemas import Conversation

logger = logging.getLogger(__name__)

CONVERSATION_KEY = "chat_messages"
SYSTEM_PROMPT_KEY = "system_message"

Storage = MutableMapping[str, str]


def clear_storage(storage: Storage) -> None:
    """Remove both durable slots."""
    storage.pop(CONVERSATION_KEY, None)
    storage.pop(SYSTEM_PROMPT_KEY, None)


def load_state(storage: Storage) -> ChatState:
    """Build the initial state from durable storage.

    A stored conversation that does not parse is treated as corrupt: both
    slots are cleared and an empty state is returned.

    Args:
        storage: Durable key-value storage.

    Returns:
        The restored ChatState.
    """
    raw_messages = storage.get(CONVERSATION_KEY)
    raw_prompt = storage.get(SYSTEM_PROMPT_KEY)

    messages = ()
    if raw_messages:
        try:
            messages = tuple(Conversation.validate_json(raw_messages))
        except (ValidationError, TypeError) as e:
            logger.warning(f"Discarding corrupt stored conversation: {e}")
            clear_storage(storage)
            return ChatState()

    system_prompt = raw_prompt if isinstance(raw_prompt, str) else ""
    logger.info(f"Loaded {len(messages)} stored messages")
    return ChatState(messages=messages, system_prompt=system_prompt)


def persist_state(storage: Storage, previous: ChatState, current: ChatState) -> None:
    """Write the parts of ``current`` that changed since ``previous``.

    Only the committed history is stored, never the streaming placeholder.

    Args:
        storage: Durable key-value storage.
        previous: State before the transition.
        current: State after the transition.
    """
    if current.history != previous.history:
        if current.history:
            storage[CONVERSATION_KEY] = Conversation.dump_json(list(current.history)).decode()
        else:
            storage.pop(CONVERSATION_KEY, None)

    if current.system_prompt != previous.system_prompt:
        if current.system_prompt:
            storage[SYSTEM_PROMPT_KEY] = current.system_prompt
        else:
            storage.pop(SYSTEM_PROMPT_KEY, None)
