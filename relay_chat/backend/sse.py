"""Two-stage decoding of the backend event stream.

The framing stage turns text lines into server-sent events. The payload stage
turns a single event into a token fragment. Both are usable on their own.
"""

from collections.abc import AsyncGenerator, AsyncIterable

from pydantic import BaseModel, ValidationError

from relay_chat.backend.errors import BackendStreamError, MalformedEventError
from relay_chat.models.schemas import TokenPayload

END_OF_STREAM = "[DONE]"


class ServerSentEvent(BaseModel):
    """A single dispatched event.

    Attributes:
        data: Event data, multiple data lines joined by newlines.
        event: Event type, None for the default "message" type.
        id: Last event ID seen on the stream.
        retry: Reconnection time in milliseconds, if announced.
    """

    data: str = ""
    event: str | None = None
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    """Incremental framing parser for the text/event-stream format."""

    def __init__(self) -> None:
        self._data: list[str] = []
        self._event: str | None = None
        self._last_id: str | None = None
        self._retry: int | None = None

    def feed(self, line: str) -> ServerSentEvent | None:
        """Consume one line (without its terminator).

        Returns:
            The completed event when ``line`` is the blank line ending it,
            otherwise None.
        """
        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "data":
            self._data.append(value)
        elif field == "event":
            self._event = value
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        elif field == "retry":
            if value.isdigit():
                self._retry = int(value)
        return None

    def flush(self) -> ServerSentEvent | None:
        """Dispatch an event left pending when the input ends without a blank line."""
        return self._dispatch()

    def _dispatch(self) -> ServerSentEvent | None:
        # Blocks without data are not events, except a bare error notice.
        if not self._data and self._event != "error":
            self._event = None
            return None

        event = ServerSentEvent(
            data="\n".join(self._data),
            event=self._event,
            id=self._last_id,
            retry=self._retry,
        )
        self._data = []
        self._event = None
        return event


async def iter_events(lines: AsyncIterable[str]) -> AsyncGenerator[ServerSentEvent]:
    """Group an async stream of lines into server-sent events."""
    decoder = SSEDecoder()
    async for line in lines:
        event = decoder.feed(line)
        if event is not None:
            yield event

    event = decoder.flush()
    if event is not None:
        yield event


def is_end_marker(event: ServerSentEvent) -> bool:
    """Return True for the literal sentinel that closes the stream."""
    return event.data.strip() == END_OF_STREAM


def parse_token(event: ServerSentEvent) -> str:
    """Extract the text fragment carried by an event.

    Args:
        event: A decoded event that is not the end marker.

    Returns:
        The fragment, or an empty string when the event carries none.

    Raises:
        BackendStreamError: If the backend sent an error event.
        MalformedEventError: If the data is not a JSON token object.
    """
    if event.event == "error":
        raise BackendStreamError(event.data or "Backend reported a stream error")

    try:
        payload = TokenPayload.model_validate_json(event.data)
    except ValidationError as e:
        raise MalformedEventError(f"Malformed event payload: {event.data[:200]!r}") from e

    return payload.response or ""
