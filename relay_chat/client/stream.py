"""Consumption of the relay's raw text stream."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Sequence

import httpx

from relay_chat.models.schemas import Turn

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


class ChatRequestError(Exception):
    """Raised when the relay rejects a chat request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CancelToken:
    """Cancellation signal for one reply stream.

    A pending read is interrupted as soon as ``cancel`` is called, so a
    stalled backend does not hold the reply open.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


async def _next_chunk(chunks: AsyncIterator[str]) -> str | None:
    return await anext(chunks, None)


async def _read_or_cancel(chunks: AsyncIterator[str], cancel: CancelToken) -> str | None:
    """Return the next chunk, or None when the stream ends or is cancelled."""
    if cancel.cancelled:
        return None

    read = asyncio.create_task(_next_chunk(chunks))
    stop = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({read, stop}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        read.cancel()
        raise
    finally:
        stop.cancel()

    if read.done():
        return read.result()

    read.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await read
    return None


def build_payload(history: Sequence[Turn], system_prompt: str) -> dict:
    """Build the relay request body for a conversation."""
    payload: dict = {"messages": [turn.model_dump(mode="json") for turn in history]}
    if system_prompt:
        payload["config"] = {"systemMessage": system_prompt}
    return payload


async def stream_reply(
    client: httpx.AsyncClient,
    history: Sequence[Turn],
    system_prompt: str = "",
    cancel: CancelToken | None = None,
) -> AsyncGenerator[str]:
    """Send a conversation to the relay and yield reply text as it arrives.

    Chunks are decoded incrementally, so a multi-byte character split across
    network reads is yielded whole.

    Args:
        client: HTTP client whose base URL points at the relay.
        history: Conversation to send, without any placeholder turn.
        system_prompt: Optional system prompt override.
        cancel: Optional token; cancelling it ends iteration, even mid-read.

    Yields:
        Decoded text chunks in arrival order.

    Raises:
        ChatRequestError: If the relay answers with a non-success status.
        httpx.RequestError: If the relay cannot be reached or the body is cut.
    """
    async with client.stream(
        "POST",
        CHAT_PATH,
        json=build_payload(history, system_prompt),
    ) as response:
        if not response.is_success:
            await response.aread()
            raise ChatRequestError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        chunks = response.aiter_text()
        while True:
            if cancel is None:
                text = await anext(chunks, None)
            else:
                text = await _read_or_cancel(chunks, cancel)

            if text is None:
                if cancel is not None and cancel.cancelled:
                    logger.info("Reply stream cancelled")
                return
            if text:
                yield text
