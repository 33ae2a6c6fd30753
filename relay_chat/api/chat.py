"""Relay endpoint that re-streams backend tokens to the chat client.

Stateless: every request carries its full conversation and is attempted
exactly once against the backend.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from relay_chat.backend.client import InferenceClient, TokenStream, get_inference_client
from relay_chat.backend.errors import BackendInvocationError, BackendStreamError
from relay_chat.models.schemas import ChatRequest, Role, Turn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def provide_inference_client() -> InferenceClient:
    """Return the shared backend client, or 502 when it cannot be configured."""
    try:
        return get_inference_client()
    except ValueError as e:
        logger.error(f"Backend client configuration invalid: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Inference backend unavailable",
        ) from e


def build_backend_messages(request: ChatRequest) -> list[Turn]:
    """Return the conversation to forward, with the system prompt applied.

    A non-empty ``config.systemMessage`` becomes a system turn in front of the
    history. The request's own list is left untouched.
    """
    messages = list(request.messages)
    if request.config and request.config.system_message:
        messages.insert(0, Turn(role=Role.SYSTEM, content=request.config.system_message))
    return messages


async def relay_tokens(stream: TokenStream) -> AsyncGenerator[str]:
    """Yield backend fragments verbatim until the stream ends.

    A backend failure after streaming began ends the response early. The
    client sees this as an ordinary end of body, so it is logged here.
    """
    emitted = 0
    try:
        async for token in stream:
            emitted += 1
            yield token
    except BackendStreamError as e:
        logger.error(f"Backend stream failed after {emitted} fragments: {e}")
        return
    finally:
        await stream.aclose()

    if not stream.completed:
        logger.error(f"Backend stream ended without end marker after {emitted} fragments")


@router.post("/chat")
async def chat(
    request: ChatRequest,
    client: InferenceClient = Depends(provide_inference_client),
) -> StreamingResponse:
    """Forward a conversation to the backend and stream the reply as raw text.

    Args:
        request: Conversation history and optional system prompt override.
        client: Inference backend client.

    Returns:
        StreamingResponse whose body is the concatenation of generated tokens.

    Raises:
        502: The backend could not be invoked.
    """
    messages = build_backend_messages(request)

    try:
        stream = await client.open_stream(messages)
    except BackendInvocationError as e:
        logger.error(f"Backend invocation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Inference backend unavailable",
        ) from e

    return StreamingResponse(
        relay_tokens(stream),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Encoding": "Identity"},
    )
