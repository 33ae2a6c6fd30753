"""Workers AI client with streaming support.

Invokes the inference backend in streaming mode and exposes its output as an
async iterator of token fragments. The HTTP layer decides what to do with
them; this module knows nothing about FastAPI.
"""

import logging
from collections.abc import AsyncGenerator, Sequence

import httpx

from relay_chat.backend.config import BackendConfig, get_backend_config
from relay_chat.backend.errors import BackendInvocationError, BackendStreamError
from relay_chat.backend.sse import is_end_marker, iter_events, parse_token
from relay_chat.models.schemas import Turn

logger = logging.getLogger(__name__)

# No read timeout: a generation may pause between tokens for a long time.
_DEFAULT_TIMEOUT = httpx.Timeout(30.0, read=None)


class TokenStream:
    """Finite, non-restartable stream of token fragments from one backend call.

    Attributes:
        completed: True once the end-of-stream marker has been seen. A stream
            that stops without it was truncated.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.completed = False

    def __aiter__(self) -> AsyncGenerator[str]:
        return self._tokens()

    async def _tokens(self) -> AsyncGenerator[str]:
        try:
            async for event in iter_events(self._response.aiter_lines()):
                if is_end_marker(event):
                    self.completed = True
                    return
                token = parse_token(event)
                if token:
                    yield token
        except httpx.HTTPError as e:
            raise BackendStreamError(f"Backend stream interrupted: {e}") from e
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        """Release the underlying connection."""
        await self._response.aclose()


class InferenceClient:
    """Client for the streaming text-generation backend.

    Wraps an httpx.AsyncClient with:
    - Request construction for the Workers AI run endpoint
    - A shared generation cap for every request
    - Mapping of transport and status failures to backend errors
    """

    def __init__(
        self,
        config: BackendConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the inference client.

        Args:
            config: Optional backend configuration.
                    Loads from environment if not provided.
            http_client: Optional HTTP client, mainly for tests.
        """
        self._config = config or get_backend_config()
        self._http = http_client or httpx.AsyncClient(timeout=_DEFAULT_TIMEOUT)

    @property
    def config(self) -> BackendConfig:
        return self._config

    async def open_stream(self, messages: Sequence[Turn]) -> TokenStream:
        """Invoke the backend and return its token stream.

        The call returns once response headers have arrived, so failures to
        invoke the backend surface here, before anything is streamed.

        Args:
            messages: Conversation to send, system prompt already applied.

        Returns:
            TokenStream over the generated fragments.

        Raises:
            BackendInvocationError: If the request fails or returns non-2xx.
        """
        payload = {
            "messages": [turn.model_dump(mode="json") for turn in messages],
            "max_tokens": self._config.max_tokens,
            "stream": True,
        }
        request = self._http.build_request(
            "POST",
            self._config.run_url,
            json=payload,
            headers={
                "Authorization": f"Bearer {self._config.api_token}",
                "Accept": "text/event-stream",
            },
        )

        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise BackendInvocationError(f"Backend request failed: {e}") from e

        if response.is_error:
            body = await response.aread()
            await response.aclose()
            logger.warning(
                f"Backend returned HTTP {response.status_code}: {body[:200]!r}"
            )
            raise BackendInvocationError(
                f"Backend returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(f"Opened backend stream for {len(messages)} messages")
        return TokenStream(response)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()


# Module-level singleton instance
_inference_client: InferenceClient | None = None


def get_inference_client() -> InferenceClient:
    """Get or create the global inference client.

    Uses singleton pattern so connections are pooled across requests.

    Returns:
        The InferenceClient instance.
    """
    global _inference_client
    if _inference_client is None:
        _inference_client = InferenceClient()
    return _inference_client


async def close_inference_client() -> None:
    """Close the global inference client if it was created."""
    global _inference_client
    if _inference_client is not None:
        await _inference_client.aclose()
        _inference_client = None
