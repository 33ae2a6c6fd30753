"""Inference backend access for the relay.

Responsibilities:
    - Backend configuration from the environment
    - Streaming invocation of the Workers AI run endpoint
    - Event-stream framing and token payload decoding

Maintains clean separation from the HTTP layer.
"""

from relay_chat.backend.client import (
    InferenceClient,
    TokenStream,
    close_inference_client,
    get_inference_client,
)
from relay_chat.backend.config import BackendConfig, get_backend_config
from relay_chat.backend.errors import (
    BackendError,
    BackendInvocationError,
    BackendStreamError,
    MalformedEventError,
)

__all__ = [
    "BackendConfig",
    "BackendError",
    "BackendInvocationError",
    "BackendStreamError",
    "InferenceClient",
    "MalformedEventError",
    "TokenStream",
    "close_inference_client",
    "get_backend_config",
    "get_inference_client",
]
