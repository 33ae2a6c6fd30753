"""Relay Chat - streaming chat client with a stateless inference relay.

Combines FastAPI for the streaming relay endpoint, httpx for talking to the
inference backend, NiceGUI for the chat interface, and Pydantic for data
validation.

Components:
    - api: relay endpoint that re-streams backend tokens as raw text
    - backend: Workers AI client and event-stream decoding
    - client: conversation state, persistence and stream consumption
    - ui: web interface for chat interactions
    - models: request and turn schemas
"""

__version__ = "0.1.0"
