"""FastAPI endpoints for the chat relay.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Stream a reply for a conversation as raw text
"""

from relay_chat.api.app import app, create_app

__all__ = ["app", "create_app"]
