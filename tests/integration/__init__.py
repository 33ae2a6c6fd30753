"""Integration tests for components working together as a system.

Coverage:
    - Relay endpoint with the FastAPI app over ASGITransport
    - Chat controller streaming through the relay into conversation state
"""
