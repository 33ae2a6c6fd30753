"""Test package for Relay Chat.

Structure:
    - unit/: Individual function and class tests
    - integration/: Relay endpoint and client workflows over HTTP

The inference backend is replaced by an httpx MockTransport; everything
between it and the chat state runs for real.
"""
