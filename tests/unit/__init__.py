"""Unit tests for individual components in isolation.

Coverage:
    - backend/: configuration, event-stream decoding, inference client
    - client/: reducer and persistence
"""
