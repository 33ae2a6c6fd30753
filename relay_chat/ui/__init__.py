"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat message display with streaming updates
    - Clear-conversation control
    - System message settings dialog
    - Failure notifications

Contains minimal business logic. Delegates all state handling to
relay_chat.client.
"""
