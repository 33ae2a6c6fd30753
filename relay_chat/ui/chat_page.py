"""NiceGUI chat interface streaming replies from the relay."""

import os

import httpx
from nicegui import app, ui

from relay_chat.client.controller import ChatController
from relay_chat.client.state import ChatState
from relay_chat.models.schemas import Role, Turn

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
UI_PORT = int(os.getenv("UI_PORT", "8080"))

# Plain Enter sends; Shift+Enter inserts a newline.
SUBMIT_KEY_EVENT = "keydown.enter.exact.prevent"

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: #f6821f; }

    .message-user { color: #1f2937; }

    .message-assistant {
        background: #fef3e8;
        color: #1f2937;
        border-radius: 12px;
    }

    .typing-dot {
        width: 8px; height: 8px;
        background: #f6821f;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .message-assistant pre { margin: 0.5rem 0; }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }
</style>
"""

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Shared client for talking to the relay."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            base_url=API_BASE_URL,
            timeout=httpx.Timeout(30.0, read=None),
        )
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


app.on_shutdown(close_http_client)


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    controller = ChatController(app.storage.user, get_http_client())
    last_error: str | None = None

    input_field: ui.textarea
    send_btn: ui.button
    clear_btn: ui.button
    stop_btn: ui.button
    scroll: ui.scroll_area

    def render_typing() -> None:
        with ui.element("div").classes("message-assistant px-4 py-3"):
            with ui.row().classes("gap-1"):
                for _ in range(3):
                    ui.element("div").classes("typing-dot")

    def render_turn(turn: Turn, streaming: bool) -> None:
        if turn.role == Role.USER:
            ui.label(turn.content).classes("message-user max-w-[75%] whitespace-pre-wrap")
        elif streaming and not turn.content:
            render_typing()
        else:
            with ui.element("div").classes("message-assistant px-4 py-3 max-w-[75%]"):
                ui.markdown(turn.content).classes("text-sm")

    @ui.refreshable
    def messages_view() -> None:
        state = controller.state
        visible = [turn for turn in state.messages if turn.role != Role.SYSTEM]
        if not visible:
            with ui.column().classes("w-full h-64 items-center justify-center"):
                ui.label("Your conversation will appear here.").classes("text-gray-400")
            return
        for index, turn in enumerate(visible):
            render_turn(turn, state.is_streaming and index == len(visible) - 1)

    def on_change(state: ChatState) -> None:
        nonlocal last_error
        messages_view.refresh()
        scroll.scroll_to(percent=1.0)
        for element in (input_field, send_btn, clear_btn):
            element.set_enabled(not state.is_streaming)
        stop_btn.set_enabled(state.is_streaming)
        if state.error and state.error != last_error:
            ui.notify(state.error, type="negative")
        last_error = state.error

    controller.subscribe(on_change)

    async def send_message() -> None:
        text = input_field.value or ""
        if not text.strip() or controller.state.is_streaming:
            return
        input_field.value = ""
        await controller.submit(text)

    # === System message dialog ===
    with ui.dialog() as settings_dialog, ui.card().classes("w-full max-w-md"):
        ui.label("Set System Message").classes("text-xl font-bold")
        prompt_input = ui.textarea(placeholder="You are a friendly assistant").classes("w-full")
        with ui.row().classes("w-full justify-between"):
            ui.button("Clear", on_click=lambda: prompt_input.set_value("")).props(
                "flat color=negative"
            )
            with ui.row().classes("gap-2"):
                ui.button("Cancel", on_click=settings_dialog.close).props("flat")

                def save_system_prompt() -> None:
                    controller.set_system_prompt(prompt_input.value or "")
                    settings_dialog.close()

                ui.button("Save", on_click=save_system_prompt)

    def open_settings() -> None:
        prompt_input.set_value(controller.state.system_prompt)
        settings_dialog.open()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Header
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            ui.label("Workers AI Chat").classes("text-lg font-semibold text-white")
            ui.button(icon="settings", on_click=open_settings).props("flat round color=white")

        # Messages
        with ui.scroll_area().classes("flex-grow w-full bg-gray-50") as scroll:
            with ui.column().classes("w-full p-5 gap-6"):
                messages_view()

        # Input
        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow outlined dense rows=1")
                .classes("flex-grow")
                .on(SUBMIT_KEY_EVENT, send_message)
            )
            send_btn = ui.button("Send", on_click=send_message).props("unelevated")
            stop_btn = ui.button("Stop", on_click=controller.cancel).props("flat color=negative")
            stop_btn.disable()
            clear_btn = ui.button("Clear", on_click=controller.clear).props("flat")


def main() -> None:
    ui.run(
        title="Workers AI Chat",
        port=UI_PORT,
        reload=False,
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "relay-chat-secret"),
    )


if __name__ == "__main__":
    main()
