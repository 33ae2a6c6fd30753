"""Command-line entry point for the relay and the chat UI.

Integrated mode serves both from one uvicorn server. Separate mode runs the
relay in-process and the NiceGUI client as a child process pointed at it.
Environment variables are loaded from .env file.
"""

import logging
import os
import subprocess
import sys
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


class ServerSettings(BaseModel):
    """Where and how the servers listen, read from the environment."""

    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")), ge=1, le=65535)
    ui_port: int = Field(
        default_factory=lambda: int(os.getenv("UI_PORT", "8080")), ge=1, le=65535
    )
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "info").lower())
    run_mode: Literal["integrated", "separate"] = Field(
        default_factory=lambda: os.getenv("RUN_MODE", "integrated").lower(),
        validate_default=True,
    )
    storage_secret: str = Field(
        default_factory=lambda: os.getenv("NICEGUI_STORAGE_SECRET", "relay-chat-secret")
    )

    @property
    def relay_url(self) -> str:
        """Address the UI process uses to reach the relay."""
        host = "localhost" if self.host in ("0.0.0.0", "::") else self.host
        return f"http://{host}:{self.port}"


def run_integrated(settings: ServerSettings) -> None:
    """Run the relay with the NiceGUI page mounted on the same server."""
    import uvicorn
    from nicegui import ui

    from relay_chat.api.app import create_app
    from relay_chat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()
    ui.run_with(app, title="Workers AI Chat", storage_secret=settings.storage_secret)

    logger.info(f"Relay and chat UI on {settings.relay_url}/")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


def run_separate(settings: ServerSettings) -> None:
    """Run the relay here and the chat UI as a child process.

    The child inherits the environment with ``API_BASE_URL`` pointed at this
    relay. It is terminated when the relay stops.
    """
    import uvicorn

    from relay_chat.api.app import app

    env = {**os.environ, "API_BASE_URL": settings.relay_url, "UI_PORT": str(settings.ui_port)}
    ui_proc = subprocess.Popen(
        [sys.executable, "-m", "relay_chat.ui.chat_page"],
        env=env,
    )
    logger.info(f"Chat UI on http://localhost:{settings.ui_port}/ (pid {ui_proc.pid})")
    logger.info(f"Relay on {settings.relay_url}")

    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
    finally:
        logger.info("Shutting down chat UI")
        ui_proc.terminate()
        ui_proc.wait()


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to serve the UI on its own port (UI_PORT).
    """
    settings = ServerSettings()
    logger.info(f"Starting Relay Chat in {settings.run_mode} mode")

    if settings.run_mode == "separate":
        run_separate(settings)
    else:
        run_integrated(settings)


if __name__ == "__main__":
    main()
