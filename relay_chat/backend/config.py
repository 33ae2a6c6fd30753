"""Backend configuration with environment variable loading.

Pydantic-based configuration for the Workers AI inference backend.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_MODEL = "@cf/meta/llama-4-scout-17b-16e-instruct"
DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"


class BackendConfig(BaseModel):
    """Configuration for the streaming inference backend.

    Attributes:
        account_id: Cloudflare account that owns the Workers AI binding.
        api_token: API token with Workers AI access.
        model_name: Model identifier to run.
        base_url: REST API base URL.
        max_tokens: Generation cap shared by all requests.
    """

    account_id: str = Field(
        default_factory=lambda: os.getenv("CLOUDFLARE_ACCOUNT_ID", ""),
        description="Cloudflare account ID",
    )
    api_token: str = Field(
        default_factory=lambda: os.getenv("CLOUDFLARE_API_TOKEN", ""),
        validate_default=True,
        description="API token for Workers AI",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("AI_MODEL", DEFAULT_MODEL),
        description="Model to run",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("AI_BASE_URL", DEFAULT_BASE_URL),
        description="Workers AI REST API base URL",
    )
    max_tokens: int = Field(
        default_factory=lambda: int(os.getenv("AI_MAX_TOKENS", "8000")),
        ge=1,
        le=131072,
        description="Maximum tokens in generated response",
    )

    @field_validator("api_token")
    @classmethod
    def validate_api_token(cls, v: str) -> str:
        """Validate that API token is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("API token required. Set CLOUDFLARE_API_TOKEN in .env")
        return v.strip()

    @property
    def run_url(self) -> str:
        """Endpoint that runs the configured model."""
        return f"{self.base_url.rstrip('/')}/accounts/{self.account_id}/ai/run/{self.model_name}"


def get_backend_config() -> BackendConfig:
    """Create backend configuration from environment.

    Returns:
        Configured BackendConfig instance.

    Raises:
        ValueError: If no API token is set.
    """
    return BackendConfig()
