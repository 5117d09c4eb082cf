"""Configuration management for NoteBridge."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Provider names accepted in ``ai_providers``, in no particular order
KNOWN_PROVIDERS = frozenset({"ollama", "openrouter", "anthropic", "gemini"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord transport (optional; without a token the bot is not started)
    discord_token: SecretStr | None = Field(default=None, description="Discord bot token")
    reply_with_note_path: bool = Field(
        default=True, description="Reply in chat with the created note path"
    )

    # Pipeline
    pipeline_workers: int = Field(default=4, description="Concurrent bus workers")
    max_link_depth: int = Field(
        default=1, description="How many levels of embedded links are followed"
    )
    max_embedded_links: int = Field(
        default=10, description="Embedded links followed per extracted item"
    )

    # AI providers, tried in this order
    ai_providers: Annotated[
        list[str],
        Field(
            default_factory=lambda: ["ollama", "openrouter"],
            description="Ordered provider names for summarization and tagging",
        ),
    ]
    provider_timeout: float = Field(
        default=60.0, description="Seconds before a single provider call is abandoned"
    )

    # Ollama (local, primary)
    ollama_host: str = Field(default="localhost", description="Ollama server host")
    ollama_port: int = Field(default=11434, description="Ollama server port")
    ollama_model: str = Field(default="llama3.1", description="Ollama chat model")

    # OpenRouter (OpenAI-compatible, fallback)
    openrouter_api_key: SecretStr | None = Field(default=None, description="OpenRouter API key")
    openrouter_model: str = Field(
        default="anthropic/claude-3-haiku", description="OpenRouter model id"
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", description="OpenRouter API base URL"
    )

    # Anthropic (optional)
    anthropic_api_key: SecretStr | None = Field(
        default=None, description="Anthropic API key for Claude"
    )
    anthropic_model: str = Field(default="claude-3-5-haiku-latest", description="Claude model")

    # Gemini (optional)
    gemini_api_key: SecretStr | None = Field(default=None, description="Gemini API key")
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model")

    # Content sources
    http_timeout: float = Field(default=20.0, description="Fetcher HTTP timeout in seconds")
    twitter_bearer_token: SecretStr | None = Field(
        default=None, description="Twitter/X API v2 bearer token"
    )
    youtube_api_key: SecretStr | None = Field(
        default=None, description="YouTube Data API key (oEmbed is used without it)"
    )
    github_token: SecretStr | None = Field(default=None, description="GitHub API token")

    # Obsidian vault
    vault_path: Path = Field(default=Path("vault"), description="Obsidian vault root")
    vault_folder: str = Field(default="Inbox", description="Folder inside the vault for notes")

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Also write logs to a rotating file")
    log_file_path: str = Field(default="logs/notebridge.log", description="Log file path")
    log_file_max_bytes: int = Field(default=10_000_000, description="Rotate after this size")
    log_file_backup_count: int = Field(default=5, description="Rotated files to keep")

    @field_validator("ai_providers")
    @classmethod
    def _validate_providers(cls, value: list[str]) -> list[str]:
        names = [name.strip().lower() for name in value if name.strip()]
        unknown = [name for name in names if name not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(f"Unknown AI provider(s): {', '.join(unknown)}")
        return names

    @field_validator("pipeline_workers")
    @classmethod
    def _validate_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("pipeline_workers must be >= 1")
        return value

    @field_validator("max_link_depth", "max_embedded_links")
    @classmethod
    def _validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("link expansion limits must be >= 0")
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def ollama_url(self) -> str:
        """Get the full Ollama URL."""
        return f"http://{self.ollama_host}:{self.ollama_port}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
