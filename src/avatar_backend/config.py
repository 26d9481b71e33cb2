"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr = Field(
        ...,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    openai_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://api.openai.com/v1"),
        validation_alias=AliasChoices("OPENAI_BASE_URL", "openai_base_url"),
    )

    # Dialogue generation
    chat_model: str = Field(
        default="gpt-3.5-turbo-1106",
        validation_alias=AliasChoices("CHAT_MODEL", "chat_model"),
    )
    chat_temperature: float = Field(
        default=0.6,
        ge=0,
        le=2,
        validation_alias=AliasChoices("CHAT_TEMPERATURE", "chat_temperature"),
    )
    chat_max_tokens: int = Field(
        default=1000,
        ge=1,
        validation_alias=AliasChoices("CHAT_MAX_TOKENS", "chat_max_tokens"),
    )

    # Speech
    tts_model: str = Field(
        default="tts-1",
        validation_alias=AliasChoices("TTS_MODEL", "tts_model"),
    )
    tts_voice: str = Field(
        default="alloy",
        validation_alias=AliasChoices("TTS_VOICE", "tts_voice"),
    )
    stt_model: str = Field(
        default="whisper-1",
        validation_alias=AliasChoices("STT_MODEL", "stt_model"),
    )

    # Filesystem layout, relative paths resolve against the working directory
    audio_dir: Path = Field(
        default_factory=lambda: Path("audios"),
        validation_alias=AliasChoices("AUDIO_DIR", "audio_dir"),
    )
    uploads_dir: Path = Field(
        default_factory=lambda: Path("uploads"),
        validation_alias=AliasChoices("UPLOADS_DIR", "uploads_dir"),
    )
    keep_generated_audio: bool = Field(
        default=False,
        validation_alias=AliasChoices("KEEP_GENERATED_AUDIO", "keep_generated_audio"),
    )
    max_upload_bytes: int = Field(
        default=25 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices("MAX_UPLOAD_BYTES", "max_upload_bytes"),
    )

    # External tools
    ffmpeg_path: str = Field(
        default="ffmpeg",
        validation_alias=AliasChoices("FFMPEG_PATH", "ffmpeg_path"),
    )
    rhubarb_path: str = Field(
        default="rhubarb",
        validation_alias=AliasChoices("RHUBARB_PATH", "rhubarb_path"),
    )
    process_timeout: float = Field(
        default=60.0,
        ge=1,
        validation_alias=AliasChoices("PROCESS_TIMEOUT_SECONDS", "process_timeout"),
    )
    request_timeout: float = Field(
        default=120.0,
        ge=1,
        validation_alias=AliasChoices("REQUEST_TIMEOUT_SECONDS", "request_timeout"),
    )

    # HTTP server
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"),
    )
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
    )

    @property
    def openai_base(self) -> str:
        """Return the OpenAI API base URL without a trailing slash."""

        return str(self.openai_base_url).rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
