"""Configuration management for the FileStage engine."""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACCEPTED_FILE_TYPES = (
    "image/*,video/*,audio/*,.pdf,.doc,.docx,.txt,.zip,.rar,.json,.csv,.xlsx,.pptx"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "filestage-engine"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Staging Constraints
    ACCEPTED_FILE_TYPES: str = DEFAULT_ACCEPTED_FILE_TYPES  # Advisory, handed to the file picker
    MAX_FILE_SIZE_MB: int = 25
    ALLOW_MULTIPLE_FILES: bool = True  # False = each batch replaces the staged set
    ENABLE_PREVIEWS: bool = True
    ENABLE_FILE_MANAGEMENT: bool = True

    # File Manager Configuration
    ALLOW_MULTI_SELECT: bool = True

    # Upload Simulation
    UPLOAD_TICK_INTERVAL_MS: int = 100
    UPLOAD_MAX_INCREMENT: float = 15.0  # Percentage points per tick

    # Notifications
    NOTIFICATION_BUFFER_SIZE: int = 100

    @property
    def accepted_mime_patterns(self) -> set[str]:
        """Parse ACCEPTED_FILE_TYPES into a set of patterns."""
        return {p.strip() for p in self.ACCEPTED_FILE_TYPES.split(",") if p.strip()}

    @property
    def max_file_size_bytes(self) -> int:
        """Convert MAX_FILE_SIZE_MB to bytes."""
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    @property
    def upload_tick_interval_seconds(self) -> float:
        """Convert UPLOAD_TICK_INTERVAL_MS to seconds."""
        return self.UPLOAD_TICK_INTERVAL_MS / 1000


# Singleton settings instance
settings = Settings()
