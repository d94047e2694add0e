from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "post_narrator"
    schema_name: Optional[str] = Field(default=None, validation_alias="DB_SCHEMA")
    override_url: Optional[str] = Field(default=None, validation_alias="DB_URL")
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.override_url:
            return self.override_url
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration"""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_name: str = "post-narrator-audio"
    key_prefix: str = "narrations"

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PollyConfig(BaseSettings):
    """Amazon Polly configuration."""

    enabled: bool = True
    region: str = "us-east-1"
    voice_id: str = "Joanna"
    engine: str = "neural"
    language_code: str = "en-US"

    model_config = SettingsConfigDict(
        env_prefix="POLLY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class ElevenLabsConfig(BaseSettings):
    """ElevenLabs text-to-speech configuration."""

    api_key: SecretStr | None = None
    base_url: str = "https://api.elevenlabs.io/v1"
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    model_id: str = "eleven_monolingual_v1"
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    style: float = Field(default=0.5, ge=0.0, le=1.0)
    use_speaker_boost: bool = True
    output_format: str = "mp3_44100_128"

    model_config = SettingsConfigDict(
        env_prefix="ELEVENLABS_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class RetryConfig(BaseSettings):
    """Per-provider retry policy for speech synthesis."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay_ms: int = Field(default=1000, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    max_delay_ms: int = Field(default=5000, ge=0)
    call_timeout_seconds: float = Field(default=60.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="TTS_RETRY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class SelectionConfig(BaseSettings):
    """Candidate scoring weights and word-count bounds."""

    weight_engagement: float = Field(default=0.4, ge=0.0, le=1.0)
    weight_text_length: float = Field(default=0.3, ge=0.0, le=1.0)
    weight_quality: float = Field(default=0.3, ge=0.0, le=1.0)
    min_words: int = Field(default=50, ge=1)
    ideal_min_words: int = Field(default=100, ge=1)
    ideal_max_words: int = Field(default=500, ge=1)
    max_words: int = Field(default=800, ge=1)

    @model_validator(mode="after")
    def _check_consistency(self) -> "SelectionConfig":
        total = self.weight_engagement + self.weight_text_length + self.weight_quality
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Selection weights must sum to 1, got {total:.4f}")
        bounds = (self.min_words, self.ideal_min_words, self.ideal_max_words, self.max_words)
        if list(bounds) != sorted(bounds) or len(set(bounds)) != len(bounds):
            raise ValueError(f"Word-count bounds must be strictly increasing, got {bounds}")
        return self

    model_config = SettingsConfigDict(
        env_prefix="SELECTION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class NarrationConfig(BaseSettings):
    """Narration output and orchestration settings."""

    words_per_minute: int = Field(default=150, ge=1)
    max_duration_seconds: int = Field(default=90, ge=1)
    content_type: str = "audio/mpeg"
    store_timeout_seconds: float = Field(default=30.0, gt=0)
    provider_order: list[str] = ["elevenlabs", "polly"]

    model_config = SettingsConfigDict(
        env_prefix="NARRATION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class ContentSourceConfig(BaseSettings):
    """Reddit listing client configuration."""

    base_url: str = "https://www.reddit.com"
    user_agent: str = "post-narrator/1.0"
    default_limit: int = Field(default=25, ge=1, le=100)
    max_limit: int = Field(default=100, ge=1, le=100)
    timeout_seconds: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="REDDIT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Post Narrator"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/narration_pipeline.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Speech providers
    polly: PollyConfig = Field(default_factory=PollyConfig)
    elevenlabs: ElevenLabsConfig = Field(default_factory=ElevenLabsConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    # Pipeline
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    narration: NarrationConfig = Field(default_factory=NarrationConfig)
    reddit: ContentSourceConfig = Field(default_factory=ContentSourceConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
