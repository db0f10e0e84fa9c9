from typing import Annotated, Optional
from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import PostgresDsn


class PostgresSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    host: str = Field(alias="POSTGRES_HOST")
    port: int = Field(alias="POSTGRES_DB_PORT")
    db_name: str = Field(alias="POSTGRES_DB_NAME")
    user: str = Field(alias="POSTGRES_DB_USER")
    password: str = Field(alias="POSTGRES_DB_PASSWORD")

    @computed_field
    def connection_string(self) -> PostgresDsn:
        return PostgresDsn(
            f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"
        )


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    issuer: str = Field(default="https://auth.example.com", alias="JWT_ISSUER")
    application_id: str = Field(default="flashcards-app", alias="JWT_APPLICATION_ID")
    token_lifetime_seconds: int = Field(
        default=3600, alias="JWT_TOKEN_LIFETIME_SECONDS"
    )
    private_key_path: str = Field(default="jwt_rsa_key.pem", alias="JWT_PRIVATE_KEY_PATH")


class ProviderSettings(BaseSettings):
    """OpenRouter-compatible chat completion endpoint used for proposals."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    base_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        alias="OPENROUTER_BASE_URL",
    )
    model: str = Field(default="openai/gpt-4o-mini", alias="OPENROUTER_MODEL")
    timeout_seconds: float = Field(default=60.0, alias="OPENROUTER_TIMEOUT_SECONDS")
    temperature: float = Field(default=0.3, alias="OPENROUTER_TEMPERATURE")
    max_tokens: int = Field(default=4000, alias="OPENROUTER_MAX_TOKENS")
    site_url: str = Field(default="http://localhost:9000", alias="OPENROUTER_SITE_URL")
    site_name: str = Field(default="flashcards", alias="OPENROUTER_SITE_NAME")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="flashcards", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(alias="JWT_SECRET")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ORIGINS"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @computed_field
    def is_production(self) -> bool:
        return self.mode != "dev"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    postgres: PostgresSettings = Field(default_factory=lambda: PostgresSettings())
    jwt: JWTSettings = Field(default_factory=lambda: JWTSettings())
    provider: ProviderSettings = Field(default_factory=lambda: ProviderSettings())


settings = Settings()
