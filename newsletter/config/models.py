from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator

from newsletter.domain.subscriber import SubscriberEmail


class ApplicationSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)
    # Public URL used to build confirmation links
    base_url: str = "http://127.0.0.1:8000"
    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()


class DatabaseSettings(BaseModel):
    path: str = "./data/newsletter.db"
    max_connections: int = Field(default=10, ge=1)
    timeout_seconds: float = Field(default=5.0, gt=0)
    # Relative paths are resolved against the config directory by load_config
    migrations_dir: str = "../migrations"


class EmailClientSettings(BaseModel):
    backend: Literal["http", "dev"] = "http"
    base_url: str = "http://localhost:3000"
    sender_email: str
    authorization_token: SecretStr = SecretStr("")
    timeout_milliseconds: int = Field(default=10_000, gt=0)

    def sender(self) -> SubscriberEmail:
        """Parse the sender address (raises ValidationError when invalid)."""
        return SubscriberEmail.parse(self.sender_email)

    def timeout(self) -> float:
        return self.timeout_milliseconds / 1000


class AppConfig(BaseModel):
    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    email_client: EmailClientSettings
