from newsletter.config.loader import ENV_PREFIX, load_config
from newsletter.config.models import (
    AppConfig,
    ApplicationSettings,
    DatabaseSettings,
    EmailClientSettings,
)

__all__ = [
    "ENV_PREFIX",
    "load_config",
    "AppConfig",
    "ApplicationSettings",
    "DatabaseSettings",
    "EmailClientSettings",
]
