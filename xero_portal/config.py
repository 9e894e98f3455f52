from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional
from dotenv import load_dotenv
from functools import lru_cache
from pathlib import Path
import json
import os

from .exceptions import ConfigNotFoundError

# Load environment variables
load_dotenv()

APP_TYPES = ("public", "partner", "private")
DEFAULT_SESSION_SECRET = "something crazy"


class Settings(BaseSettings):
    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    PORT: int = 3200
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    WORKERS: int = 1

    # Session cookie
    SESSION_SECRET: str = DEFAULT_SESSION_SECRET
    SESSION_COOKIE: str = "xero_portal_session"
    SESSION_HTTPS_ONLY: bool = False

    # Fernet key used for token secrets kept in the session
    ENCRYPTION_KEY: Optional[str] = None

    # Xero application config file
    XERO_CONFIG_PATH: str = "config/config.json"

    # Xero allows 60 calls per minute per organisation
    XERO_RATE_LIMIT_CALLS: int = 60
    XERO_RATE_LIMIT_PERIOD: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "xero_portal.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def validate_environment(self) -> None:
        """Validate settings that depend on the environment."""
        if self.ENVIRONMENT not in ["development", "production", "testing"]:
            raise ValueError(f"Invalid environment: {self.ENVIRONMENT}")

        if self.ENVIRONMENT == "production" and self.SESSION_SECRET == DEFAULT_SESSION_SECRET:
            raise ValueError("SESSION_SECRET must be set in production")


class XeroAppConfig(BaseModel):
    """Xero application credentials, as found in config/config.json."""
    app_type: str = Field(alias="appType")
    consumer_key: str = Field(alias="consumerKey")
    consumer_secret: str = Field(alias="consumerSecret")
    callback_url: Optional[str] = Field(default=None, alias="callbackUrl")
    private_key_path: Optional[str] = Field(default=None, alias="privateKeyPath")
    user_agent: str = Field(default="xero-portal", alias="userAgent")

    class Config:
        populate_by_name = True

    @field_validator("app_type")
    @classmethod
    def check_app_type(cls, value: str) -> str:
        value = value.lower()
        if value not in APP_TYPES:
            raise ValueError(f"appType must be one of {', '.join(APP_TYPES)}")
        return value

    @property
    def is_private(self) -> bool:
        return self.app_type == "private"

    @property
    def uses_rsa(self) -> bool:
        """Private and partner apps sign with RSA-SHA1."""
        return self.app_type in ("private", "partner")

    def read_private_key(self) -> str:
        if not self.private_key_path:
            raise ValueError(f"privateKeyPath is required for {self.app_type} applications")
        return Path(self.private_key_path).read_text()


def load_xero_config(config_path: Optional[str] = None) -> XeroAppConfig:
    """
    Load the Xero application config.

    The JSON file wins; without it the APPTYPE, authorizeCallbackUrl,
    consumerKey and consumerSecret environment variables are used.

    Raises:
        ConfigNotFoundError: neither source is available
    """
    path = Path(config_path or get_settings().XERO_CONFIG_PATH)
    if path.is_file():
        with path.open() as config_file:
            return XeroAppConfig(**json.load(config_file))

    app_type = os.environ.get("APPTYPE")
    if not app_type:
        raise ConfigNotFoundError("Config not found")

    return XeroAppConfig(
        appType=app_type.lower(),
        callbackUrl=os.environ.get("authorizeCallbackUrl"),
        consumerKey=os.environ.get("consumerKey", ""),
        consumerSecret=os.environ.get("consumerSecret", ""),
        privateKeyPath=os.environ.get("privateKeyPath"),
    )


# Create cached settings instance
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    settings.validate_environment()
    return settings
