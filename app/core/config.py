"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (bot token, DB URI, channel, admins, credit amounts)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal, FrozenSet


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Fixed for the lifetime of the process (no hot reload).
    """
    
    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    
    # Telegram
    BOT_TOKEN: str = Field(
        default="",
        description="Telegram bot API token"
    )
    TELEGRAM_API_BASE: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_TIMEOUT: float = Field(
        default=10.0,
        description="Telegram API request timeout in seconds"
    )
    WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Secret token Telegram echoes in X-Telegram-Bot-Api-Secret-Token"
    )
    
    # Storage
    STORE_BACKEND: Literal["mongo", "memory"] = Field(
        default="mongo",
        description="Ledger store backend (memory is for local runs only)"
    )
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="lookupbot",
        description="MongoDB database name"
    )
    
    # Access gate
    CHANNEL_USERNAME: str = Field(
        default="",
        description="Channel users must join, e.g. @mychannel"
    )
    ADMIN_IDS: str = Field(
        default="",
        description="Comma separated Telegram user ids with admin rights"
    )
    SUPPORT_ADMIN: str = Field(
        default="@support",
        description="Support contact handle shown to users"
    )
    
    # Credits
    INITIAL_CREDITS: int = Field(
        default=2,
        description="Credits granted to every new account"
    )
    REFERRAL_CREDIT: int = Field(
        default=1,
        description="Credits paid to a referrer per new registration"
    )
    
    # Lookup API
    LOOKUP_API_URL: str = Field(
        default="https://numinfoapi.vercel.app/api/num",
        description="Number lookup endpoint (GET ?number=...)"
    )
    LOOKUP_TIMEOUT: float = Field(
        default=15.0,
        description="Number lookup request timeout in seconds"
    )
    
    # Conversation flows
    FLOW_TIMEOUT_MINUTES: int = Field(
        default=0,
        description="Discard flows idle longer than this; 0 keeps them forever"
    )
    
    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    
    @validator("INITIAL_CREDITS", "REFERRAL_CREDIT", "FLOW_TIMEOUT_MINUTES")
    def validate_non_negative(cls, v):
        """Credit amounts and timeouts cannot be negative."""
        if v < 0:
            raise ValueError("must be zero or positive")
        return v
    
    @validator("ADMIN_IDS")
    def validate_admin_ids(cls, v):
        """Every admin id must be an integer."""
        for part in v.split(","):
            part = part.strip()
            if part and not part.lstrip("-").isdigit():
                raise ValueError(f"Invalid admin id: {part}")
        return v
    
    @property
    def admin_ids(self) -> FrozenSet[int]:
        """Parsed admin ids."""
        return frozenset(
            int(part) for part in self.ADMIN_IDS.split(",") if part.strip()
        )
    
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"
    
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    config = config or settings
    errors = []
    
    if not config.BOT_TOKEN:
        errors.append("BOT_TOKEN is required")
    
    if config.STORE_BACKEND == "mongo" and not config.MONGODB_URL:
        errors.append("MONGODB_URL is required")
    
    if not config.CHANNEL_USERNAME:
        errors.append("CHANNEL_USERNAME is required")
    
    # Production-specific validations
    if config.is_production:
        if config.STORE_BACKEND == "memory":
            errors.append("STORE_BACKEND=memory is not allowed in production")
        if not config.WEBHOOK_SECRET:
            errors.append("WEBHOOK_SECRET is required in production")
    
    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")
    
    return True
