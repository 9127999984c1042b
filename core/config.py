import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

TOGETHER_DEFAULT_BASE_URL = "https://api.together.xyz/v1"

# --- Environment-based Settings ---

class AppSettings(BaseSettings):
    """
    Router settings loaded from environment variables.
    The .env file is loaded automatically by pydantic-settings.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- Together AI ---
    TOGETHER_API_KEY: Optional[str] = Field(None, description="Bearer token for the Together AI API.")
    TOGETHER_BASE_URL: str = Field(TOGETHER_DEFAULT_BASE_URL, description="Base URL of the Together AI REST API.")

    # --- Transport ---
    REQUEST_TIMEOUT: Optional[float] = Field(None, description="Optional: HTTP timeout in seconds. Unset means no timeout.")
    STREAM_QUEUE_SIZE: int = Field(64, ge=1, description="Number of decoded chunks buffered between a stream and its consumer.")

    # --- Logging ---
    LOG_LEVEL: str = Field("INFO", description="Log level (e.g., DEBUG, INFO, WARNING, ERROR)")
    LOG_FILE: Optional[str] = Field(None, description="Optional: path of a rotating JSON log file.")

# --- Global Settings Instance ---
_settings_instance: Optional[AppSettings] = None

def get_settings(reload: bool = False) -> AppSettings:
    """
    Returns a singleton instance of the AppSettings object.

    Pass reload=True to re-read the environment, e.g. after a test changed it.
    """
    global _settings_instance
    if _settings_instance is None or reload:
        _settings_instance = AppSettings()
        logger.debug("Loaded settings (base_url=%s)", _settings_instance.TOGETHER_BASE_URL)
    return _settings_instance
