from dotenv import load_dotenv
from dataclasses import dataclass
from pathlib import Path
import json
import os

from affiliate_audit.constants import (
    DEFAULT_FAILURES_DIR,
    FAST_REDIRECT_TIMEOUT_MS,
    HOMEPAGE_MAX_LOAD_MS,
    HOMEPAGE_NAVIGATION_TIMEOUT_MS,
    MIN_NAVIGATION_WAIT_MS,
    PAGE_LOAD_TIMEOUT_MS,
    POPUP_TIMEOUT_MS,
    REDIRECT_TIMEOUT_MS,
    SITEMAP_FETCH_TIMEOUT_SECONDS,
    SITEMAP_USER_AGENT,
    VISIBILITY_POLL_INTERVAL_MS,
    VISIBILITY_POLL_TIMEOUT_MS,
)

load_dotenv()  # Loads variables from .env file


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    FAILURES_DIR = os.getenv("FAILURES_DIR", DEFAULT_FAILURES_DIR)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")
    LOG_DIR = os.getenv("LOG_DIR")
    HEADLESS = _env_flag("HEADLESS", True)
    SITEMAP_USER_AGENT = os.getenv("SITEMAP_USER_AGENT", SITEMAP_USER_AGENT)


settings = Settings()


@dataclass
class AuditSettings:
    """Timeouts and pacing for a single audit run."""

    # Navigation (milliseconds)
    page_load_timeout_ms: int = PAGE_LOAD_TIMEOUT_MS
    homepage_max_load_ms: int = HOMEPAGE_MAX_LOAD_MS
    homepage_navigation_timeout_ms: int = HOMEPAGE_NAVIGATION_TIMEOUT_MS

    # Redirect monitoring (milliseconds)
    redirect_timeout_ms: int = REDIRECT_TIMEOUT_MS
    fast_redirect_timeout_ms: int = FAST_REDIRECT_TIMEOUT_MS
    popup_timeout_ms: int = POPUP_TIMEOUT_MS
    min_navigation_wait_ms: int = MIN_NAVIGATION_WAIT_MS

    # Human-like pause after page load (milliseconds)
    human_delay_min_ms: int = 500
    human_delay_max_ms: int = 1000

    # Overlay dismissal
    overlay_visibility_timeout_ms: int = 1000
    overlay_click_timeout_ms: int = 5000
    visibility_poll_timeout_ms: int = VISIBILITY_POLL_TIMEOUT_MS
    visibility_poll_interval_ms: int = VISIBILITY_POLL_INTERVAL_MS

    # Sitemap fetching
    sitemap_timeout_seconds: float = SITEMAP_FETCH_TIMEOUT_SECONDS
    sitemap_user_agent: str = SITEMAP_USER_AGENT

    # Output
    failures_dir: str = DEFAULT_FAILURES_DIR

    def __post_init__(self):
        if self.human_delay_min_ms > self.human_delay_max_ms:
            raise ValueError(
                f"human_delay_min_ms ({self.human_delay_min_ms}) must not exceed "
                f"human_delay_max_ms ({self.human_delay_max_ms})"
            )
        if self.homepage_navigation_timeout_ms <= self.homepage_max_load_ms:
            raise ValueError(
                f"homepage_navigation_timeout_ms ({self.homepage_navigation_timeout_ms}) must exceed "
                f"homepage_max_load_ms ({self.homepage_max_load_ms})"
            )

    @classmethod
    def from_env(cls) -> "AuditSettings":
        """Load settings from environment variables.

        Environment variables should be prefixed with AFFILIATE_AUDIT_
        e.g., AFFILIATE_AUDIT_REDIRECT_TIMEOUT_MS=20000

        Returns:
            AuditSettings with values from environment
        """
        audit_settings = cls(failures_dir=settings.FAILURES_DIR)
        prefix = "AFFILIATE_AUDIT_"

        for field_name in audit_settings.__dataclass_fields__:
            env_key = f"{prefix}{field_name.upper()}"
            env_value = os.getenv(env_key)

            if env_value is not None:
                field_type = audit_settings.__dataclass_fields__[field_name].type
                try:
                    if field_type in (int, "int"):
                        setattr(audit_settings, field_name, int(env_value))
                    elif field_type in (float, "float"):
                        setattr(audit_settings, field_name, float(env_value))
                    else:
                        setattr(audit_settings, field_name, env_value)
                except ValueError:
                    pass  # Keep default if conversion fails

        return audit_settings

    @classmethod
    def from_file(cls, path: str) -> "AuditSettings":
        """Load settings from a JSON configuration file.

        Args:
            path: Path to JSON configuration file

        Returns:
            AuditSettings with values from file
        """
        audit_settings = cls()
        file_path = Path(path)

        if not file_path.exists():
            return audit_settings

        with open(file_path, 'r') as f:
            config = json.load(f)

        section = config.get('audit', config)

        for field_name in audit_settings.__dataclass_fields__:
            if field_name in section:
                setattr(audit_settings, field_name, section[field_name])

        return audit_settings

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }

    def save_to_file(self, path: str) -> None:
        """Save current settings to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'audit': self.to_dict()}, f, indent=2)


# Global default settings instance
default_settings = AuditSettings()
