"""
Browser configuration for Playwright-driven audits.

This module provides a validated Pydantic configuration model for the audit
browser and pre-configured instances for desktop and mobile runs.
"""
import random
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# User agent pool for rotation
USER_AGENTS = [
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    # Chrome on Mac
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Firefox on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    # Safari on Mac
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
]

MOBILE_USER_AGENTS = [
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 14; Pixel 7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
]


def get_random_user_agent(mobile: bool = False) -> str:
    """Get a random user agent from the pool."""
    return random.choice(MOBILE_USER_AGENTS if mobile else USER_AGENTS)


class BrowserConfig(BaseModel):
    """
    Configuration for the AuditBrowser.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    stealth_mode: bool = Field(
        default=True,
        description="Mask automation indicators (navigator.webdriver, plugins, languages)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for the audit"
    )

    timeout: int = Field(
        default=30000,
        description="Page load timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="domcontentloaded",
        description="When to consider navigation complete"
    )

    mobile: bool = Field(
        default=False,
        description="Use mobile viewport and user agent"
    )

    locale: str = Field(
        default="ro-RO",
        description="Browser locale sent with every context"
    )

    timezone_id: str = Field(
        default="Europe/Bucharest",
        description="Timezone reported by every context"
    )

    ignore_https_errors: bool = Field(
        default=False,
        description="Accept invalid TLS certificates on audited pages"
    )

    launch_args: List[str] = Field(
        default_factory=list,
        description="Additional browser launch arguments (e.g., '--disable-http2')"
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="Custom user agent. If None and rotate_user_agent=True, a random one is used."
    )

    rotate_user_agent: bool = Field(
        default=True,
        description="Pick a fresh user agent for each new context"
    )

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    def get_user_agent(self) -> str:
        """Get the user agent to use for this config."""
        if self.user_agent:
            return self.user_agent
        if self.rotate_user_agent:
            return get_random_user_agent(self.mobile)
        return MOBILE_USER_AGENTS[0] if self.mobile else USER_AGENTS[0]


# --- Pre-configured Instances ---

DESKTOP_CONFIG = BrowserConfig(
    headless=True,
    stealth_mode=True,
    wait_until="domcontentloaded",
    timeout=30000,
    launch_args=[
        "--disable-blink-features=AutomationControlled",
        "--no-first-run",
        "--no-default-browser-check",
    ],
)
"""
Desktop audit configuration.

Matches the navigation strategy of the audit loop (domcontentloaded, 30s) and
suppresses the most common automation flags.
"""

MOBILE_CONFIG = BrowserConfig(
    headless=True,
    stealth_mode=True,
    wait_until="domcontentloaded",
    timeout=30000,
    mobile=True,
    launch_args=[
        "--disable-blink-features=AutomationControlled",
        "--no-first-run",
        "--no-default-browser-check",
    ],
)
"""Mobile audit configuration: same as desktop with a handheld viewport."""
