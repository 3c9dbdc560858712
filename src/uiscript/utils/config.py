"""Configuration management for uiscript."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from uiscript.utils.exceptions import ConfigurationError

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

DEFAULT_LOCATE_BACKOFF = (0.0, 5.0, 10.0, 20.0, 30.0)


@dataclass
class AppConfig:
    """Application configuration."""

    output_dir: Path = field(default_factory=lambda: Path("./output"))
    browser: str = "chromium"
    headless: bool = False
    command_delay: float = 1.0  # seconds, before every command
    type_settle_delay: float = 1.0  # seconds, between click and typing
    locate_backoff: tuple[float, ...] = DEFAULT_LOCATE_BACKOFF
    max_scope_climb: int = 10  # ancestor levels for "under"
    label_search_depth: int = 5  # ancestor levels for label redirection
    max_concurrency: int = 4
    page_timeout: int = 30000  # ms
    demo_mode: bool = False
    stealth: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.browser not in SUPPORTED_BROWSERS:
            raise ConfigurationError(
                f"Unsupported browser '{self.browser}'. "
                f"Choose one of: {', '.join(SUPPORTED_BROWSERS)}"
            )
        if not self.locate_backoff:
            raise ConfigurationError("locate_backoff needs at least one attempt")
        if any(wait < 0 for wait in self.locate_backoff):
            raise ConfigurationError("locate_backoff waits must be non-negative")
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        for name in ("max_scope_climb", "label_search_depth"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative")


class ConfigLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load() -> AppConfig:
        """Load configuration from environment.

        Raises:
            ConfigurationError: If configuration is invalid.
        """
        load_dotenv()  # Load .env file if present

        return AppConfig(
            output_dir=Path(os.environ.get("UISCRIPT_OUTPUT", "./output")),
            browser=os.environ.get("UISCRIPT_BROWSER", "chromium").lower(),
            headless=ConfigLoader._get_bool_env("UISCRIPT_HEADLESS", False),
            command_delay=ConfigLoader._get_float_env(
                "UISCRIPT_COMMAND_DELAY", 1.0
            ),
            type_settle_delay=ConfigLoader._get_float_env(
                "UISCRIPT_TYPE_SETTLE_DELAY", 1.0
            ),
            locate_backoff=ConfigLoader._get_backoff_env(
                "UISCRIPT_LOCATE_BACKOFF", DEFAULT_LOCATE_BACKOFF
            ),
            max_scope_climb=ConfigLoader._get_int_env("UISCRIPT_MAX_SCOPE_CLIMB", 10),
            label_search_depth=ConfigLoader._get_int_env(
                "UISCRIPT_LABEL_SEARCH_DEPTH", 5
            ),
            max_concurrency=ConfigLoader._get_int_env("UISCRIPT_MAX_CONCURRENCY", 4),
            page_timeout=ConfigLoader._get_int_env("UISCRIPT_PAGE_TIMEOUT", 30000),
            demo_mode=ConfigLoader._get_bool_env("UISCRIPT_DEMO", False),
            stealth=ConfigLoader._get_bool_env("UISCRIPT_STEALTH", False),
        )

    @staticmethod
    def _get_int_env(name: str, default: int) -> int:
        """Get an integer environment variable.

        Args:
            name: The environment variable name.
            default: The default value if not set.

        Returns:
            The integer value.

        Raises:
            ConfigurationError: If the value is not a valid integer.
        """
        value = os.environ.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' is not a valid integer"
            ) from e

    @staticmethod
    def _get_float_env(name: str, default: float) -> float:
        """Get a float environment variable (seconds)."""
        value = os.environ.get(name)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' is not a valid number"
            ) from e

    @staticmethod
    def _get_bool_env(name: str, default: bool) -> bool:
        """Get a boolean environment variable.

        Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
        """
        value = os.environ.get(name)
        if value is None:
            return default
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(
            f"Invalid value for {name}: '{value}' is not a valid boolean"
        )

    @staticmethod
    def _get_backoff_env(name: str, default: tuple[float, ...]) -> tuple[float, ...]:
        """Get a comma-separated list of wait times in seconds."""
        value = os.environ.get(name)
        if value is None:
            return default
        try:
            return tuple(float(part) for part in value.split(",") if part.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' is not a list of numbers"
            ) from e
