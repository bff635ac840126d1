from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import __version__, config_constants


def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    import sys

    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "unittest" in sys.modules:
        return True
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


# Tests build Config objects explicitly and never rely on .env files
if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        pass

DEFAULT_FEED_URL = config_constants.DEFAULT_FEED_URL
DEFAULT_EXTENSIONS = config_constants.DEFAULT_EXTENSIONS
DEFAULT_TARGET_WIDTH = config_constants.DEFAULT_TARGET_WIDTH
MIN_TARGET_WIDTH = config_constants.MIN_TARGET_WIDTH
MAX_TARGET_WIDTH = config_constants.MAX_TARGET_WIDTH
DEFAULT_TIMEOUT_SECONDS = config_constants.DEFAULT_TIMEOUT_SECONDS
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS
DEFAULT_USER_AGENT = config_constants.USER_AGENT_TEMPLATE.format(version=__version__)

FEED_URL_ENV_VAR = "POTD_FEED_URL"
LOG_FILE_ENV_VAR = "LOG_FILE"


def clamp_target_width(width: int) -> Tuple[int, Optional[str]]:
    """Clamp a thumbnail width to the supported range.

    Widths above MAX_TARGET_WIDTH are reduced to it; the second element of the
    returned tuple then carries a diagnostic for the caller to report.

    Args:
        width: Requested width in pixels

    Returns:
        Tuple of (width_to_use, diagnostic_or_None)

    Raises:
        ValueError: If width is below MIN_TARGET_WIDTH
    """
    if width < MIN_TARGET_WIDTH:
        raise ValueError(f"target width must be at least {MIN_TARGET_WIDTH}, got: {width}")
    if width > MAX_TARGET_WIDTH:
        return (
            MAX_TARGET_WIDTH,
            f"Target width {width} is too large, setting to {MAX_TARGET_WIDTH}",
        )
    return width, None


def normalize_extension(value: str) -> str:
    """Lowercase an extension and make sure it starts with a dot."""
    ext = value.strip().lower()
    if ext and not ext.startswith("."):
        ext = f".{ext}"
    return ext


class Config(BaseModel):
    """Configuration model for the thumbnail URL pipeline.

    The model is immutable (frozen) after creation. It can be created
    programmatically or loaded from JSON/YAML files using `load_config_file()`.

    Attributes:
        feed_url: Feed to read. Falls back to the POTD_FEED_URL environment
            variable, then to the Wikimedia Commons featured pictures feed.
        target_width: Thumbnail width in pixels (minimum 1). Values above 3840
            are clamped when the engine is built.
        extensions: Allowed filename suffixes (default: .jpg, .jpeg).
        user_agent: HTTP User-Agent header for requests.
        timeout: Request timeout in seconds (minimum: 1).
        output_json: Print the URL list as a JSON array instead of one per line.
        download_dir: Optional directory to save the rewritten thumbnails into.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path for file output.

    Example:
        >>> from potd_urls import Config
        >>> cfg = Config(target_width=1024, extensions=[".jpg"])
        >>> cfg.target_width
        1024
    """

    feed_url: Optional[str] = Field(default=None, alias="feed", validate_default=True)
    target_width: int = DEFAULT_TARGET_WIDTH
    extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    output_json: bool = Field(default=False, alias="json")
    download_dir: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = Field(default=None, validate_default=True)

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    @field_validator("feed_url", mode="before")
    @classmethod
    def _load_feed_url(cls, value: Any) -> str:
        """Use the explicit value, then the environment, then the default feed."""
        if value is not None and str(value).strip():
            return str(value).strip()
        env_value = os.getenv(FEED_URL_ENV_VAR, "").strip()
        return env_value or DEFAULT_FEED_URL

    @field_validator("feed_url", mode="after")
    @classmethod
    def _validate_feed_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"feed URL must be http or https: {value}")
        if not parsed.netloc:
            raise ValueError(f"feed URL must have a valid hostname: {value}")
        return value

    @field_validator("target_width", mode="before")
    @classmethod
    def _ensure_target_width(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_TARGET_WIDTH
        try:
            width = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("target_width must be an integer") from exc
        if width < MIN_TARGET_WIDTH:
            raise ValueError(f"target_width must be at least {MIN_TARGET_WIDTH}, got: {width}")
        return width

    @field_validator("extensions", mode="before")
    @classmethod
    def _coerce_extensions(cls, value: Any) -> List[str]:
        if value is None or value == "":
            return list(DEFAULT_EXTENSIONS)
        if isinstance(value, str):
            value = value.split(",")
        extensions = [normalize_extension(str(v)) for v in value]
        extensions = [ext for ext in extensions if ext]
        if not extensions:
            raise ValueError("extensions must contain at least one suffix")
        return extensions

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        return str(value).strip() or DEFAULT_USER_AGENT

    @field_validator("timeout", mode="before")
    @classmethod
    def _ensure_timeout(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_TIMEOUT_SECONDS
        try:
            timeout = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("timeout must be an integer") from exc
        return max(MIN_TIMEOUT_SECONDS, timeout)

    @field_validator("download_dir", mode="before")
    @classmethod
    def _strip_download_dir(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip() or None

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level value."""
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the valid levels."""
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value

    @field_validator("log_file", mode="before")
    @classmethod
    def _load_log_file_from_env(cls, value: Any) -> Optional[str]:
        """Load log file path from environment variable if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip()
        env_log_file = os.getenv(LOG_FILE_ENV_VAR, "").strip()
        return env_log_file or None


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The file format is auto-detected from the extension (`.json`, `.yaml` or
    `.yml`). The returned dictionary can be unpacked into `Config`.

    Args:
        path: Path to configuration file. Supports tilde expansion.

    Returns:
        Dict[str, Any]: Configuration values keyed by `Config` field names or aliases.

    Raises:
        ValueError: If the path is empty, the file does not exist, the format
            is unsupported, parsing fails, or the top level is not a mapping

    Example:
        >>> from potd_urls import Config, load_config_file
        >>> cfg = Config(**load_config_file("config.yaml"))

    Supported Formats:
        **YAML** (`.yaml`, `.yml`):

            feed: https://example.com/feed.xml
            target_width: 1280
            extensions: [".jpg", ".jpeg"]
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:  # type: ignore[attr-defined]
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data
