"""Configuration constants for potd_urls.

All constants are re-exported from config.py for convenience.
"""

# Feed defaults
DEFAULT_FEED_URL = (
    "https://catfood.toolforge.org/catfood.php?category=Featured_pictures_on_Wikimedia_Commons"
)
DEFAULT_EXTENSIONS = (".jpg", ".jpeg")

# Thumbnail width
DEFAULT_TARGET_WIDTH = 1920
MIN_TARGET_WIDTH = 1
MAX_TARGET_WIDTH = 3840  # 4K

# HTTP defaults
DEFAULT_TIMEOUT_SECONDS = 20
MIN_TIMEOUT_SECONDS = 1
USER_AGENT_TEMPLATE = "Mozilla/5.0 (compatible; potd-urls/{version})"

# Logging
DEFAULT_LOG_LEVEL = "INFO"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
