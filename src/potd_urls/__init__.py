"""POTD URLs - Thumbnail URLs for the featured picture of the day.

This package reads a featured-pictures feed and rewrites every embedded image
URL so that it requests a thumbnail of a chosen pixel width:
- Streaming feed parsing (no document tree is built)
- Extension whitelist filtering (``.jpg`` and ``.jpeg`` by default)
- Width token rewriting that leaves the rest of the URL untouched

Programmatic API Example:
    >>> import potd_urls
    >>>
    >>> engine = potd_urls.Engine(1920)
    >>> for url in engine.run():
    ...     print(url)

Configuration Example:
    >>> cfg = potd_urls.Config(target_width=1024)
    >>> urls, summary = potd_urls.run_pipeline(cfg)

CLI Usage:
    $ python -m potd_urls.cli --target-width 1920
    $ python -m potd_urls.cli --json --config config.yaml

Service Mode (for supervisor/systemd):
    $ python -m potd_urls.service --config config.yaml
"""

from __future__ import annotations

__version__ = "0.3.0"

from .config import Config, load_config_file
from .exceptions import FeedFetchError, FeedParseError, PotdError
from .whitelist import ExtensionWhitelist
from .workflow import Engine, run_pipeline

__all__ = [
    "Config",
    "Engine",
    "ExtensionWhitelist",
    "FeedFetchError",
    "FeedParseError",
    "PotdError",
    "load_config_file",
    "run_pipeline",
    "cli",
    "service",
    "__version__",
]


# Cache for lazy-loaded modules to prevent circular imports
_import_cache: dict[str, object] = {}


def __getattr__(name: str):
    if name in _import_cache:
        return _import_cache[name]

    if name in ("cli", "service"):
        import importlib

        module = importlib.import_module(f"{__name__}.{name}")
        _import_cache[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
