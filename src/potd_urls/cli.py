"""Command-line interface helpers for potd_urls."""

from __future__ import annotations

import argparse
import json
import logging
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    cast,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TYPE_CHECKING,
)
from urllib.parse import urlparse

from pydantic import ValidationError

from . import __version__, config, progress, workflow
from .exceptions import PotdError

if TYPE_CHECKING:  # pragma: no cover - typing only
    import tqdm

_LOGGER = logging.getLogger(__name__)

# Progress bar constants
BYTES_PER_KB = 1024


class _TqdmProgress:
    """Simple adapter that exposes tqdm's update interface."""

    def __init__(self, bar: "tqdm.tqdm") -> None:
        self._bar = bar

    def update(self, advance: int) -> None:
        self._bar.update(advance)


@contextmanager
def _tqdm_progress(total: Optional[int], description: str) -> Iterator[_TqdmProgress]:
    """Create a tqdm progress context matching the shared progress API."""
    from tqdm import tqdm

    kwargs: Dict[str, Any] = {
        "desc": description,
        "total": total,
        "unit": "B",
        "unit_scale": True,
        "unit_divisor": BYTES_PER_KB,
        "leave": total is not None,
    }
    with tqdm(**kwargs) as bar:
        yield _TqdmProgress(bar)


def _validate_feed_url(feed_value: str, errors: List[str]) -> None:
    """Validate feed URL format.

    Args:
        feed_value: Feed URL string
        errors: List to append validation errors to
    """
    parsed_obj = urlparse(feed_value)
    if parsed_obj.scheme not in ("http", "https"):
        errors.append(f"Feed URL must be http or https: {feed_value}")
    if not parsed_obj.netloc:
        errors.append(f"Feed URL must have a valid hostname: {feed_value}")


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    feed_value = (args.feed or "").strip()
    if feed_value:
        _validate_feed_url(feed_value, errors)

    if args.target_width < config.MIN_TARGET_WIDTH:
        errors.append(
            f"--target-width must be at least {config.MIN_TARGET_WIDTH}, got: {args.target_width}"
        )

    if args.timeout <= 0:
        errors.append(f"--timeout must be positive, got: {args.timeout}")

    if args.extensions is not None and not any(ext.strip() for ext in args.extensions):
        errors.append("--extension must not be empty")

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_arguments(parser: argparse.ArgumentParser) -> None:
    """Add all arguments to parser.

    Destinations match the configuration file keys so that a config file can
    supply defaults for any of them.
    """
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument(
        "feed", nargs="?", default=None, help="Feed URL (default: featured pictures feed)"
    )
    parser.add_argument(
        "-t",
        "--target-width",
        type=int,
        default=config.DEFAULT_TARGET_WIDTH,
        help=f"Target width of the image (max {config.MAX_TARGET_WIDTH})",
    )
    parser.add_argument(
        "-j", "--json", action="store_true", help="Output the URLs as a JSON array"
    )
    parser.add_argument(
        "--extension",
        dest="extensions",
        action="append",
        default=None,
        help="Allowed image extension (repeatable, default: .jpg and .jpeg)",
    )
    parser.add_argument("--user-agent", default=config.DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.DEFAULT_TIMEOUT_SECONDS,
        help="Request timeout in seconds",
    )
    parser.add_argument(
        "--download-dir",
        default=None,
        help="Also download the thumbnails into this directory",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")
    parser.add_argument(
        "--log-file",
        default=None,
        help="Path to log file (logs will be written to both console and file)",
    )
    parser.add_argument(
        "--log-level",
        default=config.DEFAULT_LOG_LEVEL,
        type=str.upper,
        help="Logging level (e.g., DEBUG, INFO)",
    )


def _load_and_merge_config(
    parser: argparse.ArgumentParser, config_path: str, argv: Optional[Sequence[str]]
) -> argparse.Namespace:
    """Load configuration file and merge with CLI arguments.

    Values from the file become parser defaults; explicit CLI flags win.

    Raises:
        ValueError: If the config file is invalid
    """
    config_data = config.load_config_file(config_path)
    try:
        config_model = config.Config.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    defaults_updates: Dict[str, Any] = config_model.model_dump(
        exclude_none=True,
        by_alias=True,
    )
    # --extension appends, so a file value used as its default would be extended
    config_extensions = defaults_updates.pop("extensions", None)
    parser.set_defaults(**defaults_updates)
    args = parser.parse_args(argv)
    args.config_extensions = config_extensions
    return args


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = argparse.ArgumentParser(
        description="Print thumbnail URLs for the featured picture of the day."
    )
    _add_arguments(parser)

    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"potd_urls {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    extensions = args.extensions
    if extensions is None:
        extensions = getattr(args, "config_extensions", None)
    payload: Dict[str, Any] = {
        "feed_url": args.feed,
        "target_width": args.target_width,
        "extensions": extensions,
        "user_agent": args.user_agent,
        "timeout": args.timeout,
        "output_json": args.json,
        "download_dir": args.download_dir,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    """Log configuration values at debug level."""
    logger.debug("Configuration:")
    logger.debug(f"  Feed URL: {cfg.feed_url}")
    logger.debug(f"  Target Width: {cfg.target_width}px")
    logger.debug(f"  Extensions: {', '.join(cfg.extensions)}")
    logger.debug(f"  Timeout: {cfg.timeout}s")
    logger.debug(f"  Download Directory: {cfg.download_dir or 'none'}")
    logger.debug(f"  Output: {'json' if cfg.output_json else 'lines'}")


def format_urls(urls: List[str], as_json: bool) -> str:
    """Render the URL list as one URL per line or as a JSON array."""
    if as_json:
        return json.dumps(urls)
    return "\n".join(urls)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    run_pipeline_fn: Optional[Callable[[config.Config], Tuple[List[str], str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_progress_factory(_tqdm_progress)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if run_pipeline_fn is None:
        run_pipeline_fn = workflow.run_pipeline

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    apply_log_level_fn(cfg.log_level, cfg.log_file)
    _log_configuration(cfg, log)

    try:
        urls, summary = run_pipeline_fn(cfg)
    except PotdError as exc:
        log.error(f"Error: {exc}")
        return 1

    output = format_urls(urls, cfg.output_json)
    if output:
        print(output)
    log.info(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
