"""Service API for programmatic use of potd_urls.

This module provides a programmatic interface for non-interactive use, such as
a cron job or a supervisor-managed process:
- Works exclusively with configuration files (no CLI arguments)
- Returns a structured result instead of raising
- Either all rewritten URLs are returned or none are

Example:
    >>> from potd_urls import service
    >>> result = service.run_from_config_file("config.yaml")
    >>> if result.success:
    ...     print("\\n".join(result.urls))
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from . import __version__, config, workflow
from .exceptions import PotdError

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result of a service run.

    Attributes:
        urls: Rewritten thumbnail URLs (empty when the run failed)
        summary: Human-readable summary message
        success: Whether the run completed successfully
        error: Error message if success is False, None otherwise
    """

    urls: List[str] = field(default_factory=list)
    summary: str = ""
    success: bool = True
    error: Optional[str] = None


def run(cfg: config.Config) -> ServiceResult:
    """Run the pipeline with the given configuration.

    Args:
        cfg: Configuration object

    Returns:
        ServiceResult with the URLs, or the error that prevented producing them
    """
    try:
        workflow.apply_log_level(level=cfg.log_level, log_file=cfg.log_file)
        urls, summary = workflow.run_pipeline(cfg)
    except (PotdError, ValueError, OSError) as exc:
        error_msg = str(exc)
        logger.error(f"Pipeline execution failed: {error_msg}")
        return ServiceResult(success=False, error=error_msg)

    return ServiceResult(urls=urls, summary=summary, success=True, error=None)


def run_from_config_file(config_path: str | Path) -> ServiceResult:
    """Run the pipeline from a configuration file.

    Args:
        config_path: Path to configuration file (JSON or YAML)

    Returns:
        ServiceResult with processing results
    """
    try:
        config_dict = config.load_config_file(str(config_path))
        cfg = config.Config(**config_dict)
    except ValueError as exc:
        # pydantic.ValidationError is a ValueError subclass
        error_msg = f"Failed to load configuration file: {exc}"
        logger.error(error_msg)
        return ServiceResult(success=False, error=error_msg)

    return run(cfg)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for service mode (config-file only).

    Usage:
        python -m potd_urls.service --config config.yaml

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="POTD URLs Service - Run pipeline from configuration file",
    )
    parser.add_argument(
        "--config",
        required=True,
        help="Path to configuration file (JSON or YAML)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"potd_urls {__version__}",
    )

    args = parser.parse_args(argv)
    result = run_from_config_file(args.config)

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(json.dumps(result.urls))
    return 0


if __name__ == "__main__":
    sys.exit(main())
