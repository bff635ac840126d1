"""Pipeline orchestration: fetch the feed, extract image URLs, rewrite widths."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from . import config, downloader, rss_parser
from .rewriter import rewrite_url
from .whitelist import ExtensionWhitelist

logger = logging.getLogger(__name__)


class FeedSource(Protocol):
    """Anything that can produce the feed document as text."""

    def fetch(self) -> str: ...


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Apply logging level to root logger and configure handlers.

    Args:
        level: Log level string (e.g., 'DEBUG', 'INFO', 'WARNING')
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Raises:
        ValueError: If log level is invalid
        OSError: If log file cannot be created or written to
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)
        root_logger.setLevel(numeric_level)
    else:
        root_logger.setLevel(numeric_level)
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)

    if log_file:
        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root_logger.handlers
        )
        if not file_handler_exists:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)


class Engine:
    """Turns a featured-pictures feed into thumbnail URLs of one width.

    Example:
        >>> engine = Engine(1024)
        >>> urls = engine.run()
    """

    def __init__(
        self,
        target_width: int,
        fetcher: Optional[FeedSource] = None,
        extension_whitelist: Optional[ExtensionWhitelist] = None,
    ) -> None:
        width, diagnostic = config.clamp_target_width(target_width)
        if diagnostic:
            logger.warning(diagnostic)
        self.target_width = width
        if fetcher is None:
            fetcher = downloader.Fetcher(
                config.DEFAULT_FEED_URL, config.DEFAULT_USER_AGENT, config.DEFAULT_TIMEOUT_SECONDS
            )
        self.fetcher: FeedSource = fetcher
        if extension_whitelist is None:
            extension_whitelist = ExtensionWhitelist()
        self.extension_whitelist = extension_whitelist

    @classmethod
    def from_config(cls, cfg: config.Config) -> "Engine":
        fetcher = downloader.Fetcher(
            cfg.feed_url or config.DEFAULT_FEED_URL, cfg.user_agent, cfg.timeout
        )
        return cls(
            cfg.target_width,
            fetcher=fetcher,
            extension_whitelist=ExtensionWhitelist(cfg.extensions),
        )

    def rewrite_all(self, raw_urls: List[str]) -> List[str]:
        """Rewrite every raw URL, dropping the ones that cannot be rewritten."""
        urls: List[str] = []
        for raw_url in raw_urls:
            url = rewrite_url(raw_url, self.target_width, self.extension_whitelist)
            if url is not None:
                urls.append(url)
        return urls

    def run(self) -> List[str]:
        """Fetch and parse the feed and return the rewritten thumbnail URLs.

        Raises:
            FeedFetchError: If the feed cannot be retrieved
            FeedParseError: If the feed cannot be parsed
        """
        body = self.fetcher.fetch()
        logger.debug("Fetched body (%d characters)", len(body))
        raw_urls = rss_parser.parse(body)
        urls = self.rewrite_all(raw_urls)
        logger.info(
            "Rewrote %d of %d image URL(s) to %dpx", len(urls), len(raw_urls), self.target_width
        )
        return urls


def download_images(urls: List[str], output_dir: str, user_agent: str, timeout: int) -> int:
    """Save each thumbnail under output_dir using the URL's filename.

    Failed downloads are logged and skipped.

    Returns:
        Number of files written
    """
    saved = 0
    for url in urls:
        filename = url.rsplit("/", 1)[-1].split("?", 1)[0]
        if not filename:
            logger.warning("Cannot derive a filename from %s; skipping download", url)
            continue
        out_path = os.path.join(output_dir, filename)
        logger.info("Fetching %s", url)
        ok, _ = downloader.http_download_to_file(url, user_agent, timeout, out_path)
        if ok:
            saved += 1
    return saved


def run_pipeline(cfg: config.Config) -> Tuple[List[str], str]:
    """Run the pipeline described by a configuration.

    Args:
        cfg: Pipeline configuration

    Returns:
        Tuple of (rewritten_urls, summary_message)

    Raises:
        FeedFetchError: If the feed cannot be retrieved
        FeedParseError: If the feed cannot be parsed
    """
    engine = Engine.from_config(cfg)
    urls = engine.run()
    summary = f"Found {len(urls)} thumbnail URL(s) at {engine.target_width}px"
    if cfg.download_dir:
        saved = download_images(urls, cfg.download_dir, cfg.user_agent, cfg.timeout)
        summary += f"; downloaded {saved} to {cfg.download_dir}"
    return urls, summary
