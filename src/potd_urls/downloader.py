"""HTTP session management, feed fetching and thumbnail download helpers."""

from __future__ import annotations

import atexit
import logging
import os
import threading
from typing import cast, List, Tuple

import requests
from requests.utils import requote_uri

from . import progress
from .exceptions import FeedFetchError

logger = logging.getLogger(__name__)

# Track if we've suppressed urllib3 logs (lazy initialization)
_urllib3_logs_suppressed = False


def _suppress_urllib3_debug_logs() -> None:
    """Suppress verbose urllib3 debug logs when root logger is DEBUG.

    Called lazily on first use so the root logger is already configured.
    """
    global _urllib3_logs_suppressed
    if _urllib3_logs_suppressed:
        return

    root_logger = logging.getLogger()
    root_level = root_logger.level if root_logger.level else logging.INFO
    if root_level <= logging.DEBUG:
        for logger_name in ("urllib3", "urllib3.connectionpool", "urllib3.connection"):
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    _urllib3_logs_suppressed = True


DOWNLOAD_CHUNK_SIZE = 1024 * 256
HTTP_OK = 200
DEFAULT_FEED_ENCODING = "utf-8"

_THREAD_LOCAL = threading.local()
_SESSION_REGISTRY: List[requests.Session] = []
_SESSION_REGISTRY_LOCK = threading.Lock()


def normalize_url(url: str) -> str:
    """Normalize URLs while preserving already-encoded segments."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized URL %s -> %s", url, normalized)
    return cast(str, normalized)


def _get_thread_request_session() -> requests.Session:
    _suppress_urllib3_debug_logs()

    session = getattr(_THREAD_LOCAL, "session", None)
    if session is None:
        session = requests.Session()
        setattr(_THREAD_LOCAL, "session", session)
        with _SESSION_REGISTRY_LOCK:
            _SESSION_REGISTRY.append(session)
        logger.debug("Created new thread-local HTTP session %s", hex(id(session)))
    return session


def _close_all_sessions() -> None:
    with _SESSION_REGISTRY_LOCK:
        for session in _SESSION_REGISTRY:
            try:
                session.close()
            # Best-effort cleanup; ignore shutdown errors
            except Exception:  # pragma: no cover  # nosec B110
                pass
        _SESSION_REGISTRY.clear()


atexit.register(_close_all_sessions)


def fetch_url(
    url: str, user_agent: str, timeout: int, *, stream: bool = False
) -> requests.Response:
    """Execute a single HTTP GET and return the response.

    There is no retry: any transport error, and any status other than 200,
    raises immediately.

    Raises:
        FeedFetchError: If the request fails or the status is not 200
    """
    normalized_url = normalize_url(url)
    headers = {"User-Agent": user_agent}
    session = _get_thread_request_session()
    logger.debug(
        "Opening HTTP connection to %s (timeout=%s, stream=%s)", normalized_url, timeout, stream
    )
    try:
        resp = session.get(normalized_url, headers=headers, timeout=timeout, stream=stream)
    except requests.RequestException as exc:
        raise FeedFetchError(url, cause=exc) from exc

    if resp.status_code != HTTP_OK:
        status = resp.status_code
        resp.close()
        raise FeedFetchError(url, status_code=status)

    logger.debug(
        "HTTP request to %s succeeded with Content-Length=%s",
        normalized_url,
        resp.headers.get("Content-Length"),
    )
    return resp


def fetch_text(url: str, user_agent: str, timeout: int) -> str:
    """Fetch a URL and return its body decoded as text.

    Bodies without a declared charset are decoded as UTF-8.

    Raises:
        FeedFetchError: If the request fails or the status is not 200
    """
    resp = fetch_url(url, user_agent, timeout)
    try:
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = DEFAULT_FEED_ENCODING
        return cast(str, resp.text)
    except requests.RequestException as exc:
        raise FeedFetchError(url, cause=exc) from exc
    finally:
        resp.close()


def http_download_to_file(
    url: str, user_agent: str, timeout: int, out_path: str
) -> Tuple[bool, int]:
    """Download content directly to a file path.

    Failures are logged and reported through the return value.

    Returns:
        Tuple of (success, bytes_written)
    """
    try:
        resp = fetch_url(url, user_agent, timeout, stream=True)
    except FeedFetchError as exc:
        logger.warning(f"Failed to download {url}: {exc}")
        return False, 0
    try:
        content_length = resp.headers.get("Content-Length")
        try:
            total_size = int(content_length) if content_length else None
        except (TypeError, ValueError):
            total_size = None

        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        filename = os.path.basename(out_path) or os.path.basename(url)

        with (
            open(out_path, "wb") as f,
            progress.download_progress(total_size, filename) as counter,
        ):
            for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                counter.update(len(chunk))
        total_bytes = counter.transferred
        logger.debug("Finished downloading %s (%s bytes written)", url, total_bytes)
        return True, total_bytes
    except (requests.RequestException, OSError) as exc:
        logger.warning(f"Failed to download {url} to {out_path}: {exc}")
        return False, 0
    finally:
        resp.close()


class Fetcher:
    """Fetches the feed document from a fixed URL."""

    def __init__(self, feed_url: str, user_agent: str, timeout: int) -> None:
        self.feed_url = feed_url
        self.user_agent = user_agent
        self.timeout = timeout

    def fetch(self) -> str:
        """Return the feed body.

        Raises:
            FeedFetchError: If the feed cannot be retrieved
        """
        return fetch_text(self.feed_url, self.user_agent, self.timeout)

    def __repr__(self) -> str:
        return f"Fetcher(feed_url={self.feed_url!r})"
