"""Shared test constants, feed builders and HTTP mocks for potd_urls tests."""

from typing import Iterable, List, Optional

from potd_urls import config

# Test constants
TEST_BASE_URL = "https://example.org"
TEST_FEED_URL = "https://example.com/feed.xml"
TEST_THUMB_PREFIX = f"{TEST_BASE_URL}/thumb"
TEST_IMAGE_URL = f"{TEST_THUMB_PREFIX}/640px-Cat.jpg"
TEST_USER_AGENT = "test-agent"
TEST_FEED_TITLE = "Featured pictures"

COMMONS_THUMB_URL = (
    "https://upload.wikimedia.org/wikipedia/commons/thumb/a/ab/"
    "Example_picture.jpg/320px-Example_picture.jpg"
)


def build_description(image_url: str) -> str:
    """Return an escaped description body embedding one image reference."""
    return f'&lt;a href="{TEST_BASE_URL}/wiki"&gt;&lt;img src="{image_url}" /&gt;&lt;/a&gt;'


def build_feed_xml(
    image_urls: Iterable[str], title: str = TEST_FEED_TITLE, extra_item_xml: str = ""
) -> str:
    """Build an RSS 2.0 document with one item per image URL.

    Args:
        image_urls: URLs embedded (escaped) in each item's description
        title: Channel title
        extra_item_xml: Extra markup appended inside every item

    Returns:
        Feed document as text
    """
    items: List[str] = []
    for idx, url in enumerate(image_urls, start=1):
        items.append(
            f"""
        <item>
            <title>Picture {idx}</title>
            <link>{TEST_BASE_URL}/wiki/Picture_{idx}</link>
            <description>{build_description(url)}</description>
            {extra_item_xml}
        </item>"""
        )
    return f"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0">
    <channel>
        <title>{title}</title>
        <link>{TEST_BASE_URL}</link>
        <description>Daily featured pictures</description>{"".join(items)}
    </channel>
</rss>"""


def create_test_config(**overrides):
    """Create test Config object with defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        config.Config object with test defaults
    """
    defaults = {
        "feed_url": TEST_FEED_URL,
        "target_width": 1024,
        "user_agent": TEST_USER_AGENT,
        "timeout": 30,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return config.Config(**defaults)


class MockHTTPResponse:
    """Simple mock for requests responses used in downloader and pipeline tests."""

    def __init__(
        self,
        *,
        text: str = "",
        content: Optional[bytes] = None,
        url: str = "",
        status_code: int = 200,
        headers=None,
        chunks=None,
    ):
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self.url = url
        self.status_code = status_code
        self.headers = headers or {}
        self.encoding = None
        self._chunks = chunks if chunks is not None else [self.content]
        self.closed = False

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk

    def close(self):
        self.closed = True


def create_feed_response(feed_xml: str, url: str = TEST_FEED_URL, status_code: int = 200):
    """Create MockHTTPResponse for a feed document."""
    return MockHTTPResponse(
        text=feed_xml,
        url=url,
        status_code=status_code,
        headers={"Content-Type": "application/rss+xml; charset=utf-8"},
    )


def create_image_response(image_bytes: bytes, url: str, chunks=None):
    """Create MockHTTPResponse for a thumbnail download."""
    return MockHTTPResponse(
        content=image_bytes,
        url=url,
        headers={"Content-Type": "image/jpeg", "Content-Length": str(len(image_bytes))},
        chunks=chunks,
    )


class StubFetcher:
    """Feed source returning a fixed document, or raising a given error."""

    def __init__(self, body: str = "", error: Optional[Exception] = None):
        self.body = body
        self.error = error
        self.calls = 0

    def fetch(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.body
