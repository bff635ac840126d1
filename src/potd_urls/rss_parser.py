"""Streaming feed parsing and image URL extraction.

The feed is scanned with an event-driven expat parser (hardened by defusedxml);
no element tree is built. A three-state machine tracks whether the scanner is
inside an ``item`` and inside that item's ``description``. Every text event seen
in the latter state is searched for an embedded ``src="..."`` attribute, whose
value is emitted as a raw image URL.

Only markup that cannot be tokenized fails the whole feed. Before expat sees the
document, leading whitespace and a byte order mark are dropped, the content is
placed under a synthetic root so that several top-level elements are accepted,
and references expat cannot resolve (a bare ``&`` or an undefined entity such
as ``&nbsp;``) are replaced by a marker. A text event holding the marker is
skipped on its own.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import List, Optional, Tuple
from xml.parsers.expat import errors as expat_errors

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError as DefusedXMLParseError, XMLParser

from .exceptions import FeedParseError

logger = logging.getLogger(__name__)

FEED_CHUNK_SIZE = 64 * 1024
ITEM_TAG = "item"
DESCRIPTION_TAG = "description"
RSS_1_0_NAMESPACE = "http://purl.org/rss/1.0/"
SRC_MARKER = 'src="'
SRC_TERMINATOR = '"'

# Never closed, so every document ends with expat's "no element found"
DOCUMENT_ROOT_TAG = "<potd-feed-document>"

# Private-use code point standing in for an unresolvable reference
UNRESOLVED_REFERENCE = "\uf8ff"
_UNRESOLVED_REFERENCE_EXTRA_BYTES = len(UNRESOLVED_REFERENCE.encode("utf-8")) - 1

_LEADING_JUNK = "\ufeff \t\r\n"
_PROLOG_RE = re.compile(
    r"(?:\s*(?:<\?.*?\?>|<!--.*?-->|<!DOCTYPE(?:[^\[>]|\[.*?\])*>))*", re.DOTALL
)
_VERBATIM_RE = re.compile(r"<!\[CDATA\[.*?\]\]>|<!--.*?-->|<\?.*?\?>", re.DOTALL)
_UNRESOLVED_REFERENCE_RE = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#[0-9]+|#x[0-9a-fA-F]+);)")

_NO_ELEMENTS_CODE = expat_errors.codes[expat_errors.XML_ERROR_NO_ELEMENTS]


class ParserState(enum.Enum):
    """Position of the scanner relative to the elements it cares about."""

    OUTSIDE = "outside"
    IN_ITEM = "in_item"
    IN_DESCRIPTION = "in_description"


def _element_name(tag: str) -> str:
    """Return the name a tag is matched by.

    Un-namespaced tags and RSS 1.0 tags match by their local name. Tags from
    any other namespace (``media:description`` and the like) keep their
    ``{uri}`` prefix and so never match.
    """
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        if uri == RSS_1_0_NAMESPACE:
            return local
    return tag


def extract_src(text: str) -> Optional[str]:
    """Return the value of the first ``src="..."`` in text, or None.

    The value must be closed by a double quote; an unterminated attribute
    yields None.
    """
    start = text.find(SRC_MARKER)
    if start < 0:
        return None
    start += len(SRC_MARKER)
    end = text.find(SRC_TERMINATOR, start)
    if end < 0:
        return None
    return text[start:end]


def _mark_unresolved_references(body: str) -> str:
    """Replace unresolvable ``&`` references outside CDATA, comments and PIs."""
    pieces: List[str] = []
    pos = 0
    for match in _VERBATIM_RE.finditer(body):
        markup = body[pos : match.start()]
        pieces.append(_UNRESOLVED_REFERENCE_RE.sub(UNRESOLVED_REFERENCE, markup))
        pieces.append(match.group(0))
        pos = match.end()
    pieces.append(_UNRESOLVED_REFERENCE_RE.sub(UNRESOLVED_REFERENCE, body[pos:]))
    return "".join(pieces)


class _PreparedFeed:
    """Feed text as handed to expat, with a map back to source positions."""

    def __init__(self, source: str) -> None:
        self.source = source
        stripped = source.lstrip(_LEADING_JUNK)
        self._lead_bytes = len(source[: len(source) - len(stripped)].encode("utf-8"))
        prolog_match = _PROLOG_RE.match(stripped)
        prolog = prolog_match.group(0) if prolog_match else ""
        self._prolog_bytes = len(prolog.encode("utf-8"))
        self._body = _mark_unresolved_references(stripped[len(prolog) :])
        self.text = prolog + DOCUMENT_ROOT_TAG + self._body

    def source_offset(self, fed_offset: int) -> int:
        """Translate a byte offset in ``text`` to a byte offset in ``source``."""
        if fed_offset <= self._prolog_bytes:
            return self._lead_bytes + fed_offset
        body_offset = max(0, fed_offset - self._prolog_bytes - len(DOCUMENT_ROOT_TAG))
        body_prefix = self._body.encode("utf-8")[:body_offset].decode("utf-8", errors="ignore")
        markers = body_prefix.count(UNRESOLVED_REFERENCE)
        return (
            self._lead_bytes
            + self._prolog_bytes
            + body_offset
            - markers * _UNRESOLVED_REFERENCE_EXTRA_BYTES
        )

    def position(self, source_offset: int) -> Tuple[int, int]:
        """Return the 1-based line and 0-based column of a source byte offset."""
        prefix = self.source.encode("utf-8")[:source_offset].decode("utf-8", errors="ignore")
        line = prefix.count("\n") + 1
        column = len(prefix) - (prefix.rfind("\n") + 1)
        return line, column


class _FeedEventTarget:
    """Parser target receiving start/end/data callbacks from expat.

    expat may split one run of character data into several ``data`` calls, so
    the fragments are buffered and handled as a single text event when the next
    tag (or the end of input) arrives.
    """

    def __init__(self) -> None:
        self.state = ParserState.OUTSIDE
        self.urls: List[str] = []
        self._text_parts: List[str] = []

    def start(self, tag: str, attrib) -> None:
        self.flush()
        name = _element_name(tag)
        if self.state is ParserState.OUTSIDE and name == ITEM_TAG:
            self.state = ParserState.IN_ITEM
            logger.debug("Found item")
        elif self.state is ParserState.IN_ITEM and name == DESCRIPTION_TAG:
            self.state = ParserState.IN_DESCRIPTION
            logger.debug("Found description")
        else:
            logger.debug("Found start tag: %r", name)

    def end(self, tag: str) -> None:
        self.flush()
        name = _element_name(tag)
        if self.state is ParserState.IN_ITEM and name == ITEM_TAG:
            self.state = ParserState.OUTSIDE
            logger.debug("End of item")
        elif self.state is ParserState.IN_DESCRIPTION and name == DESCRIPTION_TAG:
            self.state = ParserState.IN_ITEM
            logger.debug("End of description")
        else:
            logger.debug("Found end tag: %r", name)

    def data(self, data: str) -> None:
        self._text_parts.append(data)

    def close(self) -> List[str]:
        self.flush()
        return self.urls

    def flush(self) -> None:
        """Handle buffered character data as one text event."""
        if not self._text_parts:
            return
        text = "".join(self._text_parts).strip()
        self._text_parts = []
        if not text or self.state is not ParserState.IN_DESCRIPTION:
            return
        if UNRESOLVED_REFERENCE in text:
            logger.debug("Skipping description text with an unresolvable reference: %r", text)
            return
        url = extract_src(text)
        if url is None:
            logger.debug("No src attribute found in description text: %r", text)
            return
        logger.debug("Found image URL in description: %s", url)
        self.urls.append(url)


def _to_feed_parse_error(
    exc: DefusedXMLParseError, xml_parser: XMLParser, feed: _PreparedFeed
) -> FeedParseError:
    line: Optional[int] = None
    column: Optional[int] = None
    offset: Optional[int] = None
    expat_parser = getattr(xml_parser, "parser", None)
    byte_index = getattr(expat_parser, "ErrorByteIndex", -1)
    if isinstance(byte_index, int) and byte_index >= 0:
        offset = feed.source_offset(byte_index)
        line, column = feed.position(offset)
    else:
        position = getattr(exc, "position", None)
        if position:
            line, column = position
    return FeedParseError(f"Failed to parse feed XML: {exc}", line=line, column=column, offset=offset)


def parse(source: str) -> List[str]:
    """Parse feed markup and extract image URLs from item descriptions.

    Args:
        source: Complete feed document text

    Returns:
        Raw image URLs in document order

    Raises:
        FeedParseError: If the markup cannot be tokenized (an unterminated or
            mismatched tag, or a forbidden entity declaration). URLs collected
            before the failure are discarded.
    """
    if not source.strip():
        logger.debug("Feed source is empty; no URLs to extract")
        return []

    feed = _PreparedFeed(source)
    target = _FeedEventTarget()
    xml_parser = XMLParser(target=target)
    try:
        for pos in range(0, len(feed.text), FEED_CHUNK_SIZE):
            xml_parser.feed(feed.text[pos : pos + FEED_CHUNK_SIZE])
        xml_parser.close()
    except DefusedXMLParseError as exc:
        if getattr(exc, "code", None) != _NO_ELEMENTS_CODE:
            logger.error("Error parsing feed: %s", exc)
            raise _to_feed_parse_error(exc, xml_parser, feed) from exc
        # End of input with elements still open, the synthetic root at least
        target.close()
    except DefusedXmlException as exc:
        logger.error("Feed contains forbidden XML construct: %s", exc)
        raise FeedParseError(f"Feed contains forbidden XML construct: {exc}") from exc

    logger.debug("Extracted %d raw URL(s) from feed", len(target.urls))
    return target.urls
