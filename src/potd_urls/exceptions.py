"""Custom exceptions for potd_urls.

Both ways a pipeline run can fail are modelled as subclasses of a single base
type so callers only need to catch one exception at the pipeline boundary.

Exception Hierarchy:
    PotdError (base)
    ├── FeedFetchError - Network errors or unexpected HTTP status
    └── FeedParseError - Feed markup that cannot be tokenized

URLs dropped by the extension whitelist or lacking a width token are not
errors; they are logged and skipped inside the pipeline.
"""

from typing import Optional


class PotdError(Exception):
    """Base exception for all pipeline failures.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
    """

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with suggestion."""
        parts = [self.message]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " ".join(parts)


class FeedFetchError(PotdError):
    """Raised when the feed cannot be retrieved.

    Common causes:
    - DNS or connection failures
    - Request timeouts
    - Any HTTP status other than 200

    Example:
        >>> raise FeedFetchError(
        ...     url="https://example.com/feed.xml",
        ...     status_code=503,
        ... )
    """

    def __init__(
        self,
        url: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.cause = cause
        if status_code is not None:
            message = f"Failed to fetch {url}: unexpected HTTP status {status_code}"
        elif cause is not None:
            message = f"Failed to fetch {url}: {cause}"
        else:
            message = f"Failed to fetch {url}"
        super().__init__(message=message, suggestion=suggestion)


class FeedParseError(PotdError):
    """Raised when the feed markup cannot be tokenized.

    Attributes:
        line: 1-based line of the failure, when the tokenizer reports one
        column: 0-based column of the failure, when the tokenizer reports one
        offset: Byte offset (UTF-8) of the failure in the source, when known
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> None:
        self.line = line
        self.column = column
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message=message)
