"""HTTP fetch errors."""

from __future__ import annotations

# Longest error body kept in log lines and exception messages.
ERROR_BODY_PREVIEW_LIMIT = 500
_HTTP_SERVER_ERROR = 500


def truncate_body(body: str, limit: int = ERROR_BODY_PREVIEW_LIMIT) -> str:
    """Return ``body`` cut to ``limit`` characters."""
    if len(body) > limit:
        return body[:limit] + "..."
    return body


class FetchError(RuntimeError):
    """Raised when a request cannot be completed."""

    def __init__(self, message: str, *, url: str) -> None:
        """Initialise with a message and the requested URL."""
        self.url = url
        super().__init__(message)

    @classmethod
    def network_error(cls, url: str, detail: str) -> FetchError:
        """Return an error for DNS, connection, TLS or timeout failures."""
        return cls(f"Network error requesting {url}: {detail}", url=url)


class HttpError(FetchError):
    """Raised for non-2xx responses.

    Attributes
    ----------
    status_code
        HTTP status code of the response.
    status_text
        Reason phrase of the response.
    body
        Full response body. Only :attr:`body_preview` is used in messages.

    """

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status_code: int,
        status_text: str,
        body: str,
    ) -> None:
        """Initialise with the response status and body."""
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(message, url=url)

    @property
    def body_preview(self) -> str:
        """Return the response body truncated for logging."""
        return truncate_body(self.body)

    @property
    def is_retryable(self) -> bool:
        """Return ``True`` for 5xx responses, which may succeed on retry."""
        return self.status_code >= _HTTP_SERVER_ERROR

    @classmethod
    def from_status(
        cls, url: str, status_code: int, status_text: str, body: str
    ) -> HttpError:
        """Return an error for a non-2xx response."""
        return cls(
            f"HTTP {status_code}: {status_text}",
            url=url,
            status_code=status_code,
            status_text=status_text,
            body=body,
        )
