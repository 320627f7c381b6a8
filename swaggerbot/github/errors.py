"""GitHub REST API errors."""

from __future__ import annotations

import msgspec

from swaggerbot.http.errors import HttpError, truncate_body

_HTTP_NOT_FOUND = 404


class _ErrorBody(msgspec.Struct):
    message: str = ""


def _api_message(body: str) -> str:
    """Return GitHub's JSON ``message`` field, or the raw (truncated) body."""
    try:
        decoded = msgspec.json.decode(body, type=_ErrorBody)
    except msgspec.DecodeError:
        return truncate_body(body)
    return decoded.message or truncate_body(body)


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        """Initialise with a message, optional HTTP status code and body."""
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @classmethod
    def from_http_error(cls, operation: str, error: HttpError) -> GitHubAPIError:
        """Return an error for a failed REST call.

        A 404 response maps to :class:`GitHubNotFoundError` so callers can
        treat a missing branch or file as state rather than failure.
        """
        error_cls = GitHubNotFoundError if error.status_code == _HTTP_NOT_FOUND else cls
        message = _api_message(error.body)
        return error_cls(
            f"GitHub {operation} failed with HTTP {error.status_code}: {message}",
            status_code=error.status_code,
            body=error.body,
        )

    @classmethod
    def unexpected_payload(cls, operation: str, detail: str) -> GitHubAPIError:
        """Return an error for a 2xx response that cannot be decoded."""
        return cls(f"GitHub {operation} returned an unexpected payload: {detail}")


class GitHubNotFoundError(GitHubAPIError):
    """Raised when a branch, file or other resource does not exist."""


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
