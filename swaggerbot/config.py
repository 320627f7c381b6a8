"""Configuration for the swagger sync workflow.

This module provides the :class:`SyncConfig` dataclass, the single place where
configuration defaults are enumerated.

Usage
-----
Build a configuration from explicit values:

>>> config = SyncConfig.from_values(
...     github_token="ghp_example",
...     owner="acme",
...     repo="api-swagger-repos",
...     swagger_url="https://x/atg-orders-dev/swagger/v2/swagger.json",
... )
>>> config.branch_prefix
'swaggerbot'

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from swaggerbot.common.slug import repo_slug

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DEFAULT_BRANCH_PREFIX = "swaggerbot"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TIMEOUT_S = 30.0
REVIEWER_DELIMITER = "|"

_REQUIRED_ENV_VARS = ("GITHUB_PAT", "GITHUB_USER", "GITHUB_REPO")


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        """Initialise with a message and the names of missing variables."""
        self.missing = missing
        super().__init__(message)

    @classmethod
    def missing_variables(cls, names: cabc.Sequence[str]) -> ConfigError:
        """Return an error naming every missing required variable."""
        joined = ", ".join(names)
        return cls(
            f"Missing required environment variables: {joined}",
            missing=tuple(names),
        )

    @classmethod
    def missing_source(cls) -> ConfigError:
        """Return an error when neither swagger source is configured."""
        return cls(
            "SWAGGER_URL or SWAGGER_FILE is required",
            missing=("SWAGGER_URL", "SWAGGER_FILE"),
        )

    @classmethod
    def invalid_value(cls, name: str, value: str, constraint: str) -> ConfigError:
        """Return an error for a value that fails validation."""
        return cls(f"Invalid {name} {value!r}. {constraint}")


def split_reviewers(raw: str | None) -> tuple[str, ...]:
    """Split a pipe-delimited reviewer list, dropping blank entries.

    >>> split_reviewers("alice| bob||")
    ('alice', 'bob')

    """
    if not raw:
        return ()
    return tuple(
        name.strip() for name in raw.split(REVIEWER_DELIMITER) if name.strip()
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dc.dataclass(frozen=True, slots=True)
class SyncConfig:
    """Configuration for one swagger sync run.

    Attributes
    ----------
    github_token
        Personal access token used for every GitHub call (``GITHUB_PAT``).
    owner
        Owner of the target repository (``GITHUB_USER``).
    repo
        Name of the target repository (``GITHUB_REPO``).
    branch_prefix
        Prefix of sync branches (``GITHUB_BRANCH``). Default ``swaggerbot``.
    base_branch
        Branch that sync branches start from and merge into
        (``GITHUB_BRANCH_BASE``). Default ``main``.
    reviewers
        Reviewers requested on new pull requests (``GITHUB_REVIEWERS``,
        pipe-delimited). Default none.
    swagger_url
        Single swagger document URL (``SWAGGER_URL``).
    swagger_file
        Path of a manifest listing several sources (``SWAGGER_FILE``).
    max_attempts
        Attempts per HTTP call before giving up. Default 3.
    timeout_s
        Per-request timeout in seconds. Default 30.

    """

    github_token: str
    owner: str
    repo: str
    branch_prefix: str = DEFAULT_BRANCH_PREFIX
    base_branch: str = DEFAULT_BASE_BRANCH
    reviewers: tuple[str, ...] = ()
    swagger_url: str | None = None
    swagger_file: str | None = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    timeout_s: float = DEFAULT_TIMEOUT_S

    @property
    def repo_slug(self) -> str:
        """Return the ``owner/repo`` identifier of the target repository."""
        return repo_slug(self.owner, self.repo)

    def describe(self) -> dict[str, object]:
        """Return loggable configuration with secrets redacted."""
        return {
            "repo": self.repo_slug,
            "branch_prefix": self.branch_prefix,
            "base_branch": self.base_branch,
            "reviewers": "set" if self.reviewers else "not set",
            "swagger_url": "set" if self.swagger_url else "not set",
            "swagger_file": self.swagger_file or "not set",
        }

    @classmethod
    def from_values(  # noqa: PLR0913
        cls,
        *,
        github_token: str | None,
        owner: str | None,
        repo: str | None,
        branch_prefix: str | None = None,
        base_branch: str | None = None,
        reviewers: str | None = None,
        swagger_url: str | None = None,
        swagger_file: str | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> SyncConfig:
        """Validate raw values and apply defaults.

        Raises
        ------
        ConfigError
            If a required value is missing, neither swagger source is set, or
            a numeric value is out of range.

        """
        required = dict(
            zip(
                _REQUIRED_ENV_VARS,
                (_clean(github_token), _clean(owner), _clean(repo)),
                strict=True,
            )
        )
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ConfigError.missing_variables(missing)

        url = _clean(swagger_url)
        file = _clean(swagger_file)
        if url is None and file is None:
            raise ConfigError.missing_source()

        if max_attempts < 1:
            raise ConfigError.invalid_value(
                "max_attempts", str(max_attempts), "Must be a positive integer"
            )
        if timeout_s <= 0:
            raise ConfigError.invalid_value(
                "timeout_s", str(timeout_s), "Must be a positive number"
            )

        return cls(
            github_token=typ.cast("str", required["GITHUB_PAT"]),
            owner=typ.cast("str", required["GITHUB_USER"]),
            repo=typ.cast("str", required["GITHUB_REPO"]),
            branch_prefix=_clean(branch_prefix) or DEFAULT_BRANCH_PREFIX,
            base_branch=_clean(base_branch) or DEFAULT_BASE_BRANCH,
            reviewers=split_reviewers(reviewers),
            swagger_url=url,
            swagger_file=file,
            max_attempts=max_attempts,
            timeout_s=timeout_s,
        )
