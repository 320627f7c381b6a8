"""Unit tests for sync configuration loading."""

from __future__ import annotations

import pytest

from swaggerbot.config import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT_S,
    ConfigError,
    SyncConfig,
    split_reviewers,
)


class TestFromValues:
    """Tests for validating explicit configuration values."""

    def test_defaults_are_applied(self) -> None:
        """Optional values fall back to their defaults."""
        config = SyncConfig.from_values(
            github_token="ghp_secret",
            owner="acme",
            repo="api-swagger-repos",
            swagger_url="https://x/spec.json",
        )

        assert config.branch_prefix == "swaggerbot"
        assert config.base_branch == "main"
        assert config.reviewers == ()
        assert config.max_attempts == DEFAULT_MAX_ATTEMPTS
        assert config.timeout_s == DEFAULT_TIMEOUT_S
        assert config.repo_slug == "acme/api-swagger-repos"

    def test_every_missing_variable_is_named(self) -> None:
        """The error lists all missing required variables at once."""
        with pytest.raises(ConfigError) as excinfo:
            SyncConfig.from_values(
                github_token=" ", owner=None, repo="r", swagger_url="u"
            )

        assert excinfo.value.missing == ("GITHUB_PAT", "GITHUB_USER")
        assert "GITHUB_PAT, GITHUB_USER" in str(excinfo.value)

    def test_a_swagger_source_is_required(self) -> None:
        """Neither a URL nor a manifest file is a configuration error."""
        with pytest.raises(ConfigError, match="SWAGGER_URL or SWAGGER_FILE"):
            SyncConfig.from_values(github_token="t", owner="o", repo="r")

    def test_blank_optional_values_use_defaults(self) -> None:
        """Blank strings, as unset CLI env vars arrive, behave like None."""
        config = SyncConfig.from_values(
            github_token="t",
            owner="o",
            repo="r",
            branch_prefix=" ",
            base_branch="",
            swagger_url="u",
            swagger_file=" ",
        )

        assert config.branch_prefix == "swaggerbot"
        assert config.base_branch == "main"
        assert config.swagger_file is None

    @pytest.mark.parametrize(
        ("field", "value"),
        [("max_attempts", 0), ("timeout_s", 0.0), ("timeout_s", -1.0)],
    )
    def test_numbers_must_be_positive(self, field: str, value: float) -> None:
        """Attempt counts and timeouts must be positive."""
        with pytest.raises(ConfigError, match=f"Invalid {field}"):
            SyncConfig.from_values(
                github_token="t",
                owner="o",
                repo="r",
                swagger_url="u",
                **{field: value},
            )


def test_describe_redacts_secrets() -> None:
    """The loggable view never contains the token."""
    config = SyncConfig.from_values(
        github_token="ghp_secret",
        owner="acme",
        repo="api-swagger-repos",
        reviewers="alice",
        swagger_file="swagger-list.json",
    )

    described = config.describe()

    assert "ghp_secret" not in repr(described)
    assert described["reviewers"] == "set"
    assert described["swagger_url"] == "not set"
    assert described["swagger_file"] == "swagger-list.json"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, ()),
        ("", ()),
        ("alice", ("alice",)),
        ("alice| bob ||", ("alice", "bob")),
    ],
)
def test_split_reviewers(raw: str | None, expected: tuple[str, ...]) -> None:
    """Reviewer lists are pipe-delimited with blanks dropped."""
    assert split_reviewers(raw) == expected
