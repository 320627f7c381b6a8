"""Unit tests for identifier and repository slug utilities."""

from __future__ import annotations

import pytest

from swaggerbot.common.slug import parse_repo_slug, path_segment, repo_slug


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("orders", "orders"),
        ("Orders", "orders"),
        ("  v2 ", "v2"),
        ("sales orders/v2", "sales-orders-v2"),
        ("1.2.0-5", "1.2.0-5"),
        ("a__b", "a__b"),
        ("--x--", "x"),
    ],
)
def test_path_segment_normalises(raw: str, expected: str) -> None:
    """Identifiers are lower-cased and unsafe runs collapse to ``-``."""
    assert path_segment(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "///", ".", "..", "a..b", "../etc"])
def test_path_segment_rejects_unsafe_values(raw: str) -> None:
    """Empty and relative-path identifiers are rejected."""
    with pytest.raises(ValueError, match="Invalid path segment"):
        path_segment(raw)


def test_repo_slug_combines_owner_and_name() -> None:
    """repo_slug returns owner/name format."""
    assert repo_slug("acme", "api-swagger-repos") == "acme/api-swagger-repos"


def test_parse_repo_slug_splits_owner_and_name() -> None:
    """parse_repo_slug returns (owner, name) for valid slugs."""
    assert parse_repo_slug("acme/api-swagger-repos") == ("acme", "api-swagger-repos")
    assert parse_repo_slug("Owner-Org/Repo_Name") == ("Owner-Org", "Repo_Name")


@pytest.mark.parametrize(
    "slug",
    ["", "/", "invalid", "owner/name/extra", "owner/", "/name", "owner//name"],
)
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """parse_repo_slug raises ValueError for invalid slugs."""
    with pytest.raises(ValueError, match="Invalid repository slug"):
        parse_repo_slug(slug)
