"""Translate GitHub web and raw URLs into REST contents URLs."""

from __future__ import annotations

import dataclasses
import re
from urllib.parse import quote

API_ROOT = "https://api.github.com"

_BLOB_URL = re.compile(
    r"github\.com/(?P<org>[^/]+)/(?P<repo>[^/]+)/blob/(?P<rest>.+)"
)
_RAW_URL = re.compile(
    r"raw\.githubusercontent\.com/(?P<org>[^/]+)/(?P<repo>[^/]+)/(?P<rest>.+)"
)


def contents_url(owner: str, repo: str, path: str, ref: str | None = None) -> str:
    """Return the REST contents URL for ``path``, optionally pinned to ``ref``.

    >>> contents_url("acme", "specs", "orders/v2/swagger.json", "main")
    'https://api.github.com/repos/acme/specs/contents/orders/v2/swagger.json?ref=main'

    """
    url = f"{API_ROOT}/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"
    if ref:
        url = f"{url}?ref={quote(ref, safe='')}"
    return url


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubFileLocation:
    """A file in a GitHub repository, optionally pinned to a ref."""

    owner: str
    repo: str
    path: str
    ref: str | None = None

    @property
    def api_url(self) -> str:
        """Return the REST contents URL of the file."""
        return contents_url(self.owner, self.repo, self.path, self.ref)


def _split_ref_and_path(rest: str) -> tuple[str, str]:
    branch, _, path = rest.split("?", 1)[0].partition("/")
    if not branch or not path:
        msg = f"GitHub URL is missing a branch or path: {rest!r}"
        raise ValueError(msg)
    return branch, path


def _is_github_web_url(url: str) -> bool:
    return "raw.githubusercontent.com" in url or (
        "github.com" in url and "api.github.com" not in url
    )


def locate_github_file(url: str, ref: str | None = None) -> GitHubFileLocation:
    """Parse a GitHub blob or raw URL into a file location.

    ``https://github.com/{org}/{repo}/blob/{branch}/{path}`` and
    ``https://raw.githubusercontent.com/{org}/{repo}/{branch}/{path}`` are
    both supported. ``ref`` overrides the branch named in the URL. Branch
    names that contain ``/`` cannot be told apart from the path and are not
    supported.

    Raises
    ------
    ValueError
        If ``url`` is not a GitHub file URL or lacks the owner, repository,
        branch or path.

    """
    pattern = _RAW_URL if "raw.githubusercontent.com" in url else _BLOB_URL
    match = pattern.search(url) if _is_github_web_url(url) else None
    if match is None:
        msg = f"Unrecognised GitHub file URL: {url!r}"
        raise ValueError(msg)

    branch, path = _split_ref_and_path(match["rest"])
    return GitHubFileLocation(
        owner=match["org"], repo=match["repo"], path=path, ref=ref or branch
    )


def parse_github_file_url(url: str, ref: str | None = None) -> str:
    """Convert a GitHub blob or raw URL into a REST contents URL.

    Any URL that is not a GitHub web or raw URL is returned unchanged.

    Examples
    --------
    >>> parse_github_file_url("https://github.com/acme/specs/blob/main/a/b.json")
    'https://api.github.com/repos/acme/specs/contents/a/b.json?ref=main'
    >>> parse_github_file_url("https://example.com/swagger.json")
    'https://example.com/swagger.json'

    """
    if not _is_github_web_url(url):
        return url
    return locate_github_file(url, ref).api_url
