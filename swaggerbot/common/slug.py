"""Identifier and slug utilities.

Project and folder identifiers are extracted from remote URLs or manifest
fields and then used directly as path segments in the target repository and
in branch names. They are not filesystem paths, so they are validated here
rather than with ``pathlib``.
"""

from __future__ import annotations

import re

_UNSAFE_SEGMENT_CHARS = re.compile(r"[^a-z0-9._-]+")
_RESERVED_SEGMENTS = frozenset({".", ".."})


def path_segment(value: str) -> str:
    """Normalise a project or folder identifier into a safe path segment.

    The value is lower-cased and stripped; runs of characters outside
    ``[a-z0-9._-]`` collapse into a single ``-``.

    Parameters
    ----------
    value:
        Raw identifier, typically a regex capture group or manifest field.

    Returns
    -------
    str
        Slug usable as a single repository path segment.

    Raises
    ------
    ValueError
        If the value is empty after normalisation or is a relative path
        reference such as ``..``.

    Examples
    --------
    >>> path_segment("Orders")
    'orders'
    >>> path_segment("sales orders/v2")
    'sales-orders-v2'

    """
    lowered = value.strip().lower()
    slug = _UNSAFE_SEGMENT_CHARS.sub("-", lowered).strip("-")
    if not slug or slug in _RESERVED_SEGMENTS or ".." in slug:
        msg = f"Invalid path segment: {value!r}"
        raise ValueError(msg)
    return slug


def repo_slug(owner: str, name: str) -> str:
    """Build a repository slug from owner and name.

    Examples
    --------
    >>> repo_slug("acme", "api-swagger-repos")
    'acme/api-swagger-repos'

    """
    return f"{owner}/{name}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into owner and name.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("acme/api-swagger-repos")
    ('acme', 'api-swagger-repos')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name
