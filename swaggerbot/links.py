"""Resolve a swagger-link manifest into download URLs.

A links manifest is a JSON object whose ``swagger`` member maps an output key
to a file path in the target repository::

    {"swagger": {"ORDERS_SWAGGER": "orders/v2/swagger.json"}}

Each path is looked up through the contents API on the requested branch and
reported as ``KEY=download_url``, followed by one combined line of quoted
``"KEY=url"`` pairs for build scripts that take them as arguments.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import msgspec

from swaggerbot.logging import BoundLogger, bound_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from swaggerbot.github.client import GitHubRepoClient
    from swaggerbot.http.client import RetryingHTTPClient

_TAG = "links.resolve"


class LinksError(Exception):
    """Raised when a links manifest cannot be loaded or resolved."""

    @classmethod
    def missing_source(cls) -> LinksError:
        """Return an error when neither a file nor a URL was given."""
        return cls("A config file path or config URL is required")

    @classmethod
    def unreadable(cls, origin: str, detail: str) -> LinksError:
        """Return an error for a manifest that could not be read."""
        return cls(f"Cannot read links config {origin}: {detail}")

    @classmethod
    def invalid_json(cls, origin: str, detail: str) -> LinksError:
        """Return an error for a manifest that is not a JSON object."""
        return cls(f"Links config {origin} is not valid JSON: {detail}")

    @classmethod
    def missing_swagger_key(cls, origin: str) -> LinksError:
        """Return an error for a manifest without a ``swagger`` map."""
        return cls(f"Cannot find key: swagger in {origin}")

    @classmethod
    def missing_download_url(cls, key: str, path: str) -> LinksError:
        """Return an error for a contents entry that has no download URL."""
        return cls(f"No download URL for {key} ({path})")


class _LinksConfig(msgspec.Struct):
    swagger: dict[str, str] | None = None


class SwaggerLink(msgspec.Struct, frozen=True):
    """Download URL resolved for one manifest key."""

    key: str
    url: str


def parse_links_config(raw: str | bytes, origin: str) -> dict[str, str]:
    """Return the ``swagger`` map of a links manifest.

    Raises
    ------
    LinksError
        If the document is not JSON or has no ``swagger`` object.

    """
    try:
        config = msgspec.json.decode(raw, type=_LinksConfig)
    except msgspec.DecodeError as exc:
        raise LinksError.invalid_json(origin, str(exc)) from exc
    if not config.swagger:
        raise LinksError.missing_swagger_key(origin)
    return config.swagger


async def load_links_config(
    *,
    http: RetryingHTTPClient,
    config_file: str | None = None,
    config_url: str | None = None,
) -> dict[str, str]:
    """Load the ``swagger`` map from a local file or, failing that, a URL."""
    if config_file:
        try:
            raw: str | bytes = Path(config_file).read_bytes()
        except OSError as exc:
            raise LinksError.unreadable(config_file, str(exc)) from exc
        return parse_links_config(raw, config_file)
    if config_url:
        raw = await http.call("GET", config_url)
        return parse_links_config(raw, config_url)
    raise LinksError.missing_source()


async def resolve_links(
    client: GitHubRepoClient,
    swagger: cabc.Mapping[str, str],
    *,
    ref: str,
    logger: BoundLogger | None = None,
) -> list[SwaggerLink]:
    """Look up the download URL of every manifest path, keeping key order.

    Raises
    ------
    LinksError
        If GitHub returns no download URL for a path.
    GitHubAPIError
        If a path cannot be read.

    """
    log = logger or bound_logger(__name__)

    async def _resolve(key: str, path: str) -> SwaggerLink:
        entry = await client.get_contents(path, ref)
        if not entry.download_url:
            raise LinksError.missing_download_url(key, path)
        log.debug(_TAG, "Resolved swagger link", key=key, path=path, ref=ref)
        return SwaggerLink(key=key, url=entry.download_url)

    links = await asyncio.gather(
        *(_resolve(key, path) for key, path in swagger.items())
    )
    log.info(_TAG, f"Resolved {len(links)} swagger link(s)", ref=ref)
    return list(links)


def render_links(links: cabc.Sequence[SwaggerLink]) -> list[str]:
    """Render ``KEY=url`` lines followed by the combined quoted line.

    >>> render_links([SwaggerLink("A", "u1"), SwaggerLink("B", "u2")])
    ['A=u1', 'B=u2', '"A=u1" "B=u2"']

    """
    lines = [f"{link.key}={link.url}" for link in links]
    lines.append(" ".join(f'"{line}"' for line in lines))
    return lines


__all__ = [
    "LinksError",
    "SwaggerLink",
    "load_links_config",
    "parse_links_config",
    "render_links",
    "resolve_links",
]
