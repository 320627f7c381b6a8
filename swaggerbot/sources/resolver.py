"""Resolve spec sources into spec items.

Resolution never raises for a single bad source: fetch, identity and manifest
problems are logged and turned into placeholder :class:`SpecItem` values so
the rest of the batch still runs.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import msgspec

from swaggerbot.http.errors import FetchError
from swaggerbot.logging import BoundLogger, bound_logger

from .errors import ManifestError, SpecSourceError
from .models import (
    UNKNOWN_IDENTIFIER,
    Manifest,
    ManifestEntry,
    ManifestSource,
    SpecItem,
    UrlSource,
)

if typ.TYPE_CHECKING:
    from swaggerbot.http.client import RetryingHTTPClient

    from .models import SpecSource

MAX_MANIFEST_DEPTH = 8
_TAG = "sources.resolve"


class SpecSourceResolver:
    """Fetch spec documents and derive their identities.

    Parameters
    ----------
    http
        Retrying client used to fetch documents.
    logger
        Logger for resolution events.
    max_depth
        Deepest level of nested ``items`` lists followed in a manifest.

    """

    def __init__(
        self,
        http: RetryingHTTPClient,
        *,
        logger: BoundLogger | None = None,
        max_depth: int = MAX_MANIFEST_DEPTH,
    ) -> None:
        """Initialise the resolver."""
        self._http = http
        self._log = logger or bound_logger(__name__)
        self._max_depth = max_depth

    async def resolve(self, source: SpecSource) -> list[SpecItem]:
        """Resolve ``source`` into a flat list of spec items."""
        match source:
            case ManifestSource(path=path):
                return await self._resolve_manifest(path)
            case UrlSource():
                return [await self._resolve_url(source)]
        msg = f"Unsupported spec source: {source!r}"
        raise TypeError(msg)

    async def _resolve_url(self, source: UrlSource) -> SpecItem:
        origin = source.url or UNKNOWN_IDENTIFIER
        try:
            url = source.identity.fetch_url(source.url)
            project, folder = source.identity.identify(source.url)
        except SpecSourceError as exc:
            self._log.error(_TAG, "Invalid spec source", url=origin, error=str(exc))
            return SpecItem.placeholder(origin, str(exc))

        self._log.info(
            _TAG,
            "Resolving spec source",
            strategy=type(source.identity).__name__,
            url=url,
            project=project,
            folder=folder,
        )
        try:
            content = await self._http.call("GET", url)
        except FetchError as exc:
            self._log.error(
                _TAG, "Failed to fetch swagger data", url=url, error=str(exc)
            )
            return SpecItem.placeholder(url, str(exc), project=project, folder=folder)

        if not content:
            error = SpecSourceError.empty_content(url)
            self._log.error(_TAG, "No data received from URL", url=url)
            return SpecItem.placeholder(url, str(error), project=project, folder=folder)

        self._log.info(
            _TAG,
            "Swagger data fetched successfully",
            url=url,
            data_length=len(content),
            project=project,
            folder=folder,
        )
        return SpecItem(
            project=project,
            folder=folder,
            raw_content=content,
            source_url=url,
        )

    def _load_manifest(self, path: str) -> list[msgspec.Raw]:
        try:
            raw = Path(path).read_bytes()
        except OSError as exc:
            raise ManifestError.unreadable(path, str(exc)) from exc
        try:
            manifest = msgspec.json.decode(raw, type=Manifest)
        except msgspec.DecodeError as exc:
            raise ManifestError.invalid_json(path, str(exc)) from exc
        entries = manifest.entries
        if entries is None:
            raise ManifestError.missing_items(path)
        return entries

    async def _resolve_manifest(self, path: str) -> list[SpecItem]:
        self._log.info(_TAG, "Loading swagger list from file", file=path)
        try:
            entries = self._load_manifest(path)
        except ManifestError as exc:
            self._log.error(_TAG, "Invalid swagger manifest", file=path, error=str(exc))
            return [SpecItem.placeholder(path, str(exc))]

        self._log.info(
            _TAG, f"Loaded {len(entries)} items from swagger list", file=path
        )
        return await self._resolve_entries(entries, depth=1, origin=path)

    async def _resolve_entries(
        self, entries: list[msgspec.Raw], *, depth: int, origin: str
    ) -> list[SpecItem]:
        if depth > self._max_depth:
            error = ManifestError.too_deep(origin, self._max_depth)
            self._log.error(_TAG, "Manifest nesting too deep", file=origin, depth=depth)
            return [SpecItem.placeholder(origin, str(error))]

        groups = await asyncio.gather(
            *(
                self._resolve_entry(raw, index=index, depth=depth, origin=origin)
                for index, raw in enumerate(entries)
            )
        )
        return [item for group in groups for item in group]

    async def _resolve_entry(
        self, raw: msgspec.Raw, *, index: int, depth: int, origin: str
    ) -> list[SpecItem]:
        try:
            entry = msgspec.json.decode(raw, type=ManifestEntry)
        except msgspec.DecodeError as exc:
            error = ManifestError.invalid_entry(origin, index, str(exc))
            self._log.error(
                _TAG, "Invalid manifest entry", file=origin, index=index, error=str(exc)
            )
            return [SpecItem.placeholder(origin, str(error))]
        if entry.items is not None:
            return await self._resolve_entries(
                entry.items, depth=depth + 1, origin=origin
            )
        return [await self._resolve_url(entry.to_source())]
