"""Spec sources, identity strategies and resolved spec items.

A spec source names where an OpenAPI document comes from and how its
``project``/``folder`` identity is derived. Two identity strategies exist:

``RegexIdentity``
    Capture group 1 of ``key_pattern`` and ``version_pattern`` searched in
    the document URL.
``ModuleIdentity``
    Explicit ``project_name``/``folder_name`` with the fetch URL built from
    ``base_url``, ``module`` and ``definition``.

The strategy is chosen once, when the source is built, from the fields that
are present.
"""

from __future__ import annotations

import dataclasses
import re
import typing as typ
from urllib.parse import urlencode

import msgspec

from swaggerbot.common.slug import path_segment

from .errors import SpecSourceError

DEFAULT_KEY_PATTERN = "atg-(.*?)-dev"
DEFAULT_VERSION_PATTERN = "swagger/(.*?)/swagger"
PROJECT_FALLBACK = "notfound"
FOLDER_FALLBACK = "0.0"
UNKNOWN_IDENTIFIER = "unknown"


def _segment(field: str, value: str) -> str:
    try:
        return path_segment(value)
    except ValueError as exc:
        raise SpecSourceError.invalid_identifier(field, value) from exc


class IdentityStrategy(typ.Protocol):
    """Derives the fetch URL and ``(project, folder)`` of a source."""

    def fetch_url(self, url: str | None) -> str:
        """Return the URL the document is fetched from."""
        ...

    def identify(self, url: str | None) -> tuple[str, str]:
        """Return the sanitised ``(project, folder)`` pair."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class RegexIdentity:
    """Identity taken from regex capture groups applied to the URL."""

    key_pattern: str = DEFAULT_KEY_PATTERN
    version_pattern: str = DEFAULT_VERSION_PATTERN

    def fetch_url(self, url: str | None) -> str:
        """Return ``url`` unchanged; a regex source must have one."""
        if not url:
            raise SpecSourceError.missing_url()
        return url

    def identify(self, url: str | None) -> tuple[str, str]:
        """Extract project and folder, falling back to ``notfound``/``0.0``."""
        target = url or ""
        project = _first_group(self.key_pattern, target) or PROJECT_FALLBACK
        folder = _first_group(self.version_pattern, target) or FOLDER_FALLBACK
        return _segment("project", project), _segment("folder", folder)


def _first_group(pattern: str, text: str) -> str | None:
    match = re.search(pattern, text)
    if match is None or match.re.groups < 1:
        return None
    return match.group(1) or None


@dataclasses.dataclass(frozen=True, slots=True)
class ModuleIdentity:
    """Identity given explicitly, with a module/definition query URL."""

    base_url: str
    module: str
    definition: str
    project_name: str
    folder_name: str

    def fetch_url(self, url: str | None) -> str:
        """Build ``{base_url}?module=...&definition=...``; ``url`` is unused."""
        del url
        separator = "&" if "?" in self.base_url else "?"
        query = urlencode({"module": self.module, "definition": self.definition})
        return f"{self.base_url}{separator}{query}"

    def identify(self, url: str | None) -> tuple[str, str]:
        """Return the configured project and folder names."""
        del url
        return (
            _segment("project", self.project_name),
            _segment("folder", self.folder_name),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class UrlSource:
    """A single document fetched over HTTP."""

    url: str | None
    identity: IdentityStrategy = dataclasses.field(default_factory=RegexIdentity)


@dataclasses.dataclass(frozen=True, slots=True)
class ManifestSource:
    """A JSON manifest file listing several sources."""

    path: str


SpecSource: typ.TypeAlias = UrlSource | ManifestSource


class SpecItem(msgspec.Struct, kw_only=True, frozen=True):
    """One resolved OpenAPI document.

    Attributes
    ----------
    project
        Sanitised project slug, used as the first repository path segment.
    folder
        Sanitised folder slug, used as the second path segment.
    raw_content
        Fetched document text. ``None`` marks a placeholder for a source
        that failed to resolve.
    source_url
        URL (or manifest path) the item came from.
    error
        Why resolution failed, for placeholders.

    """

    project: str
    folder: str
    raw_content: str | None
    source_url: str
    error: str | None = None

    @property
    def is_placeholder(self) -> bool:
        """Return ``True`` when the item carries no document."""
        return self.raw_content is None

    @classmethod
    def placeholder(
        cls,
        source_url: str,
        error: str,
        *,
        project: str = UNKNOWN_IDENTIFIER,
        folder: str = UNKNOWN_IDENTIFIER,
    ) -> SpecItem:
        """Return an item standing in for a source that failed to resolve."""
        return cls(
            project=project,
            folder=folder,
            raw_content=None,
            source_url=source_url,
            error=error,
        )


class ManifestEntry(msgspec.Struct, kw_only=True):
    """One entry of a swagger manifest.

    Entries with ``baseUrl``, ``module``, ``definition``, ``projectName`` and
    ``folderName`` all set use :class:`ModuleIdentity`; other entries use
    :class:`RegexIdentity` with the given or default patterns. An entry with
    ``items`` is a nested list and is resolved recursively. Nested entries
    stay raw JSON until resolved, so one malformed entry fails alone.
    """

    url: str | None = None
    key_pattern: str | None = msgspec.field(default=None, name="keyRegEx")
    version_pattern: str | None = msgspec.field(default=None, name="verRegEx")
    base_url: str | None = msgspec.field(default=None, name="baseUrl")
    module: str | None = None
    definition: str | None = None
    project_name: str | None = msgspec.field(default=None, name="projectName")
    folder_name: str | None = msgspec.field(default=None, name="folderName")
    items: list[msgspec.Raw] | None = None

    def identity(self) -> IdentityStrategy:
        """Select the identity strategy from the fields that are present."""
        if (
            self.base_url
            and self.module
            and self.definition
            and self.project_name
            and self.folder_name
        ):
            return ModuleIdentity(
                base_url=self.base_url,
                module=self.module,
                definition=self.definition,
                project_name=self.project_name,
                folder_name=self.folder_name,
            )
        return RegexIdentity(
            key_pattern=self.key_pattern or DEFAULT_KEY_PATTERN,
            version_pattern=self.version_pattern or DEFAULT_VERSION_PATTERN,
        )

    def to_source(self) -> UrlSource:
        """Return the URL source described by this entry."""
        return UrlSource(url=self.url, identity=self.identity())


class Manifest(msgspec.Struct, kw_only=True):
    """Top-level manifest document. ``atgList`` is the legacy list key.

    Entries are kept as raw JSON and decoded one by one during resolution.
    """

    items: list[msgspec.Raw] | None = None
    legacy_items: list[msgspec.Raw] | None = msgspec.field(
        default=None, name="atgList"
    )

    @property
    def entries(self) -> list[msgspec.Raw] | None:
        """Return the entry list, preferring ``items``."""
        return self.items if self.items is not None else self.legacy_items


def source_from_settings(
    swagger_url: str | None, swagger_file: str | None
) -> SpecSource | None:
    """Return the configured source; a URL takes precedence over a file."""
    if swagger_url:
        return UrlSource(url=swagger_url)
    if swagger_file:
        return ManifestSource(path=swagger_file)
    return None
