"""Spec sources and their resolution into spec items."""

from __future__ import annotations

from .errors import ManifestError, SpecSourceError
from .models import (
    DEFAULT_KEY_PATTERN,
    DEFAULT_VERSION_PATTERN,
    IdentityStrategy,
    Manifest,
    ManifestEntry,
    ManifestSource,
    ModuleIdentity,
    RegexIdentity,
    SpecItem,
    SpecSource,
    UrlSource,
    source_from_settings,
)
from .resolver import MAX_MANIFEST_DEPTH, SpecSourceResolver

__all__ = [
    "DEFAULT_KEY_PATTERN",
    "DEFAULT_VERSION_PATTERN",
    "MAX_MANIFEST_DEPTH",
    "IdentityStrategy",
    "Manifest",
    "ManifestEntry",
    "ManifestError",
    "ManifestSource",
    "ModuleIdentity",
    "RegexIdentity",
    "SpecItem",
    "SpecSource",
    "SpecSourceError",
    "SpecSourceResolver",
    "UrlSource",
    "source_from_settings",
]
