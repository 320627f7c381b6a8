"""Errors raised while resolving spec sources."""

from __future__ import annotations


class SpecSourceError(Exception):
    """Raised when a spec source cannot be turned into a spec item."""

    @classmethod
    def missing_url(cls) -> SpecSourceError:
        """Return an error for a regex source without a URL."""
        return cls("Spec source has no URL to fetch")

    @classmethod
    def invalid_identifier(cls, field: str, value: str) -> SpecSourceError:
        """Return an error for a project or folder that is not a safe slug."""
        return cls(f"Invalid {field} identifier: {value!r}")

    @classmethod
    def empty_content(cls, url: str) -> SpecSourceError:
        """Return an error when a fetch returned no data."""
        return cls(f"No data received from {url}")


class ManifestError(SpecSourceError):
    """Raised when a manifest file cannot be read or has the wrong shape."""

    @classmethod
    def unreadable(cls, path: str, detail: str) -> ManifestError:
        """Return an error for a manifest that cannot be read."""
        return cls(f"Failed to read swagger manifest {path}: {detail}")

    @classmethod
    def invalid_json(cls, path: str, detail: str) -> ManifestError:
        """Return an error for a manifest that is not valid JSON."""
        return cls(f"Failed to parse swagger manifest {path}: {detail}")

    @classmethod
    def missing_items(cls, path: str) -> ManifestError:
        """Return an error for a manifest without an ``items`` list."""
        return cls(f"Swagger manifest {path} has no 'items' list")

    @classmethod
    def invalid_entry(cls, path: str, index: int, detail: str) -> ManifestError:
        """Return an error for one manifest entry of the wrong shape."""
        return cls(f"Invalid entry {index} in swagger manifest {path}: {detail}")

    @classmethod
    def too_deep(cls, path: str, max_depth: int) -> ManifestError:
        """Return an error for nested lists beyond the supported depth."""
        return cls(f"Swagger manifest {path} nests item lists deeper than {max_depth}")
