"""Stamp a release version into an application's JSON config file."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec

from swaggerbot.logging import get_logger, log_info

DEFAULT_APP_CONFIG_PATH = "public/app-config.json"

logger = get_logger(__name__)


class AppVersionError(Exception):
    """Raised when the app config cannot be updated."""

    @classmethod
    def empty_version(cls) -> AppVersionError:
        """Return an error for a blank version."""
        return cls("APP_VERSION must not be empty")

    @classmethod
    def unreadable(cls, path: Path, detail: str) -> AppVersionError:
        """Return an error for a config file that could not be read."""
        return cls(f"Cannot read app config {path}: {detail}")

    @classmethod
    def not_an_object(cls, path: Path) -> AppVersionError:
        """Return an error for a config file whose top level is not an object."""
        return cls(f"App config {path} must contain a JSON object")


def set_app_version(version: str, path: str | Path = DEFAULT_APP_CONFIG_PATH) -> Path:
    """Set ``version`` in the JSON object stored at ``path``.

    Other keys keep their values and order; the file is rewritten with a
    two-space indent.

    Raises
    ------
    AppVersionError
        If ``version`` is blank or the file is missing, unreadable or not a
        JSON object.

    """
    if not version.strip():
        raise AppVersionError.empty_version()

    target = Path(path)
    try:
        document = msgspec.json.decode(target.read_bytes())
    except (OSError, msgspec.DecodeError) as exc:
        raise AppVersionError.unreadable(target, str(exc)) from exc
    if not isinstance(document, dict):
        raise AppVersionError.not_an_object(target)

    config = typ.cast("dict[str, object]", document)
    config["version"] = version
    target.write_bytes(msgspec.json.format(msgspec.json.encode(config), indent=2))
    log_info(logger, "Set version %s in %s", version, target)
    return target


__all__ = ["DEFAULT_APP_CONFIG_PATH", "AppVersionError", "set_app_version"]
