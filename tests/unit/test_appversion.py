"""Unit tests for stamping the app version into its config file."""

from __future__ import annotations

import json
import typing as typ

import pytest

from swaggerbot.appversion import AppVersionError, set_app_version

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "app-config.json"
    path.write_text(content, encoding="utf-8")
    return path


def test_sets_version_and_keeps_other_keys(tmp_path: Path) -> None:
    """Only ``version`` changes; key order is kept."""
    path = _write(
        tmp_path, '{"name":"portal","version":"1.0.0","api":{"base":"/api"}}'
    )

    assert set_app_version("1.2.0-5", path) == path

    text = path.read_text(encoding="utf-8")
    assert json.loads(text) == {
        "name": "portal",
        "version": "1.2.0-5",
        "api": {"base": "/api"},
    }
    assert list(json.loads(text)) == ["name", "version", "api"]
    assert '\n  "name": "portal"' in text


def test_adds_missing_version(tmp_path: Path) -> None:
    """A config without ``version`` gains one."""
    path = _write(tmp_path, '{"name":"portal"}')

    set_app_version("2.0.0", str(path))

    assert json.loads(path.read_text(encoding="utf-8"))["version"] == "2.0.0"


def test_blank_version_is_rejected(tmp_path: Path) -> None:
    """A blank version leaves the file untouched."""
    path = _write(tmp_path, '{"version":"1.0.0"}')

    with pytest.raises(AppVersionError, match="must not be empty"):
        set_app_version("  ", path)

    assert path.read_text(encoding="utf-8") == '{"version":"1.0.0"}'


@pytest.mark.parametrize(
    ("content", "expected"),
    [("[1, 2]", "must contain a JSON object"), ("{oops", "Cannot read app config")],
)
def test_invalid_config(tmp_path: Path, content: str, expected: str) -> None:
    """Configs that are not JSON objects are rejected."""
    path = _write(tmp_path, content)

    with pytest.raises(AppVersionError, match=expected):
        set_app_version("1.0.0", path)


def test_missing_config(tmp_path: Path) -> None:
    """A missing file is reported with its path."""
    with pytest.raises(AppVersionError, match="absent.json"):
        set_app_version("1.0.0", tmp_path / "absent.json")
