"""Point a sub-application build at its versioned deployment path.

The deployment path of a build is derived from the app version and the
pipeline settings::

    indexPath  = APP_PATH
    assetPath  = {indexPath}/{APP_ENV}-{version with "." -> "_"}-{APP_BUILD_VERSION}
    publicPath = {APP_DOMAIN}{assetPath}

The first occurrence of a placeholder key in the webpack (or vue) config is
replaced with the quoted ``"{publicPath}/"``, and every value is written to
``cicd.json`` for the deployment stage.
"""

from __future__ import annotations

from pathlib import Path

import msgspec

from swaggerbot.appversion import DEFAULT_APP_CONFIG_PATH
from swaggerbot.logging import get_logger, log_debug, log_info

DEFAULT_WEBPACK_FILE = "vue.config.js"
DEFAULT_OUTPUT_FILE = "cicd.json"

logger = get_logger(__name__)


class CiFlowError(Exception):
    """Raised when the build cannot be prepared for deployment."""

    @classmethod
    def unreadable(cls, path: Path, detail: str) -> CiFlowError:
        """Return an error for a file that could not be read or decoded."""
        return cls(f"Cannot read {path}: {detail}")

    @classmethod
    def missing_version(cls, path: Path) -> CiFlowError:
        """Return an error for a version file without a ``version`` value."""
        return cls(f"version is not found in {path}")

    @classmethod
    def missing_replace_key(cls, path: Path, key: str) -> CiFlowError:
        """Return an error for a config that does not contain the placeholder."""
        return cls(f"Replace key {key!r} not found in {path}")


class _VersionedFile(msgspec.Struct):
    version: str | None = None


class DeployPaths(msgspec.Struct, kw_only=True, frozen=True):
    """Paths and settings of one build, as written to ``cicd.json``."""

    public_path: str = msgspec.field(name="publicPath")
    asset_path: str = msgspec.field(name="assetPath")
    index_path: str = msgspec.field(name="indexPath")
    version: str
    app_domain: str = msgspec.field(name="APP_DOMAIN")
    app_path: str = msgspec.field(name="APP_PATH")
    app_build_version: str = msgspec.field(name="APP_BUILD_VERSION")
    app_env: str = msgspec.field(name="APP_ENV")
    app_version: str = msgspec.field(name="APP_VERSION")


def read_version(path: str | Path) -> str:
    """Return the ``version`` stored in a JSON file.

    Raises
    ------
    CiFlowError
        If the file cannot be read or decoded, or has no version.

    """
    target = Path(path)
    try:
        document = msgspec.json.decode(target.read_bytes(), type=_VersionedFile)
    except (OSError, msgspec.DecodeError) as exc:
        raise CiFlowError.unreadable(target, str(exc)) from exc
    if not document.version:
        raise CiFlowError.missing_version(target)
    return document.version


def build_deploy_paths(
    version: str,
    *,
    app_domain: str,
    app_path: str,
    app_env: str,
    app_build_version: str,
) -> DeployPaths:
    """Derive the index, asset and public paths of a build.

    >>> paths = build_deploy_paths(
    ...     "1.2.0",
    ...     app_domain="https://cdn.example.test",
    ...     app_path="/portal",
    ...     app_env="uat",
    ...     app_build_version="42",
    ... )
    >>> paths.public_path
    'https://cdn.example.test/portal/uat-1_2_0-42'

    """
    app_version = version.replace(".", "_")
    index_path = app_path
    asset_path = f"{index_path}/{app_env}-{app_version}-{app_build_version}"
    return DeployPaths(
        public_path=f"{app_domain}{asset_path}",
        asset_path=asset_path,
        index_path=index_path,
        version=version,
        app_domain=app_domain,
        app_path=app_path,
        app_build_version=app_build_version,
        app_env=app_env,
        app_version=app_version,
    )


def replace_public_path(path: str | Path, key: str, public_path: str) -> Path:
    """Replace the first ``key`` in a config file with ``"{public_path}/"``."""
    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise CiFlowError.unreadable(target, str(exc)) from exc
    if key not in text:
        raise CiFlowError.missing_replace_key(target, key)
    target.write_text(text.replace(key, f'"{public_path}/"', 1), encoding="utf-8")
    log_debug(logger, "Replaced %s in %s", key, target)
    return target


def run_ci_flow(  # noqa: PLR0913
    *,
    app_domain: str,
    app_path: str,
    app_env: str,
    app_build_version: str,
    replace_key: str,
    webpack_file: str | Path = DEFAULT_WEBPACK_FILE,
    version_file: str | Path = DEFAULT_APP_CONFIG_PATH,
    output_file: str | Path = DEFAULT_OUTPUT_FILE,
) -> DeployPaths:
    """Rewrite the webpack public path and record the deployment paths."""
    paths = build_deploy_paths(
        read_version(version_file),
        app_domain=app_domain,
        app_path=app_path,
        app_env=app_env,
        app_build_version=app_build_version,
    )
    replace_public_path(webpack_file, replace_key, paths.public_path)
    Path(output_file).write_bytes(msgspec.json.encode(paths))
    log_info(logger, "Public path set to %s", paths.public_path)
    return paths


__all__ = [
    "DEFAULT_OUTPUT_FILE",
    "DEFAULT_WEBPACK_FILE",
    "CiFlowError",
    "DeployPaths",
    "build_deploy_paths",
    "read_version",
    "replace_public_path",
    "run_ci_flow",
]
