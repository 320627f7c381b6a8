"""Command-line interface for swaggerbot.

Usage:
    swaggerbot sync              # Sync swagger documents into the target repo
    swaggerbot links             # Print download URLs for a links manifest
    swaggerbot fetch-file        # Print a file from a private repository
    swaggerbot set-app-version   # Stamp a version into app-config.json
    swaggerbot ci-flow           # Point a build at its versioned public path

Every flag of ``sync`` can also be given through the environment variable
named in its help. Logging is configured from ``LOG_LEVEL`` (default
``INFO``) and ``LOG_FORMAT`` (``text`` or ``json``).

Exit codes: ``0`` on success, ``1`` when a sync item or command failed and
``2`` for configuration errors.
"""

from __future__ import annotations

import asyncio
import os
import sys
import typing as typ

from cyclopts import App, Parameter

from swaggerbot import __version__
from swaggerbot.appversion import (
    DEFAULT_APP_CONFIG_PATH,
    AppVersionError,
    set_app_version,
)
from swaggerbot.ciflow import (
    DEFAULT_OUTPUT_FILE,
    DEFAULT_WEBPACK_FILE,
    CiFlowError,
    run_ci_flow,
)
from swaggerbot.common.slug import parse_repo_slug
from swaggerbot.config import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT_S,
    ConfigError,
    SyncConfig,
)
from swaggerbot.github import (
    GitHubAPIError,
    GitHubFileLocation,
    GitHubRepoClient,
    GitHubRepoConfig,
    locate_github_file,
)
from swaggerbot.http import FetchError, RetryingHTTPClient
from swaggerbot.links import (
    LinksError,
    load_links_config,
    render_links,
    resolve_links,
)
from swaggerbot.logging import (
    LogFormat,
    bound_logger,
    configure_logging,
    get_logger,
    log_error,
    log_warning,
    normalize_log_format,
)
from swaggerbot.sources import SpecSourceResolver, source_from_settings
from swaggerbot.sync import SwaggerSyncWorkflow, SyncEventLogger

if typ.TYPE_CHECKING:
    import httpx

    from swaggerbot.sync import SyncSummary

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

logger = get_logger(__name__)

app = App(
    name="swaggerbot",
    help="Sync OpenAPI documents into a GitHub repository",
    version=__version__,
)


def _setup_logging() -> LogFormat:
    """Configure femtologging from the environment and return the format."""
    raw_level = os.environ.get("LOG_LEVEL", "INFO")
    normalized, invalid = configure_logging(raw_level)
    if invalid:
        log_warning(
            logger, "Invalid LOG_LEVEL %r, falling back to %s", raw_level, normalized
        )
    return normalize_log_format(os.environ.get("LOG_FORMAT"))


def _require_token(token: str | None) -> str:
    if token is None or not token.strip():
        raise ConfigError.missing_variables(["GITHUB_PAT"])
    return token.strip()


async def run_sync(
    config: SyncConfig,
    *,
    log_format: LogFormat = LogFormat.TEXT,
    http_client: httpx.AsyncClient | None = None,
) -> SyncSummary:
    """Resolve the configured sources and sync every item.

    Parameters
    ----------
    config
        Validated run configuration.
    log_format
        Rendering of structured log lines.
    http_client
        Optional ``httpx.AsyncClient``, mainly for tests.

    """
    root = bound_logger("swaggerbot", log_format)
    events = SyncEventLogger(root.bind(component="sync"))
    events.log_run_started(config)

    http = RetryingHTTPClient(
        http_client=http_client,
        timeout_s=config.timeout_s,
        max_attempts=config.max_attempts,
        logger=root.bind(component="http"),
    )
    try:
        source = source_from_settings(config.swagger_url, config.swagger_file)
        if source is None:
            raise ConfigError.missing_source()
        resolver = SpecSourceResolver(http, logger=root.bind(component="sources"))
        items = await resolver.resolve(source)
        events.log_items_resolved(items)

        client = GitHubRepoClient(
            GitHubRepoConfig.from_sync_config(config),
            http=http,
            logger=root.bind(component="github"),
        )
        workflow = SwaggerSyncWorkflow(client, config, logger=root)
        summary = await workflow.run(items)
    finally:
        await http.aclose()

    events.log_run_completed(summary)
    return summary


async def run_links(  # noqa: PLR0913
    *,
    token: str,
    owner: str,
    repo: str,
    branch: str,
    config_file: str | None = None,
    config_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> list[str]:
    """Load a links manifest and return the rendered output lines."""
    log = bound_logger("swaggerbot.links")
    http = RetryingHTTPClient(http_client=http_client, logger=log)
    try:
        swagger = await load_links_config(
            http=http, config_file=config_file, config_url=config_url
        )
        client = GitHubRepoClient(
            GitHubRepoConfig(token=token, owner=owner, repo=repo),
            http=http,
            logger=log,
        )
        links = await resolve_links(client, swagger, ref=branch, logger=log)
    finally:
        await http.aclose()
    return render_links(links)


async def run_fetch_file(
    token: str,
    location: GitHubFileLocation,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """Return the raw body of a file in a (possibly private) repository."""
    log = bound_logger("swaggerbot.fetch")
    http = RetryingHTTPClient(http_client=http_client, logger=log)
    try:
        client = GitHubRepoClient(
            GitHubRepoConfig(token=token, owner=location.owner, repo=location.repo),
            http=http,
            logger=log,
        )
        return await client.fetch_raw(location.api_url)
    finally:
        await http.aclose()


@app.command
def sync(  # noqa: PLR0913
    *,
    github_pat: typ.Annotated[str | None, Parameter(env_var="GITHUB_PAT")] = None,
    github_user: typ.Annotated[str | None, Parameter(env_var="GITHUB_USER")] = None,
    github_repo: typ.Annotated[str | None, Parameter(env_var="GITHUB_REPO")] = None,
    github_branch: typ.Annotated[
        str | None, Parameter(env_var="GITHUB_BRANCH")
    ] = None,
    github_branch_base: typ.Annotated[
        str | None, Parameter(env_var="GITHUB_BRANCH_BASE")
    ] = None,
    github_reviewers: typ.Annotated[
        str | None, Parameter(env_var="GITHUB_REVIEWERS")
    ] = None,
    swagger_url: typ.Annotated[str | None, Parameter(env_var="SWAGGER_URL")] = None,
    swagger_file: typ.Annotated[
        str | None, Parameter(env_var="SWAGGER_FILE")
    ] = None,
    max_attempts: typ.Annotated[
        int, Parameter(env_var="SWAGGERBOT_MAX_ATTEMPTS")
    ] = DEFAULT_MAX_ATTEMPTS,
    timeout_s: typ.Annotated[
        float, Parameter(env_var="SWAGGERBOT_TIMEOUT_S")
    ] = DEFAULT_TIMEOUT_S,
) -> int:
    """Sync swagger documents into the target repository.

    Each document gets a branch ``{prefix}/{project}/{folder}/{version}``;
    changed documents are committed and proposed in a pull request, and
    version-only changes are merged straight into the base branch. The run
    summary is printed as one JSON line.

    Args:
        github_pat: Personal access token for the target repository.
        github_user: Owner of the target repository.
        github_repo: Name of the target repository.
        github_branch: Prefix of sync branches (default ``swaggerbot``).
        github_branch_base: Base branch (default ``main``).
        github_reviewers: Pipe-delimited reviewers for new pull requests.
        swagger_url: URL of a single swagger document.
        swagger_file: Path of a manifest listing several sources.
        max_attempts: Attempts per HTTP call.
        timeout_s: Per-request timeout in seconds.

    Returns:
        Exit code (0 when no item failed, 1 otherwise, 2 for bad config).

    """
    log_format = _setup_logging()
    try:
        config = SyncConfig.from_values(
            github_token=github_pat,
            owner=github_user,
            repo=github_repo,
            branch_prefix=github_branch,
            base_branch=github_branch_base,
            reviewers=github_reviewers,
            swagger_url=swagger_url,
            swagger_file=swagger_file,
            max_attempts=max_attempts,
            timeout_s=timeout_s,
        )
    except ConfigError as exc:
        log_error(logger, "Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    summary = asyncio.run(run_sync(config, log_format=log_format))
    print(summary.to_json())
    return summary.exit_code


@app.command
def links(  # noqa: PLR0913
    *,
    github_pat: typ.Annotated[str | None, Parameter(env_var="GITHUB_PAT")] = None,
    config_file: typ.Annotated[str | None, Parameter(env_var="FILE_PATH")] = None,
    config_url: typ.Annotated[str | None, Parameter(env_var="FILE_URL")] = None,
    owner: typ.Annotated[str | None, Parameter(env_var="GITHUB_USER")] = None,
    repo: typ.Annotated[str | None, Parameter(env_var="GITHUB_REPO")] = None,
    branch: str = "main",
) -> int:
    """Print download URLs for the swagger files named in a links manifest.

    Args:
        github_pat: Personal access token for the target repository.
        config_file: Local links manifest.
        config_url: URL of a links manifest, used when no file is given.
        owner: Owner of the target repository.
        repo: Name of the target repository.
        branch: Branch the files are read from.

    Returns:
        Exit code (0 for success, 1 for failure, 2 for bad config).

    """
    _setup_logging()
    try:
        token = _require_token(github_pat)
        if not owner or not repo:
            missing = [
                name
                for name, value in (("GITHUB_USER", owner), ("GITHUB_REPO", repo))
                if not value
            ]
            raise ConfigError.missing_variables(missing)
    except ConfigError as exc:
        log_error(logger, "Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    try:
        lines = asyncio.run(
            run_links(
                token=token,
                owner=owner,
                repo=repo,
                branch=branch,
                config_file=config_file,
                config_url=config_url,
            )
        )
    except (LinksError, GitHubAPIError, FetchError) as exc:
        log_error(logger, "Failed to resolve swagger links: %s", exc)
        return EXIT_FAILURE

    for line in lines:
        print(line)
    return EXIT_OK


@app.command(name="fetch-file")
def fetch_file(
    *,
    github_pat: typ.Annotated[str | None, Parameter(env_var="GITHUB_PAT")] = None,
    url: typ.Annotated[str | None, Parameter(env_var="GITHUB_URL")] = None,
    repo: str | None = None,
    path: str | None = None,
    branch: str | None = None,
) -> int:
    """Print a file from a GitHub repository.

    Give either ``--url`` (a ``github.com/.../blob/...`` or
    ``raw.githubusercontent.com/...`` URL) or ``--repo owner/name`` with
    ``--path``.

    Args:
        github_pat: Personal access token with read access.
        url: GitHub web or raw URL of the file.
        repo: Repository as ``owner/name``.
        path: Path of the file in the repository.
        branch: Branch or other ref; overrides the branch in ``--url``.

    Returns:
        Exit code (0 for success, 1 for failure, 2 for bad arguments).

    """
    _setup_logging()
    try:
        token = _require_token(github_pat)
        if url:
            location = locate_github_file(url, branch)
        elif repo and path:
            owner, name = parse_repo_slug(repo)
            location = GitHubFileLocation(owner=owner, repo=name, path=path, ref=branch)
        else:
            raise ConfigError.missing_variables(["GITHUB_URL"])
    except (ConfigError, ValueError) as exc:
        log_error(logger, "Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    try:
        body = asyncio.run(run_fetch_file(token, location))
    except (GitHubAPIError, FetchError) as exc:
        log_error(logger, "Failed to fetch %s: %s", location.api_url, exc)
        return EXIT_FAILURE

    sys.stdout.write(body)
    return EXIT_OK


@app.command(name="set-app-version")
def set_version(
    *,
    app_version: typ.Annotated[
        str | None, Parameter(env_var="APP_VERSION")
    ] = None,
    file: typ.Annotated[
        str, Parameter(env_var="APP_FILE_PATH")
    ] = DEFAULT_APP_CONFIG_PATH,
) -> int:
    """Write ``app_version`` into the ``version`` key of an app config file.

    Args:
        app_version: Version to record.
        file: JSON app config to update.

    Returns:
        Exit code (0 for success, 1 for failure, 2 for a missing version).

    """
    _setup_logging()
    if app_version is None:
        log_error(logger, "Configuration error: %s", "APP_VERSION is required")
        return EXIT_CONFIG_ERROR
    try:
        set_app_version(app_version, file)
    except AppVersionError as exc:
        log_error(logger, "Failed to set app version: %s", exc)
        return EXIT_FAILURE
    sys.stdout.write("ok")
    return EXIT_OK


@app.command(name="ci-flow")
def ci_flow(  # noqa: PLR0913
    *,
    app_domain: typ.Annotated[str | None, Parameter(env_var="APP_DOMAIN")] = None,
    app_path: typ.Annotated[str | None, Parameter(env_var="APP_PATH")] = None,
    app_env: typ.Annotated[str | None, Parameter(env_var="APP_ENV")] = None,
    app_build_version: typ.Annotated[
        str | None, Parameter(env_var="APP_BUILD_VERSION")
    ] = None,
    replace_key: typ.Annotated[
        str | None, Parameter(env_var="WEBPACK_REPLACE_KEY")
    ] = None,
    webpack_file: typ.Annotated[
        str, Parameter(env_var="WEBPACK_FILE_PATH")
    ] = DEFAULT_WEBPACK_FILE,
    version_file: typ.Annotated[
        str, Parameter(env_var="APP_FILE_PATH")
    ] = DEFAULT_APP_CONFIG_PATH,
    output_file: str = DEFAULT_OUTPUT_FILE,
) -> int:
    """Set the webpack public path of a build and write ``cicd.json``.

    Args:
        app_domain: Domain the assets are served from.
        app_path: Path of the app's index on that domain.
        app_env: Deployment environment, for example ``uat``.
        app_build_version: Pipeline build number.
        replace_key: Placeholder in the webpack config to replace.
        webpack_file: Webpack or vue config to rewrite.
        version_file: JSON file holding the app ``version``.
        output_file: Where the deployment paths are written.

    Returns:
        Exit code (0 for success, 1 for failure, 2 for missing settings).

    """
    _setup_logging()
    required = {
        "APP_DOMAIN": app_domain,
        "APP_PATH": app_path,
        "APP_ENV": app_env,
        "APP_BUILD_VERSION": app_build_version,
        "WEBPACK_REPLACE_KEY": replace_key,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        log_error(
            logger, "Configuration error: %s", ConfigError.missing_variables(missing)
        )
        return EXIT_CONFIG_ERROR

    try:
        run_ci_flow(
            app_domain=typ.cast("str", app_domain),
            app_path=typ.cast("str", app_path),
            app_env=typ.cast("str", app_env),
            app_build_version=typ.cast("str", app_build_version),
            replace_key=typ.cast("str", replace_key),
            webpack_file=webpack_file,
            version_file=version_file,
            output_file=output_file,
        )
    except CiFlowError as exc:
        log_error(logger, "Failed to prepare build: %s", exc)
        return EXIT_FAILURE
    sys.stdout.write("ok")
    return EXIT_OK


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
