"""Unit tests for the swaggerbot command-line interface."""

from __future__ import annotations

import base64
import json
import typing as typ

import httpx
import pytest

from swaggerbot import cli
from swaggerbot.config import SyncConfig
from swaggerbot.github import GitHubFileLocation
from swaggerbot.sync import OutcomeReason, OutcomeStatus
from tests.helpers.specs import ORDERS_URL, swagger_document

if typ.TYPE_CHECKING:
    from pathlib import Path

_REPO_PATH = "/repos/acme/api-swagger-repos"
_ENV_VARS = (
    "GITHUB_PAT",
    "GITHUB_USER",
    "GITHUB_REPO",
    "GITHUB_URL",
    "SWAGGER_URL",
    "SWAGGER_FILE",
    "APP_VERSION",
    "APP_FILE_PATH",
    "APP_DOMAIN",
    "APP_PATH",
    "APP_ENV",
    "APP_BUILD_VERSION",
    "WEBPACK_FILE_PATH",
    "WEBPACK_REPLACE_KEY",
)


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep commands from configuring global logging or reading real env."""
    monkeypatch.setattr(
        "swaggerbot.cli.configure_logging", lambda level: (level, False)
    )
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class _GitHubStub:
    """In-memory GitHub REST endpoints for one repository."""

    def __init__(self, *, swagger: str) -> None:
        self.swagger = swagger
        self.files: dict[str, str] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == ORDERS_URL:
            return httpx.Response(200, text=self.swagger)

        route = (request.method, request.url.path.removeprefix(_REPO_PATH))
        match route:
            case ("GET", "/git/refs/heads/main"):
                return httpx.Response(
                    200, json={"ref": "refs/heads/main", "object": {"sha": "base"}}
                )
            case ("POST", "/git/refs"):
                ref = json.loads(request.content)["ref"]
                return httpx.Response(201, json={"ref": ref})
            case ("GET", path) if path.startswith("/contents/"):
                return httpx.Response(404, json={"message": "Not Found"})
            case ("PUT", path) if path.startswith("/contents/"):
                body = json.loads(request.content)
                self.files[path] = base64.b64decode(body["content"]).decode()
                return httpx.Response(
                    201, json={"content": {"sha": "blob"}, "commit": {"sha": "c1"}}
                )
            case ("GET", "/commits/c1"):
                return httpx.Response(
                    200,
                    json={
                        "sha": "c1",
                        "files": [
                            {"filename": "swagger.json", "additions": 40},
                        ],
                    },
                )
            case ("GET", "/pulls"):
                return httpx.Response(200, json=[])
            case ("POST", "/pulls"):
                return httpx.Response(201, json={"number": 7})
            case ("POST", "/pulls/7/requested_reviewers"):
                return httpx.Response(201, json={})
        return httpx.Response(404, json={"message": "Not Found"})

    def paths(self, method: str) -> list[str]:
        return [r.url.path for r in self.requests if r.method == method]


class TestCliStructure:
    """Tests for CLI structure and subcommands."""

    def test_app_has_name(self) -> None:
        """App should have the correct name."""
        # Cyclopts returns name as a tuple
        assert cli.app.name == ("swaggerbot",)

    def test_app_has_version(self) -> None:
        """App should report the package version."""
        assert cli.app.version == "0.1.0"

    @pytest.mark.parametrize(
        "command", ["sync", "links", "fetch-file", "set-app-version", "ci-flow"]
    )
    def test_app_has_command(self, command: str) -> None:
        """Each documented subcommand is registered."""
        # Cyclopts command names are tuples
        command_names = [cmd.name for cmd in cli.app._commands.values()]
        assert (command,) in command_names


class TestSyncCommand:
    """Tests for the ``sync`` command and its runner."""

    def test_missing_token_is_a_config_error(self) -> None:
        """Configuration problems exit with code 2 before any request."""
        exit_code = cli.sync(
            github_user="acme", github_repo="api-swagger-repos", swagger_url="u"
        )

        assert exit_code == cli.EXIT_CONFIG_ERROR

    def test_missing_source_is_a_config_error(self) -> None:
        """A run needs a swagger URL or manifest file."""
        exit_code = cli.sync(
            github_pat="ghp_test", github_user="acme", github_repo="api-swagger-repos"
        )

        assert exit_code == cli.EXIT_CONFIG_ERROR

    @pytest.mark.asyncio
    async def test_run_sync_opens_pull_request(self, sync_config: SyncConfig) -> None:
        """A new document is committed, proposed and sent for review."""
        stub = _GitHubStub(swagger=swagger_document("1.2.0-5"))

        summary = await cli.run_sync(
            sync_config,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(stub)),
        )

        assert (summary.total, summary.success, summary.exit_code) == (1, 1, 0)
        (outcome,) = summary.details
        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.pull_number == 7
        assert f"{_REPO_PATH}/pulls/7/requested_reviewers" in stub.paths("POST")
        written = stub.files["/contents/orders/v2/swagger.json"]
        assert json.loads(written)["info"]["version"] == "1.2.0-5"
        assert written.startswith('{\n  "openapi"')

    @pytest.mark.asyncio
    async def test_run_sync_reports_invalid_document(
        self, sync_config: SyncConfig
    ) -> None:
        """Unparseable documents fail without touching the repository."""
        stub = _GitHubStub(swagger="<html>")

        summary = await cli.run_sync(
            sync_config,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(stub)),
        )

        assert summary.exit_code == 1
        assert summary.details[0].reason == OutcomeReason.JSON_PARSE_ERROR
        assert stub.paths("POST") == []


class TestLinksCommand:
    """Tests for the ``links`` command."""

    def test_requires_repository(self) -> None:
        """Owner and repository are required."""
        assert cli.links(github_pat="t", config_file="x.json") == (
            cli.EXIT_CONFIG_ERROR
        )

    @pytest.mark.asyncio
    async def test_run_links(self, tmp_path: Path) -> None:
        """Resolved links are rendered one per line plus the combined line."""
        config_file = tmp_path / "links.json"
        config_file.write_text(json.dumps({"swagger": {"ORDERS": "o/v2/s.json"}}))

        def _handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["ref"] == "release"
            return httpx.Response(
                200, json={"sha": "s", "download_url": "https://raw/o/v2/s.json"}
            )

        lines = await cli.run_links(
            token="t",
            owner="acme",
            repo="specs",
            branch="release",
            config_file=str(config_file),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
        )

        assert lines == [
            "ORDERS=https://raw/o/v2/s.json",
            '"ORDERS=https://raw/o/v2/s.json"',
        ]


class TestFetchFileCommand:
    """Tests for the ``fetch-file`` command."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"url": "https://github.com/acme/specs/blob/main/a.json"},
            {"github_pat": "t"},
            {"github_pat": "t", "url": "https://example.test/a.json"},
            {"github_pat": "t", "repo": "not-a-slug", "path": "a.json"},
        ],
    )
    def test_bad_arguments(self, kwargs: dict[str, str]) -> None:
        """Missing tokens and unusable locations exit with code 2."""
        assert cli.fetch_file(**kwargs) == cli.EXIT_CONFIG_ERROR

    @pytest.mark.asyncio
    async def test_run_fetch_file(self) -> None:
        """The file body is fetched through the contents API."""
        requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text="file body")

        body = await cli.run_fetch_file(
            "t",
            GitHubFileLocation(owner="acme", repo="specs", path="a.json", ref="dev"),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
        )

        assert body == "file body"
        (request,) = requests
        assert request.url.path == "/repos/acme/specs/contents/a.json"
        assert request.url.params["ref"] == "dev"
        assert request.headers["Authorization"] == "token t"


class TestSetAppVersionCommand:
    """Tests for the ``set-app-version`` command."""

    def test_writes_version(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The version is written and ``ok`` printed."""
        config = tmp_path / "app-config.json"
        config.write_text('{"version":"1.0.0"}', encoding="utf-8")

        exit_code = cli.set_version(app_version="1.1.0", file=str(config))

        assert exit_code == cli.EXIT_OK
        assert capsys.readouterr().out == "ok"
        assert json.loads(config.read_text(encoding="utf-8")) == {"version": "1.1.0"}

    def test_missing_version(self, tmp_path: Path) -> None:
        """No version is a configuration error."""
        assert cli.set_version(file=str(tmp_path / "x.json")) == (
            cli.EXIT_CONFIG_ERROR
        )

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing config file is a command failure."""
        exit_code = cli.set_version(
            app_version="1.1.0", file=str(tmp_path / "absent.json")
        )

        assert exit_code == cli.EXIT_FAILURE


class TestCiFlowCommand:
    """Tests for the ``ci-flow`` command."""

    @staticmethod
    def _build_files(tmp_path: Path, config_text: str) -> dict[str, str]:
        version_file = tmp_path / "app-config.json"
        version_file.write_text('{"version":"2.0.1"}', encoding="utf-8")
        webpack_file = tmp_path / "vue.config.js"
        webpack_file.write_text(config_text, encoding="utf-8")
        return {
            "webpack_file": str(webpack_file),
            "version_file": str(version_file),
            "output_file": str(tmp_path / "cicd.json"),
        }

    def test_writes_paths(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The public path is set and ``ok`` printed."""
        files = self._build_files(tmp_path, "publicPath: __PATH__,\n")

        exit_code = cli.ci_flow(
            app_domain="https://cdn.example.test",
            app_path="/portal",
            app_env="prod",
            app_build_version="9",
            replace_key="__PATH__",
            **files,
        )

        assert exit_code == cli.EXIT_OK
        assert capsys.readouterr().out == "ok"
        output = json.loads((tmp_path / "cicd.json").read_text(encoding="utf-8"))
        assert output["assetPath"] == "/portal/prod-2_0_1-9"

    def test_missing_settings(self, tmp_path: Path) -> None:
        """Missing pipeline settings are a configuration error."""
        files = self._build_files(tmp_path, "publicPath: __PATH__,\n")

        exit_code = cli.ci_flow(app_domain="https://cdn.example.test", **files)

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert not (tmp_path / "cicd.json").exists()

    def test_missing_replace_key(self, tmp_path: Path) -> None:
        """A config without the placeholder fails the command."""
        files = self._build_files(tmp_path, "module.exports = {}\n")

        exit_code = cli.ci_flow(
            app_domain="https://cdn.example.test",
            app_path="/portal",
            app_env="prod",
            app_build_version="9",
            replace_key="__PATH__",
            **files,
        )

        assert exit_code == cli.EXIT_FAILURE
        assert not (tmp_path / "cicd.json").exists()
