"""Unit tests for spec sources and their resolution."""

from __future__ import annotations

import json
import typing as typ

import httpx
import pytest

from swaggerbot.http import RetryingHTTPClient
from swaggerbot.sources import (
    ManifestSource,
    ModuleIdentity,
    RegexIdentity,
    SpecSourceResolver,
    UrlSource,
    source_from_settings,
)
from swaggerbot.sync import OutcomeStatus, SwaggerSyncWorkflow
from tests.helpers.fake_logger import bound_fake_logger
from tests.helpers.specs import ORDERS_URL, swagger_document

if typ.TYPE_CHECKING:
    from pathlib import Path

    from swaggerbot.config import SyncConfig
    from tests.helpers.fake_repo import FakeRepoClient


def _make_resolver(
    responses: dict[str, httpx.Response],
    *,
    max_depth: int = 8,
) -> tuple[SpecSourceResolver, list[str]]:
    """Return a resolver answering ``GET url`` from ``responses``."""
    fetched: list[str] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        fetched.append(url)
        return responses.get(url, httpx.Response(404, text="Not Found"))

    async def _no_sleep(delay: float) -> None:
        del delay

    log, _ = bound_fake_logger()
    http = RetryingHTTPClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
        sleep=_no_sleep,
        logger=log,
    )
    return SpecSourceResolver(http, logger=log, max_depth=max_depth), fetched


def _write_manifest(tmp_path: Path, payload: object) -> str:
    path = tmp_path / "swagger-list.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


class TestUrlSources:
    """Tests for single-URL sources."""

    @pytest.mark.asyncio
    async def test_regex_identity_end_to_end(
        self, repo: FakeRepoClient, sync_config: SyncConfig
    ) -> None:
        """The documented example resolves and syncs to the expected branch."""
        resolver, _ = _make_resolver(
            {ORDERS_URL: httpx.Response(200, text=swagger_document("1.2.0-5"))}
        )

        (item,) = await resolver.resolve(UrlSource(url=ORDERS_URL))
        outcome = await SwaggerSyncWorkflow(repo, sync_config).sync_item(item)

        assert (item.project, item.folder) == ("orders", "v2")
        assert item.source_url == ORDERS_URL
        assert outcome.status == OutcomeStatus.SUCCESS
        assert "swaggerbot/orders/v2/1.2.0-5" in repo.branches

    @pytest.mark.asyncio
    async def test_regex_fallbacks(self) -> None:
        """URLs without matches fall back to ``notfound``/``0.0``."""
        url = "https://specs.example.test/openapi.json"
        resolver, _ = _make_resolver({url: httpx.Response(200, text="{}")})

        (item,) = await resolver.resolve(UrlSource(url=url))

        assert (item.project, item.folder) == ("notfound", "0.0")

    @pytest.mark.asyncio
    async def test_custom_patterns(self) -> None:
        """Custom patterns use their first capture group."""
        url = "https://specs.example.test/svc/billing/rev/3/doc"
        identity = RegexIdentity(
            key_pattern=r"svc/(\w+)/", version_pattern=r"rev/(\d+)"
        )
        resolver, _ = _make_resolver({url: httpx.Response(200, text="{}")})

        (item,) = await resolver.resolve(UrlSource(url=url, identity=identity))

        assert (item.project, item.folder) == ("billing", "3")

    @pytest.mark.asyncio
    async def test_module_identity_builds_query_url(self) -> None:
        """Module sources fetch ``base?module=&definition=``."""
        identity = ModuleIdentity(
            base_url="https://gw.example.test/swagger",
            module="Orders",
            definition="v2 public",
            project_name="Orders",
            folder_name="V2",
        )
        expected = (
            "https://gw.example.test/swagger?module=Orders&definition=v2+public"
        )
        resolver, fetched = _make_resolver(
            {expected: httpx.Response(200, text="{}")}
        )

        (item,) = await resolver.resolve(UrlSource(url=None, identity=identity))

        assert fetched == [expected]
        assert (item.project, item.folder) == ("orders", "v2")
        assert item.raw_content == "{}"

    @pytest.mark.asyncio
    async def test_fetch_failure_yields_placeholder(self) -> None:
        """A failed fetch keeps the identity and records the error."""
        resolver, fetched = _make_resolver({})

        (item,) = await resolver.resolve(UrlSource(url=ORDERS_URL))

        assert item.is_placeholder
        assert (item.project, item.folder) == ("orders", "v2")
        assert item.error is not None
        assert "404" in item.error
        assert len(fetched) == 1

    @pytest.mark.asyncio
    async def test_empty_body_yields_placeholder(self) -> None:
        """An empty 200 response is treated as a failed fetch."""
        resolver, _ = _make_resolver({ORDERS_URL: httpx.Response(200, text="")})

        (item,) = await resolver.resolve(UrlSource(url=ORDERS_URL))

        assert item.is_placeholder
        assert item.error == f"No data received from {ORDERS_URL}"

    @pytest.mark.asyncio
    async def test_unsafe_identifier_is_never_fetched(self) -> None:
        """Identifiers that are not safe path segments stop resolution."""
        url = "https://specs.example.test/atg-..-dev/swagger/v2/swagger.json"
        resolver, fetched = _make_resolver({})

        (item,) = await resolver.resolve(UrlSource(url=url))

        assert item.is_placeholder
        assert item.error is not None
        assert "Invalid project identifier" in item.error
        assert fetched == []

    @pytest.mark.asyncio
    async def test_missing_url_yields_placeholder(self) -> None:
        """A regex source without a URL cannot be fetched."""
        resolver, fetched = _make_resolver({})

        (item,) = await resolver.resolve(UrlSource(url=None))

        assert item.is_placeholder
        assert item.source_url == "unknown"
        assert fetched == []

    @pytest.mark.asyncio
    async def test_unsupported_source(self) -> None:
        """Anything other than a URL or manifest source is a programming error."""
        resolver, _ = _make_resolver({})

        with pytest.raises(TypeError, match="Unsupported spec source"):
            await resolver.resolve(typ.cast("UrlSource", object()))


class TestManifestSources:
    """Tests for manifest files listing several sources."""

    @pytest.mark.asyncio
    async def test_manifest_items_resolve_in_order(self, tmp_path: Path) -> None:
        """Entries resolve concurrently but keep manifest order."""
        billing = "https://specs.example.test/atg-billing-dev/swagger/v1/swagger"
        path = _write_manifest(
            tmp_path,
            {
                "items": [
                    {"url": ORDERS_URL},
                    {
                        "url": billing,
                        "keyRegEx": "atg-(.*?)-dev",
                        "verRegEx": "swagger/(.*?)/swagger",
                    },
                    {
                        "baseUrl": "https://gw.example.test/swagger",
                        "module": "stock",
                        "definition": "v3",
                        "projectName": "stock",
                        "folderName": "v3",
                    },
                ]
            },
        )
        resolver, _ = _make_resolver(
            {
                ORDERS_URL: httpx.Response(200, text="{}"),
                billing: httpx.Response(200, text="{}"),
                "https://gw.example.test/swagger?module=stock&definition=v3": (
                    httpx.Response(200, text="{}")
                ),
            }
        )

        items = await resolver.resolve(ManifestSource(path=path))

        assert [(i.project, i.folder) for i in items] == [
            ("orders", "v2"),
            ("billing", "v1"),
            ("stock", "v3"),
        ]
        assert not any(i.is_placeholder for i in items)

    @pytest.mark.asyncio
    async def test_legacy_list_key(self, tmp_path: Path) -> None:
        """``atgList`` is accepted in place of ``items``."""
        path = _write_manifest(tmp_path, {"atgList": [{"url": ORDERS_URL}]})
        resolver, _ = _make_resolver({ORDERS_URL: httpx.Response(200, text="{}")})

        (item,) = await resolver.resolve(ManifestSource(path=path))

        assert item.project == "orders"

    @pytest.mark.asyncio
    async def test_nested_lists_are_flattened(self, tmp_path: Path) -> None:
        """Nested ``items`` lists contribute their entries in place."""
        path = _write_manifest(
            tmp_path,
            {"items": [{"items": [{"url": ORDERS_URL}]}, {"url": ORDERS_URL}]},
        )
        resolver, _ = _make_resolver({ORDERS_URL: httpx.Response(200, text="{}")})

        items = await resolver.resolve(ManifestSource(path=path))

        assert len(items) == 2
        assert not any(i.is_placeholder for i in items)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_entry",
        [{"url": 5}, {"items": "x"}, "not-an-entry"],
    )
    async def test_malformed_entry_fails_alone(
        self, tmp_path: Path, bad_entry: object
    ) -> None:
        """A mistyped entry becomes a placeholder; its siblings still resolve."""
        path = _write_manifest(
            tmp_path,
            {"items": [bad_entry, {"items": [{"url": ORDERS_URL}, bad_entry]}]},
        )
        resolver, fetched = _make_resolver(
            {ORDERS_URL: httpx.Response(200, text="{}")}
        )

        items = await resolver.resolve(ManifestSource(path=path))

        assert [i.is_placeholder for i in items] == [True, False, True]
        assert items[0].error is not None
        assert "Invalid entry 0" in items[0].error
        assert items[2].error is not None
        assert "Invalid entry 1" in items[2].error
        assert items[1].project == "orders"
        assert fetched == [ORDERS_URL]

    @pytest.mark.asyncio
    async def test_nesting_depth_is_capped(self, tmp_path: Path) -> None:
        """Lists nested beyond the cap become a placeholder."""
        nested: dict[str, object] = {"url": ORDERS_URL}
        for _ in range(3):
            nested = {"items": [nested]}
        path = _write_manifest(tmp_path, {"items": [nested, {"url": ORDERS_URL}]})
        resolver, fetched = _make_resolver(
            {ORDERS_URL: httpx.Response(200, text="{}")}, max_depth=2
        )

        items = await resolver.resolve(ManifestSource(path=path))

        assert len(items) == 2
        assert items[0].is_placeholder
        assert items[0].error is not None
        assert "deeper than 2" in items[0].error
        assert not items[1].is_placeholder
        assert fetched == [ORDERS_URL]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("{not json", "Failed to parse swagger manifest"),
            (json.dumps({"other": []}), "has no 'items' list"),
        ],
    )
    async def test_invalid_manifest_yields_placeholder(
        self, tmp_path: Path, content: str, expected: str
    ) -> None:
        """Unusable manifests produce one placeholder instead of raising."""
        path = tmp_path / "swagger-list.json"
        path.write_text(content, encoding="utf-8")
        resolver, fetched = _make_resolver({})

        (item,) = await resolver.resolve(ManifestSource(path=str(path)))

        assert item.is_placeholder
        assert item.error is not None
        assert expected in item.error
        assert fetched == []

    @pytest.mark.asyncio
    async def test_missing_manifest_file(self, tmp_path: Path) -> None:
        """A manifest path that does not exist yields a placeholder."""
        resolver, _ = _make_resolver({})

        (item,) = await resolver.resolve(
            ManifestSource(path=str(tmp_path / "absent.json"))
        )

        assert item.is_placeholder
        assert item.error is not None
        assert "Failed to read swagger manifest" in item.error


def test_source_from_settings_prefers_url() -> None:
    """A configured URL wins over a manifest file."""
    assert source_from_settings(ORDERS_URL, "list.json") == UrlSource(url=ORDERS_URL)
    assert source_from_settings(None, "list.json") == ManifestSource(path="list.json")
    assert source_from_settings(None, None) is None
