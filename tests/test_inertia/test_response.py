import html
import re
from typing import Any

import pytest
from litestar import Request, get
from litestar.serialization import decode_json
from litestar.status_codes import HTTP_200_OK, HTTP_500_INTERNAL_SERVER_ERROR
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import (
    InertiaConfig,
    InertiaHeaders,
    InertiaPlugin,
    InertiaResponse,
    JinjaLayout,
    always,
    lazy,
    prop,
)
from litestar_inertia.layout import default_layout

pytestmark = pytest.mark.anyio


def extract_page(text: str) -> "dict[str, Any]":
    match = re.search(r'data-page="([^"]*)"', text)
    assert match is not None
    return decode_json(html.unescape(match.group(1)))


async def test_component_enabled(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler(request: Request[Any, Any, Any]) -> "dict[str, Any]":
        return {"thing": "value"}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/")
        assert response.status_code == HTTP_200_OK
        assert response.headers["content-type"].startswith("text/html")
        assert InertiaHeaders.ENABLED.value in response.headers["vary"]
        assert InertiaHeaders.ENABLED.value not in response.headers
        assert extract_page(response.text) == {
            "component": "Home",
            "props": {"thing": "value"},
            "url": "/",
            "version": "v1",
        }


async def test_component_inertia_header_enabled(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler(request: Request[Any, Any, Any]) -> "dict[str, Any]":
        return {"thing": "value"}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.status_code == HTTP_200_OK
        assert response.headers["content-type"].startswith("application/json")
        assert response.headers[InertiaHeaders.ENABLED.value] == "true"
        assert response.headers[InertiaHeaders.VERSION.value] == "v1"
        assert InertiaHeaders.ENABLED.value in response.headers["vary"]
        assert response.json() == {"component": "Home", "props": {"thing": "value"}, "url": "/", "version": "v1"}


async def test_page_opt_key(inertia_plugin: InertiaPlugin) -> None:
    @get("/", page="Dashboard")
    async def handler() -> "dict[str, Any]":
        return {"thing": "value"}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json()["component"] == "Dashboard"


async def test_default_route_response_no_component(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: Request[Any, Any, Any]) -> "dict[str, Any]":
        return {"thing": "value"}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.status_code == HTTP_200_OK
        assert response.json() == {"thing": "value"}
        assert InertiaHeaders.ENABLED.value not in response.headers


async def test_props_on_route_without_component(inertia_plugin: InertiaPlugin) -> None:
    @get("/api")
    async def handler() -> "dict[str, Any]":
        return {"a": prop("a", 1), "b": lazy("b", lambda: 2)}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/api", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.status_code == HTTP_200_OK
        assert response.json() == {"a": 1, "b": 2}


async def test_prop_nested_in_prop_value(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"user": {"name": "alice", "teams": prop("teams", lambda: ["core"])}}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.status_code == HTTP_200_OK
        assert response.json()["props"] == {"user": {"name": "alice", "teams": ["core"]}}


async def test_empty_list_content_becomes_content_prop(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> "list[int]":
        return []

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json()["props"] == {"content": []}


async def test_explicit_inertia_response(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler() -> InertiaResponse[Any]:
        return InertiaResponse([prop("title", "Users")], component="Users/Index")

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json() == {"component": "Users/Index", "props": {"title": "Users"}, "url": "/", "version": "v1"}


async def test_non_mapping_content_becomes_content_prop(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> "list[int]":
        return [1, 2, 3]

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json()["props"] == {"content": [1, 2, 3]}


async def test_lazy_prop_excluded_from_first_load(inertia_plugin: InertiaPlugin) -> None:
    calls: "list[str]" = []

    def compute_stats() -> "dict[str, int]":
        calls.append("stats")
        return {"visits": 10}

    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"title": always("title", "Home"), "stats": lazy("stats", compute_stats)}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/")
        assert extract_page(response.text) == {
            "component": "Home",
            "props": {"title": "Home"},
            "url": "/",
            "version": "v1",
        }
        assert calls == []


async def test_partial_reload_returns_requested_props(inertia_plugin: InertiaPlugin) -> None:
    calls: "list[str]" = []

    def compute_stats() -> "dict[str, int]":
        calls.append("stats")
        return {"visits": 10}

    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"title": "Home", "stats": lazy("stats", compute_stats)}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/",
            headers={
                InertiaHeaders.ENABLED.value: "true",
                InertiaHeaders.VERSION.value: "v1",
                InertiaHeaders.PARTIAL_DATA.value: "stats",
                InertiaHeaders.PARTIAL_COMPONENT.value: "Home",
            },
        )
        assert response.status_code == HTTP_200_OK
        assert response.json() == {"component": "Home", "props": {"stats": {"visits": 10}}, "url": "/", "version": "v1"}
        assert calls == ["stats"]


async def test_partial_reload_keeps_always_props(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"user": always("user", "alice"), "title": "Home", "stats": lazy("stats", {"visits": 10})}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/",
            headers={
                InertiaHeaders.ENABLED.value: "true",
                InertiaHeaders.PARTIAL_DATA.value: "stats",
                InertiaHeaders.PARTIAL_COMPONENT.value: "Home",
            },
        )
        assert response.json()["props"] == {"user": "alice", "stats": {"visits": 10}}


async def test_partial_except(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"title": "Home", "menu": ["a", "b"], "stats": lazy("stats", {"visits": 10})}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/",
            headers={
                InertiaHeaders.ENABLED.value: "true",
                InertiaHeaders.PARTIAL_EXCEPT.value: "title",
                InertiaHeaders.PARTIAL_COMPONENT.value: "Home",
            },
        )
        assert response.json()["props"] == {"menu": ["a", "b"]}


async def test_partial_reload_for_other_component_is_full(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"title": "Home", "stats": lazy("stats", {"visits": 10})}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/",
            headers={
                InertiaHeaders.ENABLED.value: "true",
                InertiaHeaders.PARTIAL_DATA.value: "stats",
                InertiaHeaders.PARTIAL_COMPONENT.value: "Other",
            },
        )
        assert response.json()["props"] == {"title": "Home"}


async def test_async_lazy_prop(inertia_plugin: InertiaPlugin) -> None:
    async def compute_stats() -> "dict[str, int]":
        return {"visits": 10}

    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"stats": lazy("stats", compute_stats)}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        assert inertia_plugin.portal is not None
        response = client.get(
            "/",
            headers={
                InertiaHeaders.ENABLED.value: "true",
                InertiaHeaders.PARTIAL_DATA.value: "stats",
                InertiaHeaders.PARTIAL_COMPONENT.value: "Home",
            },
        )
        assert response.json()["props"] == {"stats": {"visits": 10}}


async def test_url_includes_query_string(inertia_plugin: InertiaPlugin) -> None:
    @get("/search", component="Search")
    async def handler(q: str) -> "dict[str, Any]":
        return {"q": q}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/search?q=test", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json()["url"] == "/search?q=test"


async def test_extra_static_page_props() -> None:
    plugin = InertiaPlugin(
        InertiaConfig(layout=default_layout, version="v1", extra_static_page_props={"app": "demo", "title": "Default"})
    )

    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"title": "Home"}

    with create_test_client(route_handlers=[handler], plugins=[plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.json()["props"] == {"app": "demo", "title": "Home"}


async def test_prop_evaluation_error_is_server_error(inertia_plugin: InertiaPlugin) -> None:
    calls: "list[str]" = []

    def broken() -> str:
        msg = "database down"
        raise RuntimeError(msg)

    def after() -> str:
        calls.append("after")
        return "after"

    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"broken": prop("broken", broken), "after": prop("after", after)}

    with create_test_client(
        route_handlers=[handler], plugins=[inertia_plugin], raise_server_exceptions=False
    ) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.status_code == HTTP_500_INTERNAL_SERVER_ERROR
        assert calls == []


async def test_jinja_layout(jinja_layout: JinjaLayout) -> None:
    plugin = InertiaPlugin(InertiaConfig(layout=jinja_layout, version="v1"))

    @get("/", component="Home")
    async def handler() -> "dict[str, Any]":
        return {"title": "Home"}

    with create_test_client(route_handlers=[handler], plugins=[plugin]) as client:
        response = client.get("/")
        assert "<title>Test App</title>" in response.text
        assert '<div id="app" data-page="' in response.text
        assert extract_page(response.text)["props"] == {"title": "Home"}


async def test_inertia_response_requires_plugin() -> None:
    @get("/", component="Home")
    async def handler() -> InertiaResponse[Any]:
        return InertiaResponse({"title": "Home"})

    with create_test_client(route_handlers=[handler], raise_server_exceptions=False) as client:
        response = client.get("/")
        assert response.status_code == HTTP_500_INTERNAL_SERVER_ERROR
