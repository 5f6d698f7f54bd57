from collections.abc import Generator
from pathlib import Path

import pytest
from jinja2 import Environment, FileSystemLoader

from litestar_inertia.config import InertiaConfig
from litestar_inertia.layout import JinjaLayout, default_layout
from litestar_inertia.plugin import InertiaPlugin

pytestmark = pytest.mark.anyio

here = Path(__file__).parent


@pytest.fixture
def inertia_config() -> Generator[InertiaConfig, None, None]:
    yield InertiaConfig(layout=default_layout, version="v1")


@pytest.fixture
def inertia_plugin(inertia_config: InertiaConfig) -> Generator[InertiaPlugin, None, None]:
    yield InertiaPlugin(config=inertia_config)


@pytest.fixture
def jinja_env() -> Environment:
    return Environment(loader=FileSystemLoader(here / "templates"), autoescape=True)


@pytest.fixture
def jinja_layout(jinja_env: Environment) -> JinjaLayout:
    return JinjaLayout(jinja_env, "index.html.j2", context={"title": "Test App"})
