from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.config import InertiaConfig
from litestar_inertia.layout import JinjaLayout, app_element, default_layout
from litestar_inertia.middleware import InertiaMiddleware
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.props import Prop, PropStrategy, always, lazy, prop
from litestar_inertia.protocol import build_page, negotiate_version, render_outcome, render_page, rewrite_redirect_status
from litestar_inertia.request import InertiaDetails, InertiaRequest, PartialFilter, RequestSignal
from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaRedirect, InertiaResponse
from litestar_inertia.types import ForceReload, FullDocument, PageProps, PartialPayload, RenderOutcome
from litestar_inertia.vite import ViteDevelopment, ViteProduction

__all__ = (
    "ForceReload",
    "FullDocument",
    "InertiaBack",
    "InertiaConfig",
    "InertiaDetails",
    "InertiaExternalRedirect",
    "InertiaHeaders",
    "InertiaMiddleware",
    "InertiaPlugin",
    "InertiaRedirect",
    "InertiaRequest",
    "InertiaResponse",
    "JinjaLayout",
    "PageProps",
    "PartialFilter",
    "PartialPayload",
    "Prop",
    "PropStrategy",
    "RenderOutcome",
    "RequestSignal",
    "ViteDevelopment",
    "ViteProduction",
    "always",
    "app_element",
    "build_page",
    "default_layout",
    "lazy",
    "negotiate_version",
    "prop",
    "render_outcome",
    "render_page",
    "rewrite_redirect_status",
)
