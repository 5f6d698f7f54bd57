"""Framework-independent Inertia protocol decisions.

Every function here is a pure function of the server configuration, the
:class:`~litestar_inertia.request.RequestSignal` and the declared props, so the same
pipeline can be run concurrently for any number of requests. The Litestar integration in
:mod:`litestar_inertia.response` and :mod:`litestar_inertia.middleware` only adapts
these results to ASGI.
"""

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlsplit

from litestar.serialization import encode_json, get_serializer
from litestar.status_codes import (
    HTTP_301_MOVED_PERMANENTLY,
    HTTP_302_FOUND,
    HTTP_303_SEE_OTHER,
    HTTP_307_TEMPORARY_REDIRECT,
    HTTP_308_PERMANENT_REDIRECT,
)

from litestar_inertia._utils import get_headers
from litestar_inertia.props import resolve_props
from litestar_inertia.types import ForceReload, FullDocument, InertiaHeaderType, PageProps, PartialPayload

if TYPE_CHECKING:
    from collections.abc import Iterable

    from anyio.from_thread import BlockingPortal
    from litestar.types import TypeEncodersMap

    from litestar_inertia.config import InertiaConfig
    from litestar_inertia.props import Prop
    from litestar_inertia.request import RequestSignal
    from litestar_inertia.types import RenderOutcome

__all__ = (
    "REDIRECT_STATUS_CODES",
    "REWRITTEN_METHODS",
    "build_page",
    "negotiate_version",
    "quote_location",
    "relative_url",
    "render_outcome",
    "render_page",
    "rewrite_redirect_status",
    "serialize_page",
)

logger = logging.getLogger("litestar_inertia")

REDIRECT_STATUS_CODES = frozenset({
    HTTP_301_MOVED_PERMANENTLY,
    HTTP_302_FOUND,
    HTTP_303_SEE_OTHER,
    HTTP_307_TEMPORARY_REDIRECT,
    HTTP_308_PERMANENT_REDIRECT,
})
REWRITTEN_METHODS = frozenset({"PUT", "PATCH", "DELETE"})

_LOCATION_SAFE_CHARS = "/#%[]=:;$&()+,!?*@'~"


def quote_location(url: str) -> str:
    """Percent-quote a URL for the ``X-Inertia-Location`` header.

    Reserved characters and existing escapes are kept, so an already encoded URL is unchanged.

    Args:
        url: The target URL.

    Returns:
        The quoted URL.
    """
    return quote(url, safe=_LOCATION_SAFE_CHARS)


def relative_url(url: str) -> str:
    """Return the path and query string of ``url``.

    The Inertia.js protocol requires the ``url`` property to include query parameters so
    that page state (e.g., filters, pagination) is preserved on refresh.

    Args:
        url: The full request URL.

    Returns:
        The path with query string if present, e.g., ``/reports?page=1&status=active``.
    """
    parts = urlsplit(url)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


def negotiate_version(signal: "RequestSignal", version: str) -> "ForceReload | None":
    """Decide whether the client's assets are stale.

    Only Inertia GET requests that assert a version take part. Versions are compared as
    opaque strings, so any difference, including garbage, forces a reload.

    Args:
        signal: The request signal.
        version: The current server asset version.

    Returns:
        A :class:`ForceReload` to the request URL on mismatch, otherwise None.
    """
    if not signal.is_inertia or not signal.is_get or signal.client_version is None:
        return None
    if signal.client_version == version:
        return None
    logger.debug(
        "Inertia asset version mismatch for %s (client %r, server %r); forcing reload",
        signal.url,
        signal.client_version,
        version,
    )
    location = quote_location(signal.url)
    return ForceReload(location=location, headers=get_headers(InertiaHeaderType(location=location, vary=True)))


def build_page(component: str, props: "dict[str, Any]", url: str, version: str) -> "PageProps[Any]":
    """Assemble the page object.

    Args:
        component: The component to render.
        props: The resolved props.
        url: The full request URL.
        version: The current server asset version.

    Returns:
        The page object.
    """
    return PageProps[Any](component=component, props=props, url=relative_url(url), version=version)


def serialize_page(page: "PageProps[Any]", type_encoders: "TypeEncodersMap | None" = None) -> bytes:
    """Serialize the page object to JSON.

    Both the HTML and the JSON responses embed exactly these bytes.

    Args:
        page: The page object.
        type_encoders: A mapping of types to callables that transform them into types supported for serialization.

    Returns:
        The JSON encoded page object.
    """
    return encode_json(page.to_dict(), serializer=get_serializer(type_encoders))


def render_page(
    page: "PageProps[Any]",
    signal: "RequestSignal",
    config: "InertiaConfig",
    type_encoders: "TypeEncodersMap | None" = None,
    encoding: str = "utf-8",
) -> "FullDocument | PartialPayload":
    """Render the page object for the kind of request that asked for it.

    Args:
        page: The page object.
        signal: The request signal.
        config: The Inertia configuration.
        type_encoders: A mapping of types to callables that transform them into types supported for serialization.
        encoding: Body encoding.

    Returns:
        A JSON payload for Inertia requests, otherwise the HTML document.
    """
    body = serialize_page(page, type_encoders)
    if signal.is_inertia:
        return PartialPayload(
            body=body,
            headers=get_headers(InertiaHeaderType(enabled=True, version=config.version, vary=True)),
        )
    document = config.layout(body.decode(encoding))
    return FullDocument(body=document.encode(encoding), headers=get_headers(InertiaHeaderType(vary=True)))


def render_outcome(
    signal: "RequestSignal",
    config: "InertiaConfig",
    component: str,
    props: "Iterable[Prop[Any]]",
    *,
    portal: "BlockingPortal | None" = None,
    type_encoders: "TypeEncodersMap | None" = None,
    encoding: str = "utf-8",
) -> "RenderOutcome":
    """Run the full protocol pipeline for one request.

    Version negotiation runs first; on mismatch no prop is evaluated. Prop evaluation
    errors propagate unchanged and nothing is rendered.

    Args:
        signal: The request signal.
        config: The Inertia configuration.
        component: The component to render.
        props: The declared props.
        portal: Portal used to run async prop evaluators.
        type_encoders: A mapping of types to callables that transform them into types supported for serialization.
        encoding: Body encoding.

    Returns:
        The render outcome.
    """
    reload = negotiate_version(signal, config.version)
    if reload is not None:
        return reload
    resolved = resolve_props(props, signal.partial_filter(component), portal)
    page = build_page(component, resolved, signal.url, config.version)
    return render_page(page, signal, config, type_encoders, encoding)


def rewrite_redirect_status(status_code: int, method: str, is_inertia: bool) -> int:
    """Return the status an outgoing redirect must be sent with.

    Inertia PUT, PATCH and DELETE requests must be redirected with ``303 See Other`` so
    the client follows with a GET instead of replaying the original method and body.
    Everything else is left untouched.

    Args:
        status_code: The status set by the handler.
        method: The method of the originating request.
        is_inertia: Whether the originating request was sent by an Inertia client.

    Returns:
        The status code to send.
    """
    if not is_inertia or status_code not in REDIRECT_STATUS_CODES or method.upper() not in REWRITTEN_METHODS:
        return status_code
    if status_code != HTTP_303_SEE_OTHER:
        logger.debug("Rewriting %s redirect status %d to %d", method, status_code, HTTP_303_SEE_OTHER)
    return HTTP_303_SEE_OTHER
