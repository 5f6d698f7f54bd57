import itertools
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar, cast
from urllib.parse import urlparse

from litestar import Litestar, MediaType, Request, Response
from litestar.datastructures.cookie import Cookie
from litestar.exceptions import ImproperlyConfiguredException
from litestar.response import Redirect
from litestar.response.base import ASGIResponse
from litestar.serialization import get_serializer
from litestar.status_codes import HTTP_200_OK, HTTP_303_SEE_OTHER, HTTP_307_TEMPORARY_REDIRECT, HTTP_409_CONFLICT
from litestar.utils.helpers import get_enum_string_value

from litestar_inertia._utils import get_headers
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.props import collect_props, is_prop
from litestar_inertia.protocol import quote_location, render_outcome
from litestar_inertia.request import InertiaDetails, InertiaRequest, RequestSignal, get_route_component
from litestar_inertia.types import ForceReload, InertiaHeaderType

if TYPE_CHECKING:
    from litestar.background_tasks import BackgroundTask, BackgroundTasks
    from litestar.connection.base import AuthT, StateT, UserT
    from litestar.types import ResponseCookies, ResponseHeaders, TypeEncodersMap

    from litestar_inertia.props import Prop
    from litestar_inertia.types import RenderOutcome

__all__ = (
    "InertiaBack",
    "InertiaExternalRedirect",
    "InertiaRedirect",
    "InertiaResponse",
    "get_inertia_plugin",
    "outcome_to_asgi_response",
)

T = TypeVar("T")


def get_inertia_plugin(app: "Litestar") -> "InertiaPlugin":
    """Return the registered :class:`InertiaPlugin`.

    Args:
        app: The application.

    Raises:
        ImproperlyConfiguredException: If the plugin is not registered.

    Returns:
        The plugin.
    """
    try:
        return app.plugins.get(InertiaPlugin)
    except KeyError as exc:
        msg = "InertiaResponse requires the InertiaPlugin to be registered on the application."
        raise ImproperlyConfiguredException(msg) from exc


def outcome_to_asgi_response(
    outcome: "RenderOutcome",
    *,
    background: "BackgroundTask | BackgroundTasks | None" = None,
    cookies: "Iterable[Cookie] | None" = None,
    encoded_headers: "Iterable[tuple[bytes, bytes]] | None" = None,
    headers: "dict[str, Any] | None" = None,
    is_head_response: bool = False,
    status_code: "int | None" = None,
    encoding: str = "utf-8",
) -> "ASGIResponse":
    """Turn a render outcome into an ASGI response.

    Args:
        outcome: The render outcome.
        background: Background tasks to run after the response is sent.
        cookies: Cookies to set.
        encoded_headers: Pre-encoded headers.
        headers: Extra headers; the outcome's own headers take precedence.
        is_head_response: Whether the response answers a HEAD request.
        status_code: Status for page responses. Forced reloads always use 409.
        encoding: Body encoding.

    Returns:
        The ASGI response.
    """
    response_headers = {**(headers or {}), **outcome.headers}
    if isinstance(outcome, ForceReload):
        return ASGIResponse(
            background=background,
            body=b"",
            cookies=cookies,
            encoded_headers=encoded_headers,
            encoding=encoding,
            headers=response_headers,
            is_head_response=is_head_response,
            status_code=outcome.status_code,
        )
    return ASGIResponse(
        background=background,
        body=outcome.body,
        cookies=cookies,
        encoded_headers=encoded_headers,
        encoding=encoding,
        headers=response_headers,
        is_head_response=is_head_response,
        media_type=outcome.media_type,
        status_code=status_code or outcome.status_code,
    )


class InertiaResponse(Response[T]):
    """Inertia Response

    ``content`` declares the page props: a mapping of names to values or
    :class:`~litestar_inertia.props.Prop` declarations, or a sequence of ``Prop``. Any other
    value is exposed as the ``content`` prop.
    """

    def __init__(
        self,
        content: T,
        *,
        component: "str | None" = None,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "ResponseCookies | None" = None,
        encoding: "str" = "utf-8",
        headers: "ResponseHeaders | None" = None,
        media_type: "MediaType | str | None" = None,
        status_code: "int" = HTTP_200_OK,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> None:
        """Handle the rendering of a page into a bytes string.

        Args:
            content: The page props.
            component: The component to render. Defaults to the component configured on the route handler.
            background: A :class:`BackgroundTask <.background_tasks.BackgroundTask>` instance or
                :class:`BackgroundTasks <.background_tasks.BackgroundTasks>` to execute after the response is finished.
                Defaults to ``None``.
            cookies: A list of :class:`Cookie <.datastructures.Cookie>` instances to be set under the response
                ``Set-Cookie`` header.
            encoding: Content encoding
            headers: A string keyed dictionary of response headers. Header keys are insensitive.
            media_type: Media type used when the route has no Inertia component.
            status_code: A value for the response HTTP status code.
            type_encoders: A mapping of types to callables that transform them into types supported for serialization.
        """
        self.content = content
        self.component = component
        self.background = background
        self.cookies: list[Cookie] = (
            [Cookie(key=key, value=value) for key, value in cookies.items()]
            if isinstance(cookies, Mapping)
            else list(cookies or [])
        )
        self.encoding = encoding
        self.headers: dict[str, Any] = (
            dict(headers) if isinstance(headers, Mapping) else {h.name: h.value for h in headers or {}}
        )
        self.media_type = media_type
        self.status_code = status_code
        self.response_type_encoders = {**(self.type_encoders or {}), **(type_encoders or {})}

    def declared_props(self) -> "Mapping[str, Any] | Iterable[Prop[Any]]":
        """Return the prop declarations carried by ``content``.

        Returns:
            A mapping or a sequence of props.
        """
        content: Any = self.content
        if content is None:
            return {}
        if isinstance(content, Mapping):
            return cast("Mapping[str, Any]", content)
        items = cast("Iterable[Any]", content)
        if isinstance(content, (list, tuple)) and content and all(is_prop(item) for item in items):
            return cast("Iterable[Prop[Any]]", content)
        if is_prop(content):
            return [content]
        return {"content": content}

    def to_asgi_response(
        self,
        app: "Litestar | None",
        request: "Request[UserT, AuthT, StateT]",
        *,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "Iterable[Cookie] | None" = None,
        encoded_headers: "Iterable[tuple[bytes, bytes]] | None" = None,
        headers: "dict[str, str] | None" = None,
        is_head_response: "bool" = False,
        media_type: "MediaType | str | None" = None,
        status_code: "int | None" = None,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> "ASGIResponse":
        headers = {**headers, **self.headers} if headers is not None else self.headers
        cookies = self.cookies if cookies is None else itertools.chain(self.cookies, cookies)
        type_encoders = (
            {**type_encoders, **(self.response_type_encoders or {})} if type_encoders else self.response_type_encoders
        )

        component = self.component or get_route_component(cast("Request[Any, Any, Any]", request))
        if component is None:
            resolved_media_type = get_enum_string_value(self.media_type or media_type or MediaType.JSON)
            return ASGIResponse(
                background=self.background or background,
                body=self.render(self.content, resolved_media_type, get_serializer(type_encoders)),
                cookies=cookies,
                encoded_headers=encoded_headers,
                encoding=self.encoding,
                headers=headers,
                is_head_response=is_head_response,
                media_type=resolved_media_type,
                status_code=self.status_code or status_code,
            )

        inertia_plugin = get_inertia_plugin(request.app)
        config = inertia_plugin.config
        outcome = render_outcome(
            RequestSignal.from_request(cast("Request[Any, Any, Any]", request)),
            config,
            component,
            collect_props(config.extra_static_page_props, self.declared_props()),
            portal=inertia_plugin.active_portal,
            type_encoders=type_encoders,
            encoding=self.encoding,
        )
        return outcome_to_asgi_response(
            outcome,
            background=self.background or background,
            cookies=cookies,
            encoded_headers=encoded_headers,
            headers=headers,
            is_head_response=is_head_response,
            status_code=self.status_code or status_code,
            encoding=self.encoding,
        )


def _get_redirect_url(request: "Request[Any, Any, Any]", url: "str | None") -> str:
    """Keep ``url`` when it stays on this site, otherwise use the application root.

    Relative URLs are kept. Absolute URLs must use http(s) and match the request host.

    Args:
        request: The current request.
        url: Where the handler wants to send the client.

    Returns:
        The redirect target.
    """
    base_url = str(request.base_url)
    if not url:
        return base_url

    target = urlparse(url)
    if not target.scheme and not target.netloc:
        return url
    if target.scheme not in {"http", "https"} or target.netloc != urlparse(base_url).netloc:
        return base_url
    return url


def _redirect_status(request: "Request[Any, Any, Any]") -> int:
    return HTTP_307_TEMPORARY_REDIRECT if request.method == "GET" else HTTP_303_SEE_OTHER


class InertiaExternalRedirect(Response[Any]):
    """Send the client on a full browser visit, e.g. to an OAuth provider.

    Answers ``409 Conflict`` with ``X-Inertia-Location``; the target may be on another origin.
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        super().__init__(
            content=b"",
            status_code=HTTP_409_CONFLICT,
            headers=get_headers(InertiaHeaderType(location=quote_location(redirect_to), vary=True)),
            **kwargs,
        )


class InertiaRedirect(Redirect):
    """Redirect to a page of this application.

    Off-site targets are replaced by the application root. Non-GET requests get ``303`` so
    the client follows up with a GET.
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=_get_redirect_url(request, redirect_to),
            status_code=_redirect_status(request),
            **kwargs,
        )


class InertiaBack(Redirect):
    """Redirect to the page named by the ``Referer`` header, or the application root."""

    def __init__(self, request: "Request[Any, Any, Any]", **kwargs: "Any") -> None:
        details = request.inertia if isinstance(request, InertiaRequest) else InertiaDetails(request.headers)
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=_get_redirect_url(request, details.referer),
            status_code=_redirect_status(request),
            **kwargs,
        )
