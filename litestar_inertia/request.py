from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import unquote

from litestar import Request
from litestar.connection.base import AuthT, StateT, UserT, empty_receive, empty_send
from litestar.datastructures import Headers

from litestar_inertia._utils import InertiaHeaders, parse_key_list

if TYPE_CHECKING:
    from collections.abc import Mapping

    from litestar.types import Receive, Scope, Send

    from litestar_inertia.plugin import InertiaPlugin

__all__ = ("InertiaDetails", "InertiaHeaders", "InertiaRequest", "PartialFilter", "RequestSignal")

_DEFAULT_COMPONENT_OPT_KEYS: "tuple[str, ...]" = ("component", "page")


@dataclass(frozen=True)
class PartialFilter:
    """An active partial-reload filter.

    ``only`` and ``except_`` are ``None`` when the matching header was not sent.
    """

    only: "frozenset[str] | None" = None
    except_: "frozenset[str] | None" = None


@dataclass(frozen=True)
class RequestSignal:
    """Read-only view of the Inertia-relevant parts of one request.

    Built once per request from the headers, then passed to every later stage.
    """

    is_inertia: bool
    method: str
    url: str
    client_version: "str | None" = None
    partial_component: "str | None" = None
    partial_only_keys: "frozenset[str] | None" = None
    partial_except_keys: "frozenset[str] | None" = None

    @classmethod
    def from_headers(cls, headers: "Headers | Mapping[str, str]", method: str, url: str) -> "RequestSignal":
        """Classify a request from its raw parts.

        Args:
            headers: The request headers.
            method: The HTTP method.
            url: The full request URL.

        Returns:
            The request signal.
        """
        return InertiaDetails(headers).to_signal(method=method, url=url)

    @classmethod
    def from_request(cls, request: "Request[Any, Any, Any]") -> "RequestSignal":
        """Classify a Litestar request.

        Args:
            request: The request.

        Returns:
            The request signal.
        """
        details = request.inertia if isinstance(request, InertiaRequest) else InertiaDetails(request.headers)
        return details.to_signal(method=request.method, url=str(request.url))

    @property
    def is_get(self) -> bool:
        return self.method.upper() == "GET"

    def partial_filter(self, component: str) -> "PartialFilter | None":
        """Return the partial filter that applies when rendering ``component``.

        A partial reload addressed to another component is ignored, so a client holding
        stale state never receives a subset of a page it is no longer on.

        Args:
            component: The component about to be rendered.

        Returns:
            The active filter, or None when the full prop set applies.
        """
        if not self.is_inertia or self.partial_component != component:
            return None
        if self.partial_only_keys is None and self.partial_except_keys is None:
            return None
        return PartialFilter(only=self.partial_only_keys, except_=self.partial_except_keys)


class InertiaDetails:
    """InertiaDetails holds all the values sent by Inertia client in headers and provide convenient properties."""

    def __init__(self, headers: "Headers | Mapping[str, str]") -> None:
        """Initialize :class:`InertiaDetails`"""
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)

    def _get_header_value(self, name: "InertiaHeaders") -> "str | None":
        """Parse request header

        Check for uri encoded header and unquotes it in readable format.

        Args:
            name: The header name.

        Returns:
            The header value, or None if the header was not sent.
        """
        value = self.headers.get(name.value.lower())
        if value is None:
            return None
        is_uri_encoded = self.headers.get(f"{name.value.lower()}-uri-autoencoded") == "true"
        return unquote(value) if is_uri_encoded else value

    def __bool__(self) -> bool:
        """Return True when the request is sent by an Inertia client.

        Returns:
            True if the request originated from an Inertia client, otherwise False.
        """
        value = self._get_header_value(InertiaHeaders.ENABLED)
        return value is not None and value.strip().lower() == "true"

    @cached_property
    def version(self) -> "str | None":
        """Return the Inertia asset version sent by the client.

        Returns:
            The version string, or None if not present.
        """
        return self._get_header_value(InertiaHeaders.VERSION)

    @cached_property
    def partial_component(self) -> "str | None":
        """Return the partial component name from headers.

        Returns:
            The partial component name, or None if not present.
        """
        return self._get_header_value(InertiaHeaders.PARTIAL_COMPONENT)

    @cached_property
    def partial_data(self) -> "str | None":
        """Return partial-data keys requested by the client.

        Returns:
            Comma-separated partial-data keys, or None if not present.
        """
        return self._get_header_value(InertiaHeaders.PARTIAL_DATA)

    @cached_property
    def partial_except(self) -> "str | None":
        """Return partial-except keys requested by the client.

        Returns:
            Comma-separated partial-except keys, or None if not present.
        """
        return self._get_header_value(InertiaHeaders.PARTIAL_EXCEPT)

    @cached_property
    def referer(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.REFERER)

    @cached_property
    def partial_keys(self) -> "frozenset[str] | None":
        return parse_key_list(self.partial_data)

    @cached_property
    def partial_except_keys(self) -> "frozenset[str] | None":
        return parse_key_list(self.partial_except)

    def to_signal(self, method: str, url: str) -> "RequestSignal":
        """Freeze the header values into a :class:`RequestSignal`.

        Non-Inertia requests never carry version or partial data, whatever headers they sent.

        Args:
            method: The HTTP method.
            url: The full request URL.

        Returns:
            The request signal.
        """
        if not self:
            return RequestSignal(is_inertia=False, method=method, url=url)
        return RequestSignal(
            is_inertia=True,
            method=method,
            url=url,
            client_version=self.version,
            partial_component=self.partial_component,
            partial_only_keys=self.partial_keys,
            partial_except_keys=self.partial_except_keys,
        )


class InertiaRequest(Request[UserT, AuthT, StateT]):
    """Inertia Request class to work with Inertia client."""

    __slots__ = ("inertia",)

    def __init__(self, scope: "Scope", receive: "Receive" = empty_receive, send: "Send" = empty_send) -> None:
        """Initialize :class:`InertiaRequest`"""
        super().__init__(scope=scope, receive=receive, send=send)
        self.inertia = InertiaDetails(self.headers)

    @property
    def is_inertia(self) -> bool:
        """True if the request contained inertia headers.

        Returns:
            True if the request contains Inertia headers, otherwise False.
        """
        return bool(self.inertia)

    @property
    def route_component(self) -> "str | None":
        """Return the component configured on the matched route handler.

        Returns:
            The route component name, or None if not configured.
        """
        return get_route_component(self)

    @property
    def inertia_enabled(self) -> bool:
        """True if the route handler contains an inertia enabled configuration.

        Returns:
            True if the route is configured with an Inertia component, otherwise False.
        """
        return self.route_component is not None

    @property
    def inertia_version(self) -> "str | None":
        """Get the Inertia asset version sent by the client.

        Returns:
            The version string sent by the client, or None if not present.
        """
        return self.inertia.version

    @property
    def signal(self) -> "RequestSignal":
        return RequestSignal.from_request(self)


def get_route_component(request: "Request[Any, Any, Any]") -> "str | None":
    """Return the route component from handler opts if present.

    Args:
        request: The request.

    Returns:
        The route component name, or None if not configured on the handler.
    """
    rh = request.scope.get("route_handler")  # pyright: ignore[reportUnknownMemberType]
    if not rh:
        return None
    component_opt_keys: "tuple[str, ...]" = _DEFAULT_COMPONENT_OPT_KEYS
    try:
        inertia_plugin: "InertiaPlugin" = request.app.plugins.get("InertiaPlugin")
        component_opt_keys = inertia_plugin.config.component_opt_keys
    except KeyError:
        pass

    for key in component_opt_keys:
        if (value := rh.opt.get(key)) is not None:
            return cast("str", value)
    return None
