from typing import TYPE_CHECKING, Any

from litestar.datastructures import MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import AbstractMiddleware

from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.protocol import negotiate_version, rewrite_redirect_status
from litestar_inertia.request import InertiaRequest, RequestSignal
from litestar_inertia.response import get_inertia_plugin, outcome_to_asgi_response

if TYPE_CHECKING:
    from litestar.response.base import ASGIResponse
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

__all__ = ("InertiaMiddleware", "add_vary_header", "redirect_on_asset_version_mismatch", "wrap_send")


def redirect_on_asset_version_mismatch(request: "InertiaRequest[Any, Any, Any]") -> "ASGIResponse | None":
    """Return the forced reload response when client and server asset versions differ.

    Returns:
        A ``409`` response carrying ``X-Inertia-Location`` when versions differ, otherwise None.
    """
    signal = RequestSignal.from_request(request)
    reload = negotiate_version(signal, get_inertia_plugin(request.app).config.version)
    if reload is None:
        return None
    return outcome_to_asgi_response(reload)


def wrap_send(signal: "RequestSignal", send: "Send") -> "Send":
    """Rewrite the redirect status of one request.

    Redirects answering Inertia ``PUT``/``PATCH``/``DELETE`` requests are sent as ``303``.

    Args:
        signal: The request signal.
        send: The downstream ASGI send callable.

    Returns:
        The wrapped send callable.
    """

    async def _send(message: "Message") -> None:
        if message["type"] == "http.response.start":
            message["status"] = rewrite_redirect_status(message["status"], signal.method, signal.is_inertia)
        await send(message)

    return _send


async def add_vary_header(message: "Message", scope: "Scope") -> None:
    """Mark a response as varying on ``X-Inertia``.

    Installed as a ``before_send`` hook so it also covers responses produced before routing
    completes, such as 404 and 405 errors.

    Args:
        message: The outgoing ASGI message.
        scope: The connection scope.
    """
    if message["type"] != "http.response.start":
        return
    headers = MutableScopeHeaders.from_message(message)
    vary = headers.get("vary") or ""
    if InertiaHeaders.ENABLED.value.lower() not in vary.lower():
        headers.extend_header_value("vary", InertiaHeaders.ENABLED.value)


class InertiaMiddleware(AbstractMiddleware):
    """Middleware for handling Inertia.js protocol requirements.

    This middleware:
    1. Detects version mismatches between client and server assets
    2. Returns 409 Conflict with X-Inertia-Location header when versions differ,
       before the route handler runs
    3. Rewrites redirects answering Inertia PUT, PATCH and DELETE requests to 303
    """

    scopes = {ScopeType.HTTP}  # noqa: RUF012

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.app = app

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        request: InertiaRequest[Any, Any, Any] = InertiaRequest(scope=scope)
        response = redirect_on_asset_version_mismatch(request)
        if response is not None:
            await response(scope, receive, send)
        else:
            await self.app(scope, receive, wrap_send(RequestSignal.from_request(request), send))
