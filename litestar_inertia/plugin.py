from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from anyio.from_thread import start_blocking_portal
from litestar.plugins import InitPluginProtocol

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from anyio.from_thread import BlockingPortal
    from litestar import Litestar
    from litestar.config.app import AppConfig

    from litestar_inertia.config import InertiaConfig


class InertiaPlugin(InitPluginProtocol):
    """Inertia plugin.

    This plugin configures Litestar for Inertia.js support, including:
    - InertiaRequest and InertiaResponse as default classes
    - InertiaMiddleware for asset version checks and redirect status rewriting
    - A ``before_send`` hook adding ``Vary: X-Inertia`` to every response
    - A type encoder serializing props outside of prop resolution
    - A BlockingPortal for evaluating async props

    BlockingPortal Behavior:
        Litestar renders responses synchronously, but prop evaluators may be
        coroutine functions. The plugin opens a BlockingPortal for the lifetime
        of the application and the response uses it to run them. Outside of the
        app lifespan a short-lived portal is started per async prop instead.

    Example::

        from litestar_inertia import InertiaConfig, InertiaPlugin
        from litestar_inertia.layout import default_layout

        app = Litestar(plugins=[InertiaPlugin(InertiaConfig(layout=default_layout, version="1"))])
    """

    __slots__ = ("_portal", "config")

    def __init__(self, config: "InertiaConfig") -> "None":
        """Initialize the plugin with Inertia configuration."""
        self.config = config
        self._portal: "BlockingPortal | None" = None  # pyright: ignore[reportInvalidTypeForm]

    @asynccontextmanager
    async def lifespan(self, app: "Litestar") -> "AsyncGenerator[None, None]":
        """Lifespan to ensure the event loop is available.

        Args:
            app: The :class:`Litestar <litestar.app.Litestar>` instance.

        Yields:
            An asynchronous context manager.
        """
        with start_blocking_portal() as portal:
            self._portal = portal
            try:
                yield
            finally:
                self._portal = None

    @property
    def portal(self) -> "BlockingPortal":
        """Return the blocking portal used for async prop evaluation.

        Returns:
            The BlockingPortal instance.

        Raises:
            RuntimeError: If accessed before app lifespan is active.
        """
        if self._portal is None:
            msg = "BlockingPortal not available. Ensure app lifespan is active."
            raise RuntimeError(msg)
        return self._portal

    @property
    def active_portal(self) -> "BlockingPortal | None":
        """Return the lifespan portal, or None outside of the app lifespan."""
        return self._portal

    def on_app_init(self, app_config: "AppConfig") -> "AppConfig":
        """Configure application for use with Inertia.

        Args:
            app_config: The :class:`AppConfig <litestar.config.app.AppConfig>` instance.

        Returns:
            The :class:`AppConfig <litestar.config.app.AppConfig>` instance.
        """
        from litestar_inertia.middleware import InertiaMiddleware, add_vary_header
        from litestar_inertia.props import Prop
        from litestar_inertia.request import InertiaRequest
        from litestar_inertia.response import InertiaBack, InertiaResponse

        app_config.request_class = InertiaRequest
        app_config.response_class = InertiaResponse
        app_config.middleware.append(InertiaMiddleware)
        app_config.before_send.append(add_vary_header)
        app_config.signature_types.extend([InertiaRequest, InertiaResponse, InertiaBack, Prop])
        # Props that never pass through prop resolution (routes without a component, props
        # nested in another prop value) are serialized with their current value
        app_config.type_encoders = {
            Prop: lambda val: val.render(portal=self._portal),
            **(app_config.type_encoders or {}),
        }
        app_config.lifespan.append(self.lifespan)  # pyright: ignore[reportUnknownMemberType]
        return app_config
