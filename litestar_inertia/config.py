"""Inertia.js configuration."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.exceptions import ImproperlyConfiguredException

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ("InertiaConfig",)


def empty_dict_factory() -> "dict[str, Any]":
    return {}


@dataclass
class InertiaConfig:
    """Configuration for InertiaJS support.

    Presence of an InertiaConfig instance (through :class:`InertiaPlugin
    <litestar_inertia.plugin.InertiaPlugin>`) indicates Inertia is enabled. The
    instance is shared by every request and is never modified once the app starts.

    Attributes:
        layout: Root HTML template function.
        version: Current asset version.
        component_opt_keys: Identifiers for getting inertia component from route opts.
        extra_static_page_props: Static props added to every page response.
    """

    layout: "Callable[[str], str]"
    """Render the root HTML document around a serialized page object.

    The callable receives the page object as JSON text and must return a complete HTML
    document. See :mod:`litestar_inertia.layout` and :mod:`litestar_inertia.vite` for
    ready-made layouts.
    """
    version: str
    """The current asset version (an opaque fingerprint of the client bundle).

    Inertia requests that assert a different version are answered with a forced reload.
    """
    component_opt_keys: "tuple[str, ...]" = ("component", "page")
    """Identifiers to use on routes to get the inertia component to render.

    The first key found in the route handler opts will be used.

    Example:
        # All equivalent:
        @get("/", component="Home")
        @get("/", page="Home")
    """
    extra_static_page_props: "dict[str, Any]" = field(default_factory=empty_dict_factory)
    """A dictionary of values to automatically add in to page props on every response.

    Handler props win when both declare the same name.
    """

    def __post_init__(self) -> None:
        """Validate the configuration.

        Raises:
            ImproperlyConfiguredException: If the layout is not callable or the version is not a string.
        """
        if not callable(self.layout):
            msg = "InertiaConfig.layout must be a callable accepting the serialized page and returning HTML."
            raise ImproperlyConfiguredException(msg)
        if not isinstance(self.version, str):  # pyright: ignore[reportUnnecessaryIsInstance]
            msg = f"InertiaConfig.version must be a string, got {type(self.version).__name__!r}."
            raise ImproperlyConfiguredException(msg)
        if not self.component_opt_keys:
            msg = "InertiaConfig.component_opt_keys cannot be empty."
            raise ImproperlyConfiguredException(msg)
