"""Root HTML layouts.

A layout is any callable turning the serialized page object into a complete HTML
document (see :attr:`InertiaConfig.layout <litestar_inertia.config.InertiaConfig.layout>`).
The helpers here build the ``<div id="app" data-page="...">`` mount point the Inertia
client boots from, either inside a minimal built-in document or inside a Jinja template.
"""

from typing import TYPE_CHECKING, Any

from markupsafe import Markup

if TYPE_CHECKING:
    from collections.abc import Mapping

    from jinja2 import Environment

__all__ = ("JinjaLayout", "app_element", "default_layout", "escape_attr")


def escape_attr(value: str) -> str:
    """Escape attribute value for safe HTML embedding.

    Escapes special HTML characters: ``&``, ``"``, ``'``, ``<``, ``>``.

    Args:
        value: The attribute value to escape.

    Returns:
        The escaped value safe for use in HTML attribute values.
    """
    return (
        value
        .replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def app_element(page: str, element_id: str = "app") -> Markup:
    """Return the element the Inertia client mounts on.

    Args:
        page: The serialized page object.
        element_id: The ``id`` of the mount element.

    Returns:
        The ``div`` carrying the page object in its ``data-page`` attribute.
    """
    return Markup(f'<div id="{escape_attr(element_id)}" data-page="{escape_attr(page)}"></div>')


def default_layout(
    page: str,
    *,
    lang: str = "en",
    title: str = "Inertia",
    head: str = "",
    body: str = "",
) -> str:
    """Render a minimal HTML5 document around the app element.

    Args:
        page: The serialized page object.
        lang: Value of the ``<html lang>`` attribute.
        title: Document title.
        head: Trusted markup appended to ``<head>`` (script and stylesheet tags).
        body: Trusted markup appended to ``<body>`` after the app element.

    Returns:
        The HTML document.
    """
    return (
        "<!DOCTYPE html>"
        f'<html lang="{escape_attr(lang)}">'
        "<head>"
        f"<title>{Markup.escape(title)}</title>"
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">'
        f"{head}"
        "</head>"
        f"<body>{app_element(page)}{body}</body>"
        "</html>"
    )


class JinjaLayout:
    """Render the root document with a Jinja template.

    The template receives ``inertia`` (the page object as JSON text), ``application``
    (the ready-made app element) and any extra ``context``.

    Example::

        environment = Environment(loader=FileSystemLoader("templates"), autoescape=True)
        config = InertiaConfig(layout=JinjaLayout(environment, "index.html.j2"), version="1")
    """

    __slots__ = ("context", "environment", "template_name")

    def __init__(
        self,
        environment: "Environment",
        template_name: str,
        context: "Mapping[str, Any] | None" = None,
    ) -> None:
        """Initialize the layout.

        Args:
            environment: The Jinja environment to load the template from.
            template_name: Name of the root template.
            context: Extra values passed to every render.
        """
        self.environment = environment
        self.template_name = template_name
        self.context = dict(context or {})

    def __call__(self, page: str) -> str:
        """Render the template.

        Template lookup and rendering errors propagate to the caller.

        Args:
            page: The serialized page object.

        Returns:
            The HTML document.
        """
        template = self.environment.get_template(self.template_name)
        return template.render(**self.context, inertia=page, application=app_element(page))
