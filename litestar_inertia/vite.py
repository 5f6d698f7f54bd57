"""Layouts and asset versions for applications bundled with `Vite <https://vitejs.dev>`_.

:class:`ViteDevelopment` points the document at a running Vite dev server, while
:class:`ViteProduction` reads the build manifest, links the hashed entry files and derives
the asset version from the manifest contents.

Example::

    if is_production:
        config = ViteProduction.from_manifest("client/dist/manifest.json", "src/main.ts", title="My app").to_config()
    else:
        config = ViteDevelopment(port=5173, main="src/main.ts", title="My app", react=True).to_config()

    app = Litestar(plugins=[InertiaPlugin(config)])
"""

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from textwrap import dedent
from typing import TYPE_CHECKING, Any, cast

from litestar.exceptions import SerializationException
from litestar.serialization import decode_json
from markupsafe import Markup

from litestar_inertia.config import InertiaConfig
from litestar_inertia.exceptions import EntryMissingError, LitestarInertiaError, ManifestNotFoundError
from litestar_inertia.layout import app_element, default_layout

if TYPE_CHECKING:
    from jinja2 import Environment

__all__ = ("DEVELOPMENT_VERSION", "ManifestEntry", "ViteDevelopment", "ViteProduction")

DEVELOPMENT_VERSION = "development"
"""Asset version reported while assets are served by the Vite dev server."""


def _script_tag(src: str, attrs: "dict[str, str] | None" = None) -> str:
    attrs_str = " ".join(f'{key}="{value}"' for key, value in (attrs or {}).items())
    attrs_prefix = f"{attrs_str} " if attrs_str else ""
    return f'<script {attrs_prefix}src="{src}"></script>'


def _style_tag(href: str) -> str:
    return f'<link rel="stylesheet" href="{href}" />'


@dataclass
class ViteDevelopment:
    """Serve assets from a running Vite development server."""

    port: int = 5173
    """Port the Vite dev server listens on."""
    main: str = "src/main.ts"
    """Entry point, relative to the Vite root."""
    lang: str = "en"
    title: str = "Vite"
    react: bool = False
    """Include the React refresh preamble (required by ``@vitejs/plugin-react``)."""
    template_engine: "Environment | None" = None
    """Optional Jinja environment used instead of the built-in document."""
    layout_template: "str | None" = None
    """Template rendered with ``template_engine``."""

    def __post_init__(self) -> None:
        if (self.template_engine is None) != (self.layout_template is None):
            msg = "template_engine and layout_template must be supplied together."
            raise LitestarInertiaError(msg)

    @property
    def server_url(self) -> str:
        return f"http://localhost:{self.port}"

    def vite_client(self) -> Markup:
        return Markup(_script_tag(f"{self.server_url}/@vite/client", {"type": "module"}))

    def vite_main(self) -> Markup:
        return Markup(_script_tag(f"{self.server_url}/{self.main}", {"type": "module"}))

    def react_preamble(self) -> Markup:
        """Return the React refresh preamble, or nothing when React is not used.

        Some context here: https://github.com/vitejs/vite/issues/1984
        """
        if not self.react:
            return Markup("")
        return Markup(
            dedent(f"""
            <script type="module">
            import RefreshRuntime from "{self.server_url}/@react-refresh"
            RefreshRuntime.injectIntoGlobalHook(window)
            window.$RefreshReg$ = () => {{}}
            window.$RefreshSig$ = () => (type) => type
            window.__vite_plugin_react_preamble_installed__ = true
            </script>
            """)
        )

    def render(self, page: str) -> str:
        """Render the root document for ``page``.

        Args:
            page: The serialized page object.

        Returns:
            The HTML document.
        """
        if self.template_engine is not None and self.layout_template is not None:
            template = self.template_engine.get_template(self.layout_template)
            return template.render(
                vite_client=self.vite_client(),
                vite_main=self.vite_main(),
                vite_react_refresh=self.react_preamble(),
                application=app_element(page),
                inertia=page,
            )
        return default_layout(
            page,
            lang=self.lang,
            title=self.title,
            head=f"{self.react_preamble()}{self.vite_client()}{self.vite_main()}",
        )

    def to_config(self, **kwargs: Any) -> InertiaConfig:
        """Build an :class:`InertiaConfig` using this layout.

        Args:
            **kwargs: Extra :class:`InertiaConfig` fields.

        Returns:
            The Inertia configuration.
        """
        return InertiaConfig(layout=self.render, version=DEVELOPMENT_VERSION, **kwargs)


@dataclass(frozen=True)
class ManifestEntry:
    """One chunk of a Vite ``manifest.json``."""

    file: str
    integrity: "str | None" = None
    css: "tuple[str, ...]" = ()

    @classmethod
    def from_dict(cls, name: str, data: "Any") -> "ManifestEntry":
        """Read a manifest chunk.

        Args:
            name: The chunk name, used in error messages.
            data: The decoded chunk.

        Raises:
            LitestarInertiaError: If the chunk does not name its output file.

        Returns:
            The manifest entry.
        """
        if not isinstance(data, dict) or not isinstance(data.get("file"), str):
            msg = f"Vite manifest entry {name!r} does not define an output 'file'."
            raise LitestarInertiaError(msg)
        chunk = cast("dict[str, Any]", data)
        return cls(file=chunk["file"], integrity=chunk.get("integrity"), css=tuple(chunk.get("css") or ()))


@dataclass
class ViteProduction:
    """Serve the hashed assets listed in a Vite build manifest."""

    main: ManifestEntry
    version: str
    """SHA-1 hex digest of the manifest contents."""
    lang: str = "en"
    title: str = "Vite"
    asset_path: "str | None" = None
    """Optional URL prefix the built files are served under (e.g. ``"static"``)."""
    template_engine: "Environment | None" = None
    layout_template: "str | None" = None
    css: "tuple[str, ...]" = field(default=(), init=False)

    def __post_init__(self) -> None:
        if (self.template_engine is None) != (self.layout_template is None):
            msg = "template_engine and layout_template must be supplied together."
            raise LitestarInertiaError(msg)
        self.css = self.main.css

    @classmethod
    def from_manifest(cls, manifest_path: "str | Path", main: str, **kwargs: Any) -> "ViteProduction":
        """Read a Vite ``manifest.json`` from disk.

        Args:
            manifest_path: Path to the manifest file.
            main: Name of the entry chunk (e.g. ``"src/main.ts"``).
            **kwargs: Extra :class:`ViteProduction` fields.

        Raises:
            ManifestNotFoundError: If the file cannot be read.

        Returns:
            The production layout.
        """
        path = Path(manifest_path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestNotFoundError(str(path)) from exc
        return cls.from_manifest_string(content, main, manifest_path=str(path), **kwargs)

    @classmethod
    def from_manifest_string(
        cls,
        manifest: str,
        main: str,
        manifest_path: str = "<string>",
        **kwargs: Any,
    ) -> "ViteProduction":
        """Parse Vite manifest contents.

        Args:
            manifest: The manifest JSON text.
            main: Name of the entry chunk.
            manifest_path: Where the manifest came from, for error messages.
            **kwargs: Extra :class:`ViteProduction` fields.

        Raises:
            ManifestNotFoundError: If the manifest is not valid JSON.
            EntryMissingError: If ``main`` is not in the manifest.

        Returns:
            The production layout.
        """
        try:
            chunks = decode_json(manifest)
        except SerializationException as exc:
            raise ManifestNotFoundError(manifest_path) from exc
        if not isinstance(chunks, dict) or main not in chunks:
            raise EntryMissingError(main)
        entry = ManifestEntry.from_dict(main, cast("dict[str, Any]", chunks)[main])
        version = hashlib.sha1(manifest.encode("utf-8")).hexdigest()  # noqa: S324
        return cls(main=entry, version=version, **kwargs)

    def _asset_url(self, file: str) -> str:
        if self.asset_path:
            return f"/{self.asset_path.strip('/')}/{file}"
        return f"/{file}"

    def vite_main(self) -> Markup:
        attrs = {"type": "module"}
        if self.main.integrity:
            attrs["integrity"] = self.main.integrity
        return Markup(_script_tag(self._asset_url(self.main.file), attrs))

    def stylesheets(self) -> Markup:
        return Markup("".join(_style_tag(self._asset_url(css)) for css in self.css))

    def render(self, page: str) -> str:
        """Render the root document for ``page``.

        Args:
            page: The serialized page object.

        Returns:
            The HTML document.
        """
        if self.template_engine is not None and self.layout_template is not None:
            template = self.template_engine.get_template(self.layout_template)
            return template.render(
                vite_client=Markup(""),
                vite_main=self.vite_main(),
                vite_react_refresh=Markup(""),
                vite_css=self.stylesheets(),
                application=app_element(page),
                inertia=page,
            )
        return default_layout(page, lang=self.lang, title=self.title, head=f"{self.vite_main()}{self.stylesheets()}")

    def to_config(self, **kwargs: Any) -> InertiaConfig:
        """Build an :class:`InertiaConfig` using this layout and the manifest version.

        Args:
            **kwargs: Extra :class:`InertiaConfig` fields.

        Returns:
            The Inertia configuration.
        """
        return InertiaConfig(layout=self.render, version=self.version, **kwargs)
