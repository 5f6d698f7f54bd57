"""Inertia protocol types.

This module defines the Python-side data structures for the Inertia.js protocol: the
page object that both rendering paths share, and the closed set of outcomes a render
can produce.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypedDict, TypeVar, Union

from litestar.enums import MediaType
from litestar.status_codes import HTTP_200_OK, HTTP_409_CONFLICT

__all__ = (
    "ForceReload",
    "FullDocument",
    "InertiaHeaderType",
    "PageProps",
    "PartialPayload",
    "RenderOutcome",
)


T = TypeVar("T")


def _empty_headers_factory() -> "dict[str, str]":
    return {}


@dataclass(frozen=True)
class PageProps(Generic[T]):
    """Inertia Page Object.

    Built fresh for every response and never cached, since props are request-scoped.
    """

    component: str
    props: "dict[str, T]"
    url: str
    version: str

    def to_dict(self) -> "dict[str, Any]":
        """Return the wire shape of the page object.

        Returns:
            A dict with ``component``, ``props``, ``url`` and ``version`` keys, in that order.
        """
        return {
            "component": self.component,
            "props": self.props,
            "url": self.url,
            "version": self.version,
        }


@dataclass(frozen=True)
class FullDocument:
    """An HTML document embedding the page object as initial client state."""

    body: bytes
    headers: "dict[str, str]" = field(default_factory=_empty_headers_factory)
    status_code: int = HTTP_200_OK
    media_type: str = MediaType.HTML.value


@dataclass(frozen=True)
class PartialPayload:
    """The raw JSON page object returned to an Inertia client."""

    body: bytes
    headers: "dict[str, str]" = field(default_factory=_empty_headers_factory)
    status_code: int = HTTP_200_OK
    media_type: str = MediaType.JSON.value


@dataclass(frozen=True)
class ForceReload:
    """Instruct the client to perform a full browser visit to ``location``."""

    location: str
    headers: "dict[str, str]" = field(default_factory=_empty_headers_factory)
    status_code: int = HTTP_409_CONFLICT


RenderOutcome = Union[FullDocument, PartialPayload, ForceReload]
"""Exactly one of these is produced for each request."""


class InertiaHeaderType(TypedDict, total=False):
    """Type for inertia_headers parameter in get_headers()."""

    enabled: "bool | None"
    version: "str | None"
    location: "str | None"
    vary: "bool | None"
