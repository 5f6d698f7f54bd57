from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from litestar_inertia.types import InertiaHeaderType


class InertiaHeaders(str, Enum):
    """Enum for Inertia Headers.

    See: https://inertiajs.com/the-protocol
    """

    ENABLED = "X-Inertia"
    VERSION = "X-Inertia-Version"
    LOCATION = "X-Inertia-Location"
    REFERER = "Referer"

    PARTIAL_DATA = "X-Inertia-Partial-Data"
    PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
    PARTIAL_EXCEPT = "X-Inertia-Partial-Except"


def get_enabled_header(enabled: bool = True) -> "dict[str, Any]":
    """True if inertia is enabled.

    Args:
        enabled: Whether inertia is enabled.

    Returns:
        The headers for inertia.
    """

    return {InertiaHeaders.ENABLED.value: "true" if enabled else "false"}


def get_version_header(version: str) -> "dict[str, Any]":
    """Return the asset version header.

    Args:
        version: The current server asset version.

    Returns:
        The headers for inertia.
    """
    return {InertiaHeaders.VERSION.value: version}


def get_location_header(location: str) -> "dict[str, Any]":
    """Return the header that instructs the client to perform a full visit.

    Args:
        location: The URL the browser should navigate to.

    Returns:
        The headers for inertia.
    """
    return {InertiaHeaders.LOCATION.value: location}


def get_vary_header(vary: bool = True) -> "dict[str, Any]":
    """Return the ``Vary`` header that keeps HTML and JSON bodies apart in caches."""
    return {"Vary": InertiaHeaders.ENABLED.value} if vary else {}


def get_headers(inertia_headers: "InertiaHeaderType") -> "dict[str, Any]":
    """Return headers for Inertia responses.

    Args:
        inertia_headers: The inertia headers.

    Raises:
        ValueError: If the inertia headers are None.

    Returns:
        The headers for inertia.
    """
    if not inertia_headers:
        msg = "Value for inertia_headers cannot be None."
        raise ValueError(msg)
    inertia_headers_dict: "dict[str, Callable[..., dict[str, Any]]]" = {
        "enabled": get_enabled_header,
        "version": get_version_header,
        "location": get_location_header,
        "vary": get_vary_header,
    }

    header: "dict[str, Any]" = {}
    response: "dict[str, Any]"
    key: "str"
    value: "Any"

    for key, value in inertia_headers.items():
        if value is not None:
            response = inertia_headers_dict[key](value)
            header.update(response)
    return header


def parse_key_list(value: "str | None") -> "frozenset[str] | None":
    """Parse a comma separated prop name list.

    ``None`` (header absent) stays ``None``. Anything else, including an empty or
    garbled value, becomes a possibly empty set of stripped, non-empty names.

    Args:
        value: The raw header value.

    Returns:
        The parsed names, or None when the header was not sent.
    """
    if value is None:
        return None
    return frozenset(name for name in (part.strip() for part in value.split(",")) if name)
