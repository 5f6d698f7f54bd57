"""Prop declarations and partial-reload resolution.

A page's props are declared as :class:`Prop` values carrying an evaluation strategy.
:func:`resolve_props` decides which props a response needs *before* evaluating any of
them, so an expensive ``lazy`` prop is only ever computed when a partial reload asks for
it by name.

Example::

    @get("/", component="Dashboard")
    async def dashboard() -> dict[str, Any]:
        return {
            "user": always("user", current_user),
            "title": "Dashboard",
            "stats": lazy("stats", compute_stats),
        }
"""

import inspect
import logging
from collections.abc import Callable, Coroutine, Generator, Iterable, Mapping
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeGuard, TypeVar, cast

from anyio.from_thread import BlockingPortal, start_blocking_portal

if TYPE_CHECKING:
    from litestar_inertia.request import PartialFilter

__all__ = (
    "Prop",
    "PropStrategy",
    "always",
    "collect_props",
    "is_prop",
    "lazy",
    "prop",
    "resolve_props",
    "should_render",
)

T = TypeVar("T")

logger = logging.getLogger("litestar_inertia")


class PropStrategy(str, Enum):
    """When a prop is part of a response."""

    ALWAYS = "always"
    """Included in every response, partial or not."""
    DEFAULT = "default"
    """Included unless a partial reload filters it out."""
    LAZY = "lazy"
    """Only evaluated and included when a partial reload names it in ``only``."""


class _Static(Generic[T]):
    """Plain values are returned as-is, even when they happen to be callable."""

    __slots__ = ("value",)

    def __init__(self, value: "T") -> None:
        self.value = value

    def __call__(self) -> "T":
        return self.value


class Prop(Generic[T]):
    """A named prop value plus its evaluation strategy.

    ``value`` may be a plain value or a (sync or async) callable; callables are
    evaluated on every :meth:`render` and never cached, since props are request-scoped.
    """

    __slots__ = ("_key", "_strategy", "_value")

    def __init__(
        self,
        key: str,
        value: "T | Callable[[], T] | Callable[[], Coroutine[Any, Any, T]]",
        strategy: "PropStrategy" = PropStrategy.DEFAULT,
    ) -> None:
        self._key = key
        self._value = value
        self._strategy = PropStrategy(strategy)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self._key!r}, strategy={self._strategy.value!r})"

    @property
    def key(self) -> str:
        return self._key

    @property
    def strategy(self) -> "PropStrategy":
        return self._strategy

    @property
    def is_deferred(self) -> bool:
        """True when producing the value requires calling the evaluator."""
        return callable(self._value) and not isinstance(self._value, _Static)

    def with_key(self, key: str) -> "Prop[T]":
        """Return this declaration under another name.

        Args:
            key: The new prop name.

        Returns:
            A prop sharing this prop's value and strategy.
        """
        if key == self._key:
            return self
        return Prop[T](key=key, value=self._value, strategy=self._strategy)

    @staticmethod
    @contextmanager
    def with_portal(portal: "BlockingPortal | None" = None) -> "Generator[BlockingPortal, None, None]":
        if portal is None:
            with start_blocking_portal() as p:
                yield p
        else:
            yield portal

    @staticmethod
    def _is_awaitable(v: "Callable[..., Any]") -> "TypeGuard[Callable[..., Coroutine[Any, Any, Any]]]":
        return inspect.iscoroutinefunction(v)

    def render(self, portal: "BlockingPortal | None" = None) -> "T":
        """Produce the prop value, calling the evaluator if there is one.

        Args:
            portal: Portal used to run async evaluators from synchronous code.

        Returns:
            The evaluated value.
        """
        if not callable(self._value):
            return cast("T", self._value)
        if not self._is_awaitable(self._value):
            return cast("T", self._value())
        with self.with_portal(portal) as p:
            return cast("T", p.call(self._value))


def always(key: str, value_or_callable: "T | Callable[..., T]") -> "Prop[T]":
    """Declare a prop included in every response, even partial reloads that do not name it.

    Args:
        key: The prop name.
        value_or_callable: The value, or a callable producing it.

    Returns:
        The prop.
    """
    return Prop[T](key=key, value=value_or_callable, strategy=PropStrategy.ALWAYS)


def prop(key: str, value_or_callable: "T | Callable[..., T]") -> "Prop[T]":
    """Declare a regular prop.

    Plain mapping values returned by a handler are treated the same way; use this to
    defer evaluation of a callable until the prop is known to be needed.

    Args:
        key: The prop name.
        value_or_callable: The value, or a callable producing it.

    Returns:
        The prop.
    """
    return Prop[T](key=key, value=value_or_callable, strategy=PropStrategy.DEFAULT)


def lazy(key: str, value_or_callable: "T | Callable[..., T]") -> "Prop[T]":
    """Declare a prop evaluated only when a partial reload requests it.

    Args:
        key: The prop name.
        value_or_callable: The value, or a (sync or async) callable producing it.

    Returns:
        The prop.
    """
    return Prop[T](key=key, value=value_or_callable, strategy=PropStrategy.LAZY)


def is_prop(value: "Any") -> "TypeGuard[Prop[Any]]":
    """Check if value is a declared prop.

    Args:
        value: Any value to check

    Returns:
        bool: True if value is a Prop
    """
    return isinstance(value, Prop)


def _as_prop(key: str, value: "Any") -> "Prop[Any]":
    if is_prop(value):
        return value.with_key(key)
    return Prop[Any](key=key, value=_Static(value), strategy=PropStrategy.DEFAULT)


def collect_props(*sources: "Mapping[str, Any] | Iterable[Prop[Any]] | None") -> "list[Prop[Any]]":
    """Flatten prop declarations into a single ordered list.

    Mappings contribute one prop per key (non-``Prop`` values become ``DEFAULT`` props);
    iterables must contain ``Prop`` instances. A later source replaces an earlier prop of
    the same name in place, so declaration order follows first appearance.

    Args:
        *sources: Prop declarations, lowest precedence first.

    Raises:
        ValueError: If one iterable source declares the same name twice.
        TypeError: If an iterable source contains something other than a Prop.

    Returns:
        The declared props.
    """
    props: "dict[str, Prop[Any]]" = {}
    for source in sources:
        if source is None:
            continue
        if isinstance(source, Mapping):
            for key, value in cast("Mapping[str, Any]", source).items():
                props[key] = _as_prop(key, value)
            continue
        seen: "set[str]" = set()
        for item in source:
            if not is_prop(item):
                msg = f"Expected a Prop declaration, got {type(item).__name__!r}."
                raise TypeError(msg)
            if item.key in seen:
                msg = f"Prop {item.key!r} is declared more than once."
                raise ValueError(msg)
            seen.add(item.key)
            props[item.key] = item
    return list(props.values())


def should_render(value: "Prop[Any]", partial: "PartialFilter | None" = None) -> bool:
    """Check if a prop belongs in the response.

    Args:
        value: The declared prop.
        partial: The active partial filter, if any.

    Returns:
        bool: True if the prop should be evaluated and serialized.
    """
    if value.strategy is PropStrategy.ALWAYS:
        return True
    if partial is None:
        return value.strategy is PropStrategy.DEFAULT
    if partial.only is not None:
        if value.key not in partial.only:
            return False
        return partial.except_ is None or value.key not in partial.except_
    # ``except`` alone never surfaces a lazy prop
    if value.strategy is PropStrategy.LAZY:
        return False
    return partial.except_ is None or value.key not in partial.except_


def resolve_props(
    props: "Iterable[Prop[Any]]",
    partial: "PartialFilter | None" = None,
    portal: "BlockingPortal | None" = None,
) -> "dict[str, Any]":
    """Select and evaluate the props for one response.

    Props are evaluated in declaration order, and only once selected. An evaluator that
    raises aborts the whole resolution; the exception propagates unchanged.

    Args:
        props: The declared props.
        partial: The active partial filter, if any.
        portal: Portal used to run async evaluators.

    Returns:
        The resolved props, in declaration order.
    """
    resolved: "dict[str, Any]" = {}
    for value in props:
        if not should_render(value, partial):
            continue
        if value.strategy is PropStrategy.LAZY:
            logger.debug("Evaluating lazy prop %r", value.key)
        resolved[value.key] = value.render(portal)
    return resolved
