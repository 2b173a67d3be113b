"""Binding markers attached to parameters and properties.

Markers are a closed set of variants. Host adapters translate framework
annotations into these, so the resolver never inspects framework types.

Usage with ``typing.Annotated``::

    def get_order(order_id: Annotated[int, RouteMarker(name="id")]): ...
    def search(filter: Annotated[SearchFilter, QueryMarker()]): ...
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal


# Plain dataclasses: pydantic keeps them as inert Annotated metadata on model fields.
@dataclass(frozen=True)
class Marker:
    pass


@dataclass(frozen=True)
class BodyMarker(Marker):
    name: str | None = None


@dataclass(frozen=True)
class QueryMarker(Marker):
    name: str | None = None


@dataclass(frozen=True)
class RouteMarker(Marker):
    name: str | None = None


@dataclass(frozen=True)
class HeaderMarker(Marker):
    name: str | None = None


@dataclass(frozen=True)
class WillReadBodyMarker(Marker):
    """Declares whether a custom binding reads the request body. No value means True."""

    value: bool | None = None


@dataclass(frozen=True)
class LegacyBindingMarker(Marker):
    """A framework-custom parameter binding.

    will_read_body is the capability declared by the binding itself,
    resolved by the adapter before classification.
    """

    will_read_body: WillReadBodyMarker | None = None


@dataclass(frozen=True)
class IgnoreMarker(Marker):
    reason: Literal["ignore", "bind_never", "from_services", "json_ignore"] = "ignore"


@dataclass(frozen=True)
class MarkerSet:
    """At most one marker of each kind, as attached to one parameter."""

    body: BodyMarker | None = None
    query: QueryMarker | None = None
    route: RouteMarker | None = None
    header: HeaderMarker | None = None
    legacy_binding: LegacyBindingMarker | None = None
    will_read_body_flag: WillReadBodyMarker | None = None
    ignore: IgnoreMarker | None = None

    @property
    def ignored(self) -> bool:
        return self.ignore is not None

    @property
    def will_read_body(self) -> WillReadBodyMarker | None:
        """The parameter's own flag, else the one declared by its custom binding."""
        if self.will_read_body_flag is not None:
            return self.will_read_body_flag
        if self.legacy_binding is not None:
            return self.legacy_binding.will_read_body
        return None


_FIELDS: dict[type, str] = {
    BodyMarker: "body",
    QueryMarker: "query",
    RouteMarker: "route",
    HeaderMarker: "header",
    LegacyBindingMarker: "legacy_binding",
    WillReadBodyMarker: "will_read_body_flag",
    IgnoreMarker: "ignore",
}


def extract_markers(markers: Iterable[Marker]) -> MarkerSet:
    """Collect at most one marker of each kind. The first of a kind wins."""
    found: dict[str, Marker] = {}
    for marker in markers:
        field = _FIELDS.get(type(marker))
        if field and field not in found:
            found[field] = marker
    return MarkerSet(**found)


def effective_name(marker: Marker | None, fallback: str) -> str:
    """Return the marker's override name when set and non-empty, else ``fallback``."""
    name = getattr(marker, "name", None)
    return name if name else fallback


def will_read_body(flag: WillReadBodyMarker) -> bool:
    return True if flag.value is None else flag.value
