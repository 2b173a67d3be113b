"""Host framework adapters: translate annotation metadata into binding markers.

Framework objects are recognised by class name so no host framework has to
be installed. ASP.NET-style names (``FromBody``, ``FromQuery``...) and
FastAPI-style names (``Body``, ``Query``, ``Path``...) are understood.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from api_param_resolver.binding.markers import (
    BodyMarker,
    HeaderMarker,
    IgnoreMarker,
    LegacyBindingMarker,
    Marker,
    QueryMarker,
    RouteMarker,
    WillReadBodyMarker,
)

logger = logging.getLogger(__name__)

LEGACY_BINDING_BASE_NAMES = {"ParameterBinding", "ParameterBindingAttribute"}


def _override_name(obj: Any) -> str | None:
    for attr in ("name", "alias"):
        value = getattr(obj, attr, None)
        if isinstance(value, str) and value:
            return value
    return None


def _will_read_body(obj: Any) -> WillReadBodyMarker:
    value = getattr(obj, "will_read_body", None)
    return WillReadBodyMarker(value=value if isinstance(value, bool) else None)


ASPNET_MARKERS: dict[str, Callable[[Any], Marker]] = {
    "FromBody": lambda o: BodyMarker(name=_override_name(o)),
    "FromQuery": lambda o: QueryMarker(name=_override_name(o)),
    "FromUri": lambda o: QueryMarker(name=_override_name(o)),
    "FromRoute": lambda o: RouteMarker(name=_override_name(o)),
    "FromHeader": lambda o: HeaderMarker(name=_override_name(o)),
    "SwaggerIgnore": lambda o: IgnoreMarker(reason="ignore"),
    "OpenApiIgnore": lambda o: IgnoreMarker(reason="ignore"),
    "JsonIgnore": lambda o: IgnoreMarker(reason="json_ignore"),
    "BindNever": lambda o: IgnoreMarker(reason="bind_never"),
    "FromServices": lambda o: IgnoreMarker(reason="from_services"),
    "WillReadBody": _will_read_body,
}

FASTAPI_MARKERS: dict[str, Callable[[Any], Marker]] = {
    "Body": lambda o: BodyMarker(name=_override_name(o)),
    "Query": lambda o: QueryMarker(name=_override_name(o)),
    "Path": lambda o: RouteMarker(name=_override_name(o)),
    "Header": lambda o: HeaderMarker(name=_override_name(o)),
    "Depends": lambda o: IgnoreMarker(reason="from_services"),
    "Security": lambda o: IgnoreMarker(reason="from_services"),
}

# Binding source is decided by the parameter type for these.
NEUTRAL_NAMES = {"File", "Form"}


def _strip_attribute_suffix(name: str) -> str:
    return name[: -len("Attribute")] if name.endswith("Attribute") and name != "Attribute" else name


class MarkerAdapter:
    """Converts annotation metadata of one or more host frameworks into markers."""

    def __init__(self, *tables: dict[str, Callable[[Any], Marker]]):
        self.tables = tables or (ASPNET_MARKERS, FASTAPI_MARKERS)

    def to_markers(self, metadata: Iterable[Any]) -> list[Marker]:
        markers = []
        for item in metadata:
            marker = self.to_marker(item)
            if marker is not None:
                markers.append(marker)
        return markers

    def to_marker(self, item: Any) -> Marker | None:
        if isinstance(item, Marker):
            return item

        # Metadata may be given as a class rather than an instance.
        cls = item if isinstance(item, type) else type(item)
        name = _strip_attribute_suffix(cls.__name__)

        for table in self.tables:
            factory = table.get(name)
            if factory is not None:
                return factory(item)

        if name in NEUTRAL_NAMES:
            return None

        if self.is_legacy_binding(cls):
            return LegacyBindingMarker(will_read_body=self._declared_will_read_body(cls))

        logger.debug("Ignoring unrecognized annotation metadata %r", item)
        return None

    def is_recognized(self, item: Any) -> bool:
        """Return True if ``item`` is a marker or a known framework binding object."""
        if isinstance(item, Marker):
            return True
        cls = item if isinstance(item, type) else type(item)
        name = _strip_attribute_suffix(cls.__name__)
        return (
            any(name in table for table in self.tables)
            or name in NEUTRAL_NAMES
            or self.is_legacy_binding(cls)
        )

    @staticmethod
    def is_legacy_binding(cls: type) -> bool:
        return any(base.__name__ in LEGACY_BINDING_BASE_NAMES for base in cls.__mro__[1:])

    def _declared_will_read_body(self, cls: type) -> WillReadBodyMarker | None:
        """Read a will-read-body capability declared on the binding class itself."""
        for item in getattr(cls, "__markers__", ()):
            marker = self.to_marker(item)
            if isinstance(marker, WillReadBodyMarker):
                return marker
        value = cls.__dict__.get("will_read_body")
        if isinstance(value, bool):
            return WillReadBodyMarker(value=value)
        return None


default_adapter = MarkerAdapter()
