"""Type descriptor oracle: structural classification of Python annotations."""

import asyncio
import collections.abc
import dataclasses
import datetime
import decimal
import io
import re
import threading
import types
import typing
import uuid
from enum import Enum
from typing import Annotated, Any, get_args, get_origin

from pydantic import BaseModel

from api_param_resolver.binding.adapters import MarkerAdapter, default_adapter
from api_param_resolver.binding.base import FormalParameter
from api_param_resolver.binding.markers import IgnoreMarker
from api_param_resolver.settings import GenerationSettings, PropertyNameHandling


class TypeKind(str, Enum):
    PRIMITIVE = "primitive"
    ARRAY = "array"
    FILE = "file"
    FILE_ARRAY = "file_array"
    COMPLEX = "complex"


class TypeDescription(typing.NamedTuple):
    kind: TypeKind
    nullable: bool = False
    item: "TypeDescription | None" = None

    @property
    def is_file(self) -> bool:
        return self.kind in (TypeKind.FILE, TypeKind.FILE_ARRAY)

    @property
    def is_array(self) -> bool:
        return self.kind in (TypeKind.ARRAY, TypeKind.FILE_ARRAY)

    @property
    def is_complex(self) -> bool:
        """Objects, and arrays of objects."""
        if self.kind == TypeKind.COMPLEX:
            return True
        return self.kind == TypeKind.ARRAY and self.item is not None and self.item.is_complex


PRIMITIVE_TYPES = (
    str, int, float, bool, bytes, decimal.Decimal, uuid.UUID,
    datetime.datetime, datetime.date, datetime.time, datetime.timedelta, Enum,
)

FILE_TYPE_NAMES = {"UploadFile", "UploadedFile", "FileStorage", "IFormFile", "HttpPostedFile", "File"}
FILE_COLLECTION_TYPE_NAMES = {"IFormFileCollection", "FileCollection"}
FLOW_CONTROL_TYPE_NAMES = {"CancellationToken", "CancelScope"}
RAW_DOCUMENT_TYPE_NAMES = {"XmlDocument"}

_ARRAY_TYPES = (list, tuple, set, frozenset, collections.deque)

# Abstract collections count only when named directly; models define __iter__ too.
_ARRAY_ABCS = {
    collections.abc.Sequence, collections.abc.MutableSequence,
    collections.abc.Set, collections.abc.MutableSet,
    collections.abc.Iterable, collections.abc.Collection,
}


def unwrap(annotation: Any) -> tuple[Any, bool]:
    """Strip ``Annotated`` and ``Optional`` wrappers. Returns (type, nullable)."""
    nullable = False
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
        elif origin in (typing.Union, types.UnionType):
            args = [a for a in get_args(annotation) if a is not type(None)]
            if len(args) < len(get_args(annotation)):
                nullable = True
            if len(args) != 1:
                # Unions of several concrete types have no single structure.
                return Any, nullable
            annotation = args[0]
        else:
            return annotation, nullable


def _class_names(tp: Any) -> set[str]:
    if not isinstance(tp, type):
        return set()
    return {cls.__name__ for cls in tp.__mro__}


def _is_named_tuple(tp: type) -> bool:
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


class TypeOracle:
    """Classifies annotations as primitive, array, file, file array or complex."""

    def __init__(self, settings: GenerationSettings | None = None, adapter: MarkerAdapter | None = None):
        self.settings = settings or GenerationSettings()
        self.adapter = adapter or default_adapter

    def classify(self, annotation: Any, markers: tuple = ()) -> TypeDescription:
        # markers are part of the contract; the Python oracle decides by type alone.
        tp, nullable = unwrap(annotation)
        origin = get_origin(tp) or tp

        if _class_names(origin) & FILE_COLLECTION_TYPE_NAMES:
            return TypeDescription(TypeKind.FILE_ARRAY, nullable, TypeDescription(TypeKind.FILE))
        if self._is_file(origin):
            return TypeDescription(TypeKind.FILE, nullable)
        if self._is_primitive(origin):
            return TypeDescription(TypeKind.PRIMITIVE, nullable)
        if origin in _ARRAY_ABCS or self._is_collection(origin):
            args = [a for a in get_args(tp) if a is not Ellipsis]
            item = self.classify(args[0]) if args else TypeDescription(TypeKind.PRIMITIVE)
            kind = TypeKind.FILE_ARRAY if item.kind == TypeKind.FILE else TypeKind.ARRAY
            return TypeDescription(kind, nullable, item)
        return TypeDescription(TypeKind.COMPLEX, nullable)

    def _is_primitive(self, tp: Any) -> bool:
        if tp is Any or tp is None or isinstance(tp, (str, typing.TypeVar)):
            return True
        if get_origin(tp) is typing.Literal or tp is typing.Literal:
            return True
        return isinstance(tp, type) and issubclass(tp, PRIMITIVE_TYPES)

    def _is_collection(self, tp: Any) -> bool:
        # NamedTuples are records, not sequences.
        return isinstance(tp, type) and issubclass(tp, _ARRAY_TYPES) and not _is_named_tuple(tp)

    def _is_file(self, tp: Any) -> bool:
        if not isinstance(tp, type):
            return False
        return issubclass(tp, io.IOBase) or bool(_class_names(tp) & FILE_TYPE_NAMES)

    def is_flow_control(self, annotation: Any) -> bool:
        """Cancellation and flow-control tokens are never bound from the request."""
        tp, _ = unwrap(annotation)
        if tp in (asyncio.Event, threading.Event):
            return True
        return bool(_class_names(tp) & FLOW_CONTROL_TYPE_NAMES)

    def is_raw_document(self, annotation: Any) -> bool:
        """XML documents are posted as raw ``application/xml`` bodies."""
        tp, _ = unwrap(annotation)
        if not isinstance(tp, type):
            return False
        if _class_names(tp) & RAW_DOCUMENT_TYPE_NAMES:
            return True
        return (tp.__module__, tp.__name__) in {
            ("xml.etree.ElementTree", "Element"),
            ("xml.etree.ElementTree", "ElementTree"),
            ("xml.dom.minidom", "Document"),
        }

    def properties(self, annotation: Any, source: str = "") -> list[FormalParameter]:
        """Return the externally visible properties of a complex type."""
        tp, _ = unwrap(annotation)
        if isinstance(tp, type) and issubclass(tp, BaseModel):
            return self._model_properties(tp, source)
        if dataclasses.is_dataclass(tp) and isinstance(tp, type):
            return self._dataclass_properties(tp, source)
        if isinstance(tp, type) and _is_named_tuple(tp):
            return self._named_tuple_properties(tp, source)
        if isinstance(tp, type) and not issubclass(tp, (dict, collections.abc.Mapping)):
            return self._class_properties(tp, source)
        return []

    def _model_properties(self, model: type[BaseModel], source: str) -> list[FormalParameter]:
        result = []
        for field_name, field in model.model_fields.items():
            metadata = list(field.metadata)
            if field.exclude is True:
                metadata.append(IgnoreMarker(reason="json_ignore"))
            result.append(
                FormalParameter(
                    name=field.alias or self.property_name(field_name),
                    annotation=field.annotation,
                    markers=tuple(self.adapter.to_markers(metadata)),
                    has_default=not field.is_required(),
                    default=None if field.is_required() else field.get_default(call_default_factory=False),
                    description=field.description or "",
                    source=f"{source}.{field_name}" if source else field_name,
                )
            )
        return result

    def _dataclass_properties(self, cls: type, source: str) -> list[FormalParameter]:
        hints = typing.get_type_hints(cls, include_extras=True)
        result = []
        for field in dataclasses.fields(cls):
            if field.name.startswith("_"):
                continue
            has_default = field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING
            result.append(
                self._hinted_property(
                    field.name,
                    hints.get(field.name, field.type),
                    has_default,
                    None if field.default is dataclasses.MISSING else field.default,
                    source,
                )
            )
        return result

    def _named_tuple_properties(self, cls: type, source: str) -> list[FormalParameter]:
        hints = typing.get_type_hints(cls, include_extras=True)
        defaults = cls._field_defaults
        return [
            self._hinted_property(name, hints.get(name, Any), name in defaults, defaults.get(name), source)
            for name in cls._fields
        ]

    def _class_properties(self, cls: type, source: str) -> list[FormalParameter]:
        try:
            hints = typing.get_type_hints(cls, include_extras=True)
        except (NameError, TypeError):
            hints = dict(getattr(cls, "__annotations__", {}))
        result = []
        for name, hint in hints.items():
            if name.startswith("_") or get_origin(hint) is typing.ClassVar:
                continue
            has_default = hasattr(cls, name)
            result.append(self._hinted_property(name, hint, has_default, getattr(cls, name, None), source))
        return result

    def _hinted_property(self, name: str, hint: Any, has_default: bool, default: Any, source: str) -> FormalParameter:
        metadata = get_args(hint)[1:] if get_origin(hint) is Annotated else ()
        return FormalParameter(
            name=self.property_name(name),
            annotation=hint,
            markers=tuple(self.adapter.to_markers(metadata)),
            has_default=has_default,
            default=default,
            source=f"{source}.{name}" if source else name,
        )

    def property_name(self, name: str) -> str:
        handling = self.settings.default_property_name_handling
        if handling == PropertyNameHandling.CAMEL_CASE:
            return to_camel_case(name)
        if handling == PropertyNameHandling.SNAKE_CASE:
            return to_snake_case(name)
        return name


def to_camel_case(name: str) -> str:
    head, *rest = re.split(r"_+", name.strip("_"))
    if not rest:
        return head[:1].lower() + head[1:]
    return head.lower() + "".join(part[:1].upper() + part[1:] for part in rest)


def to_snake_case(name: str) -> str:
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name).lower()


def enum_values(tp: Any) -> list | None:
    tp, _ = unwrap(tp)
    if get_origin(tp) is typing.Literal:
        return list(get_args(tp))
    if isinstance(tp, type) and issubclass(tp, Enum):
        return [member.value for member in tp]
    return None
