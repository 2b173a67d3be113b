"""Builds parameter descriptors and body schemas from Python annotations."""

import datetime
import decimal
import logging
import uuid
from typing import Any, get_args, get_origin

from pydantic import TypeAdapter
from pydantic.errors import PydanticInvalidForJsonSchema, PydanticSchemaGenerationError

from api_param_resolver.binding.base import FormalParameter, ParameterDescriptor, ParameterKind
from api_param_resolver.schema.oracle import TypeKind, TypeOracle, enum_values, unwrap
from api_param_resolver.settings import EnumHandling, GenerationSettings

logger = logging.getLogger(__name__)

# Checked in order: bool before int, datetime before date.
_SCALAR_TYPES: list[tuple[type, str, str | None]] = [
    (bool, "boolean", None),
    (int, "integer", "int64"),
    (float, "number", "double"),
    (decimal.Decimal, "number", "decimal"),
    (bytes, "string", "byte"),
    (uuid.UUID, "string", "uuid"),
    (datetime.datetime, "string", "date-time"),
    (datetime.date, "string", "date"),
    (datetime.time, "string", "time"),
    (datetime.timedelta, "string", "duration"),
    (str, "string", None),
]


class ParameterBuilder:
    """Default parameter and body schema builder.

    Methods are coroutines so that builders doing documentation lookups can
    await I/O; the resolver awaits them one at a time.
    """

    def __init__(self, settings: GenerationSettings | None = None, oracle: TypeOracle | None = None):
        self.settings = settings or GenerationSettings()
        self.oracle = oracle or TypeOracle(self.settings)

    async def build_primitive_parameter(self, name: str, parameter: FormalParameter) -> ParameterDescriptor:
        description = self.oracle.classify(parameter.annotation, parameter.markers)
        param_type, fmt, items_type, enum = self.json_type(parameter.annotation)
        return ParameterDescriptor(
            name=name,
            kind=ParameterKind.QUERY,
            required=not parameter.has_default and not description.nullable,
            nullable=description.nullable,
            param_type=param_type,
            format=fmt,
            items_type=items_type,
            enum=enum,
            description=parameter.description,
            source=parameter.source,
        )

    async def build_body_parameter(self, name: str, parameter: FormalParameter) -> ParameterDescriptor:
        description = self.oracle.classify(parameter.annotation, parameter.markers)
        return ParameterDescriptor(
            name=name,
            kind=ParameterKind.BODY,
            required=not parameter.has_default,
            nullable=description.nullable,
            param_type=None,
            description=parameter.description,
            body_schema=self.body_schema(parameter.annotation),
            source=parameter.source,
        )

    async def build_path_parameter(self, name: str, type_hint: str | None) -> ParameterDescriptor:
        hint = type_hint.strip() if type_hint and type_hint.strip() else "string"
        return ParameterDescriptor(
            name=name,
            kind=ParameterKind.PATH,
            required=True,
            nullable=False,
            param_type="string",
            type_hint=hint,
            source=name,
        )

    def json_type(self, annotation: Any) -> tuple[str, str | None, str | None, list | None]:
        """Map an annotation to (type, format, items type, enum values)."""
        kind = self.oracle.classify(annotation).kind
        if kind in (TypeKind.FILE, TypeKind.FILE_ARRAY):
            return "file", None, None, None
        if kind == TypeKind.COMPLEX:
            return "object", None, None, None
        tp, _ = unwrap(annotation)
        if kind == TypeKind.ARRAY:
            args = [a for a in get_args(tp) if a is not Ellipsis]
            items_type = self.json_type(args[0])[0] if args else "string"
            return "array", None, items_type, None

        values = enum_values(tp)
        if values is not None:
            return self._enum_type(values), None, None, values

        origin = get_origin(tp) or tp
        if isinstance(origin, type):
            for scalar, name, fmt in _SCALAR_TYPES:
                if issubclass(origin, scalar):
                    return name, fmt, None, None
        return "string", None, None, None

    def _enum_type(self, values: list) -> str:
        if self.settings.default_enum_handling == EnumHandling.STRING:
            return "string"
        if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            return "integer"
        return "string"

    def body_schema(self, annotation: Any) -> dict:
        """JSON schema of a body type; a bare object schema when pydantic cannot build one."""
        try:
            return TypeAdapter(annotation).json_schema()
        except (PydanticSchemaGenerationError, PydanticInvalidForJsonSchema) as e:
            logger.debug("No JSON schema for %r: %s", annotation, e)
            return {"type": "object"}
