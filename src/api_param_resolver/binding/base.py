"""Unified data models for operation parameter binding.

Host adapters convert callables into these input models; the resolver
produces the output descriptors handed to the document serializer.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ParameterKind(str, Enum):
    """Where a parameter's value is read from."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"
    FORM_DATA = "formData"


class CollectionFormat(str, Enum):
    MULTI = "multi"


class FormalParameter(BaseModel):
    """A declared parameter of an operation, or a property of a complex parameter type."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    annotation: Any = None
    markers: tuple = ()
    has_default: bool = False
    default: Any = None
    description: str = ""
    source: str = ""  # filter / filter.page


class ParameterDescriptor(BaseModel):
    """A single resolved operation parameter."""

    name: str
    kind: ParameterKind
    required: bool
    nullable: bool = False
    param_type: str | None = "string"  # string / integer / number / boolean / array / object / file
    format: str | None = None
    items_type: str | None = None
    enum: list | None = None
    default: Any = None
    collection_format: CollectionFormat | None = None
    description: str = ""
    body_schema: dict | None = None
    type_hint: str | None = None  # advisory, synthesized path parameters only
    source: str = ""

    @property
    def is_file(self) -> bool:
        return self.param_type == "file"


class Operation(BaseModel):
    """An operation to resolve: its route template and formal parameters."""

    operation_id: str
    method: str = "GET"
    path: str  # /users/{id:int}/orders
    parameters: list[FormalParameter] = []


class ResolvedOperation(BaseModel):
    """Resolution result: descriptors plus the rewritten route template."""

    operation_id: str
    method: str
    path: str
    parameters: list[ParameterDescriptor]
    consumes: list[str] = []

    def body_parameter(self) -> ParameterDescriptor | None:
        return next((p for p in self.parameters if p.kind == ParameterKind.BODY), None)
