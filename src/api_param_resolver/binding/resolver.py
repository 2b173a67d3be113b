"""Operation parameter resolver.

Decides, for every formal parameter of an operation, which part of the
request it is bound from, then completes the result: placeholders without a
parameter are synthesized (when enabled), the route template is cleaned up,
multipart consumption is detected and the single-body rule is enforced.
"""

import logging
from dataclasses import dataclass, field

from api_param_resolver.binding.base import (
    CollectionFormat,
    FormalParameter,
    Operation,
    ParameterDescriptor,
    ParameterKind,
    ResolvedOperation,
)
from api_param_resolver.binding.markers import IgnoreMarker, MarkerSet, effective_name, extract_markers, will_read_body
from api_param_resolver.binding.routing import has_placeholder, iter_placeholders, rewrite_template
from api_param_resolver.errors import MultipleBodyParametersError
from api_param_resolver.schema.builder import ParameterBuilder
from api_param_resolver.schema.oracle import TypeDescription, TypeOracle
from api_param_resolver.settings import GenerationSettings

logger = logging.getLogger(__name__)

# Complex query parameters are expanded into their properties, never deeper.
EXPANSION_DEPTH = 1

XML_MEDIA_TYPE = "application/xml"
MULTIPART_MEDIA_TYPE = "multipart/form-data"


@dataclass
class ResolutionContext:
    """Per-operation state shared by the classification steps."""

    template: str
    consumes: list[str] = field(default_factory=list)


class OperationParameterResolver:
    """Resolves the binding source of every parameter of an operation."""

    def __init__(
        self,
        settings: GenerationSettings | None = None,
        oracle: TypeOracle | None = None,
        builder: ParameterBuilder | None = None,
    ):
        self.settings = settings or GenerationSettings()
        self.oracle = oracle or TypeOracle(self.settings)
        self.builder = builder or ParameterBuilder(self.settings, self.oracle)

    async def resolve(self, operation: Operation, route_template: str | None = None) -> ResolvedOperation:
        """Resolve all parameters of ``operation``.

        Raises MultipleBodyParametersError if more than one parameter is
        bound from the request body.
        """
        template = operation.path if route_template is None else route_template
        context = ResolutionContext(template=template)

        parameters: list[ParameterDescriptor] = []
        for parameter in operation.parameters:
            if self.is_skipped(parameter):
                logger.debug("%s: skipping parameter '%s'", operation.operation_id, parameter.name)
                continue
            parameters.extend(await self.classify_parameter(parameter, context))

        if self.settings.add_missing_path_parameters:
            parameters.extend(await self.synthesize_missing_path_parameters(template, parameters))

        path = rewrite_path(template, parameters)
        consumes = consumed_types(parameters, context.consumes)
        ensure_single_body_parameter(operation.operation_id, parameters)

        for p in parameters:
            logger.debug("%s: '%s' bound from %s", operation.operation_id, p.name, p.kind.value)
        logger.info("Resolved %d parameters for operation '%s'", len(parameters), operation.operation_id)

        return ResolvedOperation(
            operation_id=operation.operation_id,
            method=operation.method,
            path=path,
            parameters=parameters,
            consumes=consumes,
        )

    def is_skipped(self, parameter: FormalParameter) -> bool:
        if self.oracle.is_flow_control(parameter.annotation):
            return True
        # JSON-ignore only hides properties of a bound type.
        return any(
            isinstance(m, IgnoreMarker) and m.reason != "json_ignore"
            for m in parameter.markers
        )

    async def classify_parameter(
        self,
        parameter: FormalParameter,
        context: ResolutionContext,
        depth_remaining: int = EXPANSION_DEPTH,
    ) -> list[ParameterDescriptor]:
        """Apply the binding rules to one formal parameter."""
        markers = extract_markers(parameter.markers)

        # The template is matched on the query name even without a query marker.
        query_name = effective_name(markers.query, parameter.name)
        if has_placeholder(context.template, query_name):
            return [await self._path_parameter(query_name, parameter)]

        info = self.oracle.classify(parameter.annotation, parameter.markers)
        if info.is_file:
            return [await self._file_parameter(parameter.name, parameter, info)]

        if markers.route is not None:
            return [await self._path_parameter(effective_name(markers.route, parameter.name), parameter)]

        if markers.header is not None:
            descriptor = await self.builder.build_primitive_parameter(
                effective_name(markers.header, parameter.name), parameter
            )
            return [descriptor.model_copy(update={"kind": ParameterKind.HEADER})]

        body_name = effective_name(markers.body, parameter.name)

        if info.is_complex:
            if self._has_legacy_binding(markers):
                flag = markers.will_read_body
                if flag is None or will_read_body(flag):
                    return [await self._body_parameter(body_name, parameter, context)]
                # A custom binding that does not read the body: opaque query value.
                return [await self._query_parameter(query_name, parameter)]

            if markers.body is not None or (markers.query is None and not self.settings.complex_query_binding):
                return [await self._body_parameter(body_name, parameter, context)]

            return await self._expand(query_name, parameter, info, context, depth_remaining)

        if markers.body is not None:
            return [await self._body_parameter(body_name, parameter, context)]
        return [await self._query_parameter(query_name, parameter)]

    async def classify_property(
        self,
        prop: FormalParameter,
        context: ResolutionContext,
        depth_remaining: int,
    ) -> list[ParameterDescriptor]:
        """Apply the binding rules to one property of an expanded complex parameter."""
        markers = extract_markers(prop.markers)

        name = effective_name(markers.query, prop.name)
        name = effective_name(markers.route, name)
        name = effective_name(markers.header, name)

        info = self.oracle.classify(prop.annotation, prop.markers)
        if info.is_file:
            return [await self._file_parameter(name, prop, info)]

        if markers.route is not None or has_placeholder(context.template, name):
            return [await self._path_parameter(name, prop)]

        if markers.header is None and info.is_complex and not info.is_array and depth_remaining > 0:
            return await self._expand(name, prop, info, context, depth_remaining)

        descriptor = await self.builder.build_primitive_parameter(name, prop)
        kind = ParameterKind.HEADER if markers.header is not None else ParameterKind.QUERY
        return [descriptor.model_copy(update={"kind": kind})]

    async def _expand(
        self,
        name: str,
        parameter: FormalParameter,
        info: TypeDescription,
        context: ResolutionContext,
        depth_remaining: int,
    ) -> list[ParameterDescriptor]:
        """Bind a complex parameter from the query string, one parameter per property."""
        if info.is_array or depth_remaining <= 0:
            descriptor = await self.builder.build_primitive_parameter(name, parameter)
            return [descriptor.model_copy(update={"kind": ParameterKind.QUERY})]

        result = []
        for prop in self.oracle.properties(parameter.annotation, source=parameter.source or parameter.name):
            if extract_markers(prop.markers).ignored:
                continue
            result.extend(await self.classify_property(prop, context, depth_remaining - 1))
        return result

    def _has_legacy_binding(self, markers: MarkerSet) -> bool:
        return (
            markers.legacy_binding is not None
            and markers.body is None
            and markers.query is None
            and not self.settings.complex_query_binding
        )

    async def _path_parameter(self, name: str, parameter: FormalParameter) -> ParameterDescriptor:
        descriptor = await self.builder.build_primitive_parameter(name, parameter)
        # Path segments are always required, whatever the declared default.
        return descriptor.model_copy(update={"kind": ParameterKind.PATH, "required": True, "nullable": False})

    async def _query_parameter(self, name: str, parameter: FormalParameter) -> ParameterDescriptor:
        descriptor = await self.builder.build_primitive_parameter(name, parameter)
        return descriptor.model_copy(
            update={
                "kind": ParameterKind.QUERY,
                "required": descriptor.required or not parameter.has_default,
                "default": parameter.default if parameter.has_default else None,
            }
        )

    async def _file_parameter(
        self, name: str, parameter: FormalParameter, info: TypeDescription
    ) -> ParameterDescriptor:
        descriptor = await self.builder.build_primitive_parameter(name, parameter)
        return descriptor.model_copy(
            update={
                "kind": ParameterKind.FORM_DATA,
                "param_type": "file",
                "items_type": None,
                "collection_format": CollectionFormat.MULTI if info.is_array else None,
            }
        )

    async def _body_parameter(
        self, name: str, parameter: FormalParameter, context: ResolutionContext
    ) -> ParameterDescriptor:
        if self.oracle.is_raw_document(parameter.annotation):
            context.consumes = [XML_MEDIA_TYPE]
            return ParameterDescriptor(
                name=name,
                kind=ParameterKind.BODY,
                required=not parameter.has_default,
                nullable=True,
                param_type=None,
                description=parameter.description,
                source=parameter.source,
            )
        return await self.builder.build_body_parameter(name, parameter)

    async def synthesize_missing_path_parameters(
        self, template: str, parameters: list[ParameterDescriptor]
    ) -> list[ParameterDescriptor]:
        """Create path parameters for placeholders no parameter is bound to."""
        known = {p.name.lower() for p in parameters if p.kind == ParameterKind.PATH}
        synthesized = []
        for placeholder in iter_placeholders(template):
            if placeholder.name.lower() in known:
                continue
            logger.debug("Adding missing path parameter '%s'", placeholder.name)
            synthesized.append(await self.builder.build_path_parameter(placeholder.name, placeholder.constraint))
            known.add(placeholder.name.lower())
        return synthesized


def rewrite_path(template: str, parameters: list[ParameterDescriptor]) -> str:
    """Drop placeholders that no path parameter is bound to."""
    path_names = {p.name.lower() for p in parameters if p.kind == ParameterKind.PATH}
    return rewrite_template(template, lambda name: name.lower() in path_names)


def consumed_types(parameters: list[ParameterDescriptor], consumes: list[str]) -> list[str]:
    if any(p.is_file for p in parameters):
        return [MULTIPART_MEDIA_TYPE]
    return list(consumes)


def ensure_single_body_parameter(operation_id: str, parameters: list[ParameterDescriptor]) -> None:
    body = [p.name for p in parameters if p.kind == ParameterKind.BODY]
    if len(body) > 1:
        raise MultipleBodyParametersError(operation_id, body)


async def resolve(
    operation: Operation,
    route_template: str | None = None,
    settings: GenerationSettings | None = None,
) -> ResolvedOperation:
    """Resolve ``operation`` with the default oracle and builder."""
    return await OperationParameterResolver(settings).resolve(operation, route_template)
