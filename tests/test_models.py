from api_param_resolver.binding.base import (
    CollectionFormat,
    FormalParameter,
    Operation,
    ParameterDescriptor,
    ParameterKind,
    ResolvedOperation,
)
from api_param_resolver.binding.markers import QueryMarker
from api_param_resolver.errors import ConfigurationError, MultipleBodyParametersError


class TestParameterDescriptor:
    def test_create_required_path_parameter(self):
        p = ParameterDescriptor(name="id", kind=ParameterKind.PATH, required=True, param_type="integer")
        assert p.name == "id"
        assert p.required is True
        assert p.nullable is False
        assert p.collection_format is None
        assert p.description == ""

    def test_file_parameter(self):
        p = ParameterDescriptor(
            name="files",
            kind=ParameterKind.FORM_DATA,
            required=True,
            param_type="file",
            collection_format=CollectionFormat.MULTI,
        )
        assert p.is_file is True

    def test_kind_serializes_to_wire_name(self):
        p = ParameterDescriptor(name="upload", kind=ParameterKind.FORM_DATA, required=False)
        assert p.model_dump(mode="json")["kind"] == "formData"


class TestFormalParameter:
    def test_defaults(self):
        param = FormalParameter(name="q", annotation=str)
        assert param.markers == ()
        assert param.has_default is False
        assert param.default is None

    def test_markers_kept(self):
        param = FormalParameter(name="q", annotation=str, markers=(QueryMarker("query"),))
        assert param.markers[0].name == "query"


class TestOperation:
    def test_create_minimal_operation(self):
        op = Operation(operation_id="Users_List", path="/api/users")
        assert op.method == "GET"
        assert op.parameters == []

    def test_resolved_operation_roundtrip(self):
        resolved = ResolvedOperation(
            operation_id="Users_Delete",
            method="DELETE",
            path="/api/users/{id}",
            parameters=[ParameterDescriptor(name="id", kind=ParameterKind.PATH, required=True, param_type="integer")],
        )
        data = resolved.model_dump()
        resolved2 = ResolvedOperation(**data)
        assert resolved2.path == "/api/users/{id}"
        assert resolved2.parameters[0].kind == ParameterKind.PATH
        assert resolved2.consumes == []


class TestErrors:
    def test_multiple_body_error_names_operation(self):
        error = MultipleBodyParametersError("Orders_Create", ["order", "note"])
        assert isinstance(error, ConfigurationError)
        assert error.operation_id == "Orders_Create"
        assert str(error) == "The operation 'Orders_Create' has more than one body parameter: order, note."
