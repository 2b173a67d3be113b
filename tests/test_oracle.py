import asyncio
import io
import xml.etree.ElementTree as ET
from enum import Enum
from typing import Annotated, Any, NamedTuple, Optional

from api_param_resolver.binding.markers import IgnoreMarker, QueryMarker, RouteMarker
from api_param_resolver.schema.oracle import TypeKind, TypeOracle, to_camel_case, to_snake_case, unwrap
from api_param_resolver.settings import GenerationSettings, PropertyNameHandling
from sample_api import CancellationToken, OrderQuery, Paging, SearchFilter, UploadFile, XmlDocument


class Color(Enum):
    RED = 1


class IFormFileCollection:
    pass


class PlainFilter:
    term: str
    limit: int = 10
    _cache: dict


class Point(NamedTuple):
    x: int
    y: int = 0


oracle = TypeOracle()


class TestUnwrap:
    def test_optional(self):
        assert unwrap(Optional[int]) == (int, True)
        assert unwrap(int | None) == (int, True)

    def test_annotated(self):
        assert unwrap(Annotated[int, QueryMarker()]) == (int, False)

    def test_multi_type_union(self):
        assert unwrap(int | str) == (Any, False)


class TestClassify:
    def test_primitives(self):
        for tp in (int, str, float, bool, bytes, Color, Any):
            assert oracle.classify(tp).kind == TypeKind.PRIMITIVE

    def test_nullable(self):
        info = oracle.classify(Optional[int])
        assert info.kind == TypeKind.PRIMITIVE
        assert info.nullable is True

    def test_array(self):
        info = oracle.classify(list[int])
        assert info.kind == TypeKind.ARRAY
        assert info.item.kind == TypeKind.PRIMITIVE
        assert info.is_complex is False

    def test_array_of_models_is_complex(self):
        info = oracle.classify(list[SearchFilter])
        assert info.kind == TypeKind.ARRAY
        assert info.is_complex is True

    def test_files(self):
        assert oracle.classify(UploadFile).kind == TypeKind.FILE
        assert oracle.classify(io.BytesIO).kind == TypeKind.FILE
        assert oracle.classify(list[UploadFile]).kind == TypeKind.FILE_ARRAY
        assert oracle.classify(IFormFileCollection).kind == TypeKind.FILE_ARRAY

    def test_complex(self):
        assert oracle.classify(SearchFilter).kind == TypeKind.COMPLEX
        assert oracle.classify(Paging).kind == TypeKind.COMPLEX
        assert oracle.classify(dict[str, int]).kind == TypeKind.COMPLEX

    def test_named_tuple_is_complex(self):
        assert oracle.classify(Point).kind == TypeKind.COMPLEX
        assert oracle.classify(tuple[int, ...]).kind == TypeKind.ARRAY


class TestSpecialTypes:
    def test_flow_control(self):
        assert oracle.is_flow_control(CancellationToken) is True
        assert oracle.is_flow_control(Optional[CancellationToken]) is True
        assert oracle.is_flow_control(asyncio.Event) is True
        assert oracle.is_flow_control(int) is False

    def test_raw_document(self):
        assert oracle.is_raw_document(XmlDocument) is True
        assert oracle.is_raw_document(ET.Element) is True
        assert oracle.is_raw_document(SearchFilter) is False


class TestProperties:
    def test_pydantic_model(self):
        props = oracle.properties(SearchFilter, source="filter")
        assert [p.name for p in props] == ["page", "size"]
        assert props[0].has_default is False
        assert props[1].has_default is True
        assert props[1].default == 20
        assert props[1].source == "filter.size"

    def test_markers_from_field_metadata(self):
        props = {p.source: p for p in oracle.properties(OrderQuery)}
        assert props["customer_id"].markers == (RouteMarker("customerId"),)
        assert props["status"].markers == (QueryMarker("state"),)
        assert props["internal"].markers == (IgnoreMarker("json_ignore"),)

    def test_dataclass(self):
        props = oracle.properties(Paging)
        assert [(p.name, p.has_default) for p in props] == [("page", False), ("size", True)]

    def test_plain_class_skips_private(self):
        props = oracle.properties(PlainFilter)
        assert [p.name for p in props] == ["term", "limit"]
        assert props[1].default == 10

    def test_named_tuple_fields(self):
        props = oracle.properties(Point)
        assert [(p.name, p.has_default, p.default) for p in props] == [("x", False, None), ("y", True, 0)]

    def test_camel_case_naming(self):
        camel = TypeOracle(GenerationSettings(default_property_name_handling=PropertyNameHandling.CAMEL_CASE))
        names = [p.name for p in camel.properties(OrderQuery)]
        assert names[:2] == ["customerId", "tenant"]


class TestNaming:
    def test_camel_case(self):
        assert to_camel_case("page_size") == "pageSize"
        assert to_camel_case("PageSize") == "pageSize"

    def test_snake_case(self):
        assert to_snake_case("pageSize") == "page_size"
        assert to_snake_case("HTTPStatus") == "http_status"
