"""Tests for oasforge.loader -- descriptor files to route sets."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from oasforge import generate
from oasforge.exceptions import DescriptorError
from oasforge.introspectors.entity import DeclaredEntity
from oasforge.loader import (
    _load_from_stdin,
    _parse_content,
    load_descriptor,
    load_routes,
    parse_route_set,
)
from oasforge.models import RouteSet


# ---------------------------------------------------------------------------
# load_descriptor dispatch
# ---------------------------------------------------------------------------


class TestLoadDescriptor:
    """load_descriptor routes to the right reader."""

    def test_loads_yaml_file(self, petstore_routes_path: Path) -> None:
        raw = load_descriptor(str(petstore_routes_path))
        assert raw["info"]["title"] == "Pet Store"

    def test_loads_json_file(self, tree_routes_path: Path) -> None:
        raw = load_descriptor(str(tree_routes_path))
        assert raw["info"]["title"] == "Tree API"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DescriptorError, match="not found"):
            load_descriptor(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("   \n")
        with pytest.raises(DescriptorError, match="empty"):
            load_descriptor(str(path))

    def test_invalid_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(DescriptorError, match="Invalid JSON"):
            load_descriptor(str(path))

    def test_loads_from_stdin(self) -> None:
        content = json.dumps({"routes": [{"path": "/a"}]})
        with patch("oasforge.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(content)
            raw = load_descriptor("-")
        assert raw["routes"] == [{"path": "/a"}]

    def test_loads_from_url(self) -> None:
        response = httpx.Response(
            200,
            text="routes:\n  - path: /remote\n",
            headers={"content-type": "application/yaml"},
            request=httpx.Request("GET", "https://example.com/routes.yaml"),
        )
        with patch("oasforge.loader.httpx.get", return_value=response) as mock_get:
            raw = load_descriptor("https://example.com/routes.yaml")
        assert raw["routes"] == [{"path": "/remote"}]
        mock_get.assert_called_once()

    def test_url_http_error(self) -> None:
        response = httpx.Response(
            404,
            text="missing",
            request=httpx.Request("GET", "https://example.com/routes.yaml"),
        )
        with patch("oasforge.loader.httpx.get", return_value=response):
            with pytest.raises(DescriptorError, match="HTTP 404"):
                load_descriptor("https://example.com/routes.yaml")

    def test_url_connection_error(self) -> None:
        error = httpx.ConnectError("refused", request=httpx.Request("GET", "https://example.com/"))
        with patch("oasforge.loader.httpx.get", side_effect=error):
            with pytest.raises(DescriptorError, match="Failed to fetch"):
                load_descriptor("https://example.com/")


class TestStdin:
    def test_empty_stdin_raises(self) -> None:
        with patch("oasforge.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("")
            with pytest.raises(DescriptorError, match="No input"):
                _load_from_stdin()


# ---------------------------------------------------------------------------
# Content parsing
# ---------------------------------------------------------------------------


class TestParseContent:
    def test_json_first(self) -> None:
        assert _parse_content('{"routes": []}') == {"routes": []}

    def test_yaml_fallback(self) -> None:
        content = textwrap.dedent(
            """\
            info:
              title: YAML
            """
        )
        assert _parse_content(content)["info"]["title"] == "YAML"

    def test_top_level_list_is_routes(self) -> None:
        assert _parse_content('[{"path": "/a"}]') == {"routes": [{"path": "/a"}]}

    def test_scalar_document_rejected(self) -> None:
        with pytest.raises(DescriptorError, match="must be a JSON/YAML object"):
            _parse_content("42")

    def test_unparseable(self) -> None:
        with pytest.raises(DescriptorError, match="Failed to parse"):
            _parse_content("key: [unclosed")


# ---------------------------------------------------------------------------
# Validation and entities
# ---------------------------------------------------------------------------


class TestParseRouteSet:
    """Raw dicts to RouteSet models."""

    def test_petstore(self, petstore_routes_raw: dict) -> None:
        route_set = parse_route_set(petstore_routes_raw)
        assert isinstance(route_set, RouteSet)
        assert route_set.info.title == "Pet Store"
        assert route_set.servers[0].url == "https://petstore.example.com/api/v1"
        assert len(route_set.routes) == 5
        assert route_set.routes[-1].hidden is True

    def test_entity_names_swapped_for_entities(self, petstore_routes_raw: dict) -> None:
        route_set = parse_route_set(petstore_routes_raw)
        entity = route_set.routes[0].entity
        assert isinstance(entity, DeclaredEntity)
        assert entity.schema_name() == "API::Entities::Pet"
        assert route_set.routes[2].responses[0].entity is entity

    def test_entity_fields(self, petstore_routes_raw: dict) -> None:
        route_set = parse_route_set(petstore_routes_raw)
        pet = route_set.routes[0].entity
        fields = {exposure.name: exposure for exposure in pet.exposures()}
        assert list(fields) == ["id", "name", "status", "tags", "owner", "secret"]
        assert fields["tags"].is_array is True
        assert fields["secret"].conditional is True
        person = fields["owner"].target()
        assert person.schema_name() == "API::Entities::Person"
        assert person.exposures()[1].target() is pet

    def test_bracketed_entity_name(self) -> None:
        raw = {
            "entities": {"Tag": {"fields": {"label": "string"}}},
            "routes": [{"path": "/tags", "entity": "[Tag]"}],
        }
        entity = parse_route_set(raw).routes[0].entity
        assert isinstance(entity, list)
        assert entity[0].schema_name() == "Tag"

    def test_entity_inside_multi_type_brackets(self) -> None:
        raw = {
            "entities": {"Node": {"fields": {"id": "integer"}}},
            "routes": [{"path": "/n", "params": {"x": "[Node, Integer]"}}],
        }
        route_set = parse_route_set(raw)
        node, integer = route_set.routes[0].params["x"].type
        assert isinstance(node, DeclaredEntity)
        assert integer == "Integer"

        (param,) = generate(route_set, "oas3")["paths"]["/n"]["get"]["parameters"]
        assert param["schema"] == {
            "oneOf": [{"$ref": "#/components/schemas/Node"}, {"type": "integer"}]
        }

    def test_brackets_without_entities_stay_strings(self) -> None:
        raw = {
            "entities": {"Node": {}},
            "routes": [{"path": "/n", "params": {"x": "[String, Integer]"}}],
        }
        assert parse_route_set(raw).routes[0].params["x"].type == "[String, Integer]"

    def test_extends(self) -> None:
        raw = {
            "entities": {
                "Cat": {
                    "extends": "Pet",
                    "fields": {"name": {"type": "string", "as": "label"}, "lives": "integer"},
                },
                "Pet": {"fields": {"pet_type": "string", "name": "string"}},
            },
            "routes": [{"path": "/cats", "entity": "Cat"}],
        }
        cat = parse_route_set(raw).routes[0].entity
        assert cat.schema_parent().schema_name() == "Pet"
        assert [e.key for e in cat.exposures()] == ["pet_type", "label", "lives"]
        assert [e.key for e in cat.own_exposures()] == ["label", "lives"]

    def test_param_types_swapped(self) -> None:
        raw = {
            "entities": {"Tag": {}},
            "routes": [
                {
                    "path": "/x",
                    "params": {
                        "tag": {"type": "Tag"},
                        "any": {"types": ["Tag", "string"]},
                        "short": "Tag",
                    },
                }
            ],
        }
        params = parse_route_set(raw).routes[0].params
        assert isinstance(params["tag"].type, DeclaredEntity)
        assert isinstance(params["any"].types[0], DeclaredEntity)
        assert params["any"].types[1] == "string"
        assert isinstance(params["short"].type, DeclaredEntity)

    def test_field_alias_shorthand(self) -> None:
        raw = {
            "entities": {"Tag": {"fields": {"label": {"type": "string", "as": "name"}}}},
            "routes": [{"path": "/tags", "entity": "Tag"}],
        }
        (exposure,) = parse_route_set(raw).routes[0].entity.exposures()
        assert exposure.alias == "name"
        assert exposure.key == "name"

    def test_unknown_using_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        raw = {"entities": {"Tag": {"fields": {"owner": {"using": "Nobody"}}}}}
        with caplog.at_level("WARNING", logger="oasforge"):
            parse_route_set(raw)
        assert "Nobody" in caplog.text

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            ({"routes": {"path": "/a"}}, "'routes' must be a list"),
            ({"entities": ["Tag"]}, "'entities' must be a mapping"),
            ({"entities": {"Tag": {"fields": ["a"]}}}, "must be a mapping"),
            ({"entities": {"Tag": {"fields": {"a": 42}}}}, "invalid definition"),
            ({"routes": [{"method": "get"}]}, "Invalid route descriptor"),
            ({"entities": {"Cat": {"extends": "Pet"}}}, "extends unknown entity 'Pet'"),
            ({"entities": {"A": {"extends": "B"}, "B": {"extends": "A"}}}, "extends itself"),
        ],
    )
    def test_malformed(self, raw: dict, message: str) -> None:
        with pytest.raises(DescriptorError, match=message):
            parse_route_set(raw)

    def test_descriptor_error_exit_code(self) -> None:
        assert DescriptorError("x").exit_code == 4


class TestLoadRoutes:
    def test_one_step(self, tree_routes_path: Path) -> None:
        route_set = load_routes(str(tree_routes_path))
        assert [route.path for route in route_set.routes] == ["/nodes/{id}", "/nodes"]
