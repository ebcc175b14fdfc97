"""End-to-end tests for oasforge.generator -- routes in, documents out."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from oasforge import generate, generate_all, registries
from oasforge.exceptions import CanonicalNameCollisionError, ExporterNotFoundError
from oasforge.exporter.oas3 import OAS30Exporter
from oasforge.generator import Generator
from oasforge.introspectors.entity import DeclaredEntity, Entity, expose
from oasforge.loader import load_routes, parse_route_set
from oasforge.models import GeneratorConfig, ServerInfo


class Branch(Entity):
    """A branch of a tree."""

    __schema_name__ = "Forest::Branch"

    id = expose("integer")
    children = expose(using="Branch", is_array=True)


class Timestamps(Entity):
    created_at = expose("DateTime")


class Article(Entity):
    __schema_name__ = "Blog::Article"

    title = expose("string")
    body = expose("string", condition=lambda article, options: options.get("full"))
    stamps = expose(using=Timestamps, merge=True)


class Zoo:
    class Pet(Entity):
        pet_type = expose(
            "string", documentation={"is_discriminator": True, "required": True, "desc": "Type of pet"}
        )
        name = expose("string", documentation={"required": True})

    class Cat(Pet):
        hunting_skill = expose(
            "string",
            documentation={
                "desc": "The measured skill for hunting",
                "values": ["clueless", "lazy", "adventurous", "aggressive"],
            },
        )

    class Dog(Pet):
        breed = expose("string")
        pack_size = expose("integer")


class RootTestItemEntity(Entity):
    id = expose("integer")
    name = expose("string")


class RootTestApiError(Entity):
    code = expose("integer")
    message = expose("string")


class Leash(Entity):
    length = expose("integer")


class Walk(Entity):
    leash = expose(using=Leash, documentation={"desc": "Leash in use", "x-unit": "cm"})
    spare = expose(using=Leash, documentation={"desc": "Spare leash", "nullable": True})


VERSIONS = [
    ("oas2", ("definitions",), "#/definitions/"),
    ("oas3", ("components", "schemas"), "#/components/schemas/"),
    ("oas31", ("components", "schemas"), "#/components/schemas/"),
]


def definitions_of(document: dict, container: tuple[str, ...]) -> dict:
    for key in container:
        document = document[key]
    return document


ITEM_ROUTE = {"path": "/items/:id", "method": "get", "params": {"id": "[String, Integer]"}}


# ---------------------------------------------------------------------------
# Core scenarios
# ---------------------------------------------------------------------------


class TestMultiTypePathParam:
    """A path parameter declared with two types."""

    def test_oas3_one_of(self) -> None:
        document = generate([ITEM_ROUTE], "oas3")
        assert document["paths"]["/items/{id}"]["get"]["parameters"] == [
            {
                "name": "id",
                "in": "path",
                "required": True,
                "schema": {"oneOf": [{"type": "string"}, {"type": "integer"}]},
            }
        ]

    def test_oas2_first_type(self) -> None:
        document = generate([ITEM_ROUTE], "oas2")
        (param,) = document["paths"]["/items/{id}"]["get"]["parameters"]
        assert param["type"] == "string"
        assert param["in"] == "path"
        assert param["required"] is True

    def test_oas31_one_of(self) -> None:
        document = generate([ITEM_ROUTE], "oas31")
        (param,) = document["paths"]["/items/{id}"]["get"]["parameters"]
        assert param["schema"] == {"oneOf": [{"type": "string"}, {"type": "integer"}]}


class TestSelfReferencingEntity:
    """Cyclic payload types produce one definition and terminate."""

    @pytest.mark.parametrize(("version", "container", "prefix"), VERSIONS)
    def test_single_definition(self, version: str, container: tuple[str, ...], prefix: str) -> None:
        document = generate([{"path": "/branches/:id", "entity": Branch}], version)
        definitions = definitions_of(document, container)
        assert list(definitions) == ["Forest_Branch"]
        children = definitions["Forest_Branch"]["properties"]["children"]
        assert children == {"type": "array", "items": {"$ref": prefix + "Forest_Branch"}}
        assert definitions["Forest_Branch"]["description"] == "A branch of a tree."


class TestFlatBody:
    def test_required_body_fields(self) -> None:
        route = {
            "path": "/users",
            "method": "post",
            "params": {
                "name": {"type": "string", "required": True, "location": "body"},
                "age": {"type": "integer", "location": "body"},
            },
        }
        document = generate([route], "oas3")
        body = document["paths"]["/users"]["post"]["requestBody"]
        schema = body["content"]["application/json"]["schema"]
        assert body["required"] is True
        assert schema["required"] == ["name"]
        assert list(schema["properties"]) == ["name", "age"]

    def test_oas2_body_parameter(self) -> None:
        route = {
            "path": "/users",
            "method": "post",
            "params": {"name": {"type": "string", "required": True, "location": "body"}},
        }
        operation = generate([route], "oas2")["paths"]["/users"]["post"]
        (param,) = operation["parameters"]
        assert param["in"] == "body"
        assert param["name"] == "body"
        assert param["schema"]["required"] == ["name"]
        assert operation["responses"]["201"]["description"] == "Success"


class TestEntities:
    def test_conditional_field(self) -> None:
        document = generate([{"path": "/articles", "entity": Article}], "oas31")
        article = document["components"]["schemas"]["Blog_Article"]
        assert "body" not in article["required"]
        assert article["properties"]["body"] == {"type": ["string", "null"]}

    def test_merged_fields(self) -> None:
        document = generate([{"path": "/articles", "entity": Article}], "oas3")
        schemas = document["components"]["schemas"]
        assert list(schemas["Blog_Article"]["properties"]) == ["title", "body", "created_at"]
        assert "Timestamps" not in schemas

    def test_same_name_in_one_build_collides(self) -> None:
        routes = [
            {"path": "/a", "entity": DeclaredEntity("Thing")},
            {"path": "/b", "entity": DeclaredEntity("Thing")},
        ]
        with pytest.raises(CanonicalNameCollisionError):
            generate(routes)

    def test_ref_annotations_kept_in_oas31(self) -> None:
        walk = generate([{"path": "/walks", "entity": Walk}], "oas31")["components"]["schemas"]["Walk"]
        leash_ref = {"$ref": "#/components/schemas/Leash"}
        assert walk["properties"]["leash"] == {**leash_ref, "description": "Leash in use", "x-unit": "cm"}
        assert walk["properties"]["spare"] == {
            "oneOf": [leash_ref, {"type": "null"}],
            "description": "Spare leash",
        }

    def test_ref_annotations_dropped_in_oas3(self) -> None:
        walk = generate([{"path": "/walks", "entity": Walk}], "oas3")["components"]["schemas"]["Walk"]
        leash_ref = {"$ref": "#/components/schemas/Leash"}
        assert walk["properties"]["leash"] == leash_ref
        assert walk["properties"]["spare"] == {
            "allOf": [leash_ref],
            "nullable": True,
            "description": "Spare leash",
        }


class TestPolymorphism:
    """A discriminated parent and two subtypes, in every version."""

    ROUTES = [
        {"path": "/pets/:id", "entity": Zoo.Pet},
        {"path": "/cats/:id", "entity": Zoo.Cat},
        {"path": "/dogs/:id", "entity": Zoo.Dog},
    ]

    def test_oas2_discriminator_is_a_string(self) -> None:
        pet = generate(self.ROUTES, "oas2")["definitions"]["Zoo_Pet"]
        assert pet["discriminator"] == "pet_type"

    @pytest.mark.parametrize("version", ["oas3", "oas31"])
    def test_oas3_discriminator_is_an_object(self, version: str) -> None:
        pet = generate(self.ROUTES, version)["components"]["schemas"]["Zoo_Pet"]
        assert pet["discriminator"] == {"propertyName": "pet_type"}

    @pytest.mark.parametrize(("version", "container", "prefix"), VERSIONS)
    def test_parent_keeps_its_properties(self, version: str, container: tuple[str, ...], prefix: str) -> None:
        pet = definitions_of(generate(self.ROUTES, version), container)["Zoo_Pet"]
        assert list(pet["properties"]) == ["pet_type", "name"]
        assert pet["required"] == ["pet_type", "name"]
        assert pet["type"] == "object"

    @pytest.mark.parametrize(("version", "container", "prefix"), VERSIONS)
    def test_children_are_all_of(self, version: str, container: tuple[str, ...], prefix: str) -> None:
        definitions = definitions_of(generate(self.ROUTES, version), container)
        cat, dog = definitions["Zoo_Cat"], definitions["Zoo_Dog"]

        assert len(cat["allOf"]) == 2
        assert cat["allOf"][0] == {"$ref": prefix + "Zoo_Pet"}
        own = cat["allOf"][1]
        assert own["type"] == "object"
        assert list(own["properties"]) == ["hunting_skill"]
        assert own["properties"]["hunting_skill"]["enum"] == ["clueless", "lazy", "adventurous", "aggressive"]
        assert "type" not in cat
        assert "discriminator" not in cat

        assert dog["allOf"][0] == {"$ref": prefix + "Zoo_Pet"}
        assert list(dog["allOf"][1]["properties"]) == ["breed", "pack_size"]
        assert dog["allOf"][1]["properties"]["pack_size"]["type"] == "integer"

    def test_declared_entities_extend(self) -> None:
        raw = {
            "entities": {
                "Pet": {"fields": {"pet_type": {"type": "string", "documentation": {"is_discriminator": True}}}},
                "Cat": {"extends": "Pet", "fields": {"lives": "integer"}},
            },
            "routes": [{"path": "/cats", "entity": "Cat"}],
        }
        schemas = generate(parse_route_set(raw), "oas3")["components"]["schemas"]
        assert list(schemas) == ["Cat", "Pet"]
        assert schemas["Cat"]["allOf"][0] == {"$ref": "#/components/schemas/Pet"}
        assert schemas["Pet"]["discriminator"] == {"propertyName": "pet_type"}


class TestResponseRoot:
    """Wrapping the success payload in a one-key envelope."""

    ROUTES = [
        {"path": "/item", "entity": RootTestItemEntity},
        {"path": "/item_with_root", "entity": RootTestItemEntity, "root": True},
        {"path": "/item_with_custom_root", "entity": RootTestItemEntity, "root": "custom_key"},
        {"path": "/items_with_root", "entity": RootTestItemEntity, "is_array": True, "root": True},
        {"path": "/error", "entity": RootTestApiError, "root": True},
    ]

    @staticmethod
    def oas2_schema(path: str) -> dict:
        return generate(TestResponseRoot.ROUTES, "oas2")["paths"][path]["get"]["responses"]["200"]["schema"]

    def test_no_root_by_default(self) -> None:
        assert self.oas2_schema("/item") == {"$ref": "#/definitions/RootTestItemEntity"}

    def test_root_true_uses_underscored_entity_name(self) -> None:
        assert self.oas2_schema("/item_with_root") == {
            "type": "object",
            "properties": {"root_test_item": {"$ref": "#/definitions/RootTestItemEntity"}},
        }

    def test_custom_root_name(self) -> None:
        assert list(self.oas2_schema("/item_with_custom_root")["properties"]) == ["custom_key"]

    def test_array_root_is_pluralized(self) -> None:
        schema = self.oas2_schema("/items_with_root")
        assert schema["type"] == "object"
        assert schema["properties"]["root_test_items"] == {
            "type": "array",
            "items": {"$ref": "#/definitions/RootTestItemEntity"},
        }

    def test_multi_word_name(self) -> None:
        assert list(self.oas2_schema("/error")["properties"]) == ["root_test_api_error"]

    @pytest.mark.parametrize("version", ["oas3", "oas31"])
    def test_oas3_root_wrapping(self, version: str) -> None:
        document = generate(self.ROUTES, version)
        content = document["paths"]["/item_with_root"]["get"]["responses"]["200"]["content"]
        schema = content["application/json"]["schema"]
        assert schema["type"] == "object"
        assert schema["properties"] == {"root_test_item": {"$ref": "#/components/schemas/RootTestItemEntity"}}


class TestUndeclaredPathVariable:
    """Template variables without a declared parameter still become path parameters."""

    ROUTE = {
        "path": "/x/{id}",
        "method": "DELETE",
        "params": {"b": {"type": "string", "location": "query"}, "b2": {"type": "integer", "location": "query"}},
    }

    def test_oas2(self) -> None:
        params = generate([self.ROUTE], "oas2")["paths"]["/x/{id}"]["delete"]["parameters"]
        assert [(p["name"], p["in"]) for p in params] == [("b", "query"), ("b2", "query"), ("id", "path")]
        assert params[2] == {"name": "id", "in": "path", "required": True, "type": "string"}

    @pytest.mark.parametrize("version", ["oas3", "oas31"])
    def test_oas3(self, version: str) -> None:
        params = generate([self.ROUTE], version)["paths"]["/x/{id}"]["delete"]["parameters"]
        assert params[2] == {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


class TestGenerator:
    """The Generator class and module-level helpers."""

    def test_output_is_deterministic(self, petstore_routes_path: Path) -> None:
        for version in ("oas2", "oas3", "oas31"):
            first = json.dumps(generate(load_routes(str(petstore_routes_path)), version))
            second = json.dumps(generate(load_routes(str(petstore_routes_path)), version))
            assert first == second

    def test_generate_all(self) -> None:
        documents = generate_all([ITEM_ROUTE])
        assert list(documents) == ["oas2", "oas3", "oas31"]
        assert documents["oas2"]["swagger"] == "2.0"
        assert documents["oas3"]["openapi"] == "3.0.3"
        assert documents["oas31"]["openapi"] == "3.1.0"

    def test_generate_all_accepts_a_generator(self) -> None:
        documents = generate_all((route for route in [ITEM_ROUTE]), ["oas2", "oas3"])
        assert "/items/{id}" in documents["oas2"]["paths"]
        assert "/items/{id}" in documents["oas3"]["paths"]

    def test_unknown_version(self) -> None:
        with pytest.raises(ExporterNotFoundError, match="oas4"):
            generate([ITEM_ROUTE], "oas4")

    def test_generate_all_checks_versions_first(self) -> None:
        with pytest.raises(ExporterNotFoundError):
            generate_all([ITEM_ROUTE], ["oas3", "swagger1"])

    def test_info_overrides(self) -> None:
        document = generate(
            [ITEM_ROUTE],
            title="Items",
            api_version="3.2.1",
            description="Item API",
            servers=[ServerInfo(url="https://items.test")],
        )
        assert document["info"] == {"title": "Items", "version": "3.2.1", "description": "Item API"}
        assert document["servers"] == [{"url": "https://items.test"}]

    def test_default_version_is_oas3(self) -> None:
        assert generate([ITEM_ROUTE])["openapi"] == "3.0.3"

    def test_build_then_export(self) -> None:
        generator = Generator()
        api = generator.build([ITEM_ROUTE])
        assert generator.export(api, "oas2")["swagger"] == "2.0"
        assert generator.export(api, "oas31")["openapi"] == "3.1.0"

    def test_generate_from_config(self) -> None:
        config = GeneratorConfig(spec_version="oas2", title="Configured")
        document = Generator().generate_from_config([ITEM_ROUTE], config)
        assert document["swagger"] == "2.0"
        assert document["info"]["title"] == "Configured"

    def test_custom_exporter_via_process_registry(self) -> None:
        class Internal30(OAS30Exporter):
            version = "3.0.0"

        registries.EXPORTERS.register(Internal30, "internal")
        assert generate([ITEM_ROUTE], "INTERNAL")["openapi"] == "3.0.0"


# ---------------------------------------------------------------------------
# Descriptor files
# ---------------------------------------------------------------------------


class TestPetstore:
    """The petstore descriptor through every exporter."""

    @pytest.fixture
    def routes(self, petstore_routes_path: Path):
        return load_routes(str(petstore_routes_path))

    def test_oas2(self, routes) -> None:
        document = generate(routes, "oas2")
        assert document["host"] == "petstore.example.com"
        assert document["basePath"] == "/api/v1"
        assert document["schemes"] == ["https"]
        assert list(document["paths"]) == ["/pets", "/pets/{id}"]
        assert list(document["definitions"]) == ["API_Entities_Pet", "API_Entities_Person"]
        assert document["securityDefinitions"]["api_key"]["in"] == "header"

        list_op = document["paths"]["/pets"]["get"]
        limit, status = list_op["parameters"]
        assert limit["type"] == "integer"
        assert (limit["minimum"], limit["maximum"]) == (1, 100)
        assert limit["description"] == "Page size"
        assert status["collectionFormat"] == "multi"
        assert list_op["responses"]["200"]["schema"]["items"] == {"$ref": "#/definitions/API_Entities_Pet"}

        create_op = document["paths"]["/pets"]["post"]
        assert create_op["security"] == [{"api_key": []}]
        assert create_op["parameters"][0]["schema"]["required"] == ["name"]

    def test_oas3(self, routes) -> None:
        document = generate(routes, "oas3")
        pet = document["components"]["schemas"]["API_Entities_Pet"]
        assert pet["description"] == "A pet in the store"
        assert pet["required"] == ["id", "name", "status", "tags", "owner"]
        assert pet["properties"]["id"] == {"type": "integer", "format": "int64", "description": "Unique identifier"}
        assert pet["properties"]["status"]["enum"] == ["available", "pending", "sold"]
        assert pet["properties"]["owner"] == {"$ref": "#/components/schemas/API_Entities_Person"}
        assert pet["properties"]["secret"] == {"type": "string", "nullable": True}

        get_op = document["paths"]["/pets/{id}"]["get"]
        assert list(get_op["responses"]) == ["200", "404"]
        assert get_op["responses"]["404"] == {"description": "Pet not found"}
        assert document["paths"]["/pets/{id}"]["delete"]["responses"] == {"204": {"description": "Success"}}

        status = document["paths"]["/pets"]["get"]["parameters"][1]
        assert (status["style"], status["explode"]) == ("form", True)

    def test_hidden_route_is_absent(self, routes) -> None:
        for version in ("oas2", "oas3", "oas31"):
            assert "/internal/reindex" not in generate(routes, version)["paths"]

    def test_tree(self, tree_routes_path: Path) -> None:
        document = generate(load_routes(str(tree_routes_path)), "oas31")
        schemas = document["components"]["schemas"]
        assert list(schemas) == ["Node"]
        assert schemas["Node"]["properties"]["children"]["items"] == {"$ref": "#/components/schemas/Node"}
        listing = document["paths"]["/nodes"]["get"]["responses"]["200"]["content"]["application/json"]
        assert listing["schema"] == {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}
