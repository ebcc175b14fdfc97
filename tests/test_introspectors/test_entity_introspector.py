"""Tests for oasforge.introspectors.entity -- declarative entities."""

from __future__ import annotations

import pytest

from oasforge.exceptions import CanonicalNameCollisionError
from oasforge.introspectors.base import Exposure, IntrospectionContext
from oasforge.introspectors.entity import DeclaredEntity, Entity, EntityIntrospector, expose, find_entity


# ---------------------------------------------------------------------------
# Sample entities
# ---------------------------------------------------------------------------


class TreeNode(Entity):
    """A node in a tree."""

    id = expose("integer")
    children = expose(using="TreeNode", is_array=True)


class Owner(Entity):
    __schema_name__ = "API::Entities::Owner"

    name = expose("string")
    dogs = expose(using=lambda: Dog, is_array=True)


class Dog(Entity):
    __schema_name__ = "API::Entities::Dog"

    name = expose("string")
    owner = expose(using=Owner)


class AuditStamp(Entity):
    created_at = expose("DateTime")
    updated_by = expose("string", documentation={"required": False})


class Invoice(Entity):
    number = expose("string", alias="invoice_number")
    amount = expose("Float", documentation={"desc": "Gross amount", "minimum": 0})
    line_ids = expose("integer", is_array=True)
    notes = expose("string", condition=lambda invoice, options: options.get("full"))
    internal_ref = expose("string", documentation={"required": False, "x-internal": True})
    audit = expose(using=AuditStamp, merge=True)


class BaseShape(Entity):
    kind = expose("string")
    size = expose("integer")


class Circle(BaseShape):
    size = expose("Float")
    radius = expose("Float")


class Animal(Entity):
    """An animal."""

    animal_type = expose("string", documentation={"is_discriminator": True, "desc": "Kind of animal"})
    name = expose("string")


class Cat(Animal):
    hunting_skill = expose("string", documentation={"values": ["clueless", "lazy", "adventurous"]})


class Hound(Animal):
    breed = expose("string")
    pack_size = expose("integer", documentation={"required": False})


# ---------------------------------------------------------------------------
# Entity declaration
# ---------------------------------------------------------------------------


class TestEntityDeclaration:
    """Field collection on Entity subclasses."""

    def test_exposures_in_declaration_order(self) -> None:
        assert [e.name for e in Invoice.exposures()] == [
            "number",
            "amount",
            "line_ids",
            "notes",
            "internal_ref",
            "audit",
        ]

    def test_subclass_replaces_parent_field_in_place(self) -> None:
        exposures = Circle.exposures()
        assert [e.name for e in exposures] == ["kind", "size", "radius"]
        assert exposures[1].type == "Float"

    def test_schema_name_defaults_to_qualname(self) -> None:
        assert TreeNode.schema_name() == "TreeNode"
        assert Dog.schema_name() == "API::Entities::Dog"

    def test_schema_description_from_docstring(self) -> None:
        assert TreeNode.schema_description() == "A node in a tree."
        assert Dog.schema_description() is None

    def test_exposure_key_prefers_alias(self) -> None:
        assert Exposure(name="number", alias="invoice_number").key == "invoice_number"
        assert Exposure(name="number", documentation={"as": "no"}).key == "no"
        assert Exposure(name="number").key == "number"

    def test_conditional_exposure_is_not_required(self) -> None:
        exposure = Exposure(name="x", condition=lambda *a: True, documentation={"required": True})
        assert exposure.required is False

    def test_find_entity_by_schema_name(self) -> None:
        assert find_entity("API::Entities::Owner") is Owner
        assert find_entity("TreeNode") is TreeNode
        assert find_entity("NoSuchEntity") is None


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------


class TestEntityIntrospector:
    """Entities to named object schemas."""

    def test_handles(self) -> None:
        introspector = EntityIntrospector()
        assert introspector.handles(TreeNode)
        assert introspector.handles(DeclaredEntity("Thing"))
        assert not introspector.handles(Entity)
        assert not introspector.handles("TreeNode")

    def test_self_reference_terminates(self, context: IntrospectionContext) -> None:
        schema = context.introspect(TreeNode)
        children = schema.properties["children"]
        assert children.type == "array"
        assert children.items.canonical_name == "TreeNode"
        assert children.items.stub is True
        assert list(context.definitions()) == ["TreeNode"]

    def test_mutual_cycle_produces_two_definitions(self, context: IntrospectionContext) -> None:
        context.introspect(Dog)
        definitions = context.definitions()
        assert list(definitions) == ["API::Entities::Dog", "API::Entities::Owner"]
        owner = definitions["API::Entities::Owner"]
        assert owner.properties["dogs"].items.canonical_name == "API::Entities::Dog"
        assert owner.properties["dogs"].items.stub is True

    def test_reference_stubs_are_distinct_objects(self, context: IntrospectionContext) -> None:
        first = context.reference_to(TreeNode)
        second = context.reference_to(TreeNode)
        assert first is not second
        assert first.canonical_name == second.canonical_name == "TreeNode"

    def test_alias_becomes_property_key(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Invoice)
        assert "invoice_number" in schema.properties
        assert "number" not in schema.properties

    def test_documentation_is_applied(self, context: IntrospectionContext) -> None:
        amount = context.introspect(Invoice).properties["amount"]
        assert amount.type == "number"
        assert amount.description == "Gross amount"
        assert amount.minimum == 0

    def test_is_array_wraps_type(self, context: IntrospectionContext) -> None:
        line_ids = context.introspect(Invoice).properties["line_ids"]
        assert line_ids.type == "array"
        assert line_ids.items.type == "integer"

    def test_conditional_field_is_optional_and_nullable(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Invoice)
        assert "notes" not in schema.required
        assert schema.properties["notes"].nullable is True

    def test_required_follows_documentation(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Invoice)
        assert "invoice_number" in schema.required
        assert "internal_ref" not in schema.required

    def test_extension_keys_copied(self, context: IntrospectionContext) -> None:
        internal_ref = context.introspect(Invoice).properties["internal_ref"]
        assert internal_ref.extensions == {"x-internal": True}

    def test_merge_splices_properties(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Invoice)
        assert "audit" not in schema.properties
        assert schema.properties["created_at"].format == "date-time"
        assert "created_at" in schema.required
        assert "updated_by" not in schema.required

    def test_string_using_resolves_by_class_name(self, context: IntrospectionContext) -> None:
        schema = context.introspect(TreeNode)
        assert schema.description == "A node in a tree."
        assert schema.properties["id"].type == "integer"


class TestDeclaredEntity:
    """Runtime-assembled payload types."""

    def test_special_character_keys_survive(self, context: IntrospectionContext) -> None:
        entity = DeclaredEntity("Envelope")
        entity.expose("type", "string", alias="@type")
        entity.expose("user-name", "string")
        schema = context.introspect(entity)
        assert list(schema.properties) == ["@type", "user-name"]

    def test_using_another_declared_entity(self, context: IntrospectionContext) -> None:
        tag = DeclaredEntity("Tag", exposures=[Exposure(name="label", type="string")])
        post = DeclaredEntity("Post")
        post.expose("tags", using=tag, is_array=True)
        schema = context.introspect(post)
        assert schema.properties["tags"].items.canonical_name == "Tag"
        assert list(context.definitions()) == ["Post", "Tag"]

    def test_same_name_distinct_types_collide(self, context: IntrospectionContext) -> None:
        context.introspect(DeclaredEntity("Dup"))
        with pytest.raises(CanonicalNameCollisionError, match="Dup"):
            context.introspect(DeclaredEntity("Dup"))

    def test_same_type_twice_is_fine(self, context: IntrospectionContext) -> None:
        entity = DeclaredEntity("Once")
        first = context.introspect(entity)
        second = context.introspect(entity)
        assert first.stub is False
        assert second.stub is True


class TestPolymorphism:
    """Discriminated parents and their subtypes."""

    def test_schema_parent_and_own_exposures(self) -> None:
        assert Cat.schema_parent() is Animal
        assert Animal.schema_parent() is None
        assert [e.name for e in Cat.own_exposures()] == ["hunting_skill"]
        assert [e.name for e in Cat.exposures()] == ["animal_type", "name", "hunting_skill"]

    def test_schema_name_is_not_inherited(self) -> None:
        class Puppy(Dog):
            pass

        assert Puppy.schema_name() == "TestPolymorphism.test_schema_name_is_not_inherited.Puppy"

    def test_parent_gets_discriminator(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Animal)
        assert schema.discriminator == "animal_type"
        assert list(schema.properties) == ["animal_type", "name"]
        assert schema.all_of == []

    def test_child_is_parent_ref_plus_own_fields(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Hound)
        assert schema.type is None
        assert schema.properties == {}
        assert schema.discriminator is None
        parent, own = schema.all_of
        assert parent.canonical_name == "Animal"
        assert parent.stub is True
        assert own.type == "object"
        assert list(own.properties) == ["breed", "pack_size"]
        assert own.required == ["breed"]
        assert list(context.definitions()) == ["Hound", "Animal"]

    def test_child_fields_keep_documentation(self, context: IntrospectionContext) -> None:
        _, own = context.introspect(Cat).all_of
        assert own.properties["hunting_skill"].enum == ["clueless", "lazy", "adventurous"]

    def test_without_discriminator_fields_are_flattened(self, context: IntrospectionContext) -> None:
        schema = context.introspect(Circle)
        assert schema.all_of == []
        assert list(schema.properties) == ["kind", "size", "radius"]

    def test_declared_entity_extends(self, context: IntrospectionContext) -> None:
        shape = DeclaredEntity("Shape")
        shape.expose("kind", "string", documentation={"is_discriminator": True})
        square = DeclaredEntity("Square", parent=shape)
        square.expose("side", "Float")
        assert [e.name for e in square.exposures()] == ["kind", "side"]

        schema = context.introspect(square)
        parent, own = schema.all_of
        assert parent.canonical_name == "Shape"
        assert list(own.properties) == ["side"]
        assert context.schema_for(shape).discriminator == "kind"
