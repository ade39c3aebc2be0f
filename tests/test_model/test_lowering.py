"""Tests for apimodel.model.lowering -- schema objects to items."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from apimodel.exceptions import ParseItemError, ValueConversionError
from apimodel.model import (
    ApiModel,
    Item,
    ListValue,
    MapValue,
    ObjectValue,
    OneOfEnumValue,
    PropertyOverrideValue,
    RefValue,
    ScalarKind,
    ScalarValue,
    SetValue,
    StringEnumValue,
)


def component(model: ApiModel, name: str) -> Item:
    return model.resolve(model.get_named_reference(f"#/components/schemas/{name}"))


@pytest.fixture
def lower(
    make_doc: Callable[..., dict[str, Any]], build_model: Callable[..., ApiModel]
) -> Callable[..., ApiModel]:
    """Convert a document holding only the given component schemas."""

    def _lower(schemas: dict[str, Any], **options: Any) -> ApiModel:
        return build_model(make_doc(schemas), **options)

    return _lower


# ---------------------------------------------------------------------------
# Scalars and string enumerations
# ---------------------------------------------------------------------------


class TestScalars:
    def test_plain_integer_is_signed_64_bit(self, lower) -> None:
        item = component(lower({"Count": {"type": "integer"}}), "Count")
        assert isinstance(item.value, ScalarValue)
        assert item.value.scalar.kind is ScalarKind.I64

    def test_bounded_integer(self, lower) -> None:
        item = component(lower({"Small": {"type": "integer", "minimum": 0, "maximum": 5}}), "Small")
        assert item.value.scalar.kind is ScalarKind.BOUNDED_I64
        assert (item.value.scalar.minimum, item.value.scalar.maximum) == (0, 5)

    def test_bounded_integers_can_be_disabled(self, lower) -> None:
        model = lower({"Small": {"type": "integer", "minimum": 1, "maximum": 5}}, bounded_integers=False)
        assert component(model, "Small").value.scalar.kind is ScalarKind.I64

    def test_boolean(self, lower) -> None:
        assert component(lower({"Flag": {"type": "boolean"}}), "Flag").value.scalar.kind is ScalarKind.BOOL

    def test_null_type_is_unit(self, lower) -> None:
        assert component(lower({"Nothing": {"type": "null"}}), "Nothing").value.scalar.kind is ScalarKind.UNIT

    def test_untyped_schema_is_any(self, lower) -> None:
        assert component(lower({"Blob": {}}), "Blob").value.scalar.kind is ScalarKind.ANY

    def test_string_format(self, lower) -> None:
        item = component(lower({"When": {"type": "string", "format": "date-time"}}), "When")
        assert item.value.scalar.kind is ScalarKind.DATE_TIME


class TestStringEnums:
    def test_closed_enum(self, lower) -> None:
        item = component(lower({"Letter": {"type": "string", "enum": ["A", "B", "C"]}}), "Letter")
        assert isinstance(item.value, StringEnumValue)
        assert item.value.variants == ["A", "B", "C"]
        assert not item.value.extensible
        assert item.value.other_variant is None

    def test_extensible_enum_has_one_catch_all(self, lower) -> None:
        schema = {"type": "string", "x-extensible-enum": ["A", "B", "C"]}
        item = component(lower({"Letter": schema}), "Letter")
        assert item.value.variants == ["A", "B", "C"]
        assert item.value.extensible
        assert item.value.other_variant == "Other"

    def test_catch_all_avoids_declared_variant(self, lower) -> None:
        schema = {"type": "string", "x-extensible-enum": ["other", "Other"]}
        item = component(lower({"Kind": schema}), "Kind")
        assert item.value.other_variant == "Other_"

    def test_type_inferred_from_string_enum(self, lower) -> None:
        item = component(lower({"Letter": {"enum": ["x", "y"]}}), "Letter")
        assert isinstance(item.value, StringEnumValue)

    def test_null_member_absorbed_into_nullability(self, lower) -> None:
        schema = {"type": "string", "nullable": True, "enum": ["a", None]}
        model = lower({"Choice": schema})
        outer = component(model, "Choice")
        assert outer.nullable
        inner = model.resolve(outer.value.target)
        assert inner.value.variants == ["a"]

    def test_enum_and_extensible_enum_conflict(self, lower) -> None:
        schema = {"type": "string", "enum": ["a"], "x-extensible-enum": ["b"]}
        with pytest.raises(ValueConversionError, match="cannot specify both"):
            lower({"Both": schema})

    def test_format_and_enum_conflict(self, lower) -> None:
        schema = {"type": "string", "format": "uuid", "enum": ["a"]}
        with pytest.raises(ValueConversionError, match="format and enumeration"):
            lower({"Both": schema})

    def test_non_string_member_raises(self, lower) -> None:
        with pytest.raises(ValueConversionError):
            lower({"Mixed": {"type": "string", "enum": ["a", 1]}})


# ---------------------------------------------------------------------------
# Containers and objects
# ---------------------------------------------------------------------------


class TestContainers:
    def test_array_is_list(self, lower) -> None:
        model = lower({"Names": {"type": "array", "items": {"type": "string"}}})
        item = component(model, "Names")
        assert isinstance(item.value, ListValue)
        assert model.resolve(item.value.item).generated_name == "NamesItem"

    def test_unique_items_is_set(self, lower) -> None:
        schema = {"type": "array", "uniqueItems": True, "items": {"type": "string"}}
        assert isinstance(component(lower({"Tags": schema}), "Tags").value, SetValue)

    def test_array_without_items_holds_any(self, lower) -> None:
        model = lower({"Bag": {"type": "array"}})
        element = model.resolve(component(model, "Bag").value.item)
        assert element.value.scalar.kind is ScalarKind.ANY

    def test_untyped_map(self, lower) -> None:
        item = component(lower({"Meta": {"type": "object", "additionalProperties": True}}), "Meta")
        assert isinstance(item.value, MapValue)
        assert item.value.value_type is None

    def test_typed_map(self, lower) -> None:
        schema = {"type": "object", "additionalProperties": {"type": "integer"}}
        model = lower({"Counts": schema})
        item = component(model, "Counts")
        assert model.resolve(item.value.value_type).value.scalar.kind is ScalarKind.I64

    def test_properties_and_additional_properties_conflict(self, lower) -> None:
        schema = {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "additionalProperties": {"type": "string"},
        }
        with pytest.raises(ValueConversionError, match="additionalProperties"):
            lower({"Broken": schema})

    def test_additional_properties_false_is_ignored(self, lower) -> None:
        schema = {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "additionalProperties": False,
        }
        assert isinstance(component(lower({"Closed": schema}), "Closed").value, ObjectValue)


class TestObjects:
    def test_members_keep_order_and_optionality(self, petstore_model: ApiModel) -> None:
        pet = component(petstore_model, "Pet")
        assert list(pet.value.members) == ["id", "name", "tag", "status"]
        assert not pet.value.members["id"].inline_option
        assert pet.value.members["tag"].inline_option

    def test_read_only_comes_from_inline_member(self, lower) -> None:
        schema = {
            "type": "object",
            "properties": {
                "id": {"type": "string", "readOnly": True},
                "secret": {"type": "string", "writeOnly": True},
            },
        }
        members = component(lower({"Account": schema}), "Account").value.members
        assert members["id"].read_only and not members["id"].write_only
        assert members["secret"].write_only

    def test_repeated_member_name_is_qualified(self, petstore_model: ApiModel) -> None:
        new_pet = component(petstore_model, "NewPet")
        name = petstore_model.resolve(new_pet.value.members["name"].definition)
        assert name.generated_name == "NewPetName"

    def test_type_inferred_from_properties(self, lower) -> None:
        schema = {"properties": {"a": {"type": "string"}}}
        assert isinstance(component(lower({"Loose": schema}), "Loose").value, ObjectValue)

    def test_self_reference(self, shapes_model: ApiModel) -> None:
        tree = component(shapes_model, "Tree")
        children = shapes_model.resolve(tree.value.members["children"].definition)
        assert shapes_model.resolve(children.value.item) is tree


# ---------------------------------------------------------------------------
# Naming, nullability and extensions
# ---------------------------------------------------------------------------


class TestNaming:
    def test_nullable_wraps_inner_item(self, lower) -> None:
        model = lower({"Nick": {"type": "string", "nullable": True}})
        outer = component(model, "Nick")
        assert outer.generated_name == "MaybeNick"
        assert outer.inner_name == "Nick"
        assert isinstance(outer.value, RefValue)
        assert model.name_of(outer.value.target) == "Nick"
        assert "Nick" in model.items

    def test_openapi_31_null_type(self, shapes_model: ApiModel) -> None:
        label = component(shapes_model, "Label")
        assert label.nullable
        inner = shapes_model.resolve(label.value.target)
        assert inner.generated_name == label.inner_name
        assert inner.value.scalar.kind is ScalarKind.STRING

    def test_multiple_non_null_types_raise(self, lower) -> None:
        with pytest.raises(ParseItemError, match="multiple non-null types"):
            lower({"Either": {"type": ["string", "integer"]}})

    def test_title_overrides_name(self, lower) -> None:
        model = lower({"Thing": {"type": "object", "title": "Widget", "properties": {}}})
        item = component(model, "Thing")
        assert item.generated_name == "Widget"
        assert item.spec_name == "Widget"

    def test_reserved_name_is_escaped(self, lower) -> None:
        assert component(lower({"Optional": {"type": "string"}}), "Optional").generated_name == "Optional_"

    def test_component_aliases_are_public(self, lower) -> None:
        assert component(lower({"Id": {"type": "string"}}), "Id").is_public

    def test_newtype_extension(self, lower) -> None:
        schema = {"type": "string", "x-newtype": {"from": True, "deref-mut": True}}
        item = component(lower({"Token": schema}), "Token")
        assert item.newtype is not None
        assert item.newtype.from_ and item.newtype.deref_mut
        assert not item.is_typedef

    def test_newtype_true_uses_defaults(self, lower) -> None:
        item = component(lower({"Token": {"type": "string", "x-newtype": True}}), "Token")
        assert item.newtype is not None and not item.newtype.into

    def test_description_becomes_docs(self, petstore_model: ApiModel) -> None:
        assert component(petstore_model, "Pet").docs == "A pet in the store"


# ---------------------------------------------------------------------------
# Unions and composition
# ---------------------------------------------------------------------------


class TestUnions:
    def test_discriminator_mapping(self, shapes_model: ApiModel) -> None:
        shape = component(shapes_model, "Shape")
        assert isinstance(shape.value, OneOfEnumValue)
        assert shape.value.discriminant == "kind"
        names = [variant.display_name for variant in shape.value.variants]
        assert names == ["Round", "Square"]
        assert shape.value.variants[0].mapping_name == "round"
        assert shape.value.variants[1].mapping_name is None

    def test_untagged_union(self, lower) -> None:
        schema = {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        item = component(lower({"Value": schema}), "Value")
        assert item.value.discriminant is None
        assert len(item.value.variants) == 2

    def test_property_singleton(self, shapes_model: ApiModel) -> None:
        tree = component(shapes_model, "Tree")
        label = shapes_model.resolve(tree.value.members["label"].definition)
        assert isinstance(label.value, PropertyOverrideValue)
        assert label.value.read_only
        assert label.value.description == "The label of this node"
        assert shapes_model.resolve(label.value.target) is component(shapes_model, "Label")

    def test_required_all_of_is_rejected(self, lower) -> None:
        schema = {
            "type": "object",
            "required": ["x"],
            "properties": {"x": {"allOf": [{"$ref": "#/components/schemas/Y"}]}},
        }
        with pytest.raises(ParseItemError, match="property singleton"):
            lower({"Holder": schema, "Y": {"type": "string"}})

    def test_top_level_all_of_is_rejected(self, lower) -> None:
        with pytest.raises(ParseItemError):
            lower({"Merged": {"allOf": [{"type": "object"}, {"type": "object"}]}})

    @pytest.mark.parametrize("keyword", ["anyOf", "not"])
    def test_unsupported_keywords(self, lower, keyword: str) -> None:
        value: Any = [{"type": "string"}] if keyword == "anyOf" else {"type": "string"}
        with pytest.raises(ParseItemError, match="not supported"):
            lower({"Bad": {keyword: value}})

    def test_unknown_type_raises(self, lower) -> None:
        with pytest.raises(ParseItemError, match="unknown schema type"):
            lower({"Odd": {"type": "decimal"}})


class TestBooleanSchemas:
    def test_true_property_is_any(self, lower) -> None:
        model = lower({"Bag": {"type": "object", "properties": {"anything": True}}})
        member = component(model, "Bag").value.members["anything"]
        assert model.resolve(member.definition).value.scalar.kind is ScalarKind.ANY

    def test_true_array_items_are_any(self, lower) -> None:
        model = lower({"Bag": {"type": "array", "items": True}})
        element = model.resolve(component(model, "Bag").value.item)
        assert element.value.scalar.kind is ScalarKind.ANY

    def test_true_component_is_any(self, lower) -> None:
        item = component(lower({"Anything": True}), "Anything")
        assert isinstance(item.value, ScalarValue)
        assert item.value.scalar.kind is ScalarKind.ANY

    def test_false_property_is_rejected(self, lower) -> None:
        with pytest.raises(ParseItemError, match="`false` schema"):
            lower({"Closed": {"type": "object", "properties": {"never": False}}})

    def test_false_component_names_the_schema(self, lower) -> None:
        with pytest.raises(ParseItemError, match="^Nothing: "):
            lower({"Nothing": False})
