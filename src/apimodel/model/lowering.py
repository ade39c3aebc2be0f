"""Schema lowering: one schema object in, one :class:`Item` out.

:func:`parse_schema` dispatches on the shape of a schema and produces the
corresponding :mod:`~apimodel.model.values` shape. Inline sub-schemas
(array items, map values, object members, union variants) are added to
the model as they are encountered, so every item is stored before anything
that refers to it; ``$ref`` sub-schemas become back or forward references
and are resolved by :meth:`ApiModel.finalize`.

Dispatch order:

1. ``anyOf`` / ``not``: unsupported.
2. ``oneOf``: a union, optionally discriminated.
3. ``allOf``: only the property-singleton shape is accepted.
4. ``type``: boolean, number, integer, string, array, object, null.
5. No ``type``: inferred from ``properties`` / ``items`` / string
   enumerations, otherwise ``Any``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple, Optional, Union

from apimodel.exceptions import ParseItemError, ValueConversionError
from apimodel.model.identifiers import upper_camel_case
from apimodel.model.item import Item, NewtypeOptions
from apimodel.model.scalars import (
    Scalar,
    ScalarKind,
    integer_scalar,
    number_scalar,
    string_format_scalar,
)
from apimodel.model.values import (
    ListValue,
    MapValue,
    ObjectMember,
    ObjectValue,
    OneOfEnumValue,
    PropertyOverrideValue,
    RefValue,
    ScalarValue,
    SetValue,
    StringEnumValue,
    Variant,
)

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel
    from apimodel.model.values import Value

X_EXTENSIBLE_ENUM = "x-extensible-enum"
X_PUB_TYPEDEF = "x-pub-typedef"
X_NEWTYPE = "x-newtype"


class ContainingObject(NamedTuple):
    """The object schema a property schema was found in, and the property's name."""

    schema: dict[str, Any]
    property_name: str


def is_property_singleton(
    containing_object: Optional[ContainingObject], schema: dict[str, Any]
) -> bool:
    """Does this schema follow the rules of an ``allOf`` property singleton?

    All of the following must hold:

    - the schema is a property sub-schema of an object type
    - the property is not in the object's ``required`` list
    - the schema has an ``allOf`` definition
    - the ``allOf`` definition holds exactly one entry
    - that entry is a ``$ref``
    """
    if containing_object is None:
        return False
    object_schema, property_name = containing_object
    if (object_schema.get("properties") or {}).get(property_name) is not schema:
        return False
    if property_name in (object_schema.get("required") or []):
        return False
    all_of = schema.get("allOf")
    if not isinstance(all_of, list) or len(all_of) != 1:
        return False
    return isinstance(all_of[0], dict) and "$ref" in all_of[0]


def parse_schema(
    model: ApiModel,
    spec_name: str,
    generated_name: str,
    schema: Union[dict[str, Any], bool],
    containing_object: Optional[ContainingObject] = None,
    content_type: Optional[str] = None,
) -> Item:
    """Lower *schema* into an :class:`Item`, adding inline sub-items to *model*.

    The returned item itself is **not** added; callers decide whether and
    under which external path to add it. A nullable schema is the
    exception in part: its non-null inner item is added here, and the
    returned item is the ``Maybe``-prefixed alias wrapping it.

    Args:
        model: The model under construction.
        spec_name: Source name of the schema (component or property name).
        generated_name: Proposed identifier for the item.
        schema: The schema object, or a boolean schema (OpenAPI 3.1).
        containing_object: Set when *schema* is a property of an object;
            enables the property-singleton rule.
        content_type: MIME type to associate with the item.

    Returns:
        The lowered item.

    Raises:
        ParseItemError: For unsupported schema kinds, a malformed ``allOf``,
            a ``false`` schema, or external documentation that cannot be
            fetched.
        ValueConversionError: When the schema violates a shape precondition.
    """
    if not isinstance(schema, dict):
        schema = _boolean_schema(spec_name, schema)
    # The singleton rule compares schema identity, so it must see the
    # caller's dict before normalization.
    singleton = is_property_singleton(containing_object, schema)
    schema, nullable = _normalize(schema)

    title = schema.get("title")
    if title:
        spec_name = title
        generated_name = model.deconflict_identifier(upper_camel_case(title))

    value = _parse_value(model, spec_name, generated_name, schema, nullable, singleton)

    docs = _documentation(model, spec_name, schema)
    pub_typedef = schema.get(X_PUB_TYPEDEF) is True
    newtype = NewtypeOptions.from_extension(schema.get(X_NEWTYPE))

    item = Item(
        docs=docs,
        spec_name=spec_name,
        generated_name=generated_name,
        newtype=newtype,
        pub_typedef=pub_typedef,
        value=value,
        content_type=content_type,
    )
    if not nullable:
        return item

    inner_ref = model.add_item(item)
    inner_name = model.name_of(inner_ref)
    return Item(
        docs=docs,
        spec_name=spec_name,
        generated_name=model.deconflict_identifier(f"Maybe{inner_name}"),
        inner_name=inner_name,
        nullable=True,
        value=RefValue(target=inner_ref),
        content_type=content_type,
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _boolean_schema(spec_name: str, schema: Any) -> dict[str, Any]:
    """Read the JSON Schema boolean form allowed by OpenAPI 3.1.

    ``true`` accepts any value and lowers like ``{}``. ``false`` accepts
    nothing, so no item can represent it.
    """
    if schema is True:
        return {}
    if schema is False:
        raise ParseItemError("the `false` schema accepts no value", spec_name)
    raise ParseItemError(f"expected a schema object or boolean, got {schema!r}", spec_name)


def _normalize(schema: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Fold the OpenAPI 3.1 ``type: [T, "null"]`` form into ``type: T`` plus nullability."""
    nullable = schema.get("nullable") is True
    type_ = schema.get("type")
    if not isinstance(type_, list):
        return schema, nullable

    types = [t for t in type_ if t != "null"]
    nullable = nullable or len(types) != len(type_)
    if len(types) > 1:
        raise ParseItemError(f"multiple non-null types are not supported: {types}")
    normalized = dict(schema)
    normalized["type"] = types[0] if types else "null"
    return normalized, nullable


def _infer_type(schema: dict[str, Any]) -> Optional[str]:
    """Guess the ``type`` of a schema that omits it."""
    if "properties" in schema or "additionalProperties" in schema:
        return "object"
    if "items" in schema:
        return "array"
    members = schema.get("enum") or schema.get(X_EXTENSIBLE_ENUM)
    if isinstance(members, list) and members:
        if all(member is None or isinstance(member, str) for member in members):
            return "string"
    return None


def _parse_value(
    model: ApiModel,
    spec_name: str,
    generated_name: str,
    schema: dict[str, Any],
    nullable: bool,
    singleton: bool,
) -> Value:
    if "anyOf" in schema or "not" in schema:
        raise ParseItemError("`anyOf` and `not` schemas are not supported", spec_name)
    if "oneOf" in schema:
        return _parse_one_of(model, spec_name, generated_name, schema)
    if "allOf" in schema:
        if not singleton:
            raise ParseItemError(
                "this `allOf` schema did not meet the requirements of a property singleton",
                spec_name,
            )
        target = model.convert_reference_or_add_inline(
            spec_name, generated_name, None, schema["allOf"][0]
        )
        return PropertyOverrideValue(
            read_only=bool(schema.get("readOnly")),
            write_only=bool(schema.get("writeOnly")),
            title=schema.get("title"),
            description=schema.get("description"),
            target=target,
        )

    type_ = schema.get("type") or _infer_type(schema)
    try:
        if type_ == "boolean":
            return ScalarValue(scalar=Scalar.of(ScalarKind.BOOL))
        if type_ == "number":
            return ScalarValue(scalar=number_scalar(schema))
        if type_ == "integer":
            return ScalarValue(scalar=integer_scalar(schema, bounded=model.bounded_integers))
        if type_ == "string":
            return _parse_string(schema, nullable)
    except ValueConversionError as exc:
        if exc.name:
            raise
        raise ValueConversionError(str(exc), generated_name) from exc

    if type_ == "array":
        return _parse_array(model, spec_name, generated_name, schema)
    if type_ == "object":
        return _parse_object(model, spec_name, generated_name, schema)
    if type_ == "null":
        return ScalarValue(scalar=Scalar.of(ScalarKind.UNIT))
    if type_ is None:
        return ScalarValue(scalar=Scalar.of(ScalarKind.ANY))
    raise ParseItemError(f"unknown schema type: {type_!r}", spec_name)


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def _enum_members(values: Any, key: str, nullable: bool) -> list[str]:
    """Validate enumeration *values*, absorbing ``null`` members into nullability."""
    if not isinstance(values, list):
        raise ValueConversionError(f"{key} must be an array of strings")
    members: list[str] = []
    for value in values:
        if nullable and (value is None or value == "null"):
            continue
        if not isinstance(value, str):
            raise ValueConversionError(f"{key} item must be a string, got {value!r}")
        members.append(value)
    return members


def _parse_string(schema: dict[str, Any], nullable: bool) -> Value:
    closed = schema.get("enum") or []
    extensible = schema.get(X_EXTENSIBLE_ENUM) or []
    if closed and extensible:
        raise ValueConversionError(f"cannot specify both `enum` and `{X_EXTENSIBLE_ENUM}`")

    if extensible:
        variants, is_extensible = _enum_members(extensible, X_EXTENSIBLE_ENUM, nullable), True
    else:
        variants, is_extensible = _enum_members(closed, "enum", nullable), False

    fmt = schema.get("format")
    if fmt and variants:
        raise ValueConversionError("cannot specify both format and enumeration")
    if variants:
        return StringEnumValue(variants=variants, extensible=is_extensible)
    return ScalarValue(scalar=string_format_scalar(fmt))


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


def _parse_array(
    model: ApiModel, spec_name: str, generated_name: str, schema: dict[str, Any]
) -> Value:
    item_name = f"{generated_name}Item"
    items = schema.get("items")
    if items is None:
        item = model.add_scalar(spec_name, item_name, None, Scalar.of(ScalarKind.ANY))
    else:
        item = model.convert_reference_or_add_inline(spec_name, item_name, None, items)
    if schema.get("uniqueItems"):
        return SetValue(item=item)
    return ListValue(item=item)


def _parse_object(
    model: ApiModel, spec_name: str, generated_name: str, schema: dict[str, Any]
) -> Value:
    properties = schema.get("properties") or {}
    additional = schema.get("additionalProperties")
    if additional is False:
        additional = None

    if properties and additional is not None:
        raise ValueConversionError(
            "cannot specify both `properties` and `additionalProperties`", generated_name
        )

    if additional is not None:
        if additional is True or additional == {}:
            return MapValue()
        if not isinstance(additional, dict):
            raise ValueConversionError(
                f"invalid additionalProperties: {additional!r}", generated_name
            )
        value_type = model.convert_reference_or_add_inline(
            spec_name, f"{generated_name}Item", None, additional
        )
        return MapValue(value_type=value_type)

    required = set(schema.get("required") or [])
    members: dict[str, ObjectMember] = {}
    for member_name, member_schema in properties.items():
        # Access flags are only read from inline definitions.
        inline = isinstance(member_schema, dict) and "$ref" not in member_schema
        read_only = inline and bool(member_schema.get("readOnly"))
        write_only = inline and bool(member_schema.get("writeOnly"))

        # The first member with a given name keeps the bare identifier;
        # later ones are qualified with the object name.
        member_ident = upper_camel_case(member_name)
        if model.ident_exists(member_ident):
            member_ident = f"{generated_name}{member_ident}"
        member_ident = model.deconflict_identifier(member_ident)

        definition = model.convert_reference_or_add_inline(
            member_name,
            member_ident,
            None,
            member_schema,
            ContainingObject(schema, member_name),
        )
        members[member_name] = ObjectMember(
            definition=definition,
            read_only=read_only,
            write_only=write_only,
            inline_option=member_name not in required,
        )
    return ObjectValue(members=members)


# ---------------------------------------------------------------------------
# Unions
# ---------------------------------------------------------------------------


def _parse_one_of(
    model: ApiModel, spec_name: str, generated_name: str, schema: dict[str, Any]
) -> Value:
    discriminator = schema.get("discriminator") or {}
    discriminant = discriminator.get("propertyName")
    mapping: dict[str, str] = discriminator.get("mapping") or {}

    variants: list[Variant] = []
    for variant_schema in schema["oneOf"]:
        # Inline variants never take part in discriminator mapping.
        reference = variant_schema.get("$ref") if isinstance(variant_schema, dict) else None
        mapping_name = None
        if reference is not None:
            mapping_name = next(
                (name for name, target in mapping.items() if target == reference), None
            )
        definition = model.convert_reference_or_add_inline(
            spec_name, generated_name, None, variant_schema
        )
        variants.append(Variant(definition=definition, mapping_name=mapping_name))

    return OneOfEnumValue(discriminant=discriminant, variants=variants)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def _documentation(model: ApiModel, spec_name: str, schema: dict[str, Any]) -> Optional[str]:
    """Documentation from ``externalDocs`` when fetching is enabled, else ``description``."""
    external = schema.get("externalDocs")
    if isinstance(external, dict) and external.get("url") and model.docs_fetcher is not None:
        return model.docs_fetcher.fetch(external["url"], spec_name)
    return schema.get("description")
