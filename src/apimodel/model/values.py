"""The closed ``Value`` union: every shape an item can take.

Each shape is a pydantic model tagged by a ``kind`` literal, and
:data:`Value` is the discriminated union of all of them. Per-shape
behaviour is implemented on the shape classes themselves:

* ``refs()`` -- every reference slot the shape holds.
* ``map_refs(resolve)`` -- a copy with every slot passed through
  *resolve*; used once by finalization.
* ``impls_eq`` / ``impls_copy`` / ``impls_hash`` -- derived capability
  rules. Containers, unions, and objects have a capability iff every item
  they reference has it. Recursive graphs terminate: an item already on
  the evaluation path is assumed to have the capability.

Shapes never own their sub-items; they hold references that a model
resolves, which keeps recursive schemas finite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Callable, Iterator, Literal, Optional, Union

from pydantic import BaseModel, Field

from apimodel.exceptions import InvariantViolation
from apimodel.model.identifiers import escape_identifier, upper_camel_case
from apimodel.model.refs import AnyRef, RefResolver
from apimodel.model.scalars import Scalar, ScalarKind

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel

_Capability = Literal["impls_eq", "impls_copy", "impls_hash"]


def _referenced_has(
    model: ApiModel, ref: AnyRef, capability: _Capability, seen: frozenset[int]
) -> bool:
    """Evaluate *capability* on the item behind *ref*, guarding against cycles."""
    index = model.index_of(ref)
    if index in seen:
        return True
    value = model.resolve(ref).value
    return getattr(value, capability)(model, seen | {index})


def _all_have(
    model: ApiModel,
    refs: Iterator[AnyRef],
    capability: _Capability,
    seen: frozenset[int],
) -> bool:
    return all(_referenced_has(model, ref, capability, seen) for ref in refs)


class _Shape(BaseModel):
    """Behaviour shared by every value shape."""

    def refs(self) -> Iterator[AnyRef]:
        return iter(())

    def map_refs(self, resolve: RefResolver) -> _Shape:
        return self

    @property
    def is_struct_or_enum(self) -> bool:
        """``True`` for shapes that define a new nominal type rather than an alias."""
        return False

    def impls_eq(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return _all_have(model, self.refs(), "impls_eq", seen)

    def impls_copy(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return _all_have(model, self.refs(), "impls_copy", seen)

    def impls_hash(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return _all_have(model, self.refs(), "impls_hash", seen)


# ---------------------------------------------------------------------------
# Leaves and containers
# ---------------------------------------------------------------------------


class ScalarValue(_Shape):
    """A primitive leaf."""

    kind: Literal["scalar"] = "scalar"
    scalar: Scalar

    def impls_eq(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return self.scalar.impls_eq()

    def impls_copy(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return self.scalar.impls_copy()

    def impls_hash(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return self.scalar.impls_hash()


class ListValue(_Shape):
    """Ordered homogeneous sequence."""

    kind: Literal["list"] = "list"
    item: AnyRef

    def refs(self) -> Iterator[AnyRef]:
        yield self.item

    def map_refs(self, resolve: RefResolver) -> ListValue:
        return self.model_copy(update={"item": resolve(self.item)})

    def impls_copy(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return False


class SetValue(_Shape):
    """Unordered homogeneous collection of unique items (``uniqueItems: true``)."""

    kind: Literal["set"] = "set"
    item: AnyRef

    def refs(self) -> Iterator[AnyRef]:
        yield self.item

    def map_refs(self, resolve: RefResolver) -> SetValue:
        return self.model_copy(update={"item": resolve(self.item)})

    def impls_copy(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return False

    def impls_hash(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return False


class MapValue(_Shape):
    """String-keyed mapping.

    ``value_type`` is ``None`` when ``additionalProperties`` allows any JSON
    value.
    """

    kind: Literal["map"] = "map"
    value_type: Optional[AnyRef] = None

    def refs(self) -> Iterator[AnyRef]:
        if self.value_type is not None:
            yield self.value_type

    def map_refs(self, resolve: RefResolver) -> MapValue:
        if self.value_type is None:
            return self
        return self.model_copy(update={"value_type": resolve(self.value_type)})

    def impls_copy(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return False

    def impls_hash(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return False


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------


class ObjectMember(BaseModel):
    """One field of an :class:`ObjectValue`.

    Attributes:
        definition: The field's type.
        read_only: Only ever sent by the server.
        write_only: Only ever sent by the client.
        inline_option: Optional within this object (absent from the
            declaring schema's ``required`` list) without the referenced
            item itself being nullable.
    """

    definition: AnyRef
    read_only: bool = False
    write_only: bool = False
    inline_option: bool = False


class ObjectValue(_Shape):
    """A struct with an ordered mapping of member name to :class:`ObjectMember`.

    Member keys are the names as they appear in the document.
    """

    kind: Literal["object"] = "object"
    members: dict[str, ObjectMember] = Field(default_factory=dict)

    def refs(self) -> Iterator[AnyRef]:
        for member in self.members.values():
            yield member.definition

    def map_refs(self, resolve: RefResolver) -> ObjectValue:
        members = {
            name: member.model_copy(update={"definition": resolve(member.definition)})
            for name, member in self.members.items()
        }
        return self.model_copy(update={"members": members})

    @property
    def is_struct_or_enum(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class StringEnumValue(_Shape):
    """A string enumeration.

    When ``extensible`` is set the enumeration is open: decoders must keep
    unrecognised values in the catch-all variant named by
    :attr:`other_variant` instead of rejecting them.
    """

    kind: Literal["string_enum"] = "string_enum"
    variants: list[str] = Field(default_factory=list)
    extensible: bool = False

    @property
    def is_struct_or_enum(self) -> bool:
        return True

    @property
    def other_variant(self) -> Optional[str]:
        """Name of the catch-all variant, or ``None`` for a closed enum."""
        if not self.extensible:
            return None
        names = {upper_camel_case(variant) for variant in self.variants}
        other = "Other"
        while other in self.variants or other in names:
            other += "_"
        return other

    def impls_eq(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return True

    def impls_copy(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return not self.extensible

    def impls_hash(self, model: ApiModel, seen: frozenset[int] = frozenset()) -> bool:
        return True


class Unnamed(BaseModel):
    """A variant whose display name has not been computed yet."""

    state: Literal["unnamed"] = "unnamed"


class Named(BaseModel):
    """A variant whose display name has been computed."""

    state: Literal["named"] = "named"
    value: str


VariantName = Annotated[Union[Unnamed, Named], Field(discriminator="state")]


class Variant(BaseModel):
    """One member of a :class:`OneOfEnumValue`.

    Attributes:
        definition: The variant's payload type.
        mapping_name: Explicit tag, from a discriminator mapping or a
            response status/content-type label.
        status_code: The ``responses`` key (``"200"``, ``"4XX"``,
            ``"default"``) for variants of a response union.
        name: Display name; :class:`Unnamed` until the owning model is
            finalized, then :class:`Named` for good.
    """

    definition: AnyRef
    mapping_name: Optional[str] = None
    status_code: Optional[str] = None
    name: VariantName = Field(default_factory=Unnamed)

    def compute_name(self, idx: int, name_of: Callable[[AnyRef], Optional[str]]) -> str:
        """Derive this variant's display name.

        Uses the part of the mapping name after the last ``/``, else the
        referenced item's name, else ``Variant{idx:02}``; the result is
        converted to UpperCamelCase and reserved-word escaped. Response
        variants use their whole mapping name (``"OK application/json"``),
        since the content type alone does not identify them.
        """
        base = None
        if self.mapping_name is not None and self.status_code is not None:
            base = self.mapping_name
        elif self.mapping_name is not None:
            base = self.mapping_name.rsplit("/", 1)[-1]
        if base is None:
            base = name_of(self.definition)
        name = upper_camel_case(base) if base is not None else ""
        if not name:
            name = f"Variant{idx:02}"
        return escape_identifier(name)

    def assign_name(self, idx: int, name_of: Callable[[AnyRef], Optional[str]]) -> str:
        """Compute and store the display name. Allowed exactly once."""
        if isinstance(self.name, Named):
            raise InvariantViolation(f"variant {self.name.value!r} was named twice")
        name = self.compute_name(idx, name_of)
        self.name = Named(value=name)
        return name

    @property
    def display_name(self) -> str:
        if not isinstance(self.name, Named):
            raise InvariantViolation("variant display name requested before finalization")
        return self.name.value


class OneOfEnumValue(_Shape):
    """A union of alternatives (``oneOf``, multi-content bodies, responses).

    ``discriminant`` names the tag property for internally tagged
    serialization; ``None`` selects untagged serialization. Variant order
    is declaration order.
    """

    kind: Literal["one_of"] = "one_of"
    discriminant: Optional[str] = None
    variants: list[Variant] = Field(default_factory=list)

    def refs(self) -> Iterator[AnyRef]:
        for variant in self.variants:
            yield variant.definition

    def map_refs(self, resolve: RefResolver) -> OneOfEnumValue:
        variants = [
            variant.model_copy(update={"definition": resolve(variant.definition)})
            for variant in self.variants
        ]
        return self.model_copy(update={"variants": variants})

    @property
    def is_struct_or_enum(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------


class RefValue(_Shape):
    """A pure alias of another item."""

    kind: Literal["ref"] = "ref"
    target: AnyRef

    def refs(self) -> Iterator[AnyRef]:
        yield self.target

    def map_refs(self, resolve: RefResolver) -> RefValue:
        return self.model_copy(update={"target": resolve(self.target)})


class PropertyOverrideValue(_Shape):
    """A property-level wrapper that overrides documentation and access flags.

    Produced only for a non-required property whose schema is ``allOf`` of
    exactly one ``$ref``; the shape itself is delegated to ``target``.
    """

    kind: Literal["property_override"] = "property_override"
    read_only: bool = False
    write_only: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    target: AnyRef

    def refs(self) -> Iterator[AnyRef]:
        yield self.target

    def map_refs(self, resolve: RefResolver) -> PropertyOverrideValue:
        return self.model_copy(update={"target": resolve(self.target)})


Value = Annotated[
    Union[
        ScalarValue,
        ListValue,
        SetValue,
        MapValue,
        ObjectValue,
        StringEnumValue,
        OneOfEnumValue,
        RefValue,
        PropertyOverrideValue,
    ],
    Field(discriminator="kind"),
]
"""Field type for an item's shape."""


def scalar(kind: ScalarKind) -> ScalarValue:
    """Shorthand for an unbounded :class:`ScalarValue`."""
    return ScalarValue(scalar=Scalar.of(kind))
