"""Items: the named, documented nodes of the model graph."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from apimodel.model.refs import RefResolver
from apimodel.model.scalars import ScalarKind
from apimodel.model.values import (
    ListValue,
    MapValue,
    PropertyOverrideValue,
    RefValue,
    ScalarValue,
    SetValue,
    Value,
    scalar,
)

_TYPEDEF_SHAPES = (ScalarValue, ListValue, SetValue, MapValue, RefValue, PropertyOverrideValue)


class NewtypeOptions(BaseModel):
    """Options for emitting a single-field wrapper type instead of an alias.

    Parsed from the ``x-newtype`` vendor extension, whose object form uses
    kebab-case keys (``deref-mut``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    from_: bool = Field(default=False, alias="from")
    into: bool = False
    deref: bool = False
    deref_mut: bool = Field(default=False, alias="deref-mut")
    pub: bool = False

    @classmethod
    def from_extension(cls, value: Any) -> Optional[NewtypeOptions]:
        """Interpret an ``x-newtype`` extension value.

        ``true`` enables a newtype with default options, an object selects
        options over the defaults, and anything else (including an object
        that fails validation) disables the newtype.
        """
        if isinstance(value, bool):
            return cls() if value else None
        if isinstance(value, dict):
            try:
                return cls.model_validate(value)
            except ValidationError:
                return None
        return None


class Item(BaseModel):
    """One node of the model graph.

    Attributes:
        docs: Documentation for the generated definition.
        spec_name: The name as it appears in the source document.
        generated_name: The identifier backends emit. Deconflicted by the
            owning model when the item is added.
        inner_name: Set only on a nullable outer alias; names the
            separately stored non-null item it wraps.
        newtype: Emit a wrapper type with these options instead of an alias.
        pub_typedef: Force an otherwise private alias to be public.
        nullable: The item admits ``null``.
        value: The item's shape.
        content_type: MIME type associated with the item, if known.
        impl_header: The item is used as an HTTP header value.
    """

    docs: Optional[str] = None
    spec_name: str = ""
    generated_name: str = ""
    inner_name: Optional[str] = None
    newtype: Optional[NewtypeOptions] = None
    pub_typedef: bool = False
    nullable: bool = False
    value: Value = Field(default_factory=lambda: scalar(ScalarKind.ANY))
    content_type: Optional[str] = None
    impl_header: bool = False

    @property
    def is_public(self) -> bool:
        """``True`` for newtypes, forced-public aliases, and structs/enums."""
        return self.newtype is not None or self.pub_typedef or self.value.is_struct_or_enum

    @property
    def is_typedef(self) -> bool:
        """``True`` when the item is emitted as an alias of another type."""
        return self.newtype is None and isinstance(self.value, _TYPEDEF_SHAPES)

    @property
    def kind(self) -> str:
        return self.value.kind

    def map_refs(self, resolve: RefResolver) -> Item:
        """Return a copy with every reference in the value passed through *resolve*."""
        return self.model_copy(update={"value": self.value.map_refs(resolve)})
