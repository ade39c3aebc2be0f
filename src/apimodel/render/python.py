"""Build the template context for the Python backend.

The model graph is flattened into plain dicts so that the templates only
deal with layout. Every definition becomes one of:

* ``alias`` -- a module-level type alias (typedefs and nullable wrappers),
* ``newtype`` -- a :class:`pydantic.RootModel` subclass,
* ``model`` -- a :class:`pydantic.BaseModel` subclass for an object,
* ``enum`` -- a ``str`` :class:`enum.Enum`, with a catch-all member for
  extensible enumerations,
* ``union`` -- a ``Union`` alias for a one-of.

Module-level aliases are evaluated when the generated module is imported,
so names of definitions that come later in the module are quoted there.
Class bodies and method signatures are not evaluated thanks to
``from __future__ import annotations``.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from apimodel.exceptions import RenderError
from apimodel.model.api_model import ApiModel
from apimodel.model.endpoint import Endpoint
from apimodel.model.identifiers import deconflict, escape_identifier, snake_case, upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import AnyRef
from apimodel.model.scalars import Scalar, ScalarKind
from apimodel.model.values import (
    ListValue,
    MapValue,
    ObjectValue,
    OneOfEnumValue,
    PropertyOverrideValue,
    RefValue,
    ScalarValue,
    SetValue,
    StringEnumValue,
)

API_CLASS = "Api"

_SCALAR_TYPES: dict[ScalarKind, str] = {
    ScalarKind.UNIT: "None",
    ScalarKind.BOOL: "bool",
    ScalarKind.F32: "float",
    ScalarKind.F64: "float",
    ScalarKind.I32: "int",
    ScalarKind.I64: "int",
    ScalarKind.U32: "Annotated[int, Field(ge=0, le=4294967295)]",
    ScalarKind.U64: "Annotated[int, Field(ge=0, le=18446744073709551615)]",
    ScalarKind.STRING: "str",
    ScalarKind.BINARY: "bytes",
    ScalarKind.BYTES: "bytes",
    ScalarKind.DATE: "date",
    ScalarKind.DATE_TIME: "datetime",
    ScalarKind.IP_ADDR: "Union[IPv4Address, IPv6Address]",
    ScalarKind.IPV4_ADDR: "IPv4Address",
    ScalarKind.IPV6_ADDR: "IPv6Address",
    ScalarKind.UUID: "UUID",
    ScalarKind.MIME: "str",
    ScalarKind.ACCEPT_HEADER: "str",
    ScalarKind.API_PROBLEM: "dict[str, Any]",
    ScalarKind.ANY: "Any",
}

# Attributes of pydantic.BaseModel that a field must not shadow.
_MODEL_ATTRIBUTES = frozenset(
    {"construct", "copy", "dict", "json", "schema", "schema_json", "validate"}
)


def scalar_type(value: Scalar) -> str:
    """Python type expression for a scalar."""
    if value.is_bounded:
        return f"Annotated[int, Field(ge={value.minimum}, le={value.maximum})]"
    return _SCALAR_TYPES[value.kind]


def string_literal(text: str) -> str:
    """Render *text* as a double-quoted Python string literal."""
    return json.dumps(text)


def docstring(text: Optional[str], indent: int) -> Optional[str]:
    """Format *text* as a triple-quoted docstring at *indent* spaces."""
    if not text or not text.strip():
        return None
    body = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    pad = " " * indent
    lines = body.splitlines()
    if len(lines) == 1:
        line = lines[0]
        if line.endswith('"'):
            line = f'{line[:-1]}\\"'
        return f'{pad}"""{line}"""'
    rendered = [f'{pad}"""{lines[0]}']
    rendered.extend(f"{pad}{line}" if line.strip() else "" for line in lines[1:])
    rendered.append(f'{pad}"""')
    return "\n".join(rendered)


def comment(text: Optional[str]) -> list[str]:
    """Format *text* as ``#`` comment lines."""
    if not text or not text.strip():
        return []
    return [f"# {line}".rstrip() for line in text.strip().splitlines()]


class PythonContext:
    """Collects the template context for one finalized model.

    Args:
        model: A finalized :class:`~apimodel.model.api_model.ApiModel`.
        emit_docs: Include docstrings and documentation comments.

    Raises:
        RenderError: If *model* has not been finalized.
    """

    def __init__(self, model: ApiModel, emit_docs: bool = True) -> None:
        if not model.finalized:
            raise RenderError("cannot render a model that has not been finalized")
        self._model = model
        self._emit_docs = emit_docs

    # -- Type expressions ------------------------------------------------------

    def _ref(self, ref: AnyRef, current: Optional[int]) -> str:
        """Name of the item behind *ref*, quoted when not yet defined at *current*."""
        index = self._model.index_of(ref)
        name = self._model.definitions[index].generated_name
        if current is not None and index >= current:
            return string_literal(name)
        return name

    def value_type(self, item: Item, current: Optional[int]) -> str:
        value = item.value
        if isinstance(value, ScalarValue):
            return scalar_type(value.scalar)
        if isinstance(value, ListValue):
            return f"List[{self._ref(value.item, current)}]"
        if isinstance(value, SetValue):
            return f"FrozenSet[{self._ref(value.item, current)}]"
        if isinstance(value, MapValue):
            if value.value_type is None:
                return "dict[str, Any]"
            return f"dict[str, {self._ref(value.value_type, current)}]"
        if isinstance(value, (RefValue, PropertyOverrideValue)):
            return self._ref(value.target, current)
        raise RenderError(f"{item.generated_name} has no alias form ({value.kind})")

    # -- Definitions -----------------------------------------------------------

    def _docs(self, text: Optional[str], indent: int) -> Optional[str]:
        return docstring(text, indent) if self._emit_docs else None

    def _comments(self, text: Optional[str]) -> list[str]:
        return comment(text) if self._emit_docs else []

    def _alias(self, index: int, item: Item) -> dict[str, Any]:
        expr = self.value_type(item, index)
        if item.nullable and not expr.startswith("Optional["):
            expr = f"Optional[{expr}]"
        return {
            "kind": "alias",
            "name": item.generated_name,
            "comments": self._comments(item.docs),
            "expr": expr,
        }

    def _newtype(self, index: int, item: Item) -> dict[str, Any]:
        expr = self.value_type(item, index)
        if item.nullable:
            expr = f"Optional[{expr}]"
        return {
            "kind": "newtype",
            "name": item.generated_name,
            "docstring": self._docs(item.docs, 4),
            "expr": expr,
        }

    def _object(self, item: Item, value: ObjectValue) -> dict[str, Any]:
        taken: set[str] = set()
        fields = []
        for spec_name, member in value.members.items():
            ident = escape_identifier(snake_case(spec_name) or "field")
            if ident.startswith("_") or ident.startswith("model_"):
                ident = f"field{ident}" if ident.startswith("_") else f"{ident}_"
            if ident in _MODEL_ATTRIBUTES:
                ident = f"{ident}_"
            ident = deconflict(ident, taken)
            taken.add(ident)

            annotation = self._ref(member.definition, None)
            field_args = []
            if member.inline_option:
                annotation = f"Optional[{annotation}]"
                field_args.append("default=None")
            if ident != spec_name:
                field_args.append(f"alias={string_literal(spec_name)}")
            default = f"Field({', '.join(field_args)})" if field_args else None
            fields.append({"name": ident, "annotation": annotation, "default": default})
        return {
            "kind": "model",
            "name": item.generated_name,
            "docstring": self._docs(item.docs, 4),
            "fields": fields,
        }

    def _enum(self, item: Item, value: StringEnumValue) -> dict[str, Any]:
        taken: set[str] = set()
        other = value.other_variant
        if other is not None:
            taken.add(other)
        members = []
        for variant in value.variants:
            ident = deconflict(escape_identifier(upper_camel_case(variant) or "Empty"), taken)
            taken.add(ident)
            members.append({"name": ident, "value": string_literal(variant)})
        return {
            "kind": "enum",
            "name": item.generated_name,
            "docstring": self._docs(item.docs, 4),
            "members": members,
            "other": other,
            "other_value": string_literal(other) if other is not None else None,
        }

    def _union(self, index: int, item: Item, value: OneOfEnumValue) -> dict[str, Any]:
        variants = [
            {
                "name": variant.display_name,
                "expr": self._ref(variant.definition, index),
                "label": self._ref(variant.definition, None),
                "mapping_name": variant.mapping_name,
            }
            for variant in value.variants
        ]
        exprs = [variant["expr"] for variant in variants]
        if not exprs:
            expr = "Any"
        elif len(exprs) == 1:
            expr = exprs[0]
        else:
            expr = f"Union[{', '.join(exprs)}]"
        if item.nullable and item.inner_name is None:
            expr = f"Optional[{expr}]"
        return {
            "kind": "union",
            "name": item.generated_name,
            "comments": self._comments(item.docs),
            "discriminant": value.discriminant,
            "variants": variants,
            "expr": expr,
        }

    def definition(self, index: int, item: Item) -> dict[str, Any]:
        """Template context for the item at *index*."""
        value = item.value
        if item.newtype is not None:
            return self._newtype(index, item)
        if isinstance(value, ObjectValue):
            return self._object(item, value)
        if isinstance(value, StringEnumValue):
            return self._enum(item, value)
        if isinstance(value, OneOfEnumValue):
            return self._union(index, item, value)
        return self._alias(index, item)

    # -- Endpoints -------------------------------------------------------------

    def _item_of(self, ref: AnyRef) -> Item:
        return self._model.resolve(ref)

    def operation(self, endpoint: Endpoint, taken: set[str]) -> dict[str, Any]:
        """Template context for the :data:`API_CLASS` method of *endpoint*."""
        name = deconflict(escape_identifier(endpoint.function_name or "operation"), taken)
        taken.add(name)

        arguments: set[str] = {"self"}
        required: list[str] = []
        optional: list[str] = []

        def argument(ident: str, ref: AnyRef, is_required: bool) -> None:
            ident = deconflict(ident, arguments)
            arguments.add(ident)
            type_name = self._ref(ref, None)
            if is_required:
                required.append(f"{ident}: {type_name}")
            else:
                optional.append(f"{ident}: Optional[{type_name}] = None")

        if endpoint.path_parameters is not None:
            argument("path", endpoint.path_parameters, True)
        if endpoint.query_parameters is not None:
            query = self._item_of(endpoint.query_parameters).value
            query_required = isinstance(query, ObjectValue) and any(
                not member.inline_option for member in query.members.values()
            )
            argument("query", endpoint.query_parameters, query_required)
        if endpoint.request_body is not None:
            body = self._item_of(endpoint.request_body)
            argument("body", endpoint.request_body, not body.nullable)
        for parameter in endpoint.headers.values():
            argument(parameter.generated_name, parameter.item_ref, parameter.required)

        return {
            "name": name,
            "arguments": required + optional,
            "returns": self._ref(endpoint.response, None),
            "docstring": self._docs(endpoint.doc_string(), 8),
        }

    # -- Module ------------------------------------------------------------------

    def build(self) -> dict[str, Any]:
        """Return the full module context."""
        model = self._model
        definitions = [
            self.definition(index, item) for index, item in enumerate(model.definitions)
        ]
        taken: set[str] = set()
        operations = [self.operation(endpoint, taken) for endpoint in model.endpoints]
        return {
            "definitions": definitions,
            "operations": operations,
            "api_class": deconflict(API_CLASS, model.items),
        }
