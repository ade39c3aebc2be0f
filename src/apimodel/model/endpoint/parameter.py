"""Operation parameters: location, requiredness and the item carrying the value.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel

from apimodel.exceptions import (
    MalformedContentError,
    SpecParseError,
    UnknownReferenceError,
    UnsupportedParameterLocationError,
)
from apimodel.model.identifiers import escape_identifier, snake_case, upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import AnyRef, BackRef, RefResolver
from apimodel.model.values import RefValue
from apimodel.model.well_known import external_scalar, is_external
from apimodel.parser.pointer import follow_ref

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel


class ParameterLocation(str, enum.Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Parameter(BaseModel):
    """One parameter of an operation.

    Attributes:
        generated_name: Snake-case, keyword-escaped argument name.
        spec_name: The ``name`` as declared in the document.
        location: Where the value is sent.
        required: Path parameters are always required.
        item_ref: The item describing the value.
    """

    generated_name: str
    spec_name: str
    location: ParameterLocation
    required: bool = False
    item_ref: AnyRef

    def map_refs(self, resolve: RefResolver) -> Parameter:
        return self.model_copy(update={"item_ref": resolve(self.item_ref)})


def parse_location(name: str, location: Any) -> ParameterLocation:
    """Return the supported location of parameter *name*.

    Raises:
        UnsupportedParameterLocationError: For ``cookie`` or an unknown location.
    """
    try:
        parsed = ParameterLocation(location)
    except ValueError as exc:
        raise UnsupportedParameterLocationError(name, str(location)) from exc
    if parsed is ParameterLocation.COOKIE:
        raise UnsupportedParameterLocationError(name, parsed.value)
    return parsed


def is_required(param: dict[str, Any]) -> bool:
    """Path parameters are required regardless of the ``required`` field."""
    return bool(param.get("required")) or param.get("in") == ParameterLocation.PATH.value


def single_content(name: str, content: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Unpack a ``content`` map that must hold exactly one media type.

    Raises:
        MalformedContentError: If *content* holds zero or several entries.
    """
    if len(content) != 1:
        raise MalformedContentError(name, len(content))
    content_type, media = next(iter(content.items()))
    return content_type, media or {}


def insert_parameter(
    model: ApiModel,
    reference_name: Optional[str],
    param: dict[str, Any],
) -> BackRef:
    """Lower an inline parameter object and add its item.

    The schema comes from ``schema`` or from the single entry of
    ``content``. A non-required parameter whose schema is a ``$ref`` gets
    a nullable wrapper item; header parameters mark their item as a header
    value.

    Args:
        model: The model under construction.
        reference_name: External path to register the item under, for
            component parameters.
        param: The parameter object.

    Returns:
        A reference to the parameter's item.
    """
    name = param.get("name", "")
    location = parse_location(name, param.get("in"))
    required = is_required(param)

    content_type = None
    if "content" in param:
        content_type, media = single_content(name, param["content"] or {})
        schema = media.get("schema") or {}
    else:
        schema = param.get("schema") or {}

    reference = schema.get("$ref")
    if reference is None:
        ref = model.add_inline_items(
            name, upper_camel_case(name), None, schema, content_type=content_type
        )
        item = model.resolve(ref)
        if item.docs is None:
            item.docs = param.get("description")
    else:
        if is_external(reference):
            target = model.add_scalar(
                name, upper_camel_case(name), None, external_scalar(reference)
            )
        else:
            target = model.get_named_reference(reference)
        ref = target
        if not required:
            wrapper = Item(
                docs=param.get("description"),
                spec_name=name,
                generated_name=upper_camel_case(name),
                nullable=True,
                value=RefValue(target=target),
                content_type=content_type,
            )
            ref = model.add_item(wrapper)

    if reference_name is not None:
        model.register_named_reference(reference_name, ref)
    if location is ParameterLocation.HEADER:
        model.resolve(ref).impl_header = True
    return ref


def insert_component_parameter(
    model: ApiModel, reference_name: str, param: dict[str, Any]
) -> BackRef:
    """Add a ``#/components/parameters/*`` entry under *reference_name*.

    A component that is itself a ``$ref`` shares the referenced parameter's item.
    """
    if "$ref" in param:
        ref = model.get_named_reference(param["$ref"])
        model.register_named_reference(reference_name, ref)
        return ref
    return insert_parameter(model, reference_name, param)


def convert_param_ref(
    document: dict[str, Any], model: ApiModel, param_or_ref: dict[str, Any]
) -> tuple[dict[str, Any], BackRef]:
    """Resolve an operation's parameter entry to its object and item.

    Returns:
        The parameter object (read through any ``$ref``) and its item.

    Raises:
        UnknownReferenceError: If a ``$ref`` does not point at a parameter.
    """
    if "$ref" not in param_or_ref:
        return param_or_ref, insert_parameter(model, None, param_or_ref)

    reference = param_or_ref["$ref"]
    try:
        param = follow_ref(document, param_or_ref)
    except SpecParseError as exc:
        raise UnknownReferenceError(reference) from exc
    return param, model.get_named_reference(reference)


def make_parameter(param: dict[str, Any], item_ref: AnyRef) -> Parameter:
    name = param.get("name", "")
    return Parameter(
        generated_name=escape_identifier(snake_case(name)),
        spec_name=name,
        location=parse_location(name, param.get("in")),
        required=is_required(param),
        item_ref=item_ref,
    )


def merge_parameters(
    document: dict[str, Any],
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameter entries.

    Entries are keyed by ``(name, in)`` read through any ``$ref``. A later
    entry replaces an earlier one with the same key but keeps its position.

    Args:
        document: The root document, for reading ``$ref`` entries.
        path_params: Parameters defined at the path level.
        op_params: Parameters defined at the operation level.

    Returns:
        The merged, unresolved parameter entries.
    """
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for entry in [*path_params, *op_params]:
        try:
            param = follow_ref(document, entry)
        except SpecParseError as exc:
            raise UnknownReferenceError(entry.get("$ref", "")) from exc
        key = (param.get("name", ""), param.get("in", ""))
        merged[key] = entry
    return list(merged.values())
