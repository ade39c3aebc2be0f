"""Response headers and ``#/components/headers/*`` entries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from apimodel.exceptions import SpecParseError, UnknownReferenceError
from apimodel.model.endpoint.parameter import single_content
from apimodel.model.identifiers import upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import BackRef
from apimodel.model.scalars import Scalar, ScalarKind
from apimodel.model.values import RefValue
from apimodel.model.well_known import external_scalar, is_external
from apimodel.parser.pointer import follow_ref, resolve_pointer

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel

HEADERS_PREFIX = "#/components/headers/"


def create_header(
    model: ApiModel,
    spec_name: str,
    reference_name: Optional[str],
    header: dict[str, Any],
) -> BackRef:
    """Add the item for a header object and mark it as a header value.

    A header without a schema carries ``Any``. A ``$ref`` schema is used
    directly when the header is required and wrapped in a nullable alias
    otherwise.

    Raises:
        MalformedContentError: If ``content`` holds more than one entry.
    """
    generated_name = model.deconflict_identifier(upper_camel_case(spec_name))

    schema = header.get("schema")
    # An empty content map is tolerated here and means `Any`.
    if header.get("content"):
        _, media = single_content(spec_name, header["content"])
        schema = media.get("schema")

    if schema is None:
        ref = model.add_scalar(
            spec_name, generated_name, reference_name, Scalar.of(ScalarKind.ANY)
        )
    elif "$ref" in schema:
        reference = schema["$ref"]
        if is_external(reference):
            inner = model.add_scalar(spec_name, generated_name, None, external_scalar(reference))
        else:
            inner = model.get_named_reference(reference)
        if header.get("required"):
            ref = inner
        else:
            wrapper = Item(
                docs=header.get("description"),
                spec_name=spec_name,
                generated_name=generated_name,
                nullable=True,
                value=RefValue(target=inner),
            )
            ref = model.add_item(wrapper, reference_name)
    else:
        ref = model.add_inline_items(spec_name, generated_name, reference_name, schema)
        item = model.resolve(ref)
        if item.docs is None:
            item.docs = header.get("description")

    if reference_name is not None:
        model.register_named_reference(reference_name, ref)
    model.resolve(ref).impl_header = True
    return ref


def insert_component_header(
    document: dict[str, Any], model: ApiModel, spec_name: str, header: dict[str, Any]
) -> BackRef:
    """Add a ``#/components/headers/*`` entry, unless a response already pulled it in."""
    reference_name = f"{HEADERS_PREFIX}{spec_name}"
    if reference_name in model.named_references:
        return model.get_named_reference(reference_name)
    if "$ref" in header:
        ref = convert_header_ref(document, model, spec_name, header)
        model.register_named_reference(reference_name, ref)
        return ref
    ref = create_header(model, spec_name, reference_name, header)
    model.resolve(ref).pub_typedef = True
    return ref


def convert_header_ref(
    document: dict[str, Any],
    model: ApiModel,
    spec_name: str,
    header_or_ref: dict[str, Any],
) -> BackRef:
    """Return the item for a response header entry.

    Component headers are lowered on first use, so a response may refer to
    a header declared after it.

    Raises:
        UnknownReferenceError: If a ``$ref`` does not point at a component header.
    """
    reference = header_or_ref.get("$ref")
    if reference is None:
        return create_header(model, spec_name, None, header_or_ref)
    if reference in model.named_references:
        return model.get_named_reference(reference)
    if not reference.startswith(HEADERS_PREFIX):
        raise UnknownReferenceError(reference)
    try:
        # Validates the whole chain, so the recursion below terminates.
        follow_ref(document, header_or_ref)
        target = resolve_pointer(document, reference)
    except SpecParseError as exc:
        raise UnknownReferenceError(reference) from exc
    return insert_component_header(
        document, model, reference[len(HEADERS_PREFIX):], target
    )
