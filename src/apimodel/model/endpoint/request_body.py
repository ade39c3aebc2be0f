"""Request bodies: one item per body, a union when several content types differ."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Union

from apimodel.model import lowering
from apimodel.model.identifiers import upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import BackRef
from apimodel.model.scalars import Scalar, ScalarKind
from apimodel.model.values import OneOfEnumValue, RefValue, ScalarValue, Variant
from apimodel.model.well_known import external_scalar, is_external

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel


def convert_optional_schema(
    model: ApiModel,
    spec_name: str,
    generated_name: str,
    schema: Optional[Union[dict[str, Any], bool]],
    content_type: Optional[str] = None,
) -> Item:
    """Build the (not yet added) item for a media type's optional schema.

    A missing schema is a public ``Any``; an internal ``$ref`` a public
    alias; an external ``$ref`` the well-known scalar or ``Any``.
    """
    if schema is None:
        return Item(
            spec_name=spec_name,
            generated_name=generated_name,
            pub_typedef=True,
            value=ScalarValue(scalar=Scalar.of(ScalarKind.ANY)),
            content_type=content_type,
        )
    reference = schema.get("$ref") if isinstance(schema, dict) else None
    if reference is None:
        return lowering.parse_schema(
            model, spec_name, generated_name, schema, content_type=content_type
        )
    if is_external(reference):
        return Item(
            spec_name=spec_name,
            generated_name=generated_name,
            value=ScalarValue(scalar=external_scalar(reference)),
            content_type=content_type,
        )
    target = model.convert_reference_or_add_inline(spec_name, generated_name, None, schema)
    return Item(
        spec_name=spec_name,
        generated_name=generated_name,
        pub_typedef=True,
        value=RefValue(target=target),
        content_type=content_type,
    )


def _shared_reference(content: dict[str, Any]) -> Optional[str]:
    references = set()
    for media in content.values():
        schema = (media or {}).get("schema")
        references.add(schema.get("$ref") if isinstance(schema, dict) else None)
    if len(references) == 1:
        return references.pop()
    return None


def create_request_body(
    model: ApiModel,
    spec_name: str,
    reference_name: Optional[str],
    body: dict[str, Any],
) -> BackRef:
    """Add the item for an inline request body object.

    A single content type, or several sharing one ``$ref`` schema, collapse
    into that schema's type. Otherwise the body becomes an untagged union
    with one variant per content type. Each variant item is named after its
    media type and keeps it in ``content_type``; variants carry no mapping
    name, so their display names come from those deconflicted item names.

    Args:
        model: The model under construction.
        spec_name: Source name; ``{Op}Request`` for operation bodies.
        reference_name: External path for component request bodies.
        body: The request body object.

    Returns:
        A reference to the body's item.
    """
    generated_name = upper_camel_case(spec_name)
    content: dict[str, Any] = body.get("content") or {}
    required = bool(body.get("required"))

    if not content:
        item = convert_optional_schema(model, spec_name, generated_name, None)
    elif len(content) == 1 or _shared_reference(content) is not None:
        content_type, media = next(iter(content.items()))
        item = convert_optional_schema(
            model,
            spec_name,
            generated_name,
            (media or {}).get("schema"),
            content_type if len(content) == 1 else None,
        )
    else:
        variants = []
        for content_type, media in content.items():
            variant_name = model.deconflict_member_or_variant(upper_camel_case(content_type))
            variant_item = convert_optional_schema(
                model,
                content_type,
                variant_name,
                (media or {}).get("schema"),
                content_type,
            )
            if variant_item.inner_name is None:
                variant_item.nullable = not required
            # The display name comes from the deconflicted item name.
            variants.append(Variant(definition=model.add_item(variant_item)))
        item = Item(
            spec_name=spec_name,
            generated_name=generated_name,
            value=OneOfEnumValue(discriminant=None, variants=variants),
        )

    if item.docs is None and len(content) <= 1:
        item.docs = body.get("description")
    if item.inner_name is None:
        item.nullable = not required
    return model.add_item(item, reference_name)


def create_request_body_from_ref(model: ApiModel, body: dict[str, Any]) -> BackRef:
    """Reuse the item of a ``#/components/requestBodies/*`` entry."""
    return model.get_named_reference(body["$ref"])
