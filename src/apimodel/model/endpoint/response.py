"""Responses: one union per operation, one variant per status and content type.

Every operation's responses become a single :class:`OneOfEnumValue` with no
discriminant. Each status contributes one variant per content type it
declares, or a single ``Unit`` variant when it declares none. Status keys
are named by their canonical reason phrase, or by their range bucket, and
``default`` always comes last.

A response that declares headers other than ``Content-Type`` is wrapped in
an object with one member per header plus a ``body`` member holding the
payload. Variants computed for ``#/components/responses/*`` entries are
cached on the model and reused verbatim by every referencing operation.
"""

from __future__ import annotations

import re
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Optional

from apimodel.exceptions import EndpointError, SpecParseError, UnknownReferenceError
from apimodel.model.endpoint.header import convert_header_ref
from apimodel.model.identifiers import upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import BackRef, Ref
from apimodel.model.scalars import Scalar, ScalarKind
from apimodel.model.values import ObjectMember, ObjectValue, OneOfEnumValue, Variant
from apimodel.model.well_known import external_scalar, is_external
from apimodel.parser.pointer import follow_ref

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel

BODY_MEMBER = "body"
DEFAULT_STATUS = "default"

_RANGE_RE = re.compile(r"^([0-9])XX$", re.IGNORECASE)

_RANGE_NAMES = {
    "1": "informational range",
    "2": "success range",
    "3": "redirection range",
    "4": "client error range",
    "5": "server error range",
}


def status_name(status: str) -> str:
    """Human-readable name of a ``responses`` key.

    >>> status_name("404")
    'Not Found'
    >>> status_name("5XX")
    'server error range'

    Raises:
        EndpointError: If *status* is neither a status code, a range, nor
            ``default``.
    """
    if status == DEFAULT_STATUS:
        return "Default"
    if status.isdigit():
        code = int(status)
        try:
            return HTTPStatus(code).phrase
        except ValueError:
            return f"status code {code}"
    match = _RANGE_RE.match(status)
    if match:
        digit = match.group(1)
        return _RANGE_NAMES.get(digit, f"status range {digit}xx")
    raise EndpointError(f"invalid response status: {status!r}")


def is_content_type_header(name: str) -> bool:
    return name.lower() == "content-type"


# ---------------------------------------------------------------------------
# Variants of a single response
# ---------------------------------------------------------------------------


def _add_payload(
    model: ApiModel,
    spec_name: str,
    generated_name: str,
    schema: Optional[dict[str, Any]],
    content_type: Optional[str],
    docs: Optional[str],
) -> Ref:
    if schema is None:
        ref = model.add_scalar(spec_name, generated_name, None, Scalar.of(ScalarKind.UNIT))
        model.resolve(ref).docs = docs
        return ref
    reference = schema.get("$ref")
    if reference is not None and is_external(reference):
        ref = model.add_scalar(spec_name, generated_name, None, external_scalar(reference))
        model.resolve(ref).docs = docs
        return ref
    if reference is not None:
        return model.convert_reference_or_add_inline(spec_name, generated_name, None, schema)
    ref = model.add_inline_items(
        spec_name, generated_name, None, schema, content_type=content_type
    )
    item = model.resolve(ref)
    if item.docs is None:
        item.docs = docs
    return ref


def _wrap_with_headers(
    document: dict[str, Any],
    model: ApiModel,
    spec_name: str,
    generated_name: str,
    headers: dict[str, Any],
    body: Ref,
    content_type: Optional[str],
    docs: Optional[str],
) -> BackRef:
    """Add the object carrying a response's headers next to its ``body``."""
    members: dict[str, ObjectMember] = {}
    for header_name, header_or_ref in headers.items():
        if header_name == BODY_MEMBER:
            raise EndpointError(
                f"{spec_name}: response header may not be named {BODY_MEMBER!r}"
            )
        try:
            header = follow_ref(document, header_or_ref)
        except SpecParseError as exc:
            raise UnknownReferenceError(header_or_ref.get("$ref", header_name)) from exc
        definition = convert_header_ref(document, model, header_name, header_or_ref)
        members[header_name] = ObjectMember(
            definition=definition, inline_option=not header.get("required")
        )
    members[BODY_MEMBER] = ObjectMember(definition=body)

    wrapper = Item(
        docs=docs,
        spec_name=spec_name,
        generated_name=generated_name,
        value=ObjectValue(members=members),
        content_type=content_type,
    )
    return model.add_item(wrapper)


def create_response_variants(
    document: dict[str, Any],
    model: ApiModel,
    item_name: str,
    response: dict[str, Any],
) -> list[Variant]:
    """Add the items for one response object and return its variants.

    Used both for ``#/components/responses/*`` entries and for inline
    responses of an operation. With several content types each variant's
    item name is suffixed by the content type, and its ``mapping_name`` is
    the content type; otherwise ``mapping_name`` is ``None``. Callers
    qualify mapping names with the status.

    Args:
        document: The root document, for reading header ``$ref`` entries.
        model: The model under construction.
        item_name: UpperCamelCase base name for the added items.
        response: The response object.

    Returns:
        The variants in content-type declaration order.
    """
    content: dict[str, Any] = response.get("content") or {}
    headers = {
        name: header
        for name, header in (response.get("headers") or {}).items()
        if not is_content_type_header(name)
    }
    docs = response.get("description")

    entries: list[tuple[Optional[str], Optional[dict[str, Any]]]]
    if content:
        entries = [
            (content_type, (media or {}).get("schema")) for content_type, media in content.items()
        ]
    else:
        entries = [(None, None)]
    multiple = len(entries) > 1

    variants = []
    for content_type, schema in entries:
        name = item_name
        if multiple:
            name = f"{item_name}{upper_camel_case(content_type)}"
        body_name = f"{name}Body" if headers else name

        definition: Ref = _add_payload(model, name, body_name, schema, content_type, docs)
        if headers:
            definition = _wrap_with_headers(
                document, model, name, name, headers, definition, content_type, docs
            )
        variants.append(
            Variant(definition=definition, mapping_name=content_type if multiple else None)
        )
    return variants


# ---------------------------------------------------------------------------
# Operation responses
# ---------------------------------------------------------------------------


def _ordered_statuses(responses: dict[Any, Any]) -> list[tuple[str, Any]]:
    # YAML reads unquoted status codes as integers.
    entries = [(str(status), response) for status, response in responses.items()]
    ordered = [entry for entry in entries if entry[0] != DEFAULT_STATUS]
    ordered.extend(entry for entry in entries if entry[0] == DEFAULT_STATUS)
    return ordered


def response_has_multiple_content_types(document: dict[str, Any], response: Any) -> bool:
    """Whether one status declares two or more content types."""
    try:
        resolved = follow_ref(document, response)
    except SpecParseError as exc:
        raise UnknownReferenceError(response.get("$ref", "")) from exc
    return len(resolved.get("content") or {}) >= 2


def create_responses(
    document: dict[str, Any],
    model: ApiModel,
    spec_name: str,
    responses: dict[Any, Any],
) -> BackRef:
    """Add the response union ``{Op}Response`` for an operation.

    The union is produced even when no responses are declared.

    Args:
        document: The root document.
        model: The model under construction.
        spec_name: ``{Op}Response``.
        responses: The operation's ``responses`` object.

    Returns:
        A reference to the union item.
    """
    generated_name = upper_camel_case(spec_name)
    variants: list[Variant] = []
    for status, response in _ordered_statuses(responses or {}):
        name = status_name(status)
        if "$ref" in response:
            status_variants = model.cached_response_variants(response["$ref"])
        else:
            status_variants = create_response_variants(
                document, model, f"{generated_name}{upper_camel_case(name)}", response
            )
        for variant in status_variants:
            mapping_name = name
            if variant.mapping_name is not None:
                mapping_name = f"{name} {variant.mapping_name}"
            variants.append(
                Variant(
                    definition=variant.definition,
                    mapping_name=mapping_name,
                    status_code=status,
                )
            )

    item = Item(
        spec_name=spec_name,
        generated_name=generated_name,
        value=OneOfEnumValue(discriminant=None, variants=variants),
    )
    return model.add_item(item)
