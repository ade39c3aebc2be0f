"""Endpoint model -- one typed signature per ``(path, verb)`` operation.

For each operation this package:

* merges path-item and operation parameters (operation entries override
  path-item entries with the same ``name`` and ``in``),
* coalesces path and query parameters into one object item each,
  ``{Op}PathParameters`` and ``{Op}QueryParameters``,
* keeps header parameters individually, injecting an optional ``Accept``
  header first when some status offers several content types,
* lowers the request body (dropped for body-less verbs) into ``{Op}Request``,
* lowers the responses into the union ``{Op}Response``.

``{Op}`` is the UpperCamelCase ``operationId``, or the verb and path when
there is none.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field

from apimodel.exceptions import SpecParseError, UnknownReferenceError
from apimodel.model.endpoint.parameter import (
    Parameter,
    ParameterLocation,
    convert_param_ref,
    make_parameter,
    merge_parameters,
)
from apimodel.model.endpoint.request_body import (
    create_request_body,
    create_request_body_from_ref,
)
from apimodel.model.endpoint.response import (
    create_responses,
    response_has_multiple_content_types,
)
from apimodel.model.endpoint.verb import PATH_ITEM_FIELDS, Verb
from apimodel.model.identifiers import snake_case, upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import AnyRef, BackRef, Ref, RefResolver
from apimodel.model.scalars import ScalarKind
from apimodel.model.values import ObjectMember, ObjectValue, scalar
from apimodel.parser.pointer import follow_ref

if TYPE_CHECKING:
    from apimodel.model.api_model import ApiModel

ACCEPT = "accept"
ACCEPT_HEADER_NAME = "Accept"


class Endpoint(BaseModel):
    """A single operation.

    Attributes:
        path: Path template relative to the server URL; may contain
            ``{name}`` parameters.
        verb: The HTTP method.
        endpoint_documentation: Path-item ``description``, else ``summary``.
        operation_documentation: External documentation when fetched, else
            the operation's ``description``, else its ``summary``.
        operation_id: The ``operationId``, when declared.
        path_parameters: Object item holding every path parameter.
        query_parameters: Object item holding every query parameter.
        headers: Header parameters by spec name.
        parameters: Every parameter in declaration order, with an injected
            ``Accept`` header first.
        request_body: The body item; always ``None`` for body-less verbs.
        response: The response union item.
    """

    path: str
    verb: Verb
    endpoint_documentation: Optional[str] = None
    operation_documentation: Optional[str] = None
    operation_id: Optional[str] = None
    path_parameters: Optional[AnyRef] = None
    query_parameters: Optional[AnyRef] = None
    headers: dict[str, Parameter] = Field(default_factory=dict)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[AnyRef] = None
    response: AnyRef

    @property
    def label(self) -> str:
        """``operationId``, else ``"VERB path"``."""
        return self.operation_id or f"{self.verb} {self.path}"

    @property
    def function_name(self) -> str:
        return snake_case(self.label)

    def doc_string(self) -> str:
        """Documentation for the generated method.

        Operation docs come before endpoint docs as the more specific of
        the two, followed by the verb, path and operation id.
        """
        texts = [
            text
            for text in (self.operation_documentation, self.endpoint_documentation)
            if text
        ]
        parts = []
        if texts:
            parts.append("\n\n".join(texts))
        parts.append(f"`{self.verb} {self.path}`")
        if self.operation_id:
            parts.append(f"Operation ID: `{self.operation_id}`")
        return "\n\n".join(parts)

    def map_refs(self, resolve: RefResolver) -> Endpoint:
        return self.model_copy(
            update={
                "path_parameters": _map_optional(resolve, self.path_parameters),
                "query_parameters": _map_optional(resolve, self.query_parameters),
                "headers": {
                    name: param.map_refs(resolve) for name, param in self.headers.items()
                },
                "parameters": [param.map_refs(resolve) for param in self.parameters],
                "request_body": _map_optional(resolve, self.request_body),
                "response": resolve(self.response),
            }
        )


def _map_optional(resolve: RefResolver, ref: Optional[AnyRef]) -> Optional[AnyRef]:
    return resolve(ref) if ref is not None else None


def make_operation_spec_name(
    operation_id: Optional[str], suffix: str, verb: Verb, path: str
) -> str:
    """Name for an item synthesized for an operation, e.g. ``ListPetsResponse``."""
    if operation_id:
        return f"{upper_camel_case(operation_id)}{suffix}"
    return f"{upper_camel_case(verb.value)}{upper_camel_case(path)}{suffix}"


def _accept_header(model: ApiModel) -> Parameter:
    """The implicit ``Accept`` parameter; its item is shared by every operation."""
    if model.accept_header is None:
        item = Item(
            spec_name="Accept",
            generated_name="Accept",
            value=scalar(ScalarKind.ACCEPT_HEADER),
            impl_header=True,
        )
        model.accept_header = model.add_item(item)
    return Parameter(
        generated_name=ACCEPT,
        spec_name=ACCEPT_HEADER_NAME,
        location=ParameterLocation.HEADER,
        required=False,
        item_ref=model.accept_header,
    )


def _combination_item(
    model: ApiModel,
    kind: str,
    spec_name: str,
    label: str,
    members: dict[str, ObjectMember],
) -> Optional[BackRef]:
    if not members:
        return None
    item = Item(
        docs=f"Combination item for {kind} parameters of `{label}`",
        spec_name=spec_name,
        generated_name=upper_camel_case(spec_name),
        value=ObjectValue(members=members),
    )
    return model.add_item(item)


def _operation_docs(model: ApiModel, operation: dict[str, Any]) -> Optional[str]:
    external = operation.get("externalDocs")
    if isinstance(external, dict) and external.get("url") and model.docs_fetcher is not None:
        return model.docs_fetcher.fetch(external["url"], operation.get("operationId"))
    return operation.get("description") or operation.get("summary")


def create_endpoint(
    document: dict[str, Any],
    model: ApiModel,
    path: str,
    verb: Verb,
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> Endpoint:
    """Lower one operation, adding every item it needs to *model*."""
    operation_id = operation.get("operationId")
    label = operation_id or f"{verb} {path}"

    merged = merge_parameters(
        document, path_item.get("parameters") or [], operation.get("parameters") or []
    )
    parameters: list[Parameter] = []
    headers: dict[str, Parameter] = {}
    path_members: dict[str, ObjectMember] = {}
    query_members: dict[str, ObjectMember] = {}
    for entry in merged:
        param, item_ref = convert_param_ref(document, model, entry)
        parameter = make_parameter(param, item_ref)
        parameters.append(parameter)
        member = ObjectMember(definition=item_ref, inline_option=not parameter.required)
        if parameter.location is ParameterLocation.PATH:
            path_members[parameter.spec_name] = member
        elif parameter.location is ParameterLocation.QUERY:
            query_members[parameter.spec_name] = member
        else:
            headers[parameter.spec_name] = parameter

    responses = operation.get("responses") or {}
    declares_accept = any(name.lower() == ACCEPT for name in headers)
    if not declares_accept and any(
        response_has_multiple_content_types(document, response)
        for response in responses.values()
    ):
        accept = _accept_header(model)
        parameters.insert(0, accept)
        headers = {accept.spec_name: accept, **headers}

    path_parameters = _combination_item(
        model,
        "path",
        make_operation_spec_name(operation_id, "PathParameters", verb, path),
        label,
        path_members,
    )
    query_parameters = _combination_item(
        model,
        "query",
        make_operation_spec_name(operation_id, "QueryParameters", verb, path),
        label,
        query_members,
    )

    request_body: Optional[Ref] = None
    body = operation.get("requestBody")
    if body is not None and verb.request_body_is_legal:
        if "$ref" in body:
            request_body = create_request_body_from_ref(model, body)
        else:
            request_body = create_request_body(
                model, make_operation_spec_name(operation_id, "Request", verb, path), None, body
            )

    response = create_responses(
        document,
        model,
        make_operation_spec_name(operation_id, "Response", verb, path),
        responses,
    )

    return Endpoint(
        path=path,
        verb=verb,
        endpoint_documentation=path_item.get("description") or path_item.get("summary"),
        operation_documentation=_operation_docs(model, operation),
        operation_id=operation_id,
        path_parameters=path_parameters,
        query_parameters=query_parameters,
        headers=headers,
        parameters=parameters,
        request_body=request_body,
        response=response,
    )


def insert_endpoints(document: dict[str, Any], model: ApiModel) -> None:
    """Convert every operation under ``paths`` and append it to ``model.endpoints``.

    Raises:
        UnknownVerbError: If a path item holds an operation under an
            unrecognised key.
    """
    for path, path_item_or_ref in (document.get("paths") or {}).items():
        try:
            path_item = follow_ref(document, path_item_or_ref)
        except SpecParseError as exc:
            raise UnknownReferenceError(path_item_or_ref.get("$ref", path)) from exc
        for key, operation in path_item.items():
            if key in PATH_ITEM_FIELDS or key.startswith("x-"):
                continue
            verb = Verb.parse(key)
            model.endpoints.append(
                create_endpoint(document, model, path, verb, path_item, operation)
            )


__all__ = [
    "Endpoint",
    "Parameter",
    "ParameterLocation",
    "Verb",
    "create_endpoint",
    "insert_endpoints",
    "make_operation_spec_name",
]
