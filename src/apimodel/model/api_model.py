"""The reference graph: every item and endpoint of one converted document.

An :class:`ApiModel` is built in two phases:

1. **Construction.** Items are appended one at a time. Each gets a
   globally unique generated name, and may be registered under an
   external path such as ``#/components/schemas/Pet``. References between
   items are :class:`~apimodel.model.refs.BackRef` (target already added)
   or :class:`~apimodel.model.refs.ForwardRef` (target named by path, may
   not exist yet).
2. **Finalization.** :meth:`ApiModel.finalize` rewrites every reference
   into a :class:`~apimodel.model.refs.Reference`, fails on any path that
   was never registered, names every union variant, and freezes the model.

:meth:`ApiModel.from_document` runs both phases over an OpenAPI document.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Union

from apimodel.exceptions import (
    DuplicateItemNameError,
    InvariantViolation,
    ModelFinalizedError,
    UnknownReferenceError,
)
from apimodel.model import lowering
from apimodel.model.endpoint import insert_endpoints
from apimodel.model.endpoint.header import insert_component_header
from apimodel.model.endpoint.parameter import insert_component_parameter
from apimodel.model.endpoint.request_body import create_request_body
from apimodel.model.endpoint.response import create_response_variants
from apimodel.model.identifiers import deconflict, escape_identifier, upper_camel_case
from apimodel.model.item import Item
from apimodel.model.refs import BackRef, ForwardRef, Ref, Reference
from apimodel.model.scalars import Scalar
from apimodel.model.values import OneOfEnumValue, RefValue, ScalarValue, Variant
from apimodel.model.well_known import external_scalar, find_well_known_type, is_external
from apimodel.models import GeneratorConfig
from apimodel.output import debug

if TYPE_CHECKING:
    from apimodel.docs import DocsFetcher
    from apimodel.model.endpoint import Endpoint

AnyReference = Union[Reference, BackRef, ForwardRef]


class ApiModel:
    """Flat list of item definitions plus the indices that name them.

    Attributes:
        definitions: Every item, in insertion order.
        items: Generated name to definition index. Insertion order is
            emission order.
        named_references: External path to definition index.
        endpoints: One entry per ``(path, verb)`` operation.
        response_variants: Variants computed once per
            ``#/components/responses/*`` entry and shared by every
            operation that references it.
        bounded_integers: Lower integer bounds into bounded scalar kinds.
        docs_fetcher: Fetcher for ``externalDocs`` URLs; ``None`` disables
            fetching and falls back to ``description``.
    """

    def __init__(
        self,
        bounded_integers: bool = True,
        docs_fetcher: Optional[DocsFetcher] = None,
    ) -> None:
        self.definitions: list[Item] = []
        self.items: dict[str, int] = {}
        self.named_references: dict[str, int] = {}
        self.endpoints: list[Endpoint] = []
        self.response_variants: dict[str, list[Variant]] = {}
        self.bounded_integers = bounded_integers
        self.docs_fetcher = docs_fetcher
        self.accept_header: Optional[Ref] = None
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _check_mutable(self, operation: str) -> None:
        if self._finalized:
            raise ModelFinalizedError(operation)

    # -- Identifiers ---------------------------------------------------------

    def deconflict_identifier(self, name: str) -> str:
        """Escape *name* and make it unique among this model's top-level names."""
        result = deconflict(name, self.items)
        if result != name:
            debug(f"Renamed {name!r} to {result!r} to avoid a conflict")
        return result

    def deconflict_member_or_variant(self, name: str) -> str:
        """Escape *name* without checking uniqueness; for members and variants only."""
        return escape_identifier(name)

    def ident_exists(self, name: str) -> bool:
        return name in self.items

    # -- Adding items ----------------------------------------------------------

    def add_item(self, item: Item, reference_name: Optional[str] = None) -> BackRef:
        """Append *item*, giving it a unique name and optionally an external path.

        Raises:
            DuplicateItemNameError: If *reference_name* is already registered.
            ModelFinalizedError: If the model is finalized.
        """
        self._check_mutable("add item")
        index = len(self.definitions)
        name = self.deconflict_identifier(item.generated_name)
        if name in self.items:
            raise InvariantViolation(
                f"item name conflict despite deconfliction: old {self.items[name]}, new {index}, name {name!r}"
            )
        if reference_name is not None and reference_name in self.named_references:
            raise DuplicateItemNameError(
                reference_name, self.named_references[reference_name], index
            )

        item.generated_name = name
        self.definitions.append(item)
        self.items[name] = index
        if reference_name is not None:
            self.named_references[reference_name] = index
        return BackRef(index=index)

    def add_scalar(
        self,
        spec_name: str,
        generated_name: str,
        reference_name: Optional[str],
        scalar: Scalar,
    ) -> BackRef:
        """Add an alias of a scalar."""
        item = Item(
            spec_name=spec_name,
            generated_name=generated_name,
            value=ScalarValue(scalar=scalar),
        )
        return self.add_item(item, reference_name)

    def add_inline_items(
        self,
        spec_name: str,
        generated_name: str,
        reference_name: Optional[str],
        schema: dict[str, Any],
        containing_object: Optional[lowering.ContainingObject] = None,
        content_type: Optional[str] = None,
    ) -> BackRef:
        """Lower *schema* (recursively adding its inline sub-schemas) and add the result."""
        item = lowering.parse_schema(
            self, spec_name, generated_name, schema, containing_object, content_type
        )
        return self.add_item(item, reference_name)

    def convert_reference_or_add_inline(
        self,
        spec_name: str,
        generated_name: str,
        reference_name: Optional[str],
        schema_or_ref: dict[str, Any],
        containing_object: Optional[lowering.ContainingObject] = None,
    ) -> Ref:
        """Turn a schema-or-``$ref`` into a construction-time reference.

        An inline schema is lowered and added. A ``$ref`` to a registered
        path becomes a back reference, to an unregistered one a forward
        reference. A well-known external reference becomes its scalar.
        """
        reference = schema_or_ref.get("$ref") if isinstance(schema_or_ref, dict) else None
        if reference is None:
            return self.add_inline_items(
                spec_name, generated_name, reference_name, schema_or_ref, containing_object
            )
        if reference in self.named_references:
            return BackRef(index=self.named_references[reference])
        if is_external(reference) and find_well_known_type(reference) is not None:
            return self.add_scalar(
                spec_name, generated_name, reference_name, external_scalar(reference)
            )
        return ForwardRef(path=reference)

    # -- Named references ----------------------------------------------------

    def get_named_reference(self, path: str) -> BackRef:
        """Look up an already registered external path.

        Raises:
            UnknownReferenceError: If *path* has not been registered yet.
        """
        index = self.named_references.get(path)
        if index is None:
            raise UnknownReferenceError(path)
        return BackRef(index=index)

    def register_named_reference(self, path: str, ref: AnyReference) -> None:
        """Register *path* as another name for the item behind *ref*.

        Re-registering the same index is a no-op.

        Raises:
            UnknownReferenceError: If *ref* is a forward reference.
            DuplicateItemNameError: If *path* already names a different item.
        """
        self._check_mutable("register named reference")
        if isinstance(ref, ForwardRef):
            raise UnknownReferenceError(str(ref))
        old = self.named_references.get(path)
        if old is not None and old != ref.index:
            raise DuplicateItemNameError(path, old, ref.index)
        self.named_references[path] = ref.index

    # -- Lookup ----------------------------------------------------------------

    def index_of(self, ref: AnyReference) -> int:
        """Return the definition index behind *ref*.

        Raises:
            UnknownReferenceError: If *ref* does not resolve.
        """
        if isinstance(ref, ForwardRef):
            index = self.named_references.get(ref.path)
            if index is None:
                raise UnknownReferenceError(ref.path)
            return index
        if not 0 <= ref.index < len(self.definitions):
            raise UnknownReferenceError(str(ref))
        return ref.index

    def resolve(self, ref: AnyReference) -> Item:
        return self.definitions[self.index_of(ref)]

    def name_of(self, ref: AnyReference) -> str:
        """Generated name of the item behind *ref*."""
        return self.resolve(ref).generated_name

    def name_resolver(self) -> Callable[[AnyReference], str]:
        """Return the reference-to-name function handed to backends."""
        return self.name_of

    def iter_items(self) -> Iterator[Reference]:
        """Yield a reference to every definition, in insertion order."""
        for index in range(len(self.definitions)):
            yield Reference(index=index)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dump of the model, for debugging."""
        return {
            "definitions": [item.model_dump(mode="json") for item in self.definitions],
            "items": dict(self.items),
            "named_references": dict(self.named_references),
            "endpoints": [endpoint.model_dump(mode="json") for endpoint in self.endpoints],
        }

    # -- Finalization ------------------------------------------------------------

    def _finalizing_resolver(self) -> Callable[[AnyReference], Reference]:
        named_references = self.named_references
        size = len(self.definitions)

        def resolve(ref: AnyReference) -> Reference:
            if isinstance(ref, ForwardRef):
                index = named_references.get(ref.path)
                if index is None:
                    raise UnknownReferenceError(ref.path)
                return Reference(index=index)
            if not 0 <= ref.index < size:
                raise UnknownReferenceError(str(ref))
            return Reference(index=ref.index)

        return resolve

    def finalize(self) -> ApiModel:
        """Resolve every reference and freeze the model.

        Nothing is modified unless every reference resolves, so a failed
        finalization never leaves a half-converted model behind.

        Returns:
            This model, for chaining.

        Raises:
            UnknownReferenceError: If a forward reference names an
                unregistered path.
            ModelFinalizedError: If called twice.
        """
        self._check_mutable("finalize")
        resolve = self._finalizing_resolver()

        definitions = [item.map_refs(resolve) for item in self.definitions]
        endpoints = [endpoint.map_refs(resolve) for endpoint in self.endpoints]
        response_variants = {
            path: [
                variant.model_copy(update={"definition": resolve(variant.definition)})
                for variant in variants
            ]
            for path, variants in self.response_variants.items()
        }

        self.definitions = definitions
        self.endpoints = endpoints
        self.response_variants = response_variants
        self.accept_header = None
        self._finalized = True

        for item in self.definitions:
            if isinstance(item.value, OneOfEnumValue):
                for idx, variant in enumerate(item.value.variants):
                    variant.assign_name(idx, self.name_of)
        for variants in self.response_variants.values():
            for idx, variant in enumerate(variants):
                variant.assign_name(idx, self.name_of)
        return self

    # -- Conversion --------------------------------------------------------------

    @classmethod
    def from_document(
        cls,
        document: dict[str, Any],
        config: Optional[GeneratorConfig] = None,
        docs_fetcher: Optional[DocsFetcher] = None,
    ) -> ApiModel:
        """Convert a parsed OpenAPI document into a finalized model.

        Components are lowered first, in the order schemas, parameters,
        request bodies, responses, headers; then every path operation
        becomes an endpoint; then the model is finalized.

        Args:
            document: The parsed document.
            config: Generator options; defaults apply when ``None``.
            docs_fetcher: Fetcher for external documentation. Only used
                when ``config.fetch_external_docs`` is set.

        Returns:
            The finalized model.
        """
        config = config or GeneratorConfig()
        model = cls(
            bounded_integers=config.bounded_integers,
            docs_fetcher=docs_fetcher if config.fetch_external_docs else None,
        )
        components = document.get("components") or {}

        schemas = components.get("schemas") or {}
        for spec_name, schema in schemas.items():
            ref = model._add_component_schema(spec_name, schema)
            # Every component is public, even a plain alias.
            model.resolve(ref).pub_typedef = True
        debug(f"Lowered {len(schemas)} component schemas")

        for spec_name, parameter in (components.get("parameters") or {}).items():
            ref = insert_component_parameter(
                model, f"#/components/parameters/{spec_name}", parameter
            )
            model.resolve(ref).pub_typedef = True

        for spec_name, body in (components.get("requestBodies") or {}).items():
            reference_name = f"#/components/requestBodies/{spec_name}"
            if "$ref" in body:
                model.register_named_reference(
                    reference_name, model.get_named_reference(body["$ref"])
                )
                continue
            ref = create_request_body(model, spec_name, reference_name, body)
            item = model.resolve(ref)
            item.pub_typedef = True
            if item.docs is None:
                item.docs = body.get("description")

        for spec_name, response in (components.get("responses") or {}).items():
            reference_name = f"#/components/responses/{spec_name}"
            if "$ref" in response:
                model.response_variants[reference_name] = list(
                    model.cached_response_variants(response["$ref"])
                )
                continue
            model.response_variants[reference_name] = create_response_variants(
                document, model, upper_camel_case(spec_name), response
            )

        for spec_name, header in (components.get("headers") or {}).items():
            insert_component_header(document, model, spec_name, header)

        insert_endpoints(document, model)
        debug(f"Built {len(model.endpoints)} endpoints and {len(model.definitions)} items")
        return model.finalize()

    def _add_component_schema(self, spec_name: str, schema: Union[dict[str, Any], bool]) -> BackRef:
        generated_name = upper_camel_case(spec_name)
        reference_name = f"#/components/schemas/{spec_name}"
        reference = schema.get("$ref") if isinstance(schema, dict) else None
        if reference is None:
            return self.add_inline_items(spec_name, generated_name, reference_name, schema)
        if is_external(reference):
            scalar = external_scalar(reference)
            debug(f"External schema {reference} for {spec_name!r} lowered to {scalar}")
            return self.add_scalar(spec_name, generated_name, reference_name, scalar)
        target = self.convert_reference_or_add_inline(spec_name, generated_name, None, schema)
        alias = Item(
            docs=schema.get("description"),
            spec_name=spec_name,
            generated_name=generated_name,
            value=RefValue(target=target),
        )
        return self.add_item(alias, reference_name)

    def cached_response_variants(self, path: str) -> list[Variant]:
        """Variants computed for a ``#/components/responses/*`` entry.

        Raises:
            UnknownReferenceError: If *path* is not a known component response.
        """
        variants = self.response_variants.get(path)
        if variants is None:
            raise UnknownReferenceError(path)
        return variants
