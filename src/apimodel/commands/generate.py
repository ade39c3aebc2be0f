"""Generate command -- convert an OpenAPI document into Python source.

Loads the document (file, URL or ``-`` for stdin), builds the finalized
:class:`~apimodel.model.api_model.ApiModel` and prints the rendered module
to stdout. The debug flags dump the parsed document or the model as JSON
instead; ``--emit-source`` prints the source as well.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from apimodel.commands import fail
from apimodel.exceptions import ApiModelError
from apimodel.models import GeneratorConfig
from apimodel.output import debug, print_json, print_source, success, warning


def load_and_validate(source: str) -> dict[str, Any]:
    """Load *source* and reject anything but OpenAPI 3.0/3.1."""
    from apimodel.parser import load_document, validate_openapi_version

    document = load_document(source)
    version = validate_openapi_version(document)
    debug(f"Loaded OpenAPI {version} document from {source}")
    return document


def build_model(document: dict[str, Any], generator: GeneratorConfig):  # noqa: ANN201
    """Convert *document* into a finalized model using *generator* options.

    External documentation is fetched through a
    :class:`~apimodel.docs.DocsFetcher` backed by the XDG cache directory,
    but only when ``generator.fetch_external_docs`` is set.
    """
    from apimodel.model import ApiModel

    fetcher = None
    if generator.fetch_external_docs:
        from apimodel.config import get_cache_dir
        from apimodel.docs import DocsFetcher

        fetcher = DocsFetcher(get_cache_dir(), generator.docs_cache)
    try:
        return ApiModel.from_document(document, generator, fetcher)
    finally:
        if fetcher is not None:
            fetcher.close()


def generate_command(
    path: str = typer.Argument(
        help="Path or URL of the OpenAPI document, or '-' for stdin."
    ),
    debug_spec: bool = typer.Option(
        False, "--debug-spec", help="Print the parsed document as JSON."
    ),
    debug_model: bool = typer.Option(
        False, "--debug-model", help="Print the finalized model as JSON."
    ),
    emit_source: bool = typer.Option(
        False, "--emit-source", help="Print the source even with a debug flag."
    ),
    no_emit_docs: bool = typer.Option(
        False, "--no-emit-docs", help="Omit docstrings and documentation comments."
    ),
    bounded_integers: Optional[bool] = typer.Option(
        None,
        "--bounded-integers/--no-bounded-integers",
        help="Lower integers with minimum/maximum into bounded types.",
    ),
    fetch_docs: Optional[bool] = typer.Option(
        None,
        "--fetch-docs/--no-fetch-docs",
        help="Fetch externalDocs URLs as documentation.",
    ),
) -> None:
    """Generate Python models for an OpenAPI document.

    Example::

        apimodel generate petstore.yaml > petstore.py
        apimodel generate petstore.yaml --debug-model --no-fetch-docs
        curl -s https://example.com/openapi.json | apimodel generate -
    """
    from apimodel.config import resolve_config
    from apimodel.render import render_python

    try:
        config = resolve_config(
            cli_bounded_integers=bounded_integers,
            cli_fetch_docs=fetch_docs,
            cli_emit_docs=False if no_emit_docs else None,
        )
        document = load_and_validate(path)
        if debug_spec:
            print_json(document)

        model = build_model(document, config.generator)
        for endpoint in model.endpoints:
            if endpoint.operation_id is None:
                warning(
                    f"{endpoint.label} has no operationId; "
                    f"its method is named {endpoint.function_name}()"
                )
        if debug_model:
            print_json(model.to_dict())

        if emit_source or not (debug_spec or debug_model):
            source = render_python(model, emit_docs=config.generator.emit_docs)
            print_source(source)
    except ApiModelError as exc:
        raise fail(exc) from None

    success(
        f"Generated {len(model.definitions)} items and {len(model.endpoints)} operations."
    )
