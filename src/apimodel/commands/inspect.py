"""Inspect commands -- list what a document converts into.

Provides the read-only ``apimodel items`` and ``apimodel operations``
commands. Both convert the document exactly like ``apimodel generate``
and present the finalized model as a table (or JSON / plain text,
depending on the active output mode).
"""

from __future__ import annotations

from typing import Optional

import typer

from apimodel.commands import fail
from apimodel.commands.generate import build_model, load_and_validate
from apimodel.exceptions import ApiModelError
from apimodel.output import print_table


def _load_model(path: str, fetch_docs: Optional[bool]):  # noqa: ANN202
    from apimodel.config import resolve_config

    try:
        config = resolve_config(cli_fetch_docs=fetch_docs)
        document = load_and_validate(path)
        return build_model(document, config.generator)
    except ApiModelError as exc:
        raise fail(exc) from None


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def items_command(
    path: str = typer.Argument(help="Path or URL of the OpenAPI document."),
    fetch_docs: Optional[bool] = typer.Option(
        None, "--fetch-docs/--no-fetch-docs", help="Fetch externalDocs URLs."
    ),
) -> None:
    """List every item of the converted document.

    Displays a table with each item's generated name, shape, visibility,
    nullability and name in the source document, in emission order.

    Example::

        apimodel items petstore.yaml
        apimodel --json items petstore.yaml
    """
    model = _load_model(path, fetch_docs)

    headers = ["Name", "Kind", "Public", "Nullable", "Spec Name"]
    rows: list[list[str]] = []
    for item in model.definitions:
        rows.append(
            [
                item.generated_name,
                item.kind,
                _yes_no(item.is_public),
                _yes_no(item.nullable),
                item.spec_name,
            ]
        )
    print_table(headers, rows, title="Items")


def operations_command(
    path: str = typer.Argument(help="Path or URL of the OpenAPI document."),
    fetch_docs: Optional[bool] = typer.Option(
        None, "--fetch-docs/--no-fetch-docs", help="Fetch externalDocs URLs."
    ),
) -> None:
    """List every operation of the converted document.

    Example::

        apimodel operations petstore.yaml
    """
    model = _load_model(path, fetch_docs)

    headers = ["Function", "Method", "Path", "Parameters", "Body", "Response"]
    rows: list[list[str]] = []
    for endpoint in model.endpoints:
        rows.append(
            [
                endpoint.function_name,
                endpoint.verb.value,
                endpoint.path,
                ", ".join(p.spec_name for p in endpoint.parameters),
                model.name_of(endpoint.request_body) if endpoint.request_body else "",
                model.name_of(endpoint.response),
            ]
        )
    print_table(headers, rows, title="Operations")
