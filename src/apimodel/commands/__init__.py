"""Built-in CLI sub-commands for apimodel.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~apimodel.commands.generate` -- convert a document and print the
  generated source.
* :mod:`~apimodel.commands.inspect` -- list the items and operations of
  a converted document.
* :mod:`~apimodel.commands.config` -- view and modify global settings.

Single commands (``generate``, ``items``, ``operations``) are plain
callback functions registered directly on the root app; the ``config``
group is a :class:`typer.Typer` sub-application.
"""

from __future__ import annotations

import typer

from apimodel.exceptions import ApiModelError, EndpointError, ModelError, SpecParseError
from apimodel.output import error, get_output, suggest


def fail(exc: ApiModelError) -> typer.Exit:
    """Report *exc* (and its chained cause) and build the matching exit.

    Document and model errors also get a next-step suggestion.

    Example::

        try:
            ...
        except ApiModelError as exc:
            raise fail(exc) from None
    """
    error(str(exc))
    cause = exc.__cause__
    if cause is not None:
        error(f"Caused by: {cause}")
    if isinstance(exc, SpecParseError):
        suggest("Check that the source is an OpenAPI 3.0 or 3.1 document.")
    elif isinstance(exc, (ModelError, EndpointError)) and not get_output().is_verbose:
        suggest("Re-run with --verbose to trace how the document was lowered.")
    return typer.Exit(code=exc.exit_code)
