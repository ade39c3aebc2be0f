"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apimodel.exceptions.ApiModelError` subclass.
External tooling (CI scripts, Makefiles, pre-commit hooks) can inspect the
exit code to determine the failure class without parsing stderr.

Example::

    $ apimodel generate openapi.yaml > api.py
    $ echo $?
    8   # EXIT_MODEL_ERROR -- the document could not be lowered
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be loaded, parsed, or version-checked."""

EXIT_MODEL_ERROR = 8
"""A schema could not be lowered into the model, or a reference never resolved."""

EXIT_ENDPOINT_ERROR = 9
"""An operation could not be converted into an endpoint signature."""

EXIT_RENDER_ERROR = 11
"""The finalized model could not be rendered into source code."""
