"""Exception hierarchy for apimodel.

All exceptions inherit from :class:`ApiModelError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apimodel.exit_codes`.
The top-level error handler in :func:`apimodel.app.main` catches
``ApiModelError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Conversion is fail-fast: the first error aborts the whole build and no
partially constructed model is ever handed to a backend. Lower-level causes
are always chained (``raise ... from exc``) so that diagnostics can show the
full path from the offending schema down to the root cause.

Subclass hierarchy::

    ApiModelError (exit 1)
    +-- InvalidUsageError                      (exit 2)
    +-- ConfigError                            (exit 1)
    +-- SpecParseError                         (exit 7)
    +-- ModelError                             (exit 8)
    |   +-- UnknownReferenceError
    |   +-- DuplicateItemNameError
    |   +-- ValueConversionError
    |   +-- ParseItemError
    |   +-- ModelFinalizedError
    +-- EndpointError                          (exit 9)
    |   +-- UnknownVerbError
    |   +-- UnsupportedParameterLocationError
    |   +-- MalformedContentError
    +-- RenderError                            (exit 11)

:class:`InvariantViolation` deliberately sits outside this hierarchy: it
signals an internal bug, never a problem with the input document.
"""

from __future__ import annotations

from typing import Optional

from apimodel.exit_codes import (
    EXIT_ENDPOINT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MODEL_ERROR,
    EXIT_RENDER_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


class ApiModelError(Exception):
    """Base exception for all apimodel errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apimodel.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ApiModelError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ApiModelError):
    """Raised for configuration problems (unreadable files, invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class SpecParseError(ApiModelError):
    """Raised when the OpenAPI document cannot be loaded, parsed, or fails version validation."""

    exit_code = EXIT_SPEC_PARSE_ERROR


# --- Model construction ---


class ModelError(ApiModelError):
    """Base class for failures while building or finalizing the item graph."""

    exit_code = EXIT_MODEL_ERROR


class UnknownReferenceError(ModelError):
    """A reference (internal or document-declared) never resolved to a definition.

    Args:
        reference: The unresolved ``$ref`` path, or a description of the
            offending construction-time reference.
    """

    def __init__(self, reference: str):
        super().__init__(f"unknown reference: {reference}")
        self.reference = reference


class DuplicateItemNameError(ModelError):
    """Two distinct definitions claimed the same external reference path.

    Args:
        name: The external path (e.g. ``#/components/schemas/Pet``).
        old: Index of the definition registered first.
        new: Index of the competing definition.
    """

    def __init__(self, name: str, old: int, new: int):
        super().__init__(
            f"duplicate item name: {name} (old index {old}, new index {new})"
        )
        self.name = name
        self.old = old
        self.new = new


class ValueConversionError(ModelError):
    """A schema violated a shape precondition.

    Raised for enum/extensible-enum conflicts, format/enum conflicts,
    ``properties`` together with ``additionalProperties``, unrecognised
    numeric formats, and malformed enumeration members.

    Args:
        message: What went wrong.
        name: Generated name of the item being converted, when known.
    """

    def __init__(self, message: str, name: Optional[str] = None):
        if name:
            message = f"{name}: {message}"
        super().__init__(message)
        self.name = name


class ParseItemError(ModelError):
    """A schema could not be turned into an item at all.

    Raised for unsupported schema kinds (``anyOf``, ``not``), ``allOf``
    shapes other than a property singleton, and external documentation
    that could not be fetched.

    Args:
        message: What went wrong.
        name: Spec name of the schema being parsed, when known.
    """

    def __init__(self, message: str, name: Optional[str] = None):
        if name:
            message = f"{name}: {message}"
        super().__init__(message)
        self.name = name


class ModelFinalizedError(ModelError):
    """Raised when attempting to mutate a model after :meth:`~apimodel.model.ApiModel.finalize`."""

    def __init__(self, operation: str):
        super().__init__(f"cannot {operation}: model is already finalized")
        self.operation = operation


# --- Endpoint construction ---


class EndpointError(ApiModelError):
    """Base class for failures while converting a path operation into an endpoint."""

    exit_code = EXIT_ENDPOINT_ERROR


class UnknownVerbError(EndpointError):
    """A path item declared an operation under an unrecognised HTTP method."""

    def __init__(self, verb: str):
        super().__init__(f"unknown http verb: {verb}")
        self.verb = verb


class UnsupportedParameterLocationError(EndpointError):
    """A parameter used a location the model cannot bind (currently ``cookie``)."""

    def __init__(self, name: str, location: str):
        super().__init__(
            f"parameter {name!r}: unsupported parameter location {location!r}"
        )
        self.name = name
        self.location = location


class MalformedContentError(EndpointError):
    """A ``content`` map that must hold exactly one media type held some other number."""

    def __init__(self, name: str, count: int):
        super().__init__(
            f"{name}: malformed content type: must contain exactly one value, found {count}"
        )
        self.name = name
        self.count = count


# --- Rendering ---


class RenderError(ApiModelError):
    """Raised when a backend cannot render the finalized model."""

    exit_code = EXIT_RENDER_ERROR


class InvariantViolation(RuntimeError):
    """An internal invariant was broken.

    Never reachable from a valid or invalid input document; seeing this
    means apimodel itself has a bug.
    """
