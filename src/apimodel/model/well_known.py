"""External schema references with a built-in meaning.

Documents are expected to be self-contained, with one exception: a few
widely shared external schemas map directly onto a scalar kind. Any other
external reference in a body position degrades to ``Any``.
"""

from __future__ import annotations

import re
from typing import Optional

from apimodel.model.scalars import Scalar, ScalarKind

WELL_KNOWN_TYPES: dict[str, ScalarKind] = {
    "https://opensource.zalando.com/problem/schema.yaml#/Problem": ScalarKind.API_PROBLEM,
}

# Versioned copies of the problem schema published with the API guidelines.
_VERSIONED_PROBLEM_RE = re.compile(
    r"^https://opensource\.zalando\.com/restful-api-guidelines/models/problem-1\.0\.\d+\.yaml#/Problem$"
)


def is_external(reference: str) -> bool:
    """Return ``True`` for a ``$ref`` that points outside the current document."""
    return not reference.startswith("#")


def find_well_known_type(reference: str) -> Optional[Scalar]:
    """Return the scalar for a well-known external reference, else ``None``."""
    kind = WELL_KNOWN_TYPES.get(reference)
    if kind is None and _VERSIONED_PROBLEM_RE.match(reference):
        kind = ScalarKind.API_PROBLEM
    return Scalar.of(kind) if kind is not None else None


def external_scalar(reference: str) -> Scalar:
    """Scalar to use for an external reference: the well-known type or ``Any``."""
    return find_well_known_type(reference) or Scalar.of(ScalarKind.ANY)
