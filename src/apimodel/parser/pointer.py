"""Follow internal ``$ref`` JSON pointers within an OpenAPI document.

Schemas are never inlined: the model keeps them as references so that
recursive schemas stay finite. Parameters, request bodies, responses and
headers, on the other hand, sometimes need to be read through their
``$ref`` (to learn a parameter's location, or how many content types a
shared response declares). :func:`follow_ref` does that, one object at a
time.
"""

from __future__ import annotations

from typing import Any

from apimodel.exceptions import SpecParseError


def resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    """Return the value at the internal reference *ref*.

    Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Args:
        document: The root document.
        ref: The reference string (e.g. ``"#/components/parameters/Id"``).

    Returns:
        The referenced value.

    Raises:
        SpecParseError: If the reference is external or any segment of the
            pointer does not exist.
    """
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported here: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = document
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )
    return current


def follow_ref(document: dict[str, Any], obj: Any) -> Any:
    """Follow *obj* through any chain of ``$ref`` objects to its target.

    Non-reference values are returned unchanged.

    Raises:
        SpecParseError: If a reference does not resolve or the chain loops.
    """
    seen: set[str] = set()
    while isinstance(obj, dict) and "$ref" in obj:
        ref = obj["$ref"]
        if ref in seen:
            raise SpecParseError(f"Circular $ref chain through '{ref}'")
        seen.add(ref)
        obj = resolve_pointer(document, ref)
    return obj
