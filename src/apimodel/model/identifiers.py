"""Identifier conversion and deconfliction for generated names.

Every name the model hands to a backend passes through this module:

* :func:`upper_camel_case` / :func:`snake_case` -- case conversion of
  arbitrary document strings (schema names, property names, status
  phrases, media types) into identifier words.
* :func:`escape_identifier` -- reserved-word avoidance. Used on its own for
  object members and union variants, whose names only need to be unique
  within their container.
* :func:`deconflict` -- reserved-word avoidance plus uniqueness against a
  table of names already in use. Used for top-level item names.

The functions are pure: the table of used names belongs to the
:class:`~apimodel.model.ApiModel` instance that owns it and is passed in
explicitly.
"""

from __future__ import annotations

import keyword
import re
from collections.abc import Container

# Names imported by generated modules. A schema called ``Optional`` must not
# shadow ``typing.Optional`` in the rendered source.
_BACKEND_RESERVED: frozenset[str] = frozenset(
    {
        "annotations",
        "Annotated",
        "Any",
        "BaseModel",
        "ConfigDict",
        "Enum",
        "Field",
        "FrozenSet",
        "IPv4Address",
        "IPv6Address",
        "List",
        "Literal",
        "Optional",
        "Protocol",
        "RootModel",
        "Union",
        "UUID",
        "date",
        "datetime",
    }
)

# Any run of characters that cannot appear in an identifier word.
_SEPARATOR_RE = re.compile(r"[^0-9A-Za-z]+")


def split_words(name: str) -> list[str]:
    """Split *name* into identifier words.

    Words are delimited by any non-alphanumeric character, by a lowercase
    letter or digit followed by an uppercase letter (``petId``), and by the
    end of an acronym followed by a capitalised word (``HTTPServer``).
    Digits never start a new word on their own, so ``Variant01`` is a
    single word.

    Args:
        name: Arbitrary source string.

    Returns:
        The non-empty words, in order.

    Example::

        >>> split_words("X-Request-ID")
        ['X', 'Request', 'ID']
        >>> split_words("HTTPServer")
        ['HTTP', 'Server']
    """
    words: list[str] = []
    for chunk in _SEPARATOR_RE.split(name):
        if not chunk:
            continue
        chunk = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", chunk)
        chunk = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1 \2", chunk)
        words.extend(chunk.split())
    return words


def upper_camel_case(name: str) -> str:
    """Convert *name* to ``UpperCamelCase``.

    Example::

        >>> upper_camel_case("application/json")
        'ApplicationJson'
        >>> upper_camel_case("Not Acceptable")
        'NotAcceptable'
    """
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(name))


def snake_case(name: str) -> str:
    """Convert *name* to ``snake_case``.

    Example::

        >>> snake_case("camelCaseName")
        'camel_case_name'
    """
    return "_".join(word.lower() for word in split_words(name))


def is_reserved(name: str) -> bool:
    """Return ``True`` if *name* is a Python keyword or a name generated modules import."""
    return keyword.iskeyword(name) or name in _BACKEND_RESERVED


def escape_identifier(name: str) -> str:
    """Make *name* usable as an identifier without checking global uniqueness.

    A reserved word gets a trailing underscore (PEP 8 convention); a leading
    digit gets an underscore prefix; an empty name becomes ``"_"``.

    Args:
        name: A proposed member, variant, or item name.

    Returns:
        The escaped name. Already-safe names are returned unchanged.
    """
    if not name:
        return "_"
    if name[0].isdigit():
        name = f"_{name}"
    if is_reserved(name):
        name = f"{name}_"
    return name


def deconflict(name: str, taken: Container[str]) -> str:
    """Escape *name* and append ``1``, ``2``, ``3``... until it is not in *taken*.

    Idempotent on a name that is already safe and unused:
    ``deconflict(deconflict(n, t), t) == deconflict(n, t)`` as long as the
    result has not been added to *taken* in between.

    Args:
        name: The proposed top-level identifier.
        taken: Identifiers already in use.

    Returns:
        A reserved-word-free identifier not contained in *taken*.
    """
    base = escape_identifier(name)
    proposed = base
    suffix = 1
    while proposed in taken:
        proposed = f"{base}{suffix}"
        suffix += 1
    return proposed
