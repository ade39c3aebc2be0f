"""Scalar catalog: primitive ``type`` + ``format`` combinations to scalar kinds.

A :class:`Scalar` is the leaf of every item graph. Most kinds are plain
tags; the two bounded integer kinds additionally carry an inclusive
``(minimum, maximum)`` range.

The lowering rules implemented here:

* ``number``: ``float`` -> :attr:`ScalarKind.F32`, ``double`` or no
  format -> :attr:`ScalarKind.F64`, anything else is an error.
* ``integer``: ``int32`` -> 32-bit, ``int64`` or no format -> 64-bit,
  anything else is an error. Within a width, ``minimum: 0`` without a
  ``maximum`` selects the unsigned kind; otherwise any bound selects the
  bounded kind (when bounds are enabled); otherwise the signed kind.
* ``string``: see :func:`string_format_scalar`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from apimodel.exceptions import ValueConversionError
from apimodel.output import debug

I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


class ScalarKind(str, enum.Enum):
    """Every primitive kind a leaf item can take."""

    UNIT = "unit"
    BOOL = "bool"
    F32 = "f32"
    F64 = "f64"
    I32 = "i32"
    I64 = "i64"
    U32 = "u32"
    U64 = "u64"
    BOUNDED_I32 = "bounded_i32"
    BOUNDED_I64 = "bounded_i64"
    STRING = "string"
    BINARY = "binary"
    BYTES = "bytes"
    DATE = "date"
    DATE_TIME = "date_time"
    IP_ADDR = "ip_addr"
    IPV4_ADDR = "ipv4_addr"
    IPV6_ADDR = "ipv6_addr"
    UUID = "uuid"
    MIME = "mime"
    ACCEPT_HEADER = "accept_header"
    API_PROBLEM = "api_problem"
    ANY = "any"


_NO_EQ = frozenset({ScalarKind.F32, ScalarKind.F64, ScalarKind.ANY})

_NO_COPY = frozenset(
    {
        ScalarKind.STRING,
        ScalarKind.BINARY,
        ScalarKind.BYTES,
        ScalarKind.MIME,
        ScalarKind.ACCEPT_HEADER,
        ScalarKind.API_PROBLEM,
        ScalarKind.ANY,
    }
)

_NO_HASH = frozenset(
    {ScalarKind.F32, ScalarKind.F64, ScalarKind.ANY, ScalarKind.API_PROBLEM}
)

_BOUNDED = frozenset({ScalarKind.BOUNDED_I32, ScalarKind.BOUNDED_I64})


class Scalar(BaseModel):
    """A primitive leaf type.

    Attributes:
        kind: The primitive kind.
        minimum: Inclusive lower bound; set only for bounded kinds.
        maximum: Inclusive upper bound; set only for bounded kinds.
    """

    model_config = ConfigDict(frozen=True)

    kind: ScalarKind
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    @classmethod
    def of(cls, kind: ScalarKind) -> Scalar:
        """Build an unbounded scalar of *kind*."""
        return cls(kind=kind)

    @classmethod
    def bounded(cls, kind: ScalarKind, minimum: int, maximum: int) -> Scalar:
        """Build a bounded integer scalar carrying an inclusive range."""
        if kind not in _BOUNDED:
            raise ValueError(f"{kind.value} is not a bounded integer kind")
        return cls(kind=kind, minimum=minimum, maximum=maximum)

    @property
    def is_bounded(self) -> bool:
        return self.kind in _BOUNDED

    def impls_eq(self) -> bool:
        """Floating point and untyped values never support equality."""
        return self.kind not in _NO_EQ

    def impls_copy(self) -> bool:
        """Fixed-size values are trivially copyable; heap-backed ones are not."""
        return self.kind not in _NO_COPY

    def impls_hash(self) -> bool:
        return self.kind not in _NO_HASH

    def __str__(self) -> str:
        if self.is_bounded:
            return f"{self.kind.value}({self.minimum}, {self.maximum})"
        return self.kind.value


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def number_scalar(schema: dict[str, Any]) -> Scalar:
    """Lower a ``type: number`` schema.

    Raises:
        ValueConversionError: For a format other than ``float`` or ``double``.
    """
    fmt = schema.get("format")
    if fmt == "float":
        return Scalar.of(ScalarKind.F32)
    if fmt in (None, "", "double"):
        return Scalar.of(ScalarKind.F64)
    raise ValueConversionError(f"unknown format for number: {fmt!r}")


def integer_scalar(schema: dict[str, Any], bounded: bool = True) -> Scalar:
    """Lower a ``type: integer`` schema.

    Both the OpenAPI 3.0 (boolean ``exclusiveMinimum`` modifying
    ``minimum``) and 3.1 (numeric ``exclusiveMinimum``) bound styles are
    accepted. An exclusive bound is shifted one step toward the interior.
    A missing side of a bounded range defaults to the width's extreme.

    Args:
        schema: The integer schema.
        bounded: When ``False``, bounds other than the unsigned shortcut
            are ignored and a plain signed kind is produced.

    Returns:
        The scalar for this schema.

    Raises:
        ValueConversionError: For a format other than ``int32`` or
            ``int64``, or a non-integral bound.
    """
    fmt = schema.get("format")
    if fmt == "int32":
        signed, unsigned, ranged = ScalarKind.I32, ScalarKind.U32, ScalarKind.BOUNDED_I32
        low, high = I32_MIN, I32_MAX
    elif fmt in (None, "", "int64"):
        signed, unsigned, ranged = ScalarKind.I64, ScalarKind.U64, ScalarKind.BOUNDED_I64
        low, high = I64_MIN, I64_MAX
    else:
        raise ValueConversionError(f"unknown format for integer: {fmt!r}")

    minimum, exclusive_minimum = _read_bound(schema, "minimum", "exclusiveMinimum")
    maximum, exclusive_maximum = _read_bound(schema, "maximum", "exclusiveMaximum")

    # Compares the declared minimum only: `minimum: 0, exclusiveMinimum: true`
    # still selects the unsigned kind even though the real floor is 1.
    if minimum == 0 and maximum is None:
        if exclusive_minimum:
            debug("exclusiveMinimum is ignored when selecting an unsigned integer kind")
        return Scalar.of(unsigned)

    if bounded and (minimum is not None or maximum is not None):
        lower = minimum if minimum is not None and low <= minimum <= high else low
        upper = maximum if maximum is not None and low <= maximum <= high else high
        if exclusive_minimum:
            lower += 1
        if exclusive_maximum:
            upper -= 1
        return Scalar.bounded(ranged, lower, upper)

    return Scalar.of(signed)


def _read_bound(
    schema: dict[str, Any], inclusive_key: str, exclusive_key: str
) -> tuple[Optional[int], bool]:
    """Return ``(bound, exclusive)`` for one side of an integer range."""
    bound = _as_integer(schema.get(inclusive_key), inclusive_key)
    exclusive = schema.get(exclusive_key, False)
    if isinstance(exclusive, bool):
        return bound, exclusive
    # OpenAPI 3.1: the exclusive bound is itself the number.
    return _as_integer(exclusive, exclusive_key), True


def _as_integer(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueConversionError(f"{key} must be a number, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueConversionError(f"{key} must be integral for an integer schema, got {value}")
        return int(value)
    return value


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

# Formats defined by the OpenAPI specification itself; matched exactly.
_STANDARD_STRING_FORMATS: dict[str, ScalarKind] = {
    "binary": ScalarKind.BINARY,
    "byte": ScalarKind.BYTES,
    "date": ScalarKind.DATE,
    "date-time": ScalarKind.DATE_TIME,
    "password": ScalarKind.STRING,
}

# Widely used extension formats; matched case-insensitively.
_EXTENDED_STRING_FORMATS: dict[str, ScalarKind] = {
    "base64": ScalarKind.BYTES,
    "ip": ScalarKind.IP_ADDR,
    "ipv4": ScalarKind.IPV4_ADDR,
    "ipv6": ScalarKind.IPV6_ADDR,
    "mime": ScalarKind.MIME,
    "content-type": ScalarKind.MIME,
    "accept-header": ScalarKind.ACCEPT_HEADER,
    "uuid": ScalarKind.UUID,
}


def string_format_scalar(fmt: Optional[str]) -> Scalar:
    """Map a string ``format`` to its scalar.

    Unknown formats are legal and devolve to a plain string.

    Example::

        >>> string_format_scalar("date-time").kind
        <ScalarKind.DATE_TIME: 'date_time'>
        >>> string_format_scalar("IPv4").kind
        <ScalarKind.IPV4_ADDR: 'ipv4_addr'>
    """
    if not fmt:
        return Scalar.of(ScalarKind.STRING)
    kind = _STANDARD_STRING_FORMATS.get(fmt)
    if kind is None:
        kind = _EXTENDED_STRING_FORMATS.get(fmt.lower(), ScalarKind.STRING)
    return Scalar.of(kind)
