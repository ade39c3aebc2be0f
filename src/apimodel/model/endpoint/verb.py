"""HTTP methods an OpenAPI path item can declare operations under."""

from __future__ import annotations

import enum

from apimodel.exceptions import UnknownVerbError


class Verb(str, enum.Enum):
    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    PATCH = "PATCH"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, name: str) -> Verb:
        """Parse a path-item key case-insensitively.

        Raises:
            UnknownVerbError: If *name* is not an HTTP method.
        """
        try:
            return cls(name.upper())
        except ValueError as exc:
            raise UnknownVerbError(name) from exc

    @property
    def request_body_is_legal(self) -> bool:
        """Whether a request body declared for this method is kept."""
        return self not in _BODYLESS

    def __str__(self) -> str:
        return self.value


_BODYLESS = frozenset({Verb.GET, Verb.HEAD, Verb.DELETE, Verb.TRACE})

# Path-item keys that are not operations.
PATH_ITEM_FIELDS = frozenset(
    {"$ref", "summary", "description", "servers", "parameters"}
)
