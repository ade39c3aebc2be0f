"""Document loading -- fetch, parse and version-check OpenAPI documents.

Typical usage::

    from apimodel.parser import load_document, validate_openapi_version

    document = load_document("petstore.yaml")
    validate_openapi_version(document)

Sub-modules:

* :mod:`~apimodel.parser.loader` -- I/O layer (URL, file, stdin) plus
  format detection and OpenAPI version validation.
* :mod:`~apimodel.parser.pointer` -- JSON-pointer lookup for the
  ``$ref`` objects the endpoint model has to read through.
"""

from apimodel.parser.loader import load_document, validate_openapi_version
from apimodel.parser.pointer import follow_ref, resolve_pointer

__all__ = ["load_document", "validate_openapi_version", "follow_ref", "resolve_pointer"]
