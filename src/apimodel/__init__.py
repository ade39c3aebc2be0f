"""apimodel -- Compile OpenAPI 3.0/3.1 documents into a typed model.

The package converts an OpenAPI document into a flat, fully resolved graph
of named type definitions plus one typed signature per operation, and can
render that graph as a Python module of pydantic models.

Typical workflow::

    apimodel generate openapi.yaml > api_models.py
    apimodel items openapi.yaml
    apimodel operations openapi.yaml

Modules:
    app: Typer application and CLI entry point.
    model: The reference graph, schema lowering and endpoint signatures.
    parser: Loading and version-checking OpenAPI documents.
    render: Python source generation through Jinja2 templates.
    models: Pydantic configuration models.
    config: XDG-aware configuration with precedence resolution.
    docs: Cached fetching of ``externalDocs`` URLs.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
