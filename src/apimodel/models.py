"""Configuration models shared across apimodel modules.

All configuration is serialised as JSON in the user's config directory
(see :mod:`apimodel.config`) and validated with Pydantic v2. The model
types produced from OpenAPI documents live in :mod:`apimodel.model`; this
module only holds settings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Generator Config ---


class DocsCacheConfig(BaseModel):
    """Disk cache settings for fetched external documentation."""

    enabled: bool = Field(default=True, description="Cache fetched documentation on disk")
    ttl_seconds: int = Field(default=86400, description="Cache TTL in seconds")


class GeneratorConfig(BaseModel):
    """Options that change how a document is converted and rendered.

    Example::

        GeneratorConfig(bounded_integers=False, fetch_external_docs=False)
    """

    bounded_integers: bool = Field(
        default=True,
        description="Lower integers with explicit minimum/maximum into bounded kinds",
    )
    emit_docs: bool = Field(
        default=True, description="Emit documentation comments in generated source"
    )
    fetch_external_docs: bool = Field(
        default=True, description="Fetch externalDocs URLs as item documentation"
    )
    docs_cache: DocsCacheConfig = Field(default_factory=DocsCacheConfig)


# --- Output Config ---


class OutputConfig(BaseModel):
    """Default output preferences."""

    format: str = Field(
        default="auto", description="Default output format: auto, json, plain, rich"
    )


# --- Global Config ---


class GlobalConfig(BaseModel):
    """Top-level configuration persisted at ``~/.config/apimodel/config.json``.

    Loaded by :func:`~apimodel.config.load_global_config` and saved by
    :func:`~apimodel.config.save_global_config`. Fields here have the
    lowest precedence; project config, environment variables and CLI
    flags override them.
    """

    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
