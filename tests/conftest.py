"""Shared test fixtures for apimodel.

Provides reusable fixtures for loading document fixtures, building
models, creating isolated config environments, managing output state,
and running CLI commands. These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from apimodel.model import ApiModel
from apimodel.models import GeneratorConfig
from apimodel.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from YAML files)
# ---------------------------------------------------------------------------


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore document."""
    return load_fixture("petstore.yaml")


@pytest.fixture
def shapes_raw() -> dict[str, Any]:
    """Load the raw shapes document (unions, shared responses, headers)."""
    return load_fixture("shapes.yaml")


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


def make_document(
    schemas: dict[str, Any] | None = None,
    paths: dict[str, Any] | None = None,
    **components: Any,
) -> dict[str, Any]:
    """Build a minimal OpenAPI 3.0 document around *schemas* and *paths*."""
    document: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0.0"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}, **components},
    }
    return document


@pytest.fixture
def make_doc() -> Callable[..., dict[str, Any]]:
    """Return the minimal document builder."""
    return make_document


@pytest.fixture
def build_model() -> Callable[..., ApiModel]:
    """Return a function converting a document without fetching external docs."""

    def _build(document: dict[str, Any], **options: Any) -> ApiModel:
        config = GeneratorConfig(fetch_external_docs=False, **options)
        return ApiModel.from_document(document, config)

    return _build


@pytest.fixture
def petstore_model(
    petstore_raw: dict[str, Any], build_model: Callable[..., ApiModel]
) -> ApiModel:
    """Finalized model of the petstore document."""
    return build_model(petstore_raw)


@pytest.fixture
def shapes_model(shapes_raw: dict[str, Any], build_model: Callable[..., ApiModel]) -> ApiModel:
    """Finalized model of the shapes document."""
    return build_model(shapes_raw)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all APIMODEL_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    config_dir = tmp_path / "config"
    cache_dir = tmp_path / "cache"
    data_dir = tmp_path / "data"

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))
    monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)

    for var in [
        "APIMODEL_BOUNDED_INTEGERS",
        "APIMODEL_FETCH_DOCS",
        "APIMODEL_EMIT_DOCS",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Set up JSON output for tests that check JSON-formatted output.

    Installs a JSON-format OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
