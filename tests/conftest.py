"""Shared test fixtures for oasforge.

Provides reusable fixtures for route descriptor files, fresh registries and
introspection contexts, isolated config environments, output state, and
CLI invocation. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest
import yaml

from oasforge import registries
from oasforge.exporter.registry import ExporterRegistry, default_exporters
from oasforge.introspectors.base import IntrospectionContext
from oasforge.introspectors.registry import IntrospectorRegistry, default_introspectors
from oasforge.output import OutputFormat, OutputManager, reset_output, set_output
from oasforge.resolvers.registry import TypeResolverRegistry, default_type_resolvers


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_registries_between_tests() -> None:
    """Restore the built-in registries after tests that register strategies."""
    yield
    registries.reset()


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Drop handlers the CLI installed on the ``oasforge`` logger."""
    yield
    logger = logging.getLogger("oasforge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Route descriptor fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_routes_path() -> Path:
    return FIXTURES_DIR / "petstore_routes.yaml"


@pytest.fixture
def petstore_routes_raw(petstore_routes_path: Path) -> dict[str, Any]:
    """Raw petstore descriptor dict."""
    with open(petstore_routes_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def tree_routes_path() -> Path:
    """Descriptor with a self-referencing entity."""
    return FIXTURES_DIR / "tree_routes.json"


# ---------------------------------------------------------------------------
# Registry and context fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def resolvers() -> TypeResolverRegistry:
    """A private resolver chain with the built-in resolvers."""
    return default_type_resolvers()


@pytest.fixture
def introspectors() -> IntrospectorRegistry:
    """A private introspector chain with the built-in introspectors."""
    return default_introspectors()


@pytest.fixture
def exporters() -> ExporterRegistry:
    """A private exporter registry with the built-in exporters."""
    return default_exporters()


@pytest.fixture
def context(resolvers: TypeResolverRegistry, introspectors: IntrospectorRegistry) -> IntrospectionContext:
    """A fresh build-scoped introspection context."""
    return IntrospectionContext(resolvers, introspectors)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears all OASFORGE_* environment variables and changes the working
    directory to tmp_path, so no real project config is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in [
        "OASFORGE_CONFIG",
        "OASFORGE_SPEC_VERSION",
        "OASFORGE_TITLE",
        "OASFORGE_API_VERSION",
        "OASFORGE_FORMAT",
        "OASFORGE_INDENT",
        "OASFORGE_NO_PLUGINS",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
