"""
sigmodel Test Configuration and Fixtures

This module provides pytest fixtures shared by the extraction, compiler and
pipeline tests. Type declarations are written in the YAML form of the type
IR so each test states its input types next to its expectations.

Fixture Categories:
- Paths: fixture files shipped with the tests
- Type IR: source units and oracles built from YAML
- Extraction: helpers running a whole extraction over YAML declarations
"""

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import pytest

from sigmodel.config import ExtractionConfig
from sigmodel.extraction import generate_function_models, generate_parser_model
from sigmodel.models import FunctionParserModels, ParserModelMap
from sigmodel.oracle import IRTypeOracle, SourceUnit

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def shop_path(fixtures_dir: Path) -> Path:
    """Return the shop type IR file."""
    return fixtures_dir / "shop.yaml"


# =============================================================================
# Type IR Fixtures
# =============================================================================


@pytest.fixture
def shop_unit(shop_path: Path) -> SourceUnit:
    """Source unit of the shop API."""
    return SourceUnit.from_file(shop_path)


@pytest.fixture
def shop_oracle(shop_unit: SourceUnit) -> IRTypeOracle:
    """Oracle over the shop API."""
    return IRTypeOracle(shop_unit)


@pytest.fixture
def make_oracle() -> Callable[[str], IRTypeOracle]:
    """Build an oracle from YAML declarations."""

    def _make(text: str) -> IRTypeOracle:
        return IRTypeOracle(SourceUnit.from_yaml(textwrap.dedent(text), name="test"))

    return _make


# =============================================================================
# Extraction Fixtures
# =============================================================================


@pytest.fixture
def extract_ir(make_oracle) -> Callable[..., ParserModelMap]:
    """Extract the return type model of a function declared in YAML.

    Returns a callable ``(text, function="test", config=None)`` giving the
    model map of that function's return type.
    """

    def _extract(
        text: str,
        function: str = "test",
        config: Optional[ExtractionConfig] = None,
    ) -> ParserModelMap:
        return generate_parser_model(function, make_oracle(text), config)

    return _extract


@pytest.fixture
def extract_function_ir(make_oracle) -> Callable[..., FunctionParserModels]:
    """Extract parameter and return models of a function declared in YAML."""

    def _extract(
        text: str,
        function: str = "test",
        config: Optional[ExtractionConfig] = None,
    ) -> FunctionParserModels:
        return generate_function_models(function, make_oracle(text), config)

    return _extract
