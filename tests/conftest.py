"""
Pytest configuration and fixtures for statblock-converter tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing statblock_converter
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from statblock_converter.registry import build_default_registry  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def load_fixture():
    """Reader for the sample stat blocks in tests/fixtures."""
    return _read_fixture


@pytest.fixture
def load_json_fixture():
    """Reader returning a fixture decoded as JSON."""
    def _load(name: str) -> dict:
        return json.loads(_read_fixture(name))
    return _load


@pytest.fixture
def registry():
    """A fresh registry with every built-in extractor."""
    return build_default_registry()


@pytest.fixture
def ogre_text():
    return _read_fixture("ogre_5e.txt")


@pytest.fixture
def wight_text():
    return _read_fixture("wight_5e.txt")


@pytest.fixture
def dragon_text():
    return _read_fixture("adult_red_dragon_5e.txt")


@pytest.fixture
def ogre(registry, ogre_text):
    return registry.parse(ogre_text)


@pytest.fixture
def wight(registry, wight_text):
    return registry.parse(wight_text)


@pytest.fixture
def dragon(registry, dragon_text):
    return registry.parse(dragon_text)
