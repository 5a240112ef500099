"""
Tests for batch parsing of several pasted stat blocks.
"""

import pytest

from statblock_converter.batch import parse_batch, split_blocks
from statblock_converter.config import ConverterSettings
from statblock_converter.registry import build_default_registry


@pytest.fixture
def batch_text(ogre_text, wight_text):
    return f"{ogre_text}\n---\n{wight_text}\n"


class TestSplitBlocks:

    def test_dash_lines_separate(self):
        assert split_blocks("A\n---\nB\n-----  \nC") == ["A", "B", "C"]

    def test_inline_dashes_do_not_split(self):
        assert split_blocks("Hit Points 5 --- more") == ["Hit Points 5 --- more"]

    def test_empty_blocks_dropped(self):
        assert split_blocks("---\n\n---\nA\r\n---\r\n") == ["A"]
        assert split_blocks("") == []


class TestParseBatch:

    def test_each_block_converted(self, batch_text, registry):
        results = parse_batch(batch_text, registry=registry)
        assert [r.index for r in results] == [0, 1]
        assert all(r.success for r in results)
        assert [r.creature.name for r in results] == ["Ogre", "Wight"]
        assert [r.adversary.adv_type.value for r in results] == ["Bruiser", "Skulk"]

    def test_options_apply_to_every_block(self, batch_text, registry):
        results = parse_batch(batch_text, convert_options={"tier": 3}, registry=registry)
        assert [r.adversary.tier for r in results] == [3, 3]

    def test_failure_is_isolated(self, load_fixture, registry):
        text = f"{{broken json\n---\n{load_fixture('fivetools_goblin.json')}"
        results = parse_batch(text, options="json-fivetools", registry=registry)
        assert not results[0].success
        assert results[0].error.startswith("Invalid JSON")
        assert results[0].creature is None
        assert results[1].success
        assert results[1].creature.name == "Goblin"

    def test_mixed_success(self, ogre_text, registry):
        text = f"{ogre_text}\n---\nGoblin"
        results = parse_batch(text, registry=registry)
        assert [r.success for r in results] == [True, True]
        assert results[1].creature.name == "Goblin"

    def test_oversized_block_skipped(self, ogre_text):
        registry = build_default_registry(ConverterSettings(max_input_chars=50))
        results = parse_batch(f"Tiny\n---\n{ogre_text}", registry=registry)
        assert results[0].success
        assert not results[1].success
        assert "exceeds 50 characters" in results[1].error

    def test_unknown_system_reported(self, ogre_text, registry):
        (result,) = parse_batch(ogre_text, options="gurps", registry=registry)
        assert not result.success
        assert "gurps" in result.error

    def test_to_dict(self, ogre_text, registry):
        (result,) = parse_batch(ogre_text, registry=registry)
        data = result.to_dict()
        assert data["success"] is True
        assert data["creature"]["name"] == "Ogre"
        assert data["adversary"]["advType"] == "Bruiser"
        assert "error" not in data

    def test_default_registry(self, ogre_text):
        (result,) = parse_batch(ogre_text)
        assert result.success
