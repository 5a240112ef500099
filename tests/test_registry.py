"""
Tests for the parser registry and dispatch.
"""

import pytest

from statblock_converter.exceptions import InvalidJSONError, UnknownSystemError
from statblock_converter.extractors import Dnd5eExtractor, OsrExtractor, WorldAnvilDecoder
from statblock_converter.registry import ParserRegistry, build_default_registry
from statblock_converter.config import ConverterSettings, ParseOptions


class TestRegistryContents:

    def test_registered_ids(self, registry):
        ids = registry.ids()
        assert ids[:5] == ["dnd5e", "dnd35e", "osr", "pf2e", "dnd4e"]
        assert "json" in registry
        for fmt in ("fivetools", "open5e", "worldanvil", "critterdb", "foundry", "improvedinitiative"):
            assert f"json-{fmt}" in registry
        assert len(registry) == len(ids)

    def test_worldanvil_alias(self, registry):
        assert registry.get_parser("worldanvil") is registry.get_parser("json-worldanvil")
        assert isinstance(registry.get_parser("worldanvil"), WorldAnvilDecoder)

    def test_systems_listing(self, registry):
        entries = registry.systems()
        assert [e.id for e in entries] == registry.ids()
        first = entries[0].to_dict()
        assert first == {"id": "dnd5e", "name": "D&D 5th Edition", "shortName": "5e"}

    def test_extractors_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.extractors["custom"] = Dnd5eExtractor()


class TestGetParser:

    def test_known_ids_are_normalized(self, registry):
        assert isinstance(registry.get_parser(" OSR "), OsrExtractor)

    @pytest.mark.parametrize("system_id", ["gurps", "", None])
    def test_unknown_falls_back_to_default(self, registry, system_id):
        assert isinstance(registry.get_parser(system_id), Dnd5eExtractor)

    def test_default_follows_settings(self):
        registry = build_default_registry(ConverterSettings(default_system="osr"))
        assert isinstance(registry.get_parser("gurps"), OsrExtractor)

    def test_unregistered_default_is_rejected(self):
        with pytest.raises(UnknownSystemError):
            ParserRegistry({"osr": OsrExtractor()}, default_system="dnd5e")


class TestParse:
    """Tests for ParserRegistry.parse dispatch."""

    def test_explicit_system_skips_detection(self, registry, load_fixture):
        creature = registry.parse(load_fixture("osr_ogre.txt"), "dnd5e")
        assert creature.meta.system == "dnd5e"
        assert creature.meta.confidence == 1.0

    def test_options_forms(self, registry, ogre_text):
        for options in (None, "auto", {"system": "auto"}, ParseOptions()):
            assert registry.parse(ogre_text, options).meta.system == "dnd5e"

    def test_unknown_explicit_system_raises(self, registry, ogre_text):
        with pytest.raises(UnknownSystemError) as exc_info:
            registry.parse(ogre_text, {"system": "gurps"})
        assert exc_info.value.system_id == "gurps"
        assert "dnd5e" in exc_info.value.available

    def test_invalid_json_for_json_system_raises(self, registry):
        with pytest.raises(InvalidJSONError):
            registry.parse("{bad", "json-fivetools")

    def test_invalid_json_under_auto_is_text(self, registry):
        creature = registry.parse("{bad")
        assert creature.meta.system == "dnd5e"
        assert creature.meta.confidence == 0.5

    def test_explicit_json_decoder_records_format(self, registry, load_fixture):
        creature = registry.parse(load_fixture("fivetools_goblin.json"), "json-fivetools")
        assert creature.meta.json_format == "fivetools"
        assert creature.meta.system_name == "5e.tools JSON"
        assert creature.meta.confidence == 1.0

    def test_decoded_json_accepted(self, registry, load_json_fixture):
        creature = registry.parse(load_json_fixture("improvedinitiative_orc.json"))
        assert creature.name == "Orc"
        assert creature.meta.json_format == "improvedinitiative"

    def test_parse_is_deterministic(self, registry, dragon_text):
        assert registry.parse(dragon_text) == registry.parse(dragon_text)
