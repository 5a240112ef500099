"""
Tests for the package-level entry points.
"""

import statblock_converter
from statblock_converter import (
    AdversaryType,
    StatblockExtractor,
    convert,
    detect,
    get_parser,
    parse,
    render_markdown,
    systems,
)


class TestEntryPoints:

    def test_parse_convert_render(self, ogre_text):
        creature = parse(ogre_text)
        adversary = convert(creature)
        assert adversary.adv_type is AdversaryType.BRUISER
        assert render_markdown(adversary).startswith("# Ogre\n")

    def test_detect(self, load_fixture):
        assert detect(load_fixture("osr_ogre.txt")).system == "osr"

    def test_get_parser_and_systems(self):
        assert isinstance(get_parser("pf2e"), StatblockExtractor)
        assert get_parser("nonsense").system_id == "dnd5e"
        assert "worldanvil" in [s.id for s in systems()]

    def test_shared_registry(self):
        assert statblock_converter.default_registry() is statblock_converter.default_registry()

    def test_version(self):
        assert isinstance(statblock_converter.__version__, str)
