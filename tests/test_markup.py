"""
Tests for 5etools, HTML and BBCode markup stripping.
"""

from statblock_converter.markup import (
    convert_5etools_markup,
    entries_to_text,
    has_bbcode,
    render_entries,
    strip_bbcode,
    strip_html,
)


class TestFiveToolsMarkup:
    """Tests for {@tag} conversion."""

    def test_attack_line(self):
        text = "{@atk mw} {@hit 4} to hit, reach 5 ft., one target. {@h}5 ({@damage 1d6 + 2}) slashing damage."
        assert convert_5etools_markup(text) == (
            "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. "
            "Hit: 5 (1d6 + 2) slashing damage."
        )

    def test_ranged_and_mixed_attacks(self):
        assert convert_5etools_markup("{@atk rw}") == "Ranged Weapon Attack:"
        assert convert_5etools_markup("{@atk mw,rw}") == "Melee or Ranged Weapon Attack:"
        assert convert_5etools_markup("{@atkr m}") == "Melee Attack Roll:"

    def test_dc_and_recharge(self):
        assert convert_5etools_markup("a {@dc 15} save") == "a DC 15 save"
        assert convert_5etools_markup("{@recharge 5}") == "(Recharge 5-6)"
        assert convert_5etools_markup("{@recharge}") == "(Recharge 6)"

    def test_negative_hit(self):
        assert convert_5etools_markup("{@hit -1}") == "-1"

    def test_generic_tags_keep_content(self):
        assert convert_5etools_markup("{@spell fireball|phb}") == "fireball"
        assert convert_5etools_markup("{@condition prone}") == "prone"

    def test_empty(self):
        assert convert_5etools_markup("") == ""


class TestRenderEntries:

    def test_strings_and_named_entries(self):
        entries = [
            "First paragraph.",
            {"type": "entries", "name": "Sub", "entries": ["Nested {@b bold}."]},
        ]
        assert render_entries(entries) == ["First paragraph.", "Sub. Nested bold."]

    def test_lists_and_tables(self):
        entries = [
            {"type": "list", "items": ["one", {"name": "Two:", "entry": "second"}]},
            {"type": "table", "caption": "Loot"},
        ]
        assert render_entries(entries) == ["- one", "- Two: second", "[Table: Loot]"]

    def test_joined_text(self):
        assert entries_to_text(["A.", "  ", "B."]) == "A. B."

    def test_non_list(self):
        assert render_entries(None) == []
        assert render_entries(42) == []
        assert render_entries("{@dc 12}") == ["DC 12"]


class TestHtml:

    def test_tags_entities_and_spacing(self):
        html = "<p><em><strong>Bite</strong></em>. Deals &amp; <b>hurts</b>.</p>"
        assert strip_html(html) == "Bite. Deals & hurts."

    def test_empty(self):
        assert strip_html(None) == ""


class TestBbcode:

    def test_wrappers_and_rolls(self):
        text = "[h3]Bite[/h3][b]Hit:[/b] 7 [roll:1d6+4] damage"
        assert strip_bbcode(text) == "BiteHit: 7  damage"

    def test_tables_removed(self):
        assert strip_bbcode("Before[table][tr][td]x[/td][/tr][/table]After") == "BeforeAfter"

    def test_detection(self):
        assert has_bbcode("[h3]Keen Smell[/h3]")
        assert has_bbcode("[b]Melee[/b]")
        assert not has_bbcode("plain text")
        assert not has_bbcode(None)
