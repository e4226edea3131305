"""
Tests for the keyword table.

Tests cover:
- Category metadata and name resolution
- Alias lookup and the deterministic inverse
- Derived views used by the rewrite passes
- Table consistency and duplicate detection
"""

import pytest

from nullscript.keywords import (
    Category,
    Direction,
    KeywordEntry,
    KeywordTable,
    get_default_table,
)


@pytest.fixture
def table():
    return get_default_table()


class TestCategories:
    """Test the closed category enumeration."""

    def test_twelve_categories(self):
        assert len(Category) == 12

    def test_precedence_follows_declaration_order(self):
        assert Category.CONTROL_FLOW.precedence == 0
        assert Category.OBJECT_AND_CONTEXT.precedence < Category.FUNCTION_DECLARATION_FORMS.precedence

    @pytest.mark.parametrize("name", ["control-flow", "control_flow", "Control Flow", "CONTROL-FLOW"])
    def test_from_name_accepts_spellings(self, name):
        assert Category.from_name(name) is Category.CONTROL_FLOW

    def test_from_name_unknown(self):
        assert Category.from_name("loops") is None


class TestLookup:
    """Test alias → canonical and canonical → alias lookups."""

    def test_lookup_known_alias(self, table):
        assert table.lookup("whatever") == "if"
        assert table.lookup("fixed") == "const"
        assert table.lookup("speak") == "console"

    def test_lookup_unknown_alias(self, table):
        assert table.lookup("banana") is None

    def test_alias_for(self, table):
        assert table.alias_for("function") == "run"
        assert table.alias_for("else if") == "orwhatever"

    def test_shared_canonical_resolves_by_category(self, table):
        """'static' is targeted by 'forever' and 'run forever'; the earlier category wins."""
        assert table.alias_for("static") == "forever"

    def test_entry_for_missing_raises(self, table):
        with pytest.raises(KeyError):
            table.entry_for("goto")

    def test_reverse_pairs_are_unique(self, table):
        canonicals = [c for c, _ in table.pairs(Direction.REVERSE)]
        assert len(canonicals) == len(set(canonicals))

    def test_forward_pairs_cover_every_entry(self, table):
        assert len(table.pairs(Direction.FORWARD)) == len(table)


class TestViews:
    """Test the derived views the pipelines consume."""

    def test_single_word_view_excludes_special_forms(self, table):
        aliases = {e.alias for e in table.single_word_pairs()}
        assert "whatever" in aliases
        assert "run" not in aliases
        assert "orwhatever" not in aliases

    def test_function_forms(self, table):
        canonicals = {e.canonical for e in table.function_form_pairs()}
        assert {"function", "async function", "static", "constructor"} <= canonicals

    def test_phrase_view(self, table):
        aliases = {e.alias for e in table.phrase_pairs()}
        assert "use everything as" in aliases
        assert "hold all" in aliases

    def test_reserved_words_exclude_phrases(self, table):
        reserved = table.reserved_words()
        assert "whatever" in reserved
        assert "use everything as" not in reserved

    def test_receiver_entries_are_not_identifier_like(self, table):
        say = next(e for e in table if e.alias == "say")
        speak = next(e for e in table if e.alias == "speak")
        assert say.receiver == "console"
        assert not say.is_identifier_like
        assert speak.is_identifier_like

    def test_categories_in_precedence_order(self, table):
        categories = table.categories()
        assert categories == sorted(categories, key=lambda c: c.precedence)
        assert Category.TYPE_LIKE_FORBIDDEN_FORMS not in categories


class TestConsistency:
    """Test table-level invariants."""

    def test_default_table_is_consistent(self, table):
        assert table.check_consistency() == []

    def test_duplicate_alias_in_category_rejected(self):
        with pytest.raises(ValueError, match="Duplicate alias"):
            KeywordTable(entries=(
                KeywordEntry("whatever", "if", Category.CONTROL_FLOW),
                KeywordEntry("whatever", "else", Category.CONTROL_FLOW),
            ))

    def test_identity_pair_reported(self):
        custom = KeywordTable(entries=(KeywordEntry("if", "if", Category.CONTROL_FLOW),))
        assert any("identity" in p for p in custom.check_consistency())

    def test_forbidden_forms_present(self, table):
        tokens = {f.token for f in table.forbidden_forms()}
        assert {"const", "function", "interface", "<T>"} <= tokens

    def test_to_dict(self, table):
        mapping = table.to_dict()
        assert mapping["yes"] == "true"
        assert mapping["run later"] == "async function"
