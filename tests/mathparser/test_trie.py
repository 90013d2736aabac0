"""
Tests for the operator trie and character-class tables.
"""

import pytest

from mathparser import OperatorTrie, build_trie
from mathparser.charclass import (
    DIGIT,
    in_class,
    is_digit,
    is_hex_digit,
    is_identifier_part,
    is_identifier_start,
    is_whitespace,
)


class TestOperatorTrie:
    """Tests for longest-match lookup."""

    def test_matches_single_character_operator(self):
        trie = build_trie(["+", "-"])
        assert trie.match("1+2", 1) == "+"
        assert trie.match("1+2", 0) is None

    def test_matches_longest_operator(self):
        trie = build_trie(["*", "**"])
        assert trie.match("2**3", 1) == "**"
        assert trie.match("2*3", 1) == "*"

    def test_keeps_last_terminal_when_walk_fails(self):
        trie = build_trie(["/", "///"])
        assert trie.match("//x", 0) == "/"
        assert trie.match("///", 0) == "///"

    def test_no_match_without_terminal(self):
        trie = build_trie(["///"])
        assert trie.match("//", 0) is None

    def test_match_stops_at_end_of_text(self):
        trie = build_trie(["*", "**"])
        assert trie.match("2*", 1) == "*"

    def test_tracks_longest_operator_length(self):
        trie = build_trie(["+", "///", "**"])
        assert trie.longest == 3

    def test_duplicates_are_recorded_once(self):
        trie = OperatorTrie()
        trie.insert("+")
        trie.insert("+")
        assert trie.operators == ("+",)
        assert "+" in trie
        assert "-" not in trie

    @pytest.mark.parametrize("operator", ["", None, 5])
    def test_rejects_invalid_operators(self, operator):
        with pytest.raises(ValueError):
            build_trie([operator])

    def test_empty_trie_matches_nothing(self):
        trie = build_trie([])
        assert trie.match("+", 0) is None
        assert trie.longest == 0


class TestCharClasses:
    """Tests for the character-class lookup tables."""

    def test_tables_cover_latin1_range(self):
        assert len(DIGIT) == 256

    def test_digits(self):
        assert all(is_digit(ch) for ch in "0123456789")
        assert not is_digit("a")

    def test_hex_digits(self):
        assert all(is_hex_digit(ch) for ch in "0123456789abcdefABCDEF")
        assert not is_hex_digit("g")

    def test_identifiers(self):
        assert is_identifier_start("_")
        assert is_identifier_start("Z")
        assert not is_identifier_start("1")
        assert is_identifier_part("1")

    def test_whitespace(self):
        assert all(is_whitespace(ch) for ch in " \t\n\r\f\v")
        assert not is_whitespace("x")

    def test_characters_outside_table_are_never_members(self):
        assert not is_identifier_start("π")
        assert not is_digit("٣")
        assert not is_whitespace("　")

    def test_empty_string_is_not_a_member(self):
        assert not in_class(DIGIT, "")
