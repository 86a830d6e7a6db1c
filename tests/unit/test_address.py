import pytest

from rentroll.matching.address import (
    levenshtein,
    normalize_address,
    normalize_name,
    string_similarity,
)


class TestNormalizeAddress:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert normalize_address("Vesterbrogade 12, 1. tv.") == "vesterbrogade 12 1 tv"

    def test_collapses_whitespace(self) -> None:
        assert normalize_address("  Nørre   Allé  5 ") == "nørre alle 5"

    def test_unifies_street_type_abbreviations(self) -> None:
        assert normalize_address("Store Kongens Gd 3") == "store kongens gade 3"
        assert normalize_address("Kongens Pl. 1") == "kongens plads 1"

    def test_empty(self) -> None:
        assert normalize_address(None) == ""
        assert normalize_address("") == ""

    def test_normalize_name(self) -> None:
        assert normalize_name("  Jens   HANSEN ") == "jens hansen"


class TestSimilarity:
    def test_levenshtein(self) -> None:
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("same", "same") == 0

    def test_identical_strings(self) -> None:
        assert string_similarity("vej 1", "vej 1") == 1.0

    def test_empty_side_is_zero(self) -> None:
        assert string_similarity("", "") == 0.0
        assert string_similarity("vej", "") == 0.0

    def test_one_typo(self) -> None:
        assert string_similarity("vesterbrogde 12", "vesterbrogade 12") == 1 - 1 / 16

    def test_transposed_letters(self) -> None:
        assert levenshtein("gertrude stiens vej 5", "gertrude steins vej 5") == 2
        assert string_similarity("gertrude stiens vej 5", "gertrude steins vej 5") == pytest.approx(1 - 2 / 21)
