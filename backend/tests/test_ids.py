"""
Tests for entity ID generation.

IDs are the join key across snapshots, so these pin exact output.
"""

import pytest

from scrapers.utils.ids import InvalidIdError, generate_id, slugify_part


class TestSlugifyPart:
    """Tests for slugify_part()."""

    def test_lowercases_and_hyphenates(self):
        assert slugify_part("Standard Variable") == "standard-variable"

    def test_angle_brackets_become_words(self):
        assert slugify_part("Special LVR <80%") == "special-lvr-less-than-80"
        assert slugify_part(">80%") == "greater-than-80"

    def test_strips_punctuation(self):
        assert slugify_part("Kiwibank (Online)") == "kiwibank-online"

    def test_collapses_repeated_hyphens(self):
        assert slugify_part("Special - Classic") == "special-classic"

    def test_empty(self):
        assert slugify_part("   ") == ""


class TestGenerateId:
    """Tests for generate_id()."""

    def test_institution(self):
        assert generate_id(["institution", "ANZ"]) == "institution:anz"

    def test_rate(self):
        assert generate_id(["rate", "ANZ", "Standard", "6 months"]) == "rate:anz:standard:6-months"

    def test_deterministic(self):
        parts = ["product", "ASB Bank", "Fixed Special"]
        assert generate_id(parts) == generate_id(list(parts))

    def test_empty_parts_dropped(self):
        """Missing plan/condition leave no empty segments."""
        assert generate_id(["rate", "ANZ", "Personal loan", "", ""]) == "rate:anz:personal-loan"

    def test_unknown_kind_raises(self):
        with pytest.raises(InvalidIdError):
            generate_id(["bank", "ANZ"])

    def test_empty_remainder_raises(self):
        with pytest.raises(InvalidIdError):
            generate_id(["institution", ""])

    def test_no_parts_raises(self):
        with pytest.raises(InvalidIdError):
            generate_id([])

    def test_kind_prefix_mismatch_raises(self):
        """A leading part that only shares a prefix with the kind is rejected."""
        with pytest.raises(InvalidIdError):
            generate_id(["Rate Bank", "Standard"])

    def test_invalid_id_error_is_value_error(self):
        with pytest.raises(ValueError):
            generate_id(["issuer"])
