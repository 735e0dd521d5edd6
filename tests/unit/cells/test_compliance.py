"""Unit tests for compliance matching."""

import pytest

from app.modules.cells.compliance import match_score, satisfies
from app.modules.cells.schemas import normalize_compliance


class TestSatisfies:
    """Tests for the compliance predicate."""

    @pytest.mark.parametrize(
        ("cell_features", "required", "expected"),
        [
            (["HIPAA", "SOC2"], ["HIPAA"], True),
            (["SOC2"], ["HIPAA"], False),
            ([], [], True),
            ([], None, True),
            (None, None, True),
            (["GDPR"], [], True),
            ([], ["HIPAA"], False),
            (["HIPAA", "SOC2", "GDPR"], ["SOC2", "HIPAA"], True),
        ],
    )
    def test_subset_rule(self, cell_features, required, expected):
        """A cell satisfies a requirement when it offers every required tag."""
        assert satisfies(cell_features, required) is expected

    def test_tags_are_case_sensitive(self):
        """Tags are compared exactly."""
        assert satisfies(["hipaa"], ["HIPAA"]) is False

    def test_accepts_sets(self):
        """Any iterable of tags is accepted."""
        assert satisfies({"HIPAA", "SOC2"}, {"SOC2"}) is True


class TestMatchScore:
    """Tests for the dedicated-cell ranking key."""

    def test_exact_match(self):
        """Identical feature sets are an exact match with no extras."""
        assert match_score(["HIPAA"], ["HIPAA"]) == (True, 0)

    def test_counts_extra_features(self):
        """Features beyond the requirement are counted."""
        assert match_score(["HIPAA", "SOC2", "GDPR"], ["HIPAA"]) == (False, 2)

    def test_empty_requirement(self):
        """An empty requirement only matches a featureless cell exactly."""
        assert match_score([], []) == (True, 0)
        assert match_score(["SOC2"], []) == (False, 1)


class TestNormalizeCompliance:
    """Tests for compliance tag normalization."""

    def test_strips_dedupes_and_sorts(self):
        """Whitespace is stripped, duplicates removed, order made stable."""
        assert normalize_compliance([" SOC2", "HIPAA", "SOC2 ", ""]) == ["HIPAA", "SOC2"]

    def test_none_is_empty(self):
        """Missing tags normalize to an empty list."""
        assert normalize_compliance(None) == []

    def test_rejects_overlong_tag(self):
        """Tags longer than the column allows are rejected."""
        with pytest.raises(ValueError, match="too long"):
            normalize_compliance(["X" * 100])
