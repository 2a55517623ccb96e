"""Tests for filter rule models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cloudsweep.errors import ConfigurationError
from cloudsweep.models.candidate import Candidate
from cloudsweep.models.rule import CreatedAfter, CreatedBefore, NameMatches, RuleType, TagMatches

NOON = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestNameMatches:
    """Test suite for NameMatches rule."""

    def test_search_matches_anywhere_in_name(self) -> None:
        """Test the regex is searched, not anchored."""
        rule = NameMatches("test")

        assert rule.matches(Candidate(identifier="i-1", name="my-test-box"))
        assert not rule.matches(Candidate(identifier="i-2", name="prod-box"))

    def test_case_insensitive_by_default(self) -> None:
        """Test name matching ignores case unless disabled."""
        assert NameMatches("^dev").matches(Candidate(identifier="i-1", name="DEV-box"))
        assert not NameMatches("^dev", ignore_case=False).matches(Candidate(identifier="i-1", name="DEV-box"))

    def test_absent_name_never_matches(self) -> None:
        """Test a candidate without a name never matches, even a match-all regex."""
        assert not NameMatches(".*").matches(Candidate(identifier="i-1"))

    def test_invalid_regex_raises_configuration_error(self) -> None:
        """Test invalid pattern is rejected at construction."""
        with pytest.raises(ConfigurationError, match="Invalid regular expression"):
            NameMatches("[unclosed")

    def test_equal_rules_are_deduplicated_in_sets(self) -> None:
        """Test equal rules hash equally."""
        assert len({NameMatches("^a"), NameMatches("^a"), NameMatches("^b")}) == 2
        assert NameMatches("^a").rule_type == RuleType.NAME


class TestTagMatches:
    """Test suite for TagMatches rule."""

    def test_matches_tag_value(self) -> None:
        """Test tag value is searched with the regex."""
        rule = TagMatches("env", "^dev$")

        assert rule.matches(Candidate(identifier="i-1", tags={"env": "dev"}))
        assert not rule.matches(Candidate(identifier="i-2", tags={"env": "development"}))

    def test_absent_key_never_matches(self) -> None:
        """Test missing tag key never matches."""
        assert not TagMatches("env", ".*").matches(Candidate(identifier="i-1", tags={"team": "x"}))

    def test_case_sensitive_by_default(self) -> None:
        """Test tag matching respects case unless requested otherwise."""
        candidate = Candidate(identifier="i-1", tags={"env": "DEV"})

        assert not TagMatches("env", "dev").matches(candidate)
        assert TagMatches("env", "dev", ignore_case=True).matches(candidate)

    def test_empty_key_rejected(self) -> None:
        """Test empty tag key is a configuration error."""
        with pytest.raises(ConfigurationError, match="tag key"):
            TagMatches("", "x")

    def test_invalid_regex_raises_configuration_error(self) -> None:
        """Test invalid pattern is rejected at construction."""
        with pytest.raises(ConfigurationError):
            TagMatches("env", "(")


class TestTimeRules:
    """Test suite for CreatedAfter and CreatedBefore rules."""

    def test_created_after_is_strict(self) -> None:
        """Test boundary value does not match CreatedAfter."""
        rule = CreatedAfter(NOON)

        assert rule.matches(Candidate(identifier="i-1", created_at=datetime(2024, 6, 1, 12, 1, tzinfo=timezone.utc)))
        assert not rule.matches(Candidate(identifier="i-2", created_at=NOON))

    def test_created_before_is_strict(self) -> None:
        """Test boundary value does not match CreatedBefore."""
        rule = CreatedBefore(NOON)

        assert rule.matches(Candidate(identifier="i-1", created_at=datetime(2024, 6, 1, 11, 59, tzinfo=timezone.utc)))
        assert not rule.matches(Candidate(identifier="i-2", created_at=NOON))

    def test_absent_created_at_never_matches(self) -> None:
        """Test unknown creation time matches neither time rule."""
        candidate = Candidate(identifier="i-1")

        assert not CreatedAfter(NOON).matches(candidate)
        assert not CreatedBefore(NOON).matches(candidate)

    def test_naive_bound_treated_as_utc(self) -> None:
        """Test a naive rule bound compares as UTC against aware creation times."""
        rule = CreatedBefore(datetime(2024, 6, 1, 12, 0))

        assert rule.when == NOON
        assert rule.matches(Candidate(identifier="i-1", created_at=datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc)))

    def test_describe(self) -> None:
        """Test descriptions mention the bound."""
        assert CreatedAfter(NOON).describe() == "created after 2024-06-01T12:00:00+00:00"
        assert "name matches /^dev/" == NameMatches("^dev").describe()
        assert "tag env matches /x/" == TagMatches("env", "x").describe()
