"""Tests for Maven-style interval ranges used by Forge metadata."""

import pytest

from versioning.ranges import IntervalVersionRange


class TestIntervalVersionRange:
    """Test interval parsing and evaluation."""

    def test_empty_and_star_accept_anything(self):
        """Test an empty range or * has no bounds."""
        assert IntervalVersionRange("").satisfies("0.0.1")
        assert IntervalVersionRange("*").satisfies("99")

    def test_half_open_interval(self):
        """Test [a,b) includes a and excludes b."""
        version_range = IntervalVersionRange("[1.0,2.0)")
        assert version_range.satisfies("1.0")
        assert version_range.satisfies("1.9.9")
        assert not version_range.satisfies("2.0")
        assert not version_range.satisfies("0.9")

    def test_unbounded_lower(self):
        """Test (,b] has no lower bound and includes b."""
        version_range = IntervalVersionRange("(,1.5]")
        assert version_range.satisfies("0.1")
        assert version_range.satisfies("1.5")
        assert not version_range.satisfies("1.6")

    def test_unbounded_upper(self):
        """Test [a,) has no upper bound."""
        assert IntervalVersionRange("[47,)").satisfies("47.1.3")
        assert not IntervalVersionRange("[47,)").satisfies("46.0")

    def test_pinned_version(self):
        """Test [a] matches only a."""
        assert IntervalVersionRange("[1.2]").satisfies("1.2")
        assert not IntervalVersionRange("[1.2]").satisfies("1.2.1")

    def test_bare_version_is_soft_minimum(self):
        """Test a bare version means that version or newer."""
        assert IntervalVersionRange("1.20").satisfies("1.20.1")
        assert not IntervalVersionRange("1.20").satisfies("1.19.4")

    def test_union_of_intervals(self):
        """Test several intervals joined by commas form a union."""
        version_range = IntervalVersionRange("[1.0,1.2),[1.5,)")
        assert version_range.satisfies("1.1")
        assert not version_range.satisfies("1.3")
        assert version_range.satisfies("2.0")

    def test_loader_suffix_is_coerced(self):
        """Test versions PEP 440 rejects fall back to their numeric prefix."""
        assert IntervalVersionRange("[0.5,)").satisfies("0.5.1-fabric")

    def test_formats_back(self):
        """Test str() reproduces the input."""
        assert str(IntervalVersionRange("[1.0,2.0)")) == "[1.0,2.0)"

    def test_empty_pin_rejected(self):
        """Test [] is invalid."""
        with pytest.raises(ValueError):
            IntervalVersionRange("[]")
