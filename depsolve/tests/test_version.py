"""Tests for version normalization and comparison"""

import pytest

from depsolve.core.errors import UnexpectedValueError
from depsolve.core.version import (
    Stability, compare_versions, expand_stability, is_branch, normalize,
    normalize_branch, parse_stability,
)


class TestNormalize:
    """Tests for normalize()."""

    @pytest.mark.parametrize("version,expected", [
        ("1.0", "1.0.0.0"),
        ("1", "1.0.0.0"),
        ("1.2.3.4", "1.2.3.4"),
        ("v2.1.3", "2.1.3.0"),
        ("v2.1.3-beta2", "2.1.3.0-beta2"),
        ("1.0.0-RC1", "1.0.0.0-RC1"),
        ("1.0.0rc1", "1.0.0.0-RC1"),
        ("1.0.0-a1", "1.0.0.0-alpha1"),
        ("1.0-p1", "1.0.0.0-patch1"),
        ("1.0.0-stable", "1.0.0.0"),
        ("2.0-dev", "2.0.0.0-dev"),
        ("1.0.0+build.5", "1.0.0.0"),
        ("1.0 as 2.0", "1.0.0.0"),
        ("20100102", "20100102"),
        ("2010.01.02", "2010.01.02.0"),
    ])
    def test_numeric(self, version, expected):
        assert normalize(version) == expected

    @pytest.mark.parametrize("version,expected", [
        ("dev-master", "9999999-dev"),
        ("master", "9999999-dev"),
        ("dev-trunk", "9999999-dev"),
        ("dev-feature-a", "dev-feature-a"),
        ("2.0.x-dev", "2.0.9999999.9999999-dev"),
        ("2.x-dev", "2.9999999.9999999.9999999-dev"),
    ])
    def test_branches(self, version, expected):
        assert normalize(version) == expected

    def test_invalid(self):
        with pytest.raises(UnexpectedValueError, match="Invalid version string"):
            normalize("foo")

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            normalize("1.0.0-nope")

    def test_normalize_branch(self):
        assert normalize_branch("1.x") == "1.9999999.9999999.9999999-dev"
        assert normalize_branch("feature") == "dev-feature"
        assert normalize_branch("master") == "9999999-dev"

    def test_expand_stability(self):
        assert expand_stability("b") == "beta"
        assert expand_stability("rc") == "RC"
        assert expand_stability("pl") == "patch"
        assert expand_stability("alpha") == "alpha"


class TestStability:
    """Tests for stability parsing."""

    @pytest.mark.parametrize("version,expected", [
        ("1.0", Stability.STABLE),
        ("1.0.0.0", Stability.STABLE),
        ("1.0.0.0-patch1", Stability.STABLE),
        ("1.0.0-beta2", Stability.BETA),
        ("1.0.0.0-RC1", Stability.RC),
        ("1.0.0-alpha", Stability.ALPHA),
        ("1rc", Stability.RC),
        ("2.0.0.0-dev", Stability.DEV),
        ("dev-master", Stability.DEV),
        ("dev-feature#abc123", Stability.DEV),
    ])
    def test_parse_stability(self, version, expected):
        assert parse_stability(version) is expected

    def test_ordering(self):
        assert Stability.STABLE < Stability.RC < Stability.BETA < Stability.ALPHA < Stability.DEV

    def test_parse_name(self):
        assert Stability.parse("RC") is Stability.RC
        assert Stability.parse("beta") is Stability.BETA
        assert Stability.parse(" Dev ") is Stability.DEV

    def test_parse_invalid_name(self):
        with pytest.raises(UnexpectedValueError):
            Stability.parse("unstable")

    def test_str(self):
        assert str(Stability.RC) == "RC"
        assert str(Stability.BETA) == "beta"


class TestCompare:
    """Tests for compare_versions()."""

    def test_basic_operators(self):
        assert compare_versions("1.0.0.0", "2.0.0.0", "<")
        assert compare_versions("2.0.0.0", "2.0.0.0", "<=")
        assert compare_versions("2.0.0.0", "1.10.0.0", ">")
        assert compare_versions("1.0.0.0", "1.0.0.0", "==")
        assert compare_versions("1.0.0.0", "1.0.0.1", "!=")

    def test_pre_releases(self):
        assert compare_versions("1.0.0.0-beta1", "1.0.0.0", "<")
        assert compare_versions("1.0.0.0-alpha2", "1.0.0.0-beta1", "<")
        assert compare_versions("1.0.0.0-RC1", "1.0.0.0-beta3", ">")
        assert compare_versions("1.0.0.0-patch1", "1.0.0.0", ">")

    def test_dev_sorts_before_pre_releases(self):
        assert compare_versions("2.0.0.0-dev", "2.0.0.0-alpha1", "<")
        assert compare_versions("1.9.0.0", "2.0.0.0-dev", "<")

    def test_branches(self):
        assert is_branch("dev-foo")
        assert not compare_versions("dev-foo", "1.0.0.0", "<")
        assert compare_versions("dev-foo", "1.0.0.0", "<", compare_branches=True)
        assert compare_versions("dev-foo", "dev-foo", "==")
        assert compare_versions("dev-foo", "dev-bar", "!=")
        assert compare_versions("dev-foo", "1.0.0.0", "!=")
        assert not compare_versions("dev-foo", "dev-foo", "!=")

    def test_master_is_highest(self):
        assert compare_versions("9999999-dev", "5.4.0.0", ">")
