"""
Tests for RiskOracle — bus risk lookups, joint probability, threshold

These tests validate:
- Departed authors always have risk 1.0
- Overrides parse at the last '=' and reject bad values
- The threshold comparison is inclusive (0.1 ** 3 collapses at 0.001)
"""

import pickle

import pytest

from gbat.core.authors import SAFE, AuthorSet
from gbat.core.risk import DEFAULT_BUS_RISK, RiskOracle, parse_departed, parse_overrides
from gbat.errors import ParseError


# =============================================================================
# Parsing
# =============================================================================

class TestParseDeparted:

    def test_one_name_per_line(self):
        assert parse_departed("alice\nBob Smith\n") == {"alice", "Bob Smith"}

    def test_blank_lines_and_whitespace(self):
        assert parse_departed("\n  alice  \n\n") == {"alice"}

    def test_empty(self):
        assert parse_departed("") == set()


class TestParseOverrides:

    def test_basic(self):
        assert parse_overrides("ejorgensen=0.4\nbob = 0.2\n") == {"ejorgensen": 0.4, "bob": 0.2}

    def test_splits_at_last_equals(self):
        assert parse_overrides("a=b=0.5") == {"a=b": 0.5}

    def test_blank_lines_skipped(self):
        assert parse_overrides("\n\nalice=1\n\n") == {"alice": 1.0}

    def test_missing_equals_raises(self):
        with pytest.raises(ParseError) as exc:
            parse_overrides("alice 0.4")
        assert exc.value.line == "alice 0.4"

    def test_non_numeric_raises(self):
        with pytest.raises(ParseError):
            parse_overrides("alice=high")

    @pytest.mark.parametrize("value", ["1.5", "-0.1", "nan"])
    def test_out_of_range_raises(self, value):
        with pytest.raises(ParseError):
            parse_overrides(f"alice={value}")


# =============================================================================
# Lookups
# =============================================================================

class TestRisk:

    def test_default(self):
        oracle = RiskOracle()
        assert oracle.risk("alice") == DEFAULT_BUS_RISK

    def test_override(self):
        oracle = RiskOracle(overrides={"alice": 0.5})
        assert oracle.risk("alice") == 0.5
        assert oracle.risk("bob") == 0.1

    def test_name_is_trimmed(self):
        oracle = RiskOracle(overrides={"alice": 0.5})
        assert oracle.risk("  alice ") == 0.5

    def test_departed_wins_over_override(self):
        oracle = RiskOracle(departed=["alice"], overrides={"alice": 0.2})
        assert oracle.risk("alice") == 1.0
        assert oracle.is_departed(" alice")

    def test_anonymous_returns_threshold(self):
        oracle = RiskOracle(default_risk=0.2)
        assert oracle.risk("") == pytest.approx(0.008)

    def test_explicit_threshold(self):
        oracle = RiskOracle(threshold=0.05)
        assert oracle.threshold == 0.05
        assert oracle.risk("") == 0.05

    def test_all_departed(self):
        oracle = RiskOracle(departed=["a", "b"])
        assert oracle.all_departed(AuthorSet.of("a", "b"))
        assert not oracle.all_departed(AuthorSet.of("a", "c"))


class TestJointProbability:

    def test_product(self):
        oracle = RiskOracle(overrides={"alice": 0.5})
        assert oracle.joint_probability(["alice", "bob"]) == pytest.approx(0.05)

    def test_empty_is_one(self):
        assert RiskOracle().joint_probability([]) == 1.0

    def test_safe_set_uses_threshold(self):
        oracle = RiskOracle()
        assert oracle.joint_probability(SAFE) == pytest.approx(0.001)


class TestThreshold:
    """Inclusive threshold with float tolerance."""

    def test_default_threshold_is_cubed(self):
        assert RiskOracle().threshold == pytest.approx(0.001)

    def test_two_authors_above(self):
        assert not RiskOracle().below_threshold(["a", "b"])

    def test_three_authors_collapse(self):
        assert RiskOracle().below_threshold(["a", "b", "c"])

    def test_exact_equality_is_below(self):
        oracle = RiskOracle(threshold=0.25, overrides={"a": 0.5, "b": 0.5})
        assert oracle.below_threshold(["a", "b"])

    def test_low_risk_single_author(self):
        oracle = RiskOracle(overrides={"careful": 0.0001})
        assert oracle.below_threshold(["careful"])


# =============================================================================
# Construction
# =============================================================================

class TestConstruction:

    def test_from_text(self):
        oracle = RiskOracle.from_text(departed_text="bob\n", overrides_text="alice=0.3\n")
        assert oracle.risk("bob") == 1.0
        assert oracle.risk("alice") == 0.3

    def test_from_text_bad_override_raises(self):
        with pytest.raises(ParseError):
            RiskOracle.from_text(overrides_text="alice")

    def test_from_files(self, tmp_path):
        departed = tmp_path / "departed.txt"
        departed.write_text("carol\n")
        risks = tmp_path / "risks.txt"
        risks.write_text("dave=0.7\n")

        oracle = RiskOracle.from_files(departed_file=departed, bus_risk_file=risks)
        assert oracle.is_departed("carol")
        assert oracle.risk("dave") == 0.7

    def test_from_files_optional(self):
        oracle = RiskOracle.from_files()
        assert oracle.departed == frozenset()
        assert oracle.overrides == {}

    def test_picklable(self):
        oracle = RiskOracle(departed=["a"], overrides={"b": 0.3})
        clone = pickle.loads(pickle.dumps(oracle))
        assert clone.to_dict() == oracle.to_dict()

    def test_to_dict_sorted(self):
        oracle = RiskOracle(departed=["z", "a"], overrides={"y": 0.2, "b": 0.3})
        data = oracle.to_dict()
        assert data["departed"] == ["a", "z"]
        assert list(data["overrides"]) == ["b", "y"]
