"""Unit tests for the size scorer and gating factor."""
import pytest

from buyerfit.entity.records import Buyer, Deal
from buyerfit.score.size import is_national_platform, score_size


def _buyer(**kwargs):
    return Buyer(id="b1", pe_firm_name="Acme Capital", **kwargs)


class TestHardGates:
    """Test disqualifying size gates."""

    def test_far_below_minimum(self):
        """Test revenue under 70% of minimum disqualifies."""
        category, gating = score_size(Deal(id="d1", revenue=3.4), _buyer(min_revenue=5))
        assert category.is_disqualified is True
        assert category.score == 0
        assert gating.size_multiplier == 0.0
        assert "below minimum" in category.disqualification_reason

    def test_just_below_minimum(self):
        """Test revenue within 30% of minimum is penalized, not disqualified."""
        category, gating = score_size(Deal(id="d1", revenue=4.5), _buyer(min_revenue=5))
        assert category.is_disqualified is False
        assert category.score == 45
        assert gating.size_multiplier == pytest.approx(0.35 + (1 - 10 / 30) * 0.35)

    def test_far_above_maximum(self):
        """Test revenue over 150% of maximum disqualifies."""
        category, gating = score_size(Deal(id="d1", revenue=50), _buyer(max_revenue=30))
        assert category.is_disqualified is True
        assert gating.size_multiplier == 0.0

    def test_monotonic_below_minimum(self):
        """Test the score never drops as revenue rises toward the minimum."""
        buyer = _buyer(min_revenue=10, max_revenue=40)
        previous_score, previous_multiplier = -1, -1.0
        for revenue in [1, 5, 7, 8, 9, 9.9, 10]:
            category, gating = score_size(Deal(id="d1", revenue=revenue, location_count=2), buyer)
            assert category.score >= previous_score
            assert gating.size_multiplier >= previous_multiplier
            previous_score, previous_multiplier = category.score, gating.size_multiplier


class TestNationalPlatform:
    """Test the single-location vs national platform gate."""

    def test_heuristic(self):
        """Test national platform detection."""
        assert is_national_platform(_buyer(total_acquisitions=6)) is True
        assert is_national_platform(_buyer(target_geographies=["TX", "OK", "LA", "AR"])) is True
        assert is_national_platform(_buyer(total_acquisitions=5)) is False

    def test_small_single_location_disqualified(self):
        """Test a small single-location deal against a national platform."""
        buyer = _buyer(total_acquisitions=10, revenue_sweet_spot=20)
        category, gating = score_size(Deal(id="d1", revenue=8, location_count=1), buyer)
        assert category.is_disqualified is True
        assert category.score == 20
        assert gating.size_multiplier == 0.45

    def test_single_location_multiplier_cap(self):
        """Test single-location deals are capped at 0.8 against national platforms."""
        buyer = _buyer(total_acquisitions=10, min_revenue=5, max_revenue=30, revenue_sweet_spot=15)
        category, gating = score_size(Deal(id="d1", revenue=15, location_count=1), buyer)
        assert category.is_disqualified is False
        assert gating.size_multiplier == 0.8
        assert category.score == 80


class TestBands:
    """Test in-range banded scoring."""

    def test_sweet_spot(self):
        """Test revenue at the sweet spot."""
        buyer = _buyer(min_revenue=5, max_revenue=30, revenue_sweet_spot=15)
        category, gating = score_size(Deal(id="d1", revenue=15, location_count=1), buyer)
        assert category.score == 90
        assert gating.size_multiplier == 1.0
        assert category.confidence == "high"

    def test_sweet_spot_beats_range_edge(self):
        """Test sweet spot scores higher than the top of the range."""
        buyer = _buyer(min_revenue=5, max_revenue=30, revenue_sweet_spot=15)
        sweet, _ = score_size(Deal(id="d1", revenue=15, location_count=1), buyer)
        edge, _ = score_size(Deal(id="d1", revenue=29, location_count=1), buyer)
        assert edge.score == 76
        assert sweet.score > edge.score

    def test_low_end(self):
        """Test revenue just above minimum."""
        buyer = _buyer(min_revenue=5, max_revenue=30, revenue_sweet_spot=15)
        category, gating = score_size(Deal(id="d1", revenue=6, location_count=2), buyer)
        assert category.score == 65
        assert gating.size_multiplier == 0.85

    def test_above_max_within_tolerance(self):
        """Test revenue between max and 150% of max."""
        buyer = _buyer(min_revenue=5, max_revenue=20)
        category, gating = score_size(Deal(id="d1", revenue=25, location_count=2), buyer)
        assert category.is_disqualified is False
        assert category.score == 45
        assert gating.size_multiplier == 0.75

    def test_multi_location_bonus(self):
        """Test three or more locations add points."""
        buyer = _buyer(min_revenue=5, max_revenue=30, revenue_sweet_spot=15)
        category, _ = score_size(Deal(id="d1", revenue=15, location_count=4), buyer)
        assert category.score == 100

    def test_ebitda_within_range(self):
        """Test EBITDA inside the buyer range adds points."""
        buyer = _buyer(min_ebitda=1, max_ebitda=5)
        category, _ = score_size(Deal(id="d1", revenue=10, ebitda_amount=2, location_count=2), buyer)
        assert category.score == 60

    def test_ebitda_below_minimum(self):
        """Test EBITDA under the buyer minimum."""
        buyer = _buyer(min_ebitda=3)
        category, gating = score_size(Deal(id="d1", revenue=10, ebitda_amount=1, location_count=2), buyer)
        assert category.score == 35
        assert gating.size_multiplier == 0.75


class TestMissingData:
    """Test graceful degradation."""

    def test_no_criteria(self):
        """Test a buyer with no size criteria."""
        category, gating = score_size(Deal(id="d1", revenue=10, location_count=2), _buyer())
        assert category.score == 50
        assert category.confidence == "low"
        assert gating.size_multiplier == 1.0

    def test_no_revenue(self):
        """Test a deal with no revenue skips the revenue gates."""
        buyer = _buyer(min_revenue=5, max_revenue=30)
        category, gating = score_size(Deal(id="d1", location_count=2), buyer)
        assert category.is_disqualified is False
        assert "Deal revenue not specified" in category.reasoning
        assert gating.size_multiplier == 1.0
