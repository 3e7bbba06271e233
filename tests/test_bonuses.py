"""Unit tests for thesis, engagement, KPI, and learning adjustments."""
from datetime import date

import pytest

from buyerfit.entity.records import Buyer, Deal, EngagementSignals, LearningRecord, Tracker
from buyerfit.score.bonuses import (
    calculate_engagement_bonus,
    calculate_kpi_bonus,
    calculate_learning_penalty,
    calculate_thesis_bonus,
)

TODAY = date(2025, 1, 1)

KPI_CONFIG = {
    "kpis": [
        {
            "field_name": "drp_count",
            "display_name": "DRP relationships",
            "weight": 10,
            "scoring_rules": {"ideal_range": [3, 10], "penalty_below": True, "penalty_above": True},
        },
        {
            "field_name": "certifications",
            "weight": 5,
            "scoring_rules": {"bonus_per_item": 2, "max_bonus": 5},
        },
        {
            "field_name": "has_adas",
            "weight": 5,
            "scoring_rules": {"boolean_bonus": 5},
        },
    ]
}


def _history(*categories):
    return [
        LearningRecord(id=f"r{i}", buyer_id="b1", rejection_categories=list(cats))
        for i, cats in enumerate(categories)
    ]


class TestThesisBonus:
    """Test thesis bonus points."""

    def test_empty_buyer(self):
        """Test no thesis data earns nothing."""
        assert calculate_thesis_bonus(Buyer(id="b1"), TODAY) == 0

    def test_capped(self):
        """Test the bonus is capped at 30."""
        buyer = Buyer(
            id="b1",
            thesis_summary="Building a regional collision platform across the Southeast with add-ons.",
            key_quotes=["We move fast"],
            acquisition_appetite="Aggressive",
            total_acquisitions=8,
            last_acquisition_date="2024-06-01",
        )
        assert calculate_thesis_bonus(buyer, TODAY) == 30

    def test_short_thesis_ignored(self):
        """Test a thesis of 50 characters or fewer earns nothing."""
        assert calculate_thesis_bonus(Buyer(id="b1", thesis_summary="Collision roll-up"), TODAY) == 0

    def test_acquisition_recency(self):
        """Test recent and older acquisitions."""
        assert calculate_thesis_bonus(Buyer(id="b1", last_acquisition_date="2024-06-01"), TODAY) == 10
        assert calculate_thesis_bonus(Buyer(id="b1", last_acquisition_date="2023-06-01"), TODAY) == 5
        assert calculate_thesis_bonus(Buyer(id="b1", last_acquisition_date="2020-06-01"), TODAY) == 0

    def test_thesis_outside_deal_geography(self):
        """Test a thesis focused elsewhere earns nothing, hard or soft."""
        buyer = Buyer(
            id="b1",
            thesis_summary="Building a regional collision platform across the Southeast with add-ons.",
            key_quotes=["We move fast"],
            total_acquisitions=8,
        )
        assert calculate_thesis_bonus(buyer, TODAY, Deal(id="d1", geography=["CA"])) == 0
        assert calculate_thesis_bonus(buyer, TODAY, Deal(id="d1", geography=["GA"])) == 25

        soft = Buyer(id="b2", key_quotes=["We primarily like Texas"], acquisition_appetite="High")
        assert calculate_thesis_bonus(soft, TODAY, Deal(id="d1", geography=["OH"])) == 0

    def test_thesis_geography_needs_deal_states(self):
        """Test a deal with no known location keeps the bonus."""
        buyer = Buyer(id="b1", key_quotes=["Only in Florida"])
        assert calculate_thesis_bonus(buyer, TODAY, Deal(id="d1")) == 10


class TestEngagementBonus:
    """Test engagement bonus scaling."""

    def test_scaled(self):
        """Test engagement score times 0.15."""
        assert calculate_engagement_bonus(EngagementSignals(engagement_score=30)) == pytest.approx(4.5)

    def test_capped(self):
        """Test the bonus tops out at 15."""
        assert calculate_engagement_bonus(EngagementSignals(engagement_score=100)) == 15


class TestKpiBonus:
    """Test tracker KPI scoring."""

    def test_no_config(self):
        """Test trackers without KPI config."""
        assert calculate_kpi_bonus(Deal(id="d1", industry_kpis={"drp_count": 5}), Tracker(id="t1")) == (0, [])

    def test_all_rules(self):
        """Test range, per-item, and boolean rules together."""
        deal = Deal(id="d1", industry_kpis={"drp_count": 5, "certifications": ["I-CAR", "OEM", "Tesla"], "has_adas": True})
        bonus, breakdown = calculate_kpi_bonus(deal, Tracker(id="t1", kpi_scoring_config=KPI_CONFIG))
        assert bonus == 20
        assert len(breakdown) == 3
        assert breakdown[0].startswith("DRP relationships")

    def test_below_range(self):
        """Test partial credit below the ideal range."""
        deal = Deal(id="d1", industry_kpis={"drp_count": 2})
        bonus, _ = calculate_kpi_bonus(deal, Tracker(id="t1", kpi_scoring_config=KPI_CONFIG))
        assert bonus == 7

    def test_above_range(self):
        """Test half credit above the ideal range."""
        deal = Deal(id="d1", industry_kpis={"drp_count": 12})
        bonus, _ = calculate_kpi_bonus(deal, Tracker(id="t1", kpi_scoring_config=KPI_CONFIG))
        assert bonus == 5

    def test_missing_kpis_contribute_nothing(self):
        """Test deals without KPI values."""
        bonus, breakdown = calculate_kpi_bonus(Deal(id="d1"), Tracker(id="t1", kpi_scoring_config=KPI_CONFIG))
        assert bonus == 0
        assert breakdown == []


class TestLearningPenalty:
    """Test rejection history penalties."""

    def test_no_history(self):
        """Test empty history."""
        assert calculate_learning_penalty([], Deal(id="d1")) == (0, [])

    def test_small_deal_rejections(self):
        """Test repeated size rejections only apply to small deals."""
        history = _history(["size_too_small"], ["size_too_small"])
        penalty, reasons = calculate_learning_penalty(history, Deal(id="d1", revenue=3))
        assert penalty == 10
        assert reasons == ["Previously rejected 2 smaller deals"]
        assert calculate_learning_penalty(history, Deal(id="d1", revenue=8))[0] == 0

    def test_thresholds(self):
        """Test per-category minimum counts."""
        assert calculate_learning_penalty(_history(["geography"]), Deal(id="d1"))[0] == 0
        assert calculate_learning_penalty(_history(["geography"], ["geography"]), Deal(id="d1"))[0] == 8
        assert calculate_learning_penalty(_history(["timing"], ["timing"], ["timing"]), Deal(id="d1"))[0] == 5
        assert calculate_learning_penalty(_history(["portfolio_conflict"]), Deal(id="d1"))[0] == 3

    def test_capped(self):
        """Test the penalty is capped at 25."""
        all_categories = ["size_too_small", "geography", "services", "timing", "portfolio_conflict"]
        history = _history(all_categories, all_categories, all_categories)
        penalty, reasons = calculate_learning_penalty(history, Deal(id="d1", revenue=2))
        assert penalty == 25
        assert len(reasons) == 5
