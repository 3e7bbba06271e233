"""Unit tests for composite scoring, review flags, ranking, and summaries."""
from datetime import date

import pytest

from buyerfit.entity.records import (
    Buyer,
    BuyerScore,
    CallIntelligence,
    CategoryScore,
    Deal,
    GatingFactor,
    LearningRecord,
    Tracker,
)
from buyerfit.score.scorer import (
    calculate_data_completeness,
    determine_review,
    rank_scores,
    score_buyer,
    score_universe,
    summarize,
)

TODAY = date(2025, 1, 1)


def _tracker(**weights):
    values = dict(geography_weight=25, size_weight=25, service_mix_weight=25, owner_goals_weight=25)
    values.update(weights)
    return Tracker(id="t1", industry_name="HVAC", **values)


def _deal(**overrides):
    values = dict(
        deal_name="Lone Star Comfort",
        tracker_id="t1",
        revenue=15,
        location_count=5,
        geography=["TX", "OK"],
        service_mix="hvac installation",
    )
    values.update(overrides)
    return Deal(id="d1", **values)


def _buyer(buyer_id="b1", **overrides):
    values = dict(
        tracker_id="t1",
        pe_firm_name="Summit Partners",
        platform_company_name="Comfort Co",
        min_revenue=5,
        max_revenue=30,
        revenue_sweet_spot=15,
        target_geographies=["TX"],
        services_offered="hvac heating cooling",
    )
    values.update(overrides)
    return Buyer(id=buyer_id, **values)


def _stub_score(buyer_id, name, composite, disqualified=False, has_calls=False, completeness="Medium"):
    category = CategoryScore(score=composite, reasoning="stub")
    score = BuyerScore(
        buyer_id=buyer_id,
        buyer_name=name,
        deal_id="d1",
        composite_score=composite,
        geography=category,
        size=category,
        services=category,
        owner_goals=category,
        gating=GatingFactor(),
        is_disqualified=disqualified,
        data_completeness=completeness,
    )
    if has_calls:
        score = score.model_copy(update={"engagement": score.engagement.model_copy(update={"has_calls": True})})
    return score


class TestEndToEnd:
    """Test the reference deal/buyer pair."""

    def test_reference_example(self):
        """Test sweet-spot, exact-match, multi-location deal."""
        score = score_buyer(_deal(), _buyer(), _tracker(), today=TODAY)
        assert score.size.score >= 95
        assert score.geography.score >= 90
        assert score.services.score == 80
        assert score.owner_goals.score == 50
        assert score.is_disqualified is False
        assert 70 <= score.composite_score < 90
        assert score.composite_score == 83
        assert score.data_completeness in ("Medium", "High")
        assert score.needs_review is False
        assert score.deal_attractiveness == 90
        assert score.overall_reasoning.startswith("Strong fit: Buyer targets TX")

    def test_idempotent(self):
        """Test identical inputs give identical results."""
        first = score_buyer(_deal(), _buyer(), _tracker(), today=TODAY)
        second = score_buyer(_deal(), _buyer(), _tracker(), today=TODAY)
        assert first == second


class TestComposite:
    """Test composite aggregation rules."""

    def test_exclusion_forces_zero(self):
        """Test a geographic exclusion overrides perfect category scores."""
        score = score_buyer(_deal(), _buyer(geographic_exclusions=["OK"]), _tracker(), today=TODAY)
        assert score.is_disqualified is True
        assert score.composite_score == 0
        assert score.overall_reasoning.startswith("DISQUALIFIED: Geographic exclusion")

    def test_industry_exclusion_forces_zero(self):
        """Test an industry exclusion disqualifies."""
        score = score_buyer(_deal(industry_type="HVAC"), _buyer(industry_exclusions=["hvac"]), _tracker(), today=TODAY)
        assert score.is_disqualified is True
        assert score.composite_score == 0
        assert score.disqualification_reasons == ["Industry exclusion match found: hvac"]

    def test_size_gate_caps_composite(self):
        """Test the size multiplier scales the whole composite."""
        score = score_buyer(_deal(revenue=4.5), _buyer(), _tracker(), today=TODAY)
        assert score.is_disqualified is False
        assert score.size.score == 45
        assert score.gating.size_multiplier < 0.7
        assert score.composite_score == 40
        assert score.overall_reasoning.startswith("Size challenge:")
        assert score.review_reason == "Score in uncertain range (40-60) - manual review recommended"

    def test_weight_sensitivity(self):
        """Test raising the geography weight raises the composite."""
        base = score_buyer(_deal(), _buyer(), _tracker(), today=TODAY)
        heavier = score_buyer(_deal(), _buyer(), _tracker(geography_weight=50), today=TODAY)
        assert heavier.composite_score > base.composite_score

    def test_zero_weight_uses_default(self):
        """Test a zero weight behaves like the default 25."""
        base = score_buyer(_deal(), _buyer(), _tracker(), today=TODAY)
        zeroed = score_buyer(_deal(), _buyer(), _tracker(owner_goals_weight=0), today=TODAY)
        assert zeroed.composite_score == base.composite_score

    def test_bounds(self):
        """Test composite stays within 0-100 across varied inputs."""
        for revenue in [None, 1, 4, 4.9, 10, 15, 29, 40, 60]:
            for locations in [1, 2, 5]:
                score = score_buyer(
                    _deal(revenue=revenue, location_count=locations),
                    _buyer(total_acquisitions=9, key_quotes=["We buy"], acquisition_appetite="High"),
                    _tracker(geography_weight=100, size_weight=100),
                    today=TODAY,
                )
                assert 0 <= score.composite_score <= 100

    def test_engagement_bonus(self):
        """Test call notes add engagement bonus and reasoning."""
        calls = [CallIntelligence(buyer_id="b1", deal_id="d1", call_summary="Very interested in this one")]
        score = score_buyer(_deal(), _buyer(), _tracker(), calls=calls, today=TODAY)
        assert score.engagement_bonus == pytest.approx(4.5)
        assert score.composite_score == 87
        assert score.overall_reasoning.endswith("1 call(s) on record.")

    def test_learning_penalty_note(self):
        """Test rejection history lowers the score and is explained."""
        history = [
            LearningRecord(id="r1", buyer_id="b1", rejection_categories=["geography", "portfolio_conflict"]),
            LearningRecord(id="r2", buyer_id="b1", rejection_categories=["geography"]),
        ]
        score = score_buyer(_deal(), _buyer(), _tracker(), history=history, today=TODAY)
        assert score.learning_penalty == 11
        assert score.composite_score == 72
        assert score.overall_reasoning.startswith("Moderate fit:")
        assert "Learning: Geography mismatch in 2 previous deals." in score.overall_reasoning

    def test_kpi_bonus(self):
        """Test tracker KPI config adds to the composite."""
        tracker = _tracker(kpi_scoring_config={
            "kpis": [{"field_name": "techs", "weight": 5, "scoring_rules": {"ideal_range": [10, 50]}}]
        })
        score = score_buyer(_deal(industry_kpis={"techs": 20}), _buyer(), tracker, today=TODAY)
        assert score.kpi_bonus == 5
        assert score.composite_score == 88


class TestCompletenessAndReview:
    """Test data completeness and review flags."""

    def test_high_completeness(self):
        """Test fully populated records."""
        buyer = _buyer(
            hq_state="TX",
            thesis_summary="Regional HVAC platform",
            owner_transition_goals="Owner stays a year",
            key_quotes=["We love service businesses"],
            acquisition_appetite="Active",
        )
        deal = _deal(owner_goals="Retire within two years")
        assert calculate_data_completeness(buyer, deal) == "High"

    def test_low_completeness(self):
        """Test sparse records."""
        assert calculate_data_completeness(Buyer(id="b1"), Deal(id="d1")) == "Low"

    def test_low_completeness_needs_review(self):
        """Test sparse data is flagged first."""
        score = score_buyer(Deal(id="d1"), Buyer(id="b1"), _tracker(), today=TODAY)
        assert score.needs_review is True
        assert score.review_reason == "Insufficient data for confident scoring"

    def test_low_confidence_categories(self):
        """Test two low-confidence categories need review."""
        low = CategoryScore(score=50, reasoning="x", confidence="low")
        high = CategoryScore(score=90, reasoning="x", confidence="high")
        assert determine_review("Medium", [low, low, high], 80, False) == "Multiple scoring categories have low confidence"
        assert determine_review("Medium", [low, high, high], 80, False) is None

    def test_uncertain_range(self):
        """Test the 40-60 band, excluding disqualified scores."""
        assert determine_review("High", [], 40, False) is not None
        assert determine_review("High", [], 59, False) is not None
        assert determine_review("High", [], 60, False) is None
        assert determine_review("High", [], 45, True) is None


class TestRankingAndSummary:
    """Test ordering and summary counts."""

    def test_rank_order(self):
        """Test disqualified last, composite descending, ties by name."""
        ranked = rank_scores([
            _stub_score("b4", "Delta", 0, disqualified=True),
            _stub_score("b2", "bravo", 70),
            _stub_score("b1", "Alpha", 70),
            _stub_score("b3", "Charlie", 90),
        ])
        assert [s.buyer_id for s in ranked] == ["b3", "b1", "b2", "b4"]

    def test_summary(self):
        """Test band counts."""
        summary = summarize([
            _stub_score("b1", "A", 90, has_calls=True),
            _stub_score("b2", "B", 60),
            _stub_score("b3", "C", 30, completeness="Low"),
            _stub_score("b4", "D", 0, disqualified=True),
        ])
        assert summary == {
            "total": 4,
            "strongFit": 1,
            "moderateFit": 1,
            "longShot": 1,
            "disqualified": 1,
            "withEngagement": 1,
            "needsReview": 0,
            "lowDataCompleteness": 1,
        }

    def test_score_universe(self):
        """Test a universe is scored with per-buyer calls and ranked."""
        buyers = [
            _buyer("b1"),
            _buyer("b2", platform_company_name="Excluded Co", geographic_exclusions=["TX"]),
            _buyer("b3", platform_company_name="Engaged Co"),
        ]
        calls = {"b3": [CallIntelligence(buyer_id="b3", deal_id="d1", call_summary="Very interested")]}
        ranked = score_universe(_deal(), _tracker(), buyers, calls_by_buyer=calls, today=TODAY)
        assert [s.buyer_id for s in ranked] == ["b3", "b1", "b2"]
        assert ranked[0].engagement.has_calls is True
        assert ranked[1].engagement.has_calls is False
        assert ranked[-1].is_disqualified is True
