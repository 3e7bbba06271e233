"""Additive adjustments to the composite: thesis, engagement, KPI, learning."""
from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Tuple

from buyerfit.entity.records import Buyer, Deal, EngagementSignals, LearningRecord, Tracker
from buyerfit.score.geography import buyer_thesis_geography, collect_deal_states
from buyerfit.score.rules import (
    ENGAGEMENT_BONUS_RATE,
    LEARNING_RULES,
    MAX_ENGAGEMENT_BONUS,
    MAX_LEARNING_PENALTY,
    MAX_THESIS_BONUS,
    SMALL_DEAL_REVENUE,
)
from buyerfit.utils.numbers import round_half_up

LEARNING_REASONS: Dict[str, str] = {
    "size_too_small": "Previously rejected {count} smaller deals",
    "geography": "Geography mismatch in {count} previous deals",
    "services": "Service mismatch in {count} previous deals",
    "timing": "Buyer frequently not active ({count}x)",
    "portfolio_conflict": "Has portfolio conflicts in similar deals",
}


def calculate_thesis_bonus(buyer: Buyer, today: Optional[date] = None, deal: Optional[Deal] = None) -> int:
    """
    Reward buyers with a documented thesis and recent acquisition activity.

    A thesis whose stated geographic focus (hard or soft) leaves out the
    deal earns nothing.

    Args:
        buyer: Buyer record
        today: Reference date (defaults to today)
        deal: Deal being scored; enables the thesis geography check

    Returns:
        Bonus 0-30
    """
    if deal is not None and buyer_thesis_geography(buyer).conflicts_with(collect_deal_states(deal)):
        return 0

    bonus = 0
    if buyer.thesis_summary and len(buyer.thesis_summary) > 50:
        bonus += 10
    if buyer.key_quotes:
        bonus += 10
    if buyer.acquisition_appetite:
        bonus += 5
    if (buyer.total_acquisitions or 0) > 3:
        bonus += 5
    if buyer.last_acquisition_date:
        today = today or date.today()
        months_ago = (today - buyer.last_acquisition_date).days / 30
        if months_ago < 12:
            bonus += 10
        elif months_ago < 24:
            bonus += 5
    return min(MAX_THESIS_BONUS, bonus)


def calculate_engagement_bonus(engagement: EngagementSignals) -> float:
    """Engagement score scaled to at most 15 composite points."""
    return min(MAX_ENGAGEMENT_BONUS, engagement.engagement_score * ENGAGEMENT_BONUS_RATE)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def calculate_kpi_bonus(deal: Deal, tracker: Tracker) -> Tuple[int, List[str]]:
    """
    Score the deal's industry KPIs against the tracker's KPI config.

    Config shape: {"kpis": [{"field_name", "display_name", "weight",
    "scoring_rules": {"ideal_range", "penalty_below", "penalty_above",
    "bonus_per_item", "max_bonus", "boolean_bonus"}}]}. KPIs the deal
    doesn't report contribute nothing.

    Args:
        deal: Deal record
        tracker: Tracker record

    Returns:
        Tuple of (rounded bonus, breakdown lines)
    """
    kpis = (tracker.kpi_scoring_config or {}).get("kpis") or []
    if not kpis:
        return 0, []

    total = 0.0
    breakdown = []
    for kpi in kpis:
        field_name = kpi.get("field_name")
        value = deal.industry_kpis.get(field_name) if field_name else None
        if value is None:
            continue

        name = kpi.get("display_name") or field_name
        weight = kpi.get("weight") or 0
        rules = kpi.get("scoring_rules") or {}
        points = 0.0

        ideal_range = rules.get("ideal_range")
        if ideal_range and len(ideal_range) == 2 and _is_number(value):
            low, high = ideal_range
            if low <= value <= high:
                points = weight
                breakdown.append(f"{name}: +{points}pt ({value} in ideal range)")
            elif value < low and "penalty_below" in rules:
                shortfall = min(1, (low - value) / low) if low else 1
                points = max(0, weight * (1 - shortfall))
                breakdown.append(f"{name}: +{round_half_up(points)}pt ({value} below ideal)")
            elif value > high and "penalty_above" in rules:
                points = max(0, weight * 0.5)
                breakdown.append(f"{name}: +{round_half_up(points)}pt ({value} above ideal)")

        if rules.get("bonus_per_item") and isinstance(value, list):
            max_bonus = rules.get("max_bonus") or weight
            points = min(max_bonus, len(value) * rules["bonus_per_item"])
            if points > 0:
                breakdown.append(f"{name}: +{round_half_up(points)}pt ({len(value)} items)")

        if rules.get("boolean_bonus") and value is True:
            points = rules["boolean_bonus"]
            breakdown.append(f"{name}: +{points}pt")

        total += points

    return round_half_up(total), breakdown


def calculate_learning_penalty(history: List[LearningRecord], deal: Deal) -> Tuple[int, List[str]]:
    """
    Penalize buyers whose past rejections match this deal's profile.

    Args:
        history: Buyer's past rejection records
        deal: Deal record

    Returns:
        Tuple of (penalty 0-25, reasons)
    """
    if not history:
        return 0, []

    counts = Counter(category for record in history for category in record.rejection_categories)
    penalty = 0
    reasons = []
    for category, (min_count, points) in LEARNING_RULES.items():
        count = counts.get(category, 0)
        if count < min_count:
            continue
        if category == "size_too_small" and not (deal.revenue and deal.revenue < SMALL_DEAL_REVENUE):
            continue
        penalty += points
        reasons.append(LEARNING_REASONS[category].format(count=count))

    return min(penalty, MAX_LEARNING_PENALTY), reasons
