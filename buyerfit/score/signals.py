"""Deal attractiveness and buyer engagement signals."""
import json
import logging
from typing import List

from buyerfit.entity.records import CallIntelligence, Deal, EngagementSignals
from buyerfit.score.rules import ENGAGEMENT_PATTERNS, ENGAGEMENT_POINTS, CALLS_ON_RECORD_POINTS

logger = logging.getLogger(__name__)


def calculate_deal_attractiveness(deal: Deal) -> int:
    """
    Estimate how desirable a deal is on its own merits.

    Used to relax geography requirements for strong deals.

    Args:
        deal: Deal record

    Returns:
        Score 0-100 (baseline 50)
    """
    score = 50

    revenue = deal.revenue or 0
    if revenue >= 20:
        score += 30
    elif revenue >= 10:
        score += 25
    elif revenue >= 5:
        score += 20
    elif revenue >= 2:
        score += 15
    elif revenue > 0:
        score += 10

    locations = deal.locations
    if locations >= 10:
        score += 20
    elif locations >= 5:
        score += 15
    elif locations >= 3:
        score += 10
    else:
        score += 5

    margin = deal.ebitda_percentage
    if margin is None and deal.ebitda_amount is not None and revenue > 0:
        margin = deal.ebitda_amount / revenue * 100
    if margin is not None:
        if margin >= 25:
            score += 20
        elif margin >= 20:
            score += 15
        elif margin >= 15:
            score += 10
        else:
            score += 5

    return min(100, score)


def _call_haystack(call: CallIntelligence) -> str:
    parts = [call.call_summary or ""]
    parts.extend(call.key_takeaways)
    if call.extracted_data:
        parts.append(json.dumps(call.extracted_data, default=str))
    return " ".join(parts).lower()


def analyze_engagement_signals(calls: List[CallIntelligence]) -> EngagementSignals:
    """
    Scan call notes for buyer interest.

    Each signal family counts once no matter how many calls mention it.

    Args:
        calls: Call intelligence for one buyer on one deal

    Returns:
        EngagementSignals with score 0-100
    """
    if not calls:
        return EngagementSignals()

    flags = {family: False for family in ENGAGEMENT_PATTERNS}
    score = CALLS_ON_RECORD_POINTS
    signals = [f"{len(calls)} call(s) on record"]

    for call in calls:
        haystack = _call_haystack(call)
        for family, patterns in ENGAGEMENT_PATTERNS.items():
            if flags[family]:
                continue
            if any(pattern in haystack for pattern in patterns):
                flags[family] = True
                label, points = ENGAGEMENT_POINTS[family]
                score += points
                signals.append(label)

    return EngagementSignals(
        has_calls=True,
        site_visit_requested=flags["site_visit"],
        financials_requested=flags["financials"],
        ceo_involved=flags["ceo"],
        personal_connection=flags["personal"],
        expressed_interest=flags["interest"],
        engagement_score=min(100, score),
        signals=signals,
    )
