"""Services category scorer (keyword overlap against a curated vocabulary)."""
import logging
from typing import List, Optional

from buyerfit.entity.records import Buyer, CategoryScore, Deal
from buyerfit.score.rules import SERVICE_KEYWORDS
from buyerfit.utils.numbers import round_half_up

logger = logging.getLogger(__name__)


def extract_service_keywords(text: Optional[str]) -> List[str]:
    """
    Find vocabulary terms in text (substring match, vocabulary order).

    Args:
        text: Free-text service description

    Returns:
        List of matched terms
    """
    if not text:
        return []
    lower = text.lower()
    return [term for term in SERVICE_KEYWORDS if term in lower]


def score_services(deal: Deal, buyer: Buyer, industry_name: Optional[str] = None) -> CategoryScore:
    """
    Score service overlap between deal and buyer.

    Args:
        deal: Deal record
        buyer: Buyer record
        industry_name: Tracker industry, used in reasoning only

    Returns:
        CategoryScore
    """
    deal_services = (deal.service_mix or "").lower()
    deal_industry = (deal.industry_type or "").lower()

    for exclusion in buyer.industry_exclusions:
        term = exclusion.lower().strip()
        if term and (term in deal_industry or term in deal_services):
            logger.debug(f"Buyer {buyer.id} excludes industry '{exclusion}'")
            return CategoryScore(
                score=0,
                reasoning="Deal industry/services match buyer's exclusion criteria",
                is_disqualified=True,
                disqualification_reason=f"Industry exclusion match found: {exclusion}",
                confidence="high",
            )

    deal_keywords = extract_service_keywords(deal_services)
    buyer_keywords = set(extract_service_keywords(buyer.services_offered))
    for service in buyer.target_services:
        buyer_keywords.update(extract_service_keywords(service))
    buyer_keywords.update(extract_service_keywords(buyer.service_mix_prefs))

    if not deal_keywords:
        industry = f" for {industry_name}" if industry_name else ""
        return CategoryScore(
            score=50,
            reasoning=f"Deal service mix not specified{industry}. Manual review recommended.",
            confidence="low",
        )
    if not buyer_keywords:
        return CategoryScore(
            score=50,
            reasoning="Buyer service preferences not specified. Manual review recommended.",
            confidence="low",
        )

    matches = [keyword for keyword in deal_keywords if keyword in buyer_keywords]
    overlap = len(matches) / len(deal_keywords) * 100

    if overlap >= 70:
        score = 90 + (overlap - 70) / 3
        reasoning = f"Strong service alignment ({overlap:.0f}% overlap): {', '.join(matches[:4])}"
    elif overlap >= 40:
        score = 70 + (overlap - 40)
        reasoning = f"Good service alignment ({overlap:.0f}% overlap): {', '.join(matches[:3])}"
    elif overlap >= 20:
        score = 50 + overlap
        reasoning = f"Partial service overlap ({overlap:.0f}%): {', '.join(matches)}. May be complementary."
    elif matches:
        score = 40
        reasoning = f"Limited service overlap: {', '.join(matches)}. Consider as add-on opportunity."
    else:
        score = 25
        reasoning = (
            f"No direct service overlap. Deal: {', '.join(deal_keywords[:3])}. "
            f"Buyer focuses on: {', '.join(sorted(buyer_keywords)[:3])}"
        )

    return CategoryScore(
        score=min(100, round_half_up(score)),
        reasoning=reasoning,
        confidence="high" if matches else "medium",
    )
