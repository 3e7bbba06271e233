"""Owner goals category scorer. Nudges the composite; never disqualifies."""
from typing import List

from buyerfit.entity.records import Buyer, CategoryScore, Deal
from buyerfit.score.rules import (
    AUTONOMY_PATTERNS,
    BUYER_EARNOUT,
    BUYER_FLEXIBLE_STAY,
    BUYER_NEEDS_STAY,
    BUYER_ROLLOVER,
    DEAL_ALL_CASH,
    DEAL_EARNOUT,
    DEAL_ROLLOVER,
    DEAL_STAY_LONG,
    DEAL_STAY_SHORT,
    EMPLOYEE_PATTERNS,
    INTEGRATION_PATTERN,
    OWNER_GOAL_POINTS,
    OWNER_GOALS_FLOOR,
    SUCCESSION_PATTERNS,
)
from buyerfit.utils.numbers import clamp, round_half_up


def _mentions(text: str, patterns: List[str]) -> bool:
    return any(pattern in text for pattern in patterns)


def buyer_owner_text(buyer: Buyer) -> str:
    """Lower-cased buyer text describing transition, roll, thesis, and quotes."""
    parts = [
        buyer.owner_transition_goals or "",
        buyer.owner_roll_requirement or "",
        buyer.thesis_summary or "",
        " ".join(buyer.key_quotes),
    ]
    return " ".join(parts).lower()


def score_owner_goals(deal: Deal, buyer: Buyer) -> CategoryScore:
    """
    Compare the seller's stated goals with the buyer's transition preferences.

    Args:
        deal: Deal record
        buyer: Buyer record

    Returns:
        CategoryScore in [20, 100], or neutral 50 when either side is silent
    """
    deal_goals = (deal.owner_goals or "").lower()
    buyer_text = buyer_owner_text(buyer)

    if not deal_goals:
        return CategoryScore(
            score=50,
            reasoning="Owner goals not specified in deal. Manual review recommended.",
            confidence="low",
        )
    if not buyer_text.strip():
        return CategoryScore(
            score=50,
            reasoning="Buyer transition preferences not specified. Manual review recommended.",
            confidence="low",
        )

    points = OWNER_GOAL_POINTS
    score = 50
    alignments = []
    conflicts = []

    # Succession planning
    if _mentions(deal_goals, SUCCESSION_PATTERNS[0]):
        if _mentions(buyer_text, SUCCESSION_PATTERNS[1]):
            score += points["SUCCESSION_PAIRED"]
            alignments.append("Succession planning aligns with buyer's management retention focus")
        else:
            score += points["SUCCESSION_DEAL_ONLY"]
            alignments.append("Owner has succession plan in place")

    # Employees
    if _mentions(deal_goals, EMPLOYEE_PATTERNS[0]):
        if _mentions(buyer_text, EMPLOYEE_PATTERNS[1]):
            score += points["EMPLOYEES_PAIRED"]
            alignments.append("Both prioritize employee retention and culture")
        else:
            score += points["EMPLOYEES_DEAL_ONLY"]
            alignments.append("Owner cares about employees")

    # Culture / autonomy
    if _mentions(deal_goals, AUTONOMY_PATTERNS[0]):
        if _mentions(buyer_text, AUTONOMY_PATTERNS[1]):
            score += points["AUTONOMY_PAIRED"]
            alignments.append("Culture/autonomy preferences aligned")
        elif INTEGRATION_PATTERN in buyer_text:
            score += points["AUTONOMY_VS_INTEGRATION"]
            conflicts.append("Owner wants autonomy but buyer focuses on integration")

    # Transition length
    stay_long = _mentions(deal_goals, DEAL_STAY_LONG)
    stay_short = _mentions(deal_goals, DEAL_STAY_SHORT)
    buyer_needs_stay = _mentions(buyer_text, BUYER_NEEDS_STAY)
    if stay_long and buyer_needs_stay:
        score += points["STAY_ALIGNED"]
        alignments.append("Owner willing to stay aligns with buyer preference")
    elif stay_short and _mentions(buyer_text, BUYER_FLEXIBLE_STAY):
        score += points["EXIT_FLEXIBLE"]
        alignments.append("Buyer flexible on owner transition")
    elif stay_short and buyer_needs_stay:
        score += points["EXIT_VS_STAY"]
        conflicts.append("Owner wants quick exit but buyer needs management to stay")

    # Deal structure
    buyer_rollover = _mentions(buyer_text, BUYER_ROLLOVER)
    if _mentions(deal_goals, DEAL_ROLLOVER) and buyer_rollover:
        score += points["ROLLOVER_ALIGNED"]
        alignments.append("Equity rollover interest aligned")
    elif _mentions(deal_goals, DEAL_ALL_CASH) and buyer_rollover:
        score += points["CASH_VS_ROLLOVER"]
        conflicts.append("Owner wants all-cash but buyer prefers rollover")

    if _mentions(deal_goals, DEAL_EARNOUT) and _mentions(buyer_text, BUYER_EARNOUT):
        score += points["EARNOUT_ALIGNED"]
        alignments.append("Open to earnout structure")

    reasoning = ""
    if alignments:
        reasoning = f"Alignments: {'; '.join(alignments)}"
    if conflicts:
        reasoning += (". " if reasoning else "") + f"Conflicts: {'; '.join(conflicts)}"

    return CategoryScore(
        score=int(clamp(round_half_up(score), OWNER_GOALS_FLOOR, 100)),
        reasoning=reasoning or "Partial owner goals alignment. Review details for fit.",
        confidence="high" if alignments or conflicts else "medium",
    )
