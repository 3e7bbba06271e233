"""Human-readable reasoning for a buyer's overall fit."""
from typing import List, Optional

from buyerfit.entity.records import CategoryScore, EngagementSignals, GatingFactor
from buyerfit.score.rules import (
    LEARNING_NOTE_MIN_PENALTY,
    MODERATE_FIT_MIN,
    SIZE_CHALLENGE_MULTIPLIER,
    SIZE_LIMITING_MULTIPLIER,
    STRONG_FIT_MIN,
)


def first_sentence(text: str) -> str:
    """Text up to the first period."""
    return (text or "").split(".")[0].strip()


def compose_overall_reasoning(
    composite_score: int,
    size: CategoryScore,
    gating: GatingFactor,
    geography: CategoryScore,
    services: CategoryScore,
    engagement: EngagementSignals,
    disqualification_reasons: List[str],
    learning_penalty: int = 0,
    learning_reasons: Optional[List[str]] = None
) -> str:
    """
    Pick a reasoning template from the composite and gating outcome.

    Args:
        composite_score: Final composite score
        size: Size category result
        gating: Size gating factor
        geography: Geography category result
        services: Services category result
        engagement: Engagement signals for the buyer
        disqualification_reasons: Reasons collected from the category scorers
        learning_penalty: Penalty from rejection history
        learning_reasons: Explanations for the learning penalty

    Returns:
        Overall reasoning string
    """
    if disqualification_reasons:
        reasoning = f"DISQUALIFIED: {disqualification_reasons[0]}"
    elif gating.size_multiplier < SIZE_CHALLENGE_MULTIPLIER:
        reasoning = (
            f"Size challenge: {size.reasoning}. Even with "
            f"{first_sentence(geography.reasoning).lower()}, size limits fit."
        )
    elif composite_score >= STRONG_FIT_MIN:
        geography_note = first_sentence(geography.reasoning)
        if geography_note.startswith("Strong fit: "):
            geography_note = geography_note[len("Strong fit: "):]
        reasoning = f"Strong fit: {geography_note}. {first_sentence(services.reasoning)}."
        if engagement.signals:
            reasoning += f" {engagement.signals[0]}."
    elif composite_score >= MODERATE_FIT_MIN:
        reasoning = f"Moderate fit: {first_sentence(geography.reasoning)}. Consider for outreach."
        if gating.size_multiplier < SIZE_LIMITING_MULTIPLIER:
            reasoning += " Size may be a limiting factor."
        if engagement.signals:
            reasoning += f" {engagement.signals[0]}."
    else:
        reasoning = f"Long shot: {size.reasoning}. {first_sentence(geography.reasoning)}."

    if learning_penalty >= LEARNING_NOTE_MIN_PENALTY and learning_reasons:
        reasoning += f" Learning: {learning_reasons[0]}."

    return reasoning
