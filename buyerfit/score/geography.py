"""
Geography category scorer.

Single-location deals need a buyer within roughly 100 miles (same or
bordering state) unless the deal is attractive enough or the buyer has
shown real interest on calls. Multi-location deals are treated as market
entry opportunities and are never disqualified for distance; only an
explicit geographic exclusion or a firm thesis focus elsewhere disqualifies
them.
"""
import logging
from typing import Optional, Set

from buyerfit.config import settings
from buyerfit.entity.records import Buyer, CategoryScore, Deal, EngagementSignals
from buyerfit.score.rules import ENGAGEMENT_GEO_MULTIPLIER, MULTI_LOCATION_BONUS
from buyerfit.utils.addresses import extract_state_from_location
from buyerfit.utils.geography import (
    ThesisGeography,
    are_states_in_same_region,
    extract_states_from_geography,
    extract_states_from_text,
    extract_thesis_geographic_constraints,
    get_adjacent_states,
    get_state_region,
    normalize_state,
)
from buyerfit.utils.numbers import clamp, round_half_up

logger = logging.getLogger(__name__)


def collect_deal_states(deal: Deal) -> Set[str]:
    """States from the deal's geography list and headquarters."""
    states = extract_states_from_geography(deal.geography)
    if deal.headquarters:
        states |= extract_states_from_text(deal.headquarters)
        hq_state = extract_state_from_location(deal.headquarters)
        if hq_state:
            states.add(hq_state)
    return states


def collect_buyer_states(buyer: Buyer) -> Set[str]:
    """States where the buyer is headquartered, operates, or wants to acquire."""
    states = set()
    hq_state = normalize_state(buyer.hq_state)
    if hq_state:
        states.add(hq_state)
    if buyer.hq_city:
        states |= extract_states_from_text(buyer.hq_city)
        city_state = extract_state_from_location(buyer.hq_city)
        if city_state:
            states.add(city_state)
    states |= extract_states_from_geography(buyer.target_geographies)
    states |= extract_states_from_geography(buyer.service_regions)
    states |= extract_states_from_geography(buyer.geographic_footprint)
    return states


def buyer_thesis_geography(buyer: Buyer) -> ThesisGeography:
    """Geographic focus stated in the buyer's thesis summary and key quotes."""
    return extract_thesis_geographic_constraints(buyer.thesis_summary, buyer.key_quotes)


def _category(score, reasoning, confidence="high", disqualified=False, reason=None) -> CategoryScore:
    return CategoryScore(
        score=int(clamp(round_half_up(score))),
        reasoning=reasoning.strip(),
        is_disqualified=disqualified,
        disqualification_reason=reason,
        confidence=confidence,
    )


def score_geography(
    deal: Deal,
    buyer: Buyer,
    deal_attractiveness: int,
    engagement: EngagementSignals,
    multi_location_min: Optional[int] = None
) -> CategoryScore:
    """
    Score geographic proximity of buyer to deal.

    Args:
        deal: Deal record
        buyer: Buyer record
        deal_attractiveness: Output of calculate_deal_attractiveness
        engagement: Buyer's engagement signals on this deal
        multi_location_min: Location count at which lenient scoring applies
            (defaults to settings.multi_location_min)

    Returns:
        CategoryScore
    """
    threshold = multi_location_min or settings.multi_location_min
    deal_states = collect_deal_states(deal)
    buyer_states = collect_buyer_states(buyer)

    # Exclusions override everything
    exclusions = extract_states_from_geography(buyer.geographic_exclusions)
    excluded = sorted(deal_states & exclusions)
    if excluded:
        logger.debug(f"Buyer {buyer.id} excludes {excluded}")
        return _category(
            0,
            f"Deal location ({', '.join(excluded)}) is in buyer's exclusion list",
            disqualified=True,
            reason=f"Geographic exclusion: {', '.join(excluded)} explicitly excluded by buyer",
        )

    # A thesis that firmly names a region rules out deals elsewhere
    thesis = buyer_thesis_geography(buyer)
    if thesis.strength == "hard" and thesis.conflicts_with(deal_states):
        focus = ", ".join(thesis.regions) or ", ".join(thesis.states)
        deal_list = ", ".join(sorted(deal_states))
        logger.debug(f"Buyer {buyer.id} thesis focuses on {focus}, deal in {deal_list}")
        return _category(
            0,
            f"Thesis explicitly focuses on {focus}. Deal in {deal_list} is outside stated geographic focus.",
            disqualified=True,
            reason=f"Buyer thesis focus ({', '.join(thesis.states)}) excludes deal location ({deal_list})",
        )

    if not deal_states:
        return _category(50, "Deal location not specified. Manual review recommended.", confidence="low")
    if not buyer_states:
        return _category(
            50,
            "Buyer's geographic preferences not specified. Manual review recommended.",
            confidence="low"
        )

    exact = sorted(deal_states & buyer_states)
    adjacent = sorted({
        neighbor
        for state in deal_states
        for neighbor in get_adjacent_states(state)
        if neighbor in buyer_states
    })
    regional = sorted(
        state for state in buyer_states
        if state not in exact and state not in adjacent
        and any(are_states_in_same_region(deal_state, state) for deal_state in deal_states)
    )
    deal_region = next(
        (
            get_state_region(deal_state) for deal_state in sorted(deal_states)
            if any(are_states_in_same_region(deal_state, state) for state in regional)
        ),
        None
    )

    attractiveness_bonus = 1 + (deal_attractiveness - 50) / 200
    engaged = engagement.expressed_interest or engagement.site_visit_requested or engagement.personal_connection
    engagement_multiplier = ENGAGEMENT_GEO_MULTIPLIER if engaged else 1.0
    multipliers = attractiveness_bonus * engagement_multiplier
    deal_list = ", ".join(sorted(deal_states))

    if deal.locations < threshold:
        # Strict path: buyer must be within ~100 miles
        if exact:
            return _category(
                95 * multipliers,
                f"Strong fit: Buyer has presence in {', '.join(exact)}"
                f"{'. Active buyer interest shown.' if engaged else ''}"
            )
        if adjacent:
            base = 70 + (15 if deal_attractiveness > 70 else 10 if deal_attractiveness > 50 else 0)
            return _category(
                base * multipliers,
                f"Acceptable: Buyer operates in {', '.join(adjacent)} (adjacent). "
                f"{'High-value deal increases buyer flexibility.' if deal_attractiveness > 70 else ''}"
                f"{' Active interest shown.' if engaged else ''}"
            )
        if regional:
            base = 50 + (20 if deal_attractiveness > 80 else 10 if deal_attractiveness > 60 else 0)
            return _category(
                base * multipliers,
                f"Regional fit: Buyer operates in {deal_region} "
                f"({', '.join(regional[:2])}). "
                f"{'Attractive deal may draw regional interest.' if deal_attractiveness > 70 else ''}"
                f"{' Active interest confirmed.' if engaged else ''}",
                confidence="medium"
            )
        if engaged and deal_attractiveness >= 70:
            return _category(
                60,
                f"Geographic distance, but buyer has shown active interest "
                f"({', '.join(engagement.signals[:2])}). High-value deal."
            )
        if deal_attractiveness >= 80:
            return _category(
                50,
                "Weak geographic fit but highly attractive deal may draw buyer interest despite distance",
                confidence="medium"
            )
        return _category(
            0,
            f"No presence within 100 miles. Buyer's locations: {', '.join(sorted(buyer_states)[:5])}. "
            f"Deal: {deal_list}",
            disqualified=True,
            reason=f"No presence near {deal_list}. Single-location deals require buyer within 100 miles.",
        )

    # Lenient path: multi-location deals can enable market entry
    if exact:
        return _category(
            min(100, 95 + MULTI_LOCATION_BONUS) * multipliers,
            f"Strong fit: Buyer targets {', '.join(exact)} - direct overlap with deal geography"
            f"{'. Active interest confirmed.' if engaged else ''}"
        )
    if adjacent:
        base = 70 + MULTI_LOCATION_BONUS + (15 if deal_attractiveness > 70 else 10)
        return _category(
            base * multipliers,
            f"Good fit: Buyer operates in {', '.join(adjacent)} (adjacent). "
            f"Multi-location deal enables expansion.{' Active interest confirmed.' if engaged else ''}"
        )
    if regional:
        base = 60 + MULTI_LOCATION_BONUS + (15 if deal_attractiveness > 70 else 5)
        return _category(
            base * multipliers,
            f"Regional fit: Buyer operates in {deal_region}. "
            f"Multi-location deal provides market entry opportunity."
            f"{' Active interest confirmed.' if engaged else ''}",
            confidence="medium"
        )
    if engaged:
        return _category(
            55 + MULTI_LOCATION_BONUS,
            f"Geographic distance, but buyer has expressed interest. "
            f"Multi-location ({deal.locations}) enables market expansion."
        )
    base = 35 + MULTI_LOCATION_BONUS + (20 if deal_attractiveness > 70 else 10 if deal_attractiveness > 50 else 0)
    return _category(
        base,
        f"Weak fit: Buyer operates in {', '.join(sorted(buyer_states)[:3])}. No overlap with {deal_list}, "
        f"but multi-location deal may enable market entry.",
        confidence="medium"
    )
