"""
Size/financial category scorer.

Size is a gating factor: besides its category score it returns a
GatingFactor whose multiplier is applied to the whole composite, so a deal
that is too small for a buyer can't be rescued by perfect geography or
services.
"""
import logging
from typing import List, Optional, Tuple

from buyerfit.entity.records import Buyer, CategoryScore, Deal, GatingFactor
from buyerfit.score.rules import (
    HARD_MAX_RATIO,
    HARD_MIN_RATIO,
    LOW_END_RATIO,
    NATIONAL_PLATFORM_MIN_ACQUISITIONS,
    NATIONAL_PLATFORM_MIN_STATES,
    NATIONAL_SMALL_DEAL_RATIO,
    SWEET_SPOT_BAND,
)
from buyerfit.utils.numbers import clamp, round_half_up

logger = logging.getLogger(__name__)


def _money(value: Optional[float]) -> str:
    return f"${value:g}M"


def is_national_platform(buyer: Buyer) -> bool:
    """Heuristic: frequent acquirer or a footprint spanning many states."""
    return (
        (buyer.total_acquisitions or 0) > NATIONAL_PLATFORM_MIN_ACQUISITIONS
        or len(buyer.target_geographies) > NATIONAL_PLATFORM_MIN_STATES
        or len(buyer.geographic_footprint) > NATIONAL_PLATFORM_MIN_STATES
    )


def _result(score, reasoning, multiplier, disqualified=False, reason=None, confidence="high"):
    category = CategoryScore(
        score=int(clamp(round_half_up(score))),
        reasoning=reasoning,
        is_disqualified=disqualified,
        disqualification_reason=reason,
        confidence=confidence,
    )
    return category, GatingFactor(size_multiplier=clamp(multiplier, 0.0, 1.05))


def score_size(deal: Deal, buyer: Buyer) -> Tuple[CategoryScore, GatingFactor]:
    """
    Score deal size against the buyer's revenue/EBITDA criteria.

    Gates run in order: far below minimum (disqualify), just below minimum
    (soft penalty), far above maximum (disqualify), single location against
    a national platform. Otherwise a banded score around the sweet spot.
    A deal with no revenue skips the revenue gates and bands.

    Args:
        deal: Deal record
        buyer: Buyer record

    Returns:
        Tuple of (CategoryScore, GatingFactor)
    """
    revenue = deal.revenue
    locations = deal.locations
    national = is_national_platform(buyer)
    multiplier = 1.0

    # Below minimum
    if revenue is not None and buyer.min_revenue and revenue < buyer.min_revenue:
        pct_below = (buyer.min_revenue - revenue) / buyer.min_revenue * 100
        if revenue < buyer.min_revenue * HARD_MIN_RATIO:
            logger.debug(f"Buyer {buyer.id}: revenue {revenue} under hard minimum {buyer.min_revenue}")
            return _result(
                0,
                f"Deal revenue ({_money(revenue)}) is {pct_below:.0f}% below buyer minimum "
                f"({_money(buyer.min_revenue)}) - too small",
                0.0,
                disqualified=True,
                reason=f"Revenue ({_money(revenue)}) significantly below minimum ({_money(buyer.min_revenue)})",
            )
        multiplier = 0.35 + (1 - pct_below / 30) * 0.35
        return _result(
            25 + (30 - pct_below),
            f"Deal revenue ({_money(revenue)}) is {pct_below:.0f}% below buyer minimum "
            f"({_money(buyer.min_revenue)}) - challenging fit",
            multiplier,
        )

    # Far above maximum
    if revenue is not None and buyer.max_revenue and revenue > buyer.max_revenue * HARD_MAX_RATIO:
        return _result(
            0,
            f"Deal revenue ({_money(revenue)}) significantly exceeds buyer maximum ({_money(buyer.max_revenue)})",
            0.0,
            disqualified=True,
            reason=f"Revenue ({_money(revenue)}) exceeds maximum threshold ({_money(buyer.max_revenue)})",
        )

    # Single location against a national platform
    if locations == 1 and national:
        sweet = buyer.revenue_sweet_spot
        if revenue is not None and sweet and revenue < sweet * NATIONAL_SMALL_DEAL_RATIO:
            logger.debug(f"Buyer {buyer.id}: national platform, single-location deal at {revenue}")
            return _result(
                20,
                f"Single-location deal ({_money(revenue)}) significantly below platform's "
                f"sweet spot ({_money(sweet)})",
                min(multiplier, 0.45),
                disqualified=True,
                reason="Single location + small revenue unlikely to attract platform buyer",
            )
        multiplier = min(multiplier, 0.80)

    score = 50.0
    reasons: List[str] = []
    has_data = False

    # Revenue bands
    if buyer.min_revenue or buyer.max_revenue or buyer.revenue_sweet_spot:
        has_data = True
        low = buyer.min_revenue or 0
        high = buyer.max_revenue or 1000
        sweet = buyer.revenue_sweet_spot or (low + high) / 2

        if revenue is None:
            reasons.append("Deal revenue not specified")
        elif low <= revenue <= high:
            if sweet * SWEET_SPOT_BAND[0] <= revenue <= sweet * SWEET_SPOT_BAND[1]:
                score = 95
                multiplier = min(multiplier, 1.05)
                reasons.append(f"Revenue ({_money(revenue)}) near sweet spot ({_money(sweet)})")
            elif revenue < low * LOW_END_RATIO:
                score = 65
                multiplier = min(multiplier, 0.85)
                reasons.append(f"Revenue ({_money(revenue)}) within range but on low end (min {_money(low)})")
            else:
                range_size = high - low
                fit = 1 - abs(revenue - sweet) / range_size if range_size > 0 else 1
                score = 70 + fit * 25
                reasons.append(f"Revenue ({_money(revenue)}) within target range (${low:g}-{high:g}M)")
        elif revenue > high:
            gap = (revenue - high) / high
            score = max(20, 60 - gap * 60)
            multiplier = min(multiplier, 0.75)
            reasons.append(f"Revenue ({_money(revenue)}) above target ({_money(high)} max)")

    # EBITDA
    if buyer.min_ebitda or buyer.max_ebitda or buyer.ebitda_sweet_spot:
        has_data = True
        ebitda = deal.effective_ebitda
        if ebitda:
            low = buyer.min_ebitda or 0
            high = buyer.max_ebitda or 100
            if low <= ebitda <= high:
                score = min(100, score + 10)
                reasons.append(f"EBITDA (${ebitda:.1f}M) within range")
            elif ebitda < low:
                score = max(score - 15, 10)
                multiplier = min(multiplier, 0.75)
                reasons.append(f"EBITDA (${ebitda:.1f}M) below minimum ({_money(low)})")

    # Location count
    if locations == 1 and national:
        score = max(10, score - 15)
        reasons.append("Single-location deal facing national platform")
    elif locations == 1:
        score = max(10, score - 5)
        reasons.append("Single location - limited scale")
    elif locations >= 3:
        score = min(100, score + 5)
        reasons.append(f"Multi-location ({locations} locations) provides infrastructure")

    return _result(
        score,
        ". ".join(reasons) if reasons else "Limited size criteria data available",
        multiplier,
        confidence="high" if has_data else "low",
    )
