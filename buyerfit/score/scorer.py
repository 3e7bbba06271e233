"""Buyer-deal fit scoring: composite aggregation, ranking, and the request entry point."""
import logging
from datetime import date
from typing import Dict, List, NamedTuple, Optional

import duckdb
from pydantic import ValidationError

from buyerfit.config import settings
from buyerfit.entity.records import (
    Buyer,
    BuyerScore,
    CallIntelligence,
    CategoryScore,
    Deal,
    LearningRecord,
    Tracker,
)
from buyerfit.errors import DataFetchError, NotFoundError, ScoringError
from buyerfit.score.bonuses import (
    calculate_engagement_bonus,
    calculate_kpi_bonus,
    calculate_learning_penalty,
    calculate_thesis_bonus,
)
from buyerfit.score.geography import score_geography
from buyerfit.score.owner_goals import score_owner_goals
from buyerfit.score.reasons import compose_overall_reasoning
from buyerfit.score.rules import (
    BUYER_COMPLETENESS_POINTS,
    DEAL_COMPLETENESS_POINTS,
    HIGH_COMPLETENESS_PCT,
    MEDIUM_COMPLETENESS_PCT,
    MODERATE_FIT_MIN,
    REVIEW_HIGH,
    REVIEW_LOW,
    STRONG_FIT_MIN,
    THESIS_BONUS_WEIGHT,
)
from buyerfit.score.services import score_services
from buyerfit.score.signals import analyze_engagement_signals, calculate_deal_attractiveness
from buyerfit.score.size import score_size
from buyerfit.store import duckdb_store
from buyerfit.store.duckdb_store import PersistResult
from buyerfit.utils.numbers import clamp, round_half_up

logger = logging.getLogger(__name__)


class DealScoringResult(NamedTuple):
    """Ranked scores for one deal plus per-row persistence outcomes."""
    deal: Deal
    tracker: Tracker
    scores: List[BuyerScore]
    deal_attractiveness: int
    summary: Dict[str, int]
    persisted: List[PersistResult]


def calculate_data_completeness(buyer: Buyer, deal: Deal) -> str:
    """
    Bucket how much of the scoring input is actually filled in.

    Buyer checklist is worth 10 points (thesis and key quotes count double),
    deal checklist 5 points.

    Args:
        buyer: Buyer record
        deal: Deal record

    Returns:
        "High" (>= 70%), "Medium" (>= 40%), or "Low"
    """
    points = 0
    if buyer.hq_state or buyer.geographic_footprint:
        points += 1
    if buyer.target_geographies:
        points += 1
    if buyer.services_offered or buyer.target_services:
        points += 1
    if buyer.min_revenue or buyer.max_revenue:
        points += 1
    if buyer.thesis_summary:
        points += 2
    if buyer.owner_transition_goals:
        points += 1
    if buyer.key_quotes:
        points += 2
    if buyer.acquisition_appetite:
        points += 1

    if deal.geography or deal.headquarters:
        points += 1
    if deal.revenue:
        points += 1
    if deal.service_mix:
        points += 1
    if deal.owner_goals:
        points += 1
    if deal.location_count:
        points += 1

    percent = points / (BUYER_COMPLETENESS_POINTS + DEAL_COMPLETENESS_POINTS) * 100
    if percent >= HIGH_COMPLETENESS_PCT:
        return "High"
    if percent >= MEDIUM_COMPLETENESS_PCT:
        return "Medium"
    return "Low"


def determine_review(
    data_completeness: str,
    categories: List[CategoryScore],
    composite_score: int,
    is_disqualified: bool
) -> Optional[str]:
    """Return the reason a score needs human review, or None."""
    if data_completeness == "Low":
        return "Insufficient data for confident scoring"
    if sum(1 for category in categories if category.confidence == "low") >= 2:
        return "Multiple scoring categories have low confidence"
    if not is_disqualified and REVIEW_LOW <= composite_score < REVIEW_HIGH:
        return "Score in uncertain range (40-60) - manual review recommended"
    return None


def score_buyer(
    deal: Deal,
    buyer: Buyer,
    tracker: Tracker,
    calls: Optional[List[CallIntelligence]] = None,
    history: Optional[List[LearningRecord]] = None,
    deal_attractiveness: Optional[int] = None,
    kpi_bonus: Optional[int] = None,
    today: Optional[date] = None
) -> BuyerScore:
    """
    Score one buyer against one deal.

    Pure function of its inputs: no I/O.

    Args:
        deal: Deal record
        buyer: Buyer record
        tracker: Deal's tracker (weights and KPI config)
        calls: Buyer's call notes on this deal
        history: Buyer's rejection history
        deal_attractiveness: Precomputed attractiveness (computed if None)
        kpi_bonus: Precomputed KPI bonus (computed if None)
        today: Reference date for acquisition recency

    Returns:
        BuyerScore
    """
    if deal_attractiveness is None:
        deal_attractiveness = calculate_deal_attractiveness(deal)
    if kpi_bonus is None:
        kpi_bonus, _ = calculate_kpi_bonus(deal, tracker)

    engagement = analyze_engagement_signals(calls or [])
    size, gating = score_size(deal, buyer)
    geography = score_geography(deal, buyer, deal_attractiveness, engagement)
    services = score_services(deal, buyer, tracker.industry_name)
    owner_goals = score_owner_goals(deal, buyer)

    thesis_bonus = calculate_thesis_bonus(buyer, today, deal)
    engagement_bonus = calculate_engagement_bonus(engagement)
    learning_penalty, learning_reasons = calculate_learning_penalty(history or [], deal)

    disqualification_reasons = [
        category.disqualification_reason or category.reasoning
        for category in (size, geography, services)
        if category.is_disqualified
    ]
    is_disqualified = bool(disqualification_reasons)

    if is_disqualified:
        composite_score = 0
    else:
        default = settings.default_category_weight
        base = (
            size.score * tracker.weight("size_weight", default)
            + geography.score * tracker.weight("geography_weight", default)
            + services.score * tracker.weight("service_mix_weight", default)
            + owner_goals.score * tracker.weight("owner_goals_weight", default)
            + thesis_bonus * THESIS_BONUS_WEIGHT
            + engagement_bonus
            + kpi_bonus
            - learning_penalty
        )
        composite_score = int(clamp(round_half_up(max(0, base) * gating.size_multiplier)))

    overall_reasoning = compose_overall_reasoning(
        composite_score, size, gating, geography, services, engagement,
        disqualification_reasons, learning_penalty, learning_reasons
    )
    data_completeness = calculate_data_completeness(buyer, deal)
    review_reason = determine_review(
        data_completeness, [size, geography, services, owner_goals], composite_score, is_disqualified
    )

    return BuyerScore(
        buyer_id=buyer.id,
        buyer_name=buyer.display_name,
        deal_id=deal.id,
        composite_score=composite_score,
        geography=geography,
        size=size,
        services=services,
        owner_goals=owner_goals,
        gating=gating,
        thesis_bonus=thesis_bonus,
        engagement_bonus=engagement_bonus,
        kpi_bonus=kpi_bonus,
        learning_penalty=learning_penalty,
        overall_reasoning=overall_reasoning,
        is_disqualified=is_disqualified,
        disqualification_reasons=disqualification_reasons,
        needs_review=review_reason is not None,
        review_reason=review_reason,
        data_completeness=data_completeness,
        deal_attractiveness=deal_attractiveness,
        engagement=engagement,
    )


def rank_scores(scores: List[BuyerScore]) -> List[BuyerScore]:
    """Disqualified last, then composite descending, then buyer name and id."""
    return sorted(
        scores,
        key=lambda s: (s.is_disqualified, -s.composite_score, s.buyer_name.lower(), s.buyer_id)
    )


def summarize(scores: List[BuyerScore]) -> Dict[str, int]:
    """Counts by fit band for the response summary."""
    return {
        "total": len(scores),
        "strongFit": sum(1 for s in scores if s.composite_score >= STRONG_FIT_MIN),
        "moderateFit": sum(1 for s in scores if MODERATE_FIT_MIN <= s.composite_score < STRONG_FIT_MIN),
        "longShot": sum(1 for s in scores if 0 < s.composite_score < MODERATE_FIT_MIN),
        "disqualified": sum(1 for s in scores if s.is_disqualified),
        "withEngagement": sum(1 for s in scores if s.engagement.has_calls),
        "needsReview": sum(1 for s in scores if s.needs_review),
        "lowDataCompleteness": sum(1 for s in scores if s.data_completeness == "Low"),
    }


def score_universe(
    deal: Deal,
    tracker: Tracker,
    buyers: List[Buyer],
    calls_by_buyer: Optional[Dict[str, List[CallIntelligence]]] = None,
    history_by_buyer: Optional[Dict[str, List[LearningRecord]]] = None,
    today: Optional[date] = None
) -> List[BuyerScore]:
    """
    Score every buyer against a deal and rank the results.

    Attractiveness and KPI bonus depend only on the deal, so they are
    computed once.

    Returns:
        Ranked list of BuyerScore
    """
    calls_by_buyer = calls_by_buyer or {}
    history_by_buyer = history_by_buyer or {}
    deal_attractiveness = calculate_deal_attractiveness(deal)
    kpi_bonus, kpi_breakdown = calculate_kpi_bonus(deal, tracker)
    if kpi_breakdown:
        logger.info(f"KPI bonus for deal {deal.id}: {kpi_bonus} ({'; '.join(kpi_breakdown)})")

    scores = [
        score_buyer(
            deal,
            buyer,
            tracker,
            calls_by_buyer.get(buyer.id, []),
            history_by_buyer.get(buyer.id, []),
            deal_attractiveness=deal_attractiveness,
            kpi_bonus=kpi_bonus,
            today=today,
        )
        for buyer in buyers
    ]
    return rank_scores(scores)


def score_deal(
    deal_id: str,
    buyer_ids: Optional[List[str]] = None,
    conn: Optional[duckdb.DuckDBPyConnection] = None
) -> DealScoringResult:
    """
    Load a deal and its buyer universe from DuckDB, score, rank, and persist.

    Args:
        deal_id: Deal to score
        buyer_ids: Optional subset of the tracker's buyers
        conn: Open connection (a connection to settings.duckdb_path is
            opened and closed when omitted)

    Returns:
        DealScoringResult

    Raises:
        NotFoundError: Deal or tracker missing
        DataFetchError: Buyers could not be read
    """
    owns_conn = conn is None
    if owns_conn:
        conn = duckdb_store.connect()

    try:
        try:
            deal = duckdb_store.load_deal(conn, deal_id)
            if deal is not None and deal.tracker_id:
                tracker = duckdb_store.load_tracker(conn, deal.tracker_id)
            else:
                tracker = None
        except (duckdb.Error, ValidationError) as e:
            raise DataFetchError(f"Failed to fetch deal {deal_id}: {e}") from e

        if deal is None:
            raise NotFoundError(f"Deal not found: {deal_id}")
        if tracker is None:
            raise NotFoundError(f"Tracker not found for deal {deal_id}")
        logger.info(f"Scoring deal {deal_id} ({deal.deal_name}), industry: {tracker.industry_name}")

        try:
            buyers = duckdb_store.load_buyers(conn, tracker.id, buyer_ids)
        except duckdb.Error as e:
            raise DataFetchError(f"Failed to fetch buyers: {e}") from e
        buyer_id_list = [buyer.id for buyer in buyers]

        try:
            calls_by_buyer = duckdb_store.load_call_intelligence(conn, deal_id, buyer_id_list)
        except duckdb.Error as e:
            logger.error(f"Call intelligence fetch error, scoring without calls: {e}")
            calls_by_buyer = {}

        try:
            history_by_buyer = duckdb_store.load_learning_history(conn, buyer_id_list)
        except duckdb.Error as e:
            logger.error(f"Learning history fetch error, scoring without history: {e}")
            history_by_buyer = {}

        scores = score_universe(deal, tracker, buyers, calls_by_buyer, history_by_buyer)
        summary = summarize(scores)
        logger.info(
            f"Scored {len(scores)} buyers. Disqualified: {summary['disqualified']}, "
            f"Strong (>={STRONG_FIT_MIN}): {summary['strongFit']}"
        )

        persisted = duckdb_store.persist_scores(conn, scores)
        deal_attractiveness = scores[0].deal_attractiveness if scores else calculate_deal_attractiveness(deal)
        return DealScoringResult(deal, tracker, scores, deal_attractiveness, summary, persisted)
    finally:
        if owns_conn:
            conn.close()


def handle_score_request(request: Dict, conn: Optional[duckdb.DuckDBPyConnection] = None) -> Dict:
    """
    Score a deal from a request payload.

    Args:
        request: {"dealId": str, "buyerIds": [str] (optional)}
        conn: Optional open DuckDB connection

    Returns:
        {"success": True, "scores": [...], "dealAttractiveness": int, "summary": {...}}
        or {"success": False, "error": str}
    """
    deal_id = (request or {}).get("dealId")
    if not deal_id:
        return {"success": False, "error": "dealId is required"}

    try:
        result = score_deal(deal_id, request.get("buyerIds") or None, conn=conn)
    except ScoringError as e:
        logger.error(f"Scoring failed for deal {deal_id}: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "scores": [score.to_api_dict() for score in result.scores],
        "dealAttractiveness": result.deal_attractiveness,
        "summary": result.summary,
    }
