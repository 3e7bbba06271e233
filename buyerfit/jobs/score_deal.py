"""Score one deal against its tracker's buyer universe."""
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from buyerfit.score.scorer import score_deal
from buyerfit.utils.io import scores_to_frame, write_scores_csv
from buyerfit.utils.logs import setup_job_logging

logger = logging.getLogger(__name__)


def format_summary(deal_name: str, deal_attractiveness: int, summary: dict) -> str:
    """One-screen text summary of a scored deal."""
    lines = [
        f"Deal: {deal_name} (attractiveness {deal_attractiveness})",
        f"  Buyers scored:     {summary['total']}",
        f"  Strong fit:        {summary['strongFit']}",
        f"  Moderate fit:      {summary['moderateFit']}",
        f"  Long shot:         {summary['longShot']}",
        f"  Disqualified:      {summary['disqualified']}",
        f"  With engagement:   {summary['withEngagement']}",
        f"  Needs review:      {summary['needsReview']}",
        f"  Low completeness:  {summary['lowDataCompleteness']}",
    ]
    return "\n".join(lines)


def main():
    """Main entry point for scoring a deal."""
    parser = argparse.ArgumentParser(description="Score a deal against its buyer universe")
    parser.add_argument(
        "--deal-id",
        type=str,
        required=True,
        help="Deal to score"
    )
    parser.add_argument(
        "--buyer-ids",
        type=str,
        help="Comma-separated buyer ids to score (default: every buyer in the tracker)"
    )
    parser.add_argument(
        "--json-out",
        type=str,
        help="Also write the ranked scores as JSON to this path"
    )

    args = parser.parse_args()
    setup_job_logging("score_deal")

    buyer_ids = None
    if args.buyer_ids:
        buyer_ids = [b.strip() for b in args.buyer_ids.split(",") if b.strip()]
        logger.info(f"Restricting to {len(buyer_ids)} buyers from CLI")

    start_time = datetime.now()
    try:
        result = score_deal(args.deal_id, buyer_ids)
        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Scored deal {args.deal_id} in {duration:.2f} seconds", extra={"duration": duration})

        write_scores_csv(scores_to_frame(result.scores), f"deal_scores_{args.deal_id}")

        if args.json_out:
            json_path = Path(args.json_out)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            payload = {
                "dealId": args.deal_id,
                "dealAttractiveness": result.deal_attractiveness,
                "summary": result.summary,
                "scores": [score.to_api_dict() for score in result.scores],
            }
            json_path.write_text(json.dumps(payload, indent=2))
            logger.info(f"Wrote JSON scores to {json_path}")

        failed = [r.buyer_id for r in result.persisted if not r.ok]
        if failed:
            logger.warning(f"{len(failed)} scores failed to persist: {', '.join(failed)}")

        print(format_summary(result.deal.deal_name or result.deal.id, result.deal_attractiveness, result.summary))
    except Exception as e:
        logger.error(f"Error scoring deal {args.deal_id}: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
