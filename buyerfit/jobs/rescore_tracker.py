"""Re-score every deal in a tracker."""
import argparse
import logging
import sys
from datetime import datetime

import pandas as pd

from buyerfit.errors import ScoringError
from buyerfit.score.scorer import score_deal
from buyerfit.store import duckdb_store
from buyerfit.utils.io import scores_to_frame, write_scores_csv
from buyerfit.utils.logs import setup_job_logging

logger = logging.getLogger(__name__)


def rescore_tracker(tracker_id: str, conn=None) -> pd.DataFrame:
    """
    Score every deal in a tracker and collect the ranked rows.

    A deal that fails to score is logged and skipped; the rest still run.

    Args:
        tracker_id: Tracker whose deals to score
        conn: Open DuckDB connection (opened and closed here when omitted)

    Returns:
        DataFrame of ranked scores across all deals
    """
    owns_conn = conn is None
    if owns_conn:
        conn = duckdb_store.connect()

    frames = []
    try:
        deal_ids = duckdb_store.load_deal_ids(conn, tracker_id)
        logger.info(f"Re-scoring {len(deal_ids)} deals in tracker {tracker_id}")
        for deal_id in deal_ids:
            try:
                result = score_deal(deal_id, conn=conn)
            except ScoringError as e:
                logger.error(f"Skipping deal {deal_id}: {e}")
                continue
            frames.append(scores_to_frame(result.scores))
    finally:
        if owns_conn:
            conn.close()

    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)


def main():
    """Main entry point for tracker re-scoring."""
    parser = argparse.ArgumentParser(description="Re-score every deal in a tracker")
    parser.add_argument(
        "--tracker-id",
        type=str,
        required=True,
        help="Tracker to re-score"
    )

    args = parser.parse_args()
    setup_job_logging("rescore_tracker")

    start_time = datetime.now()
    logger.info(f"Starting tracker rescore for {args.tracker_id}...")
    try:
        scores_df = rescore_tracker(args.tracker_id)
        if scores_df.empty:
            logger.warning(f"No scores produced for tracker {args.tracker_id}")
            return
        write_scores_csv(scores_df, f"tracker_scores_{args.tracker_id}")
    except Exception as e:
        logger.error(f"Error during tracker rescore: {e}", exc_info=True)
        sys.exit(1)

    total_duration = (datetime.now() - start_time).total_seconds()
    deal_count = scores_df["deal_id"].nunique()
    logger.info(
        f"Rescore complete: {len(scores_df)} scores across {deal_count} deals in {total_duration:.2f} seconds",
        extra={"duration": total_duration}
    )


if __name__ == "__main__":
    main()
