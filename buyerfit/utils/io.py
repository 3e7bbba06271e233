"""File I/O utilities for CSV, XLSX, and JSON."""
import pandas as pd
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union
import logging

from buyerfit.config import settings
from buyerfit.entity.records import BuyerScore

logger = logging.getLogger(__name__)


def read_data_file(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Read CSV, XLSX, or JSON file into DataFrame.

    JSON files must hold an array of objects.

    Args:
        file_path: Path to CSV, XLSX, or JSON file

    Returns:
        DataFrame with file contents

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file format is not supported
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = file_path.suffix.lower()

    try:
        if suffix == ".csv":
            df = pd.read_csv(file_path, low_memory=False, dtype={"id": str})
        elif suffix == ".xlsx":
            df = pd.read_excel(file_path, engine="openpyxl", dtype={"id": str})
        elif suffix == ".json":
            # Keep nested lists and dicts as Python objects
            df = pd.read_json(file_path, orient="records", dtype=False)
        else:
            raise ValueError(f"Unsupported file format: {suffix}")

        logger.info(f"Loaded {len(df)} rows from {file_path}")
        return df

    except Exception as e:
        logger.error(f"Error reading {file_path}: {e}")
        raise


def scores_to_frame(scores: List[BuyerScore]) -> pd.DataFrame:
    """Flatten ranked scores into one row per buyer for export."""
    rows = []
    for rank, score in enumerate(scores, start=1):
        rows.append({
            "rank": rank,
            "deal_id": score.deal_id,
            "buyer_id": score.buyer_id,
            "buyer_name": score.buyer_name,
            "composite_score": score.composite_score,
            "size_score": score.size.score,
            "size_multiplier": score.gating.size_multiplier,
            "geography_score": score.geography.score,
            "services_score": score.services.score,
            "owner_goals_score": score.owner_goals.score,
            "thesis_bonus": score.thesis_bonus,
            "engagement_bonus": score.engagement_bonus,
            "kpi_bonus": score.kpi_bonus,
            "learning_penalty": score.learning_penalty,
            "is_disqualified": score.is_disqualified,
            "disqualification_reasons": "; ".join(score.disqualification_reasons),
            "needs_review": score.needs_review,
            "review_reason": score.review_reason or "",
            "data_completeness": score.data_completeness,
            "overall_reasoning": score.overall_reasoning,
        })
    return pd.DataFrame(rows)


def write_scores_csv(
    df: pd.DataFrame,
    prefix: str,
    out_dir: Optional[Union[str, Path]] = None
) -> Path:
    """
    Write scores to a timestamped CSV.

    Args:
        df: Rows to write (see scores_to_frame)
        prefix: File name prefix, e.g. "deal_scores"
        out_dir: Output directory (defaults to settings.out_dir)

    Returns:
        Path of the written file
    """
    out_dir = Path(out_dir or settings.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_path = out_dir / f"{prefix}_{timestamp}.csv"

    df.to_csv(output_path, index=False)
    logger.info(f"Wrote {len(df)} score rows to {output_path}")
    return output_path
