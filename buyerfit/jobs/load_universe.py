"""Load trackers, deals, buyers, call notes, and rejection history into DuckDB."""
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Type

import duckdb
import pandas as pd
from pydantic import BaseModel, ValidationError

from buyerfit.config import settings
from buyerfit.entity.normalize import clean_text
from buyerfit.entity.records import Buyer, CallIntelligence, Deal, LearningRecord, Tracker
from buyerfit.store import duckdb_store
from buyerfit.utils.io import read_data_file
from buyerfit.utils.logs import setup_job_logging

logger = logging.getLogger(__name__)

# (table, record model) per file kind, in load order
TABLES = {
    "trackers": ("trackers", Tracker),
    "deals": ("deals", Deal),
    "buyers": ("buyers", Buyer),
    "calls": ("call_intelligence", CallIntelligence),
    "learning": ("buyer_learning_history", LearningRecord),
}


def _row_id(row: dict, index: int) -> Optional[str]:
    """Stable id for call and learning rows that don't carry one."""
    existing = clean_text(row.get("id"))
    if existing:
        return existing
    buyer_id = clean_text(row.get("buyer_id")) or "unknown"
    deal_id = clean_text(row.get("deal_id")) or "any"
    return f"{buyer_id}_{deal_id}_{index}"


def validate_rows(df: pd.DataFrame, model: Type[BaseModel], label: str) -> pd.DataFrame:
    """
    Run every row through its record model and return the cleaned rows.

    Rows that fail validation are logged and dropped.

    Args:
        df: Raw rows from a CSV/XLSX/JSON file
        model: Record model for the table
        label: Name used in log messages

    Returns:
        DataFrame of validated rows (lists and dicts kept as Python objects)
    """
    needs_generated_id = model in (CallIntelligence, LearningRecord)
    cleaned = []
    skipped = 0
    for index, row in enumerate(df.to_dict("records")):
        if needs_generated_id:
            row["id"] = _row_id(row, index)
        try:
            record = model.model_validate(row)
        except ValidationError as e:
            skipped += 1
            logger.warning(f"Skipping invalid {label} row {index}: {e.errors()[0]['msg']}")
            continue
        cleaned.append(record.model_dump(mode="json"))

    if skipped:
        logger.warning(f"Skipped {skipped} invalid {label} rows")
    return pd.DataFrame(cleaned)


def load_file(conn: duckdb.DuckDBPyConnection, kind: str, file_path: Path) -> int:
    """
    Read one input file, validate it, and replace its rows in DuckDB.

    Args:
        conn: DuckDB connection
        kind: Key of TABLES ("buyers", "deals", ...)
        file_path: CSV, XLSX, or JSON file

    Returns:
        Number of rows written
    """
    table, model = TABLES[kind]
    start = datetime.now()
    df = validate_rows(read_data_file(file_path), model, kind)
    written = duckdb_store.replace_rows(conn, table, df)
    duration = (datetime.now() - start).total_seconds()
    logger.info(f"Loaded {written} {kind} rows in {duration:.2f} seconds", extra={"duration": duration})
    return written


def main():
    """Main entry point for loading the buyer universe."""
    parser = argparse.ArgumentParser(description="Load buyer universe files into DuckDB")
    parser.add_argument(
        "--buyers",
        type=str,
        required=True,
        help="Path to buyers CSV/XLSX/JSON"
    )
    parser.add_argument(
        "--deals",
        type=str,
        required=True,
        help="Path to deals CSV/XLSX/JSON"
    )
    parser.add_argument(
        "--trackers",
        type=str,
        help="Path to trackers CSV/XLSX/JSON"
    )
    parser.add_argument(
        "--calls",
        type=str,
        help="Path to call intelligence CSV/XLSX/JSON"
    )
    parser.add_argument(
        "--learning",
        type=str,
        help="Path to buyer rejection history CSV/XLSX/JSON"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help=f"DuckDB file (default: {settings.duckdb_path})"
    )

    args = parser.parse_args()
    setup_job_logging("load_universe")

    # Validate files exist
    inputs = {kind: getattr(args, kind) for kind in TABLES if getattr(args, kind)}
    for kind, path in inputs.items():
        if not Path(path).exists():
            logger.error(f"File not found for --{kind}: {path}")
            sys.exit(1)

    start_time = datetime.now()
    logger.info(f"Starting universe load: {', '.join(inputs)}")
    try:
        conn = duckdb_store.connect(args.db_path)
        try:
            totals = {kind: load_file(conn, kind, Path(path)) for kind, path in inputs.items()}
        finally:
            conn.close()
    except Exception as e:
        logger.error(f"Error during universe load: {e}", exc_info=True)
        sys.exit(1)

    total_duration = (datetime.now() - start_time).total_seconds()
    summary = ", ".join(f"{kind}={count}" for kind, count in totals.items())
    logger.info(f"Universe load complete ({summary}) in {total_duration:.2f} seconds", extra={"duration": total_duration})


if __name__ == "__main__":
    main()
