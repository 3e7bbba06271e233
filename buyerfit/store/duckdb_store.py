"""
DuckDB persistence for trackers, deals, buyers, call notes, and scores.

List and dict fields are stored as JSON text and decoded by the record
validators on the way out. The buyer_deal_scores table carries
human-decision columns (approved/passed/hidden, override) that re-scoring
never writes.
"""
import json
import logging
from datetime import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional

import duckdb
import pandas as pd
from pydantic import ValidationError

from buyerfit.config import settings
from buyerfit.entity.records import (
    Buyer,
    BuyerScore,
    CallIntelligence,
    Deal,
    LearningRecord,
    Tracker,
)

logger = logging.getLogger(__name__)

SCHEMA: Dict[str, str] = {
    "trackers": """
        CREATE TABLE IF NOT EXISTS trackers (
            id VARCHAR PRIMARY KEY,
            industry_name VARCHAR,
            geography_weight INTEGER,
            size_weight INTEGER,
            service_mix_weight INTEGER,
            owner_goals_weight INTEGER,
            kpi_scoring_config VARCHAR
        )
    """,
    "deals": """
        CREATE TABLE IF NOT EXISTS deals (
            id VARCHAR PRIMARY KEY,
            deal_name VARCHAR,
            tracker_id VARCHAR,
            revenue DOUBLE,
            ebitda_amount DOUBLE,
            ebitda_percentage DOUBLE,
            location_count INTEGER,
            geography VARCHAR,
            headquarters VARCHAR,
            service_mix VARCHAR,
            business_model VARCHAR,
            owner_goals VARCHAR,
            industry_type VARCHAR,
            industry_kpis VARCHAR
        )
    """,
    "buyers": """
        CREATE TABLE IF NOT EXISTS buyers (
            id VARCHAR PRIMARY KEY,
            tracker_id VARCHAR,
            pe_firm_name VARCHAR,
            platform_company_name VARCHAR,
            hq_state VARCHAR,
            hq_city VARCHAR,
            target_geographies VARCHAR,
            geographic_footprint VARCHAR,
            service_regions VARCHAR,
            geographic_exclusions VARCHAR,
            min_revenue DOUBLE,
            max_revenue DOUBLE,
            revenue_sweet_spot DOUBLE,
            min_ebitda DOUBLE,
            max_ebitda DOUBLE,
            ebitda_sweet_spot DOUBLE,
            services_offered VARCHAR,
            target_services VARCHAR,
            service_mix_prefs VARCHAR,
            industry_exclusions VARCHAR,
            owner_transition_goals VARCHAR,
            owner_roll_requirement VARCHAR,
            thesis_summary VARCHAR,
            key_quotes VARCHAR,
            business_model_prefs VARCHAR,
            business_model_exclusions VARCHAR,
            acquisition_appetite VARCHAR,
            acquisition_frequency VARCHAR,
            total_acquisitions INTEGER,
            last_acquisition_date DATE,
            deal_breakers VARCHAR
        )
    """,
    "call_intelligence": """
        CREATE TABLE IF NOT EXISTS call_intelligence (
            id VARCHAR PRIMARY KEY,
            buyer_id VARCHAR,
            deal_id VARCHAR,
            call_summary VARCHAR,
            key_takeaways VARCHAR,
            extracted_data VARCHAR
        )
    """,
    "buyer_learning_history": """
        CREATE TABLE IF NOT EXISTS buyer_learning_history (
            id VARCHAR PRIMARY KEY,
            buyer_id VARCHAR,
            deal_id VARCHAR,
            rejection_categories VARCHAR
        )
    """,
    "buyer_deal_scores": """
        CREATE TABLE IF NOT EXISTS buyer_deal_scores (
            buyer_id VARCHAR NOT NULL,
            deal_id VARCHAR NOT NULL,
            composite_score INTEGER,
            geography_score INTEGER,
            service_score INTEGER,
            acquisition_score INTEGER,
            portfolio_score INTEGER,
            thesis_bonus INTEGER,
            fit_reasoning TEXT,
            data_completeness VARCHAR,
            scored_at TIMESTAMP,
            is_approved BOOLEAN DEFAULT FALSE,
            is_passed BOOLEAN DEFAULT FALSE,
            is_hidden BOOLEAN DEFAULT FALSE,
            pass_reason VARCHAR,
            override_score INTEGER,
            PRIMARY KEY (buyer_id, deal_id)
        )
    """,
}

# Columns written by scoring; everything else in buyer_deal_scores belongs to people
SCORE_COLUMNS = [
    "composite_score",
    "geography_score",
    "service_score",
    "acquisition_score",
    "portfolio_score",
    "thesis_bonus",
    "fit_reasoning",
    "data_completeness",
    "scored_at",
]

UPSERT_SCORE_SQL = f"""
    INSERT INTO buyer_deal_scores (buyer_id, deal_id, {", ".join(SCORE_COLUMNS)})
    VALUES ({", ".join(["?"] * (len(SCORE_COLUMNS) + 2))})
    ON CONFLICT (buyer_id, deal_id) DO UPDATE SET
        {", ".join(f"{column} = EXCLUDED.{column}" for column in SCORE_COLUMNS)}
"""


class PersistResult(NamedTuple):
    """Outcome of one score upsert."""
    buyer_id: str
    ok: bool
    error: Optional[str] = None


def connect(db_path: Optional[str] = None) -> duckdb.DuckDBPyConnection:
    """
    Open the DuckDB database and make sure every table exists.

    Args:
        db_path: Database file (defaults to settings.duckdb_path)

    Returns:
        Open connection
    """
    conn = duckdb.connect(db_path or settings.duckdb_path)
    ensure_schema(conn)
    return conn


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create all tables if they don't exist (idempotent)."""
    for ddl in SCHEMA.values():
        conn.execute(ddl)


def table_columns(conn: duckdb.DuckDBPyConnection, table: str) -> List[str]:
    """Column names of a table, in order."""
    return [row[1] for row in conn.execute(f"PRAGMA table_info('{table}')").fetchall()]


def _records(df: pd.DataFrame, model, label: str) -> list:
    records = []
    for row in df.to_dict("records"):
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {label} row {row.get('id')}: {e}")
    return records


def load_deal(conn: duckdb.DuckDBPyConnection, deal_id: str) -> Optional[Deal]:
    """Fetch one deal, or None if it doesn't exist."""
    df = conn.execute("SELECT * FROM deals WHERE id = ?", [deal_id]).df()
    if df.empty:
        return None
    return Deal.model_validate(df.to_dict("records")[0])


def load_tracker(conn: duckdb.DuckDBPyConnection, tracker_id: str) -> Optional[Tracker]:
    """Fetch one tracker, or None if it doesn't exist."""
    df = conn.execute("SELECT * FROM trackers WHERE id = ?", [tracker_id]).df()
    if df.empty:
        return None
    return Tracker.model_validate(df.to_dict("records")[0])


def load_buyers(
    conn: duckdb.DuckDBPyConnection,
    tracker_id: str,
    buyer_ids: Optional[List[str]] = None
) -> List[Buyer]:
    """
    Fetch the tracker's buyer universe.

    Args:
        conn: DuckDB connection
        tracker_id: Tracker whose buyers to load
        buyer_ids: Optional subset of buyer ids

    Returns:
        List of Buyer records
    """
    query = "SELECT * FROM buyers WHERE tracker_id = ?"
    params: list = [tracker_id]
    if buyer_ids:
        query += f" AND id IN ({', '.join(['?'] * len(buyer_ids))})"
        params.extend(buyer_ids)
    df = conn.execute(query + " ORDER BY id", params).df()
    return _records(df, Buyer, "buyer")


def load_call_intelligence(
    conn: duckdb.DuckDBPyConnection,
    deal_id: str,
    buyer_ids: Iterable[str]
) -> Dict[str, List[CallIntelligence]]:
    """Call notes for a deal, grouped by buyer id."""
    buyer_ids = list(buyer_ids)
    if not buyer_ids:
        return {}
    df = conn.execute(
        f"SELECT * FROM call_intelligence WHERE deal_id = ? AND buyer_id IN "
        f"({', '.join(['?'] * len(buyer_ids))}) ORDER BY id",
        [deal_id] + buyer_ids
    ).df()

    grouped: Dict[str, List[CallIntelligence]] = {}
    for call in _records(df, CallIntelligence, "call"):
        grouped.setdefault(call.buyer_id, []).append(call)
    return grouped


def load_learning_history(
    conn: duckdb.DuckDBPyConnection,
    buyer_ids: Iterable[str]
) -> Dict[str, List[LearningRecord]]:
    """Rejection history grouped by buyer id."""
    buyer_ids = list(buyer_ids)
    if not buyer_ids:
        return {}
    df = conn.execute(
        f"SELECT * FROM buyer_learning_history WHERE buyer_id IN "
        f"({', '.join(['?'] * len(buyer_ids))}) ORDER BY id",
        buyer_ids
    ).df()

    grouped: Dict[str, List[LearningRecord]] = {}
    for record in _records(df, LearningRecord, "learning"):
        grouped.setdefault(record.buyer_id, []).append(record)
    return grouped


def load_deal_ids(conn: duckdb.DuckDBPyConnection, tracker_id: str) -> List[str]:
    """Ids of every deal in a tracker."""
    rows = conn.execute("SELECT id FROM deals WHERE tracker_id = ? ORDER BY id", [tracker_id]).fetchall()
    return [row[0] for row in rows]


def upsert_score(conn: duckdb.DuckDBPyConnection, score: BuyerScore, scored_at: datetime) -> None:
    """Insert or overwrite the scoring columns of one (buyer, deal) row."""
    row = score.to_row()
    row["scored_at"] = scored_at
    conn.execute(
        UPSERT_SCORE_SQL,
        [row["buyer_id"], row["deal_id"]] + [row[column] for column in SCORE_COLUMNS]
    )


def persist_scores(
    conn: duckdb.DuckDBPyConnection,
    scores: List[BuyerScore],
    scored_at: Optional[datetime] = None
) -> List[PersistResult]:
    """
    Upsert every score, continuing past individual failures.

    Args:
        conn: DuckDB connection
        scores: Scores to persist
        scored_at: Timestamp written to every row (defaults to now)

    Returns:
        One PersistResult per score, in input order
    """
    scored_at = scored_at or datetime.now()
    results = []
    for score in scores:
        try:
            upsert_score(conn, score, scored_at)
            results.append(PersistResult(score.buyer_id, True))
        except duckdb.Error as e:
            logger.error(f"Failed to upsert score for buyer {score.buyer_id}: {e}")
            results.append(PersistResult(score.buyer_id, False, str(e)))

    failed = sum(1 for result in results if not result.ok)
    logger.info(f"Persisted {len(results) - failed}/{len(results)} scores to DuckDB")
    return results


def load_scores(conn: duckdb.DuckDBPyConnection, deal_id: str) -> pd.DataFrame:
    """All persisted score rows for a deal."""
    return conn.execute(
        "SELECT * FROM buyer_deal_scores WHERE deal_id = ? ORDER BY composite_score DESC, buyer_id",
        [deal_id]
    ).df()


def _to_storage(value):
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    if hasattr(value, "tolist") and not isinstance(value, str):
        return json.dumps(value.tolist())
    return value


def replace_rows(conn: duckdb.DuckDBPyConnection, table: str, df: pd.DataFrame) -> int:
    """
    Load a DataFrame into a table, replacing existing rows with the same id.

    Columns the table doesn't have are dropped; missing ones are NULL.

    Args:
        conn: DuckDB connection
        table: Target table (must have an id primary key)
        df: Rows to load

    Returns:
        Number of rows written
    """
    if df.empty:
        return 0

    columns = table_columns(conn, table)
    unknown = [column for column in df.columns if column not in columns]
    if unknown:
        logger.warning(f"Ignoring columns not in {table}: {unknown}")

    load_df = df.reindex(columns=columns)
    for column in load_df.columns:
        if load_df[column].dtype == object:
            load_df[column] = load_df[column].map(_to_storage)
    load_df = load_df.astype(object).where(pd.notna(load_df), None)

    conn.register("load_df", load_df)
    try:
        conn.execute(f"INSERT OR REPLACE INTO {table} SELECT {', '.join(columns)} FROM load_df")
    finally:
        conn.unregister("load_df")

    logger.info(f"Loaded {len(load_df)} rows into {table}")
    return len(load_df)
