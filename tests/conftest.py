"""Shared fixtures: a throwaway DuckDB database seeded with one tracker."""
import pandas as pd
import pytest

from buyerfit.entity.records import Buyer, CallIntelligence, Deal, LearningRecord, Tracker
from buyerfit.jobs.load_universe import validate_rows
from buyerfit.store import duckdb_store

TRACKERS = [
    {"id": "t1", "industry_name": "HVAC", "geography_weight": 25, "size_weight": 25,
     "service_mix_weight": 25, "owner_goals_weight": 25},
]

DEALS = [
    {"id": "d1", "deal_name": "Lone Star Comfort", "tracker_id": "t1", "revenue": 15,
     "location_count": 5, "geography": "TX, OK", "service_mix": "hvac installation"},
    {"id": "d2", "deal_name": "Gulf Air", "tracker_id": "t1", "revenue": 3,
     "location_count": 1, "geography": "FL", "service_mix": "hvac"},
    {"id": "d3", "deal_name": "Orphan", "tracker_id": "missing", "revenue": 10},
]

BUYERS = [
    {"id": "b1", "tracker_id": "t1", "pe_firm_name": "Summit Partners", "platform_company_name": "Comfort Co",
     "min_revenue": 5, "max_revenue": 30, "revenue_sweet_spot": 15, "target_geographies": '["TX"]',
     "services_offered": "hvac heating cooling", "last_acquisition_date": "2024-06-01"},
    {"id": "b2", "tracker_id": "t1", "pe_firm_name": "Western Capital", "hq_state": "CA",
     "services_offered": "plumbing", "geographic_exclusions": "TX"},
    {"id": "b3", "tracker_id": "t1", "pe_firm_name": "Engaged Equity", "platform_company_name": "Air Pros",
     "min_revenue": 5, "max_revenue": 30, "revenue_sweet_spot": 15, "target_geographies": "TX",
     "services_offered": "hvac"},
    {"id": "b9", "tracker_id": "other", "pe_firm_name": "Elsewhere LLC"},
]

CALLS = [
    {"buyer_id": "b3", "deal_id": "d1", "call_summary": "Very interested, wants the CIM",
     "key_takeaways": "Site visit next month"},
]

LEARNING = [
    {"buyer_id": "b1", "deal_id": "d0", "rejection_categories": "timing"},
]


def seed(conn):
    """Load the sample universe into an open connection."""
    for table, model, rows in [
        ("trackers", Tracker, TRACKERS),
        ("deals", Deal, DEALS),
        ("buyers", Buyer, BUYERS),
        ("call_intelligence", CallIntelligence, CALLS),
        ("buyer_learning_history", LearningRecord, LEARNING),
    ]:
        duckdb_store.replace_rows(conn, table, validate_rows(pd.DataFrame(rows), model, table))


@pytest.fixture
def conn(tmp_path):
    """Empty database with the schema in place."""
    connection = duckdb_store.connect(str(tmp_path / "buyerfit_test.duckdb"))
    yield connection
    connection.close()


@pytest.fixture
def seeded_conn(conn):
    """Database loaded with the sample universe."""
    seed(conn)
    return conn
