"""Placeholder filtering and field coercion shared by every record loader."""
import json
import logging
import re
from datetime import date, datetime
from typing import Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Values that mean "nobody filled this in"
PLACEHOLDER_VALUES = {
    "n/a", "na", "none", "null", "unknown", "tbd", "tba", "-", "--", "?",
    "not specified", "not available", "nan", "",
}


def is_missing(value) -> bool:
    """True for None, NaN/NA/NaT, and placeholder strings."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, set)):
        return False
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    if isinstance(value, str):
        return is_placeholder(value)
    return False


def is_placeholder(text: str) -> bool:
    """True if text is blank or a known placeholder such as "n/a" or "TBD"."""
    return text.strip().lower() in PLACEHOLDER_VALUES


def clean_text(value) -> Optional[str]:
    """
    Clean a free-text field.

    Args:
        value: Raw value

    Returns:
        Stripped string, or None for missing/placeholder values
    """
    if is_missing(value):
        return None
    if hasattr(value, "item"):
        value = value.item()
    text = str(value).strip()
    return None if is_placeholder(text) else text


def clean_list(value) -> List[str]:
    """
    Clean a list field.

    Accepts a list, a JSON array string, or a comma/semicolon separated
    string. Placeholder items are dropped.

    Args:
        value: Raw value

    Returns:
        List of cleaned strings (possibly empty)
    """
    if is_missing(value):
        return []

    if hasattr(value, "tolist"):
        value = value.tolist()

    if isinstance(value, str):
        text = value.strip()
        items = None
        if text.startswith("["):
            try:
                items = json.loads(text)
            except json.JSONDecodeError:
                logger.debug(f"List field is not valid JSON, splitting instead: {text[:50]}")
        if not isinstance(items, list):
            items = re.split(r'[;,]', text)
        value = items

    if not isinstance(value, (list, tuple, set)):
        value = [value]

    cleaned = []
    for item in value:
        text = clean_text(item)
        if text:
            cleaned.append(text)
    return cleaned


def clean_dict(value) -> Dict:
    """Clean a semi-structured field into a dict (JSON strings are decoded)."""
    if is_missing(value):
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            logger.debug(f"Dict field is not valid JSON: {value[:50]}")
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def clean_date(value) -> Optional[date]:
    """Coerce a date-like value (Timestamp, datetime, ISO string) to a date."""
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()
