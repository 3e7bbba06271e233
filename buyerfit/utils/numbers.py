"""Numeric helpers shared by the scorers."""
import math
import re
from typing import Optional

import pandas as pd


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def clean_number(value) -> Optional[float]:
    """
    Clean a numeric field that may arrive as text ("$12.5M", "1,200", "n/a").

    Args:
        value: Raw value from a record or spreadsheet cell

    Returns:
        Float value or None if no number can be read
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if pd.isna(value):
            return None
        return float(value)

    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return None

    # Strip currency symbols, commas, unit suffixes
    text = str(value).replace(",", "")
    match = re.search(r'-?\d+(?:\.\d+)?', text)
    if match:
        return float(match.group(0))
    return None
