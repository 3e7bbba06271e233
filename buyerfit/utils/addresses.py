"""Headquarters/location parsing utilities."""
import logging
import re
from typing import Optional

import usaddress

from buyerfit.utils.geography import normalize_state

logger = logging.getLogger(__name__)


def parse_address(address: str) -> dict:
    """
    Parse address using usaddress library.

    Args:
        address: Address string to parse

    Returns:
        Dict with parsed components (empty if the tagger can't label it)
    """
    if not address:
        return {}
    try:
        parsed, _ = usaddress.tag(address)
        return dict(parsed)
    except usaddress.RepeatedLabelError as e:
        logger.debug(f"Could not tag address '{address}': {e}")
        return {}


def extract_state_from_location(location: Optional[str]) -> str:
    """
    Pull the state out of a "City, ST" or "City, State" string.

    Args:
        location: Headquarters or city text, e.g. "Tampa, FL" or "Boise, Idaho"

    Returns:
        Two-letter state code or ""
    """
    if not location or not isinstance(location, str):
        return ""

    state = normalize_state(parse_address(location).get("StateName", ""))
    if state:
        return state

    # Fallback: whatever follows the last comma, minus any ZIP
    match = re.search(r',\s*([A-Za-z][A-Za-z\.\s]*?)\s*(\d{5}(-\d{4})?)?\s*$', location)
    if match:
        return normalize_state(match.group(1))

    return normalize_state(location)
