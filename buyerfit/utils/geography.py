"""US state reference data: names, adjacency, and macro-regions."""
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Set

STATE_NAMES: Dict[str, str] = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA", "west virginia": "WV",
    "wisconsin": "WI", "wyoming": "WY", "district of columbia": "DC",
}

# Common misspellings seen in hand-entered buyer and deal data
STATE_MISSPELLINGS: Dict[str, str] = {
    "conneticut": "CT", "conecticut": "CT", "conneticutt": "CT",
    "massachusets": "MA", "massachussetts": "MA", "massachucetts": "MA",
    "pennsilvania": "PA", "pensylvania": "PA",
    "tennesee": "TN", "tennesse": "TN",
    "missisipi": "MS", "mississipi": "MS", "missisippi": "MS",
    "louisianna": "LA", "lousiana": "LA",
    "virgina": "VA",
    "north carolia": "NC", "n carolina": "NC", "n. carolina": "NC",
    "south carolia": "SC", "s carolina": "SC", "s. carolina": "SC",
    "west virgina": "WV", "w virginia": "WV", "w. virginia": "WV",
    "new jersery": "NJ",
}

VALID_STATES: Set[str] = set(STATE_NAMES.values())

# Bordering states, hand-authored. One hop is roughly 100 miles of travel.
STATE_ADJACENCY: Dict[str, List[str]] = {
    "AL": ["FL", "GA", "MS", "TN"],
    "AK": [],
    "AZ": ["CA", "CO", "NM", "NV", "UT"],
    "AR": ["LA", "MO", "MS", "OK", "TN", "TX"],
    "CA": ["AZ", "NV", "OR"],
    "CO": ["AZ", "KS", "NE", "NM", "OK", "UT", "WY"],
    "CT": ["MA", "NY", "RI"],
    "DC": ["MD", "VA"],
    "DE": ["MD", "NJ", "PA"],
    "FL": ["AL", "GA"],
    "GA": ["AL", "FL", "NC", "SC", "TN"],
    "HI": [],
    "ID": ["MT", "NV", "OR", "UT", "WA", "WY"],
    "IL": ["IA", "IN", "KY", "MO", "WI"],
    "IN": ["IL", "KY", "MI", "OH"],
    "IA": ["IL", "MN", "MO", "NE", "SD", "WI"],
    "KS": ["CO", "MO", "NE", "OK"],
    "KY": ["IL", "IN", "MO", "OH", "TN", "VA", "WV"],
    "LA": ["AR", "MS", "TX"],
    "ME": ["NH"],
    "MD": ["DE", "PA", "VA", "WV", "DC"],
    "MA": ["CT", "NH", "NY", "RI", "VT"],
    "MI": ["IN", "OH", "WI"],
    "MN": ["IA", "ND", "SD", "WI"],
    "MS": ["AL", "AR", "LA", "TN"],
    "MO": ["AR", "IA", "IL", "KS", "KY", "NE", "OK", "TN"],
    "MT": ["ID", "ND", "SD", "WY"],
    "NE": ["CO", "IA", "KS", "MO", "SD", "WY"],
    "NV": ["AZ", "CA", "ID", "OR", "UT"],
    "NH": ["MA", "ME", "VT"],
    "NJ": ["DE", "NY", "PA"],
    "NM": ["AZ", "CO", "OK", "TX", "UT"],
    "NY": ["CT", "MA", "NJ", "PA", "VT"],
    "NC": ["GA", "SC", "TN", "VA"],
    "ND": ["MN", "MT", "SD"],
    "OH": ["IN", "KY", "MI", "PA", "WV"],
    "OK": ["AR", "CO", "KS", "MO", "NM", "TX"],
    "OR": ["CA", "ID", "NV", "WA"],
    "PA": ["DE", "MD", "NJ", "NY", "OH", "WV"],
    "RI": ["CT", "MA"],
    "SC": ["GA", "NC"],
    "SD": ["IA", "MN", "MT", "ND", "NE", "WY"],
    "TN": ["AL", "AR", "GA", "KY", "MO", "MS", "NC", "VA"],
    "TX": ["AR", "LA", "NM", "OK"],
    "UT": ["AZ", "CO", "ID", "NM", "NV", "WY"],
    "VT": ["MA", "NH", "NY"],
    "VA": ["KY", "MD", "NC", "TN", "WV", "DC"],
    "WA": ["ID", "OR"],
    "WV": ["KY", "MD", "OH", "PA", "VA"],
    "WI": ["IA", "IL", "MI", "MN"],
    "WY": ["CO", "ID", "MT", "NE", "SD", "UT"],
}

# Order matters: a state listed in two regions belongs to the first one
REGIONS: Dict[str, List[str]] = {
    "SOUTHWEST": ["AZ", "NM", "TX", "OK", "CO", "NV", "UT"],
    "SOUTHEAST": ["FL", "GA", "AL", "SC", "NC", "TN", "MS", "LA", "AR", "KY", "VA", "WV"],
    "NORTHEAST": ["NY", "NJ", "PA", "CT", "MA", "RI", "VT", "NH", "ME", "MD", "DE", "DC"],
    "MIDWEST": ["IL", "IN", "OH", "MI", "WI", "MN", "IA", "MO", "KS", "NE", "SD", "ND"],
    "PACIFIC": ["CA", "OR", "WA", "AK", "HI"],
    "MOUNTAIN": ["MT", "ID", "WY", "CO", "UT", "NV"],
}

# Longest names first so "west virginia" is consumed before "virginia"
_NAME_PATTERNS = [
    (re.compile(r'\b' + re.escape(name) + r'\b'), code)
    for name, code in sorted(
        list(STATE_NAMES.items()) + list(STATE_MISSPELLINGS.items()),
        key=lambda item: len(item[0]),
        reverse=True
    )
]
_CODE_PATTERN = re.compile(r'\b(' + '|'.join(sorted(VALID_STATES)) + r')\b')
# "Dallas, tx" or "Tulsa, ok 74103": a lower-case code is only trusted at the end of an address
_TRAILING_CODE_PATTERN = re.compile(r",\s*([A-Za-z]{2})(?=\s*(?:$|[,;/)]|\d))")


def normalize_state(text: Optional[str]) -> str:
    """
    Normalize a single state value to its two-letter code.

    Args:
        text: State code, full name, or common misspelling

    Returns:
        Two-letter code, or "" if the value is not a recognizable state
    """
    if not text or not isinstance(text, str):
        return ""

    cleaned = re.sub(r'\s+', ' ', text.strip().rstrip(".")).lower()
    if not cleaned:
        return ""

    if cleaned.upper() in VALID_STATES:
        return cleaned.upper()
    if cleaned in STATE_NAMES:
        return STATE_NAMES[cleaned]
    if cleaned in STATE_MISSPELLINGS:
        return STATE_MISSPELLINGS[cleaned]
    return ""


def extract_states_from_text(text: Optional[str]) -> Set[str]:
    """
    Find every state mentioned in free text.

    Full names are matched case-insensitively on word boundaries. Two-letter
    codes are matched in upper case anywhere, and in any case only in the
    "City, st" position, so prose like "in" or "me" is not read as a state.

    Args:
        text: Free text such as "Dallas, TX and the greater Oklahoma area"

    Returns:
        Set of state codes
    """
    if not text or not isinstance(text, str):
        return set()

    states = set()
    remaining = text.lower()
    for pattern, code in _NAME_PATTERNS:
        if pattern.search(remaining):
            states.add(code)
            # Blank out the match so shorter names can't re-match inside it
            remaining = pattern.sub(" ", remaining)

    for match in _CODE_PATTERN.finditer(text):
        states.add(match.group(1))
    for match in _TRAILING_CODE_PATTERN.finditer(text):
        code = match.group(1).upper()
        if code in VALID_STATES:
            states.add(code)

    return states


def extract_states_from_geography(items: Optional[Iterable[str]]) -> Set[str]:
    """
    Extract states from a list of free-text geography entries.

    Each entry is scanned as text first and falls back to normalize_state
    when the scan finds nothing (e.g. a lower-case "tx").

    Args:
        items: Geography entries

    Returns:
        Set of state codes
    """
    states = set()
    if not items:
        return states
    if isinstance(items, str):
        items = [items]

    for item in items:
        found = extract_states_from_text(item)
        if not found:
            code = normalize_state(item)
            if code:
                found = {code}
        states.update(found)
    return states


def get_adjacent_states(code: str) -> List[str]:
    """Return the states bordering code (empty for unknown codes)."""
    return list(STATE_ADJACENCY.get(code, []))


def expand_states(codes: Iterable[str], hops: int = 1) -> Set[str]:
    """
    Expand a set of states by N adjacency hops (BFS).

    Args:
        codes: Starting state codes
        hops: Number of border crossings; 1 is ~100 miles, 2 is ~250 miles

    Returns:
        Starting states plus every state reachable within the hop count
    """
    expanded = {code for code in codes if code in VALID_STATES}
    frontier = set(expanded)
    for _ in range(max(hops, 0)):
        next_frontier = set()
        for code in frontier:
            for neighbor in STATE_ADJACENCY.get(code, []):
                if neighbor not in expanded:
                    next_frontier.add(neighbor)
        expanded |= next_frontier
        frontier = next_frontier
    return expanded


def get_state_region(code: str) -> Optional[str]:
    """Return the first macro-region containing code, or None."""
    for region, states in REGIONS.items():
        if code in states:
            return region
    return None


def are_states_in_same_region(state_a: str, state_b: str) -> bool:
    """True when both states resolve to the same macro-region."""
    region_a = get_state_region(state_a)
    return region_a is not None and region_a == get_state_region(state_b)


# Region phrases a buyer thesis uses to state where it will (and won't) buy
THESIS_REGION_PATTERNS = [
    (re.compile(r'pacific\s+northwest', re.I), "PACIFIC_NORTHWEST", ["WA", "OR", "ID"]),
    (re.compile(r'\bpnw\b', re.I), "PACIFIC_NORTHWEST", ["WA", "OR", "ID"]),
    (re.compile(r'southeast\b', re.I), "SOUTHEAST", REGIONS["SOUTHEAST"]),
    (re.compile(r'northeast\b', re.I), "NORTHEAST", REGIONS["NORTHEAST"]),
    (re.compile(r'midwest\b', re.I), "MIDWEST", REGIONS["MIDWEST"]),
    (re.compile(r'southwest\b', re.I), "SOUTHWEST", REGIONS["SOUTHWEST"]),
    (re.compile(r'mountain\s+west', re.I), "MOUNTAIN", REGIONS["MOUNTAIN"]),
    (re.compile(r'\btexas\b', re.I), "TEXAS", ["TX"]),
    (re.compile(r'\bflorida\b', re.I), "FLORIDA", ["FL"]),
    (re.compile(r'\bcalifornia\b', re.I), "CALIFORNIA", ["CA"]),
    (re.compile(r'sun\s*belt', re.I), "SUNBELT", ["FL", "GA", "TX", "AZ", "NV", "CA"]),
    (re.compile(r'rust\s*belt', re.I), "RUSTBELT", ["PA", "OH", "MI", "IN", "IL", "WI"]),
    (re.compile(r'new\s+england', re.I), "NEW_ENGLAND", ["MA", "CT", "RI", "VT", "NH", "ME"]),
    (re.compile(r'mid[- ]?atlantic', re.I), "MID_ATLANTIC", ["NY", "NJ", "PA", "MD", "DE", "VA"]),
    (re.compile(r'great\s+lakes', re.I), "GREAT_LAKES", ["MI", "WI", "MN", "IL", "IN", "OH"]),
]

HARD_CONSTRAINT_PHRASES = [
    "focused on", "only in", "exclusively", "limited to", "regional platform",
    "building in", "consolidating in", "based in", "targeting",
]

SOFT_CONSTRAINT_PHRASES = [
    "primarily", "mainly", "prefer", "preference for", "looking at", "interested in",
]


class ThesisGeography(NamedTuple):
    """Geographic focus stated in a buyer's thesis or quotes."""
    regions: List[str]
    states: List[str]
    strength: str
    evidence: Optional[str]

    @property
    def has_focus(self) -> bool:
        return bool(self.states)

    def conflicts_with(self, deal_states: Iterable[str]) -> bool:
        """True when the deal has known states and none fall inside the focus."""
        deal_states = set(deal_states)
        return self.has_focus and bool(deal_states) and not deal_states & set(self.states)


def extract_thesis_geographic_constraints(
    thesis: Optional[str],
    key_quotes: Optional[Iterable[str]] = None
) -> ThesisGeography:
    """
    Read a regional focus out of a buyer's thesis summary and key quotes.

    Region phrases ("Pacific Northwest", "Sun Belt") and full state names both
    count. A focus is hard when the text says so ("focused on", "exclusively")
    or names a region without hedging, and soft when it hedges ("primarily",
    "prefer").

    Args:
        thesis: Buyer thesis summary
        key_quotes: Quotes captured from buyer conversations

    Returns:
        ThesisGeography; strength is "none" when no focus is stated
    """
    text = " ".join([thesis or ""] + list(key_quotes or []))
    if not text.strip():
        return ThesisGeography([], [], "none", None)

    regions: List[str] = []
    states: List[str] = []
    evidence = None
    for pattern, region, region_states in THESIS_REGION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        evidence = match.group(0)
        if region not in regions:
            regions.append(region)
        for state in region_states:
            if state not in states:
                states.append(state)

    lower = text.lower()
    for pattern, code in _NAME_PATTERNS:
        if pattern.search(lower):
            if code not in states:
                states.append(code)
            lower = pattern.sub(" ", lower)

    if not states:
        return ThesisGeography([], [], "none", None)

    # Naming a region without any qualifier counts as a hard focus
    text_lower = text.lower()
    hedged = any(phrase in text_lower for phrase in SOFT_CONSTRAINT_PHRASES)
    firm = any(phrase in text_lower for phrase in HARD_CONSTRAINT_PHRASES)
    strength = "soft" if hedged and not firm else "hard"
    return ThesisGeography(regions, states, strength, evidence)
