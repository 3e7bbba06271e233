"""Scoring rules and constants."""
from typing import Dict, List, Tuple

# Fit bands used for summaries and overall reasoning
STRONG_FIT_MIN = 75
MODERATE_FIT_MIN = 50
MAX_SCORE = 100

# Composite
THESIS_BONUS_WEIGHT = 0.3
MAX_THESIS_BONUS = 30
ENGAGEMENT_BONUS_RATE = 0.15
MAX_ENGAGEMENT_BONUS = 15
MAX_LEARNING_PENALTY = 25
# Multiplier below which size dominates the overall reasoning
SIZE_CHALLENGE_MULTIPLIER = 0.7
SIZE_LIMITING_MULTIPLIER = 0.9
LEARNING_NOTE_MIN_PENALTY = 10

# Review band
REVIEW_LOW = 40
REVIEW_HIGH = 60

# Size gates
HARD_MIN_RATIO = 0.7          # below 70% of min revenue: disqualified
HARD_MAX_RATIO = 1.5          # above 150% of max revenue: disqualified
SWEET_SPOT_BAND = (0.8, 1.2)
LOW_END_RATIO = 1.3
NATIONAL_SMALL_DEAL_RATIO = 0.6
NATIONAL_PLATFORM_MIN_ACQUISITIONS = 5
NATIONAL_PLATFORM_MIN_STATES = 3

# Geography
ENGAGEMENT_GEO_MULTIPLIER = 1.2
MULTI_LOCATION_BONUS = 10

# Engagement signal families: substring patterns searched in lower-cased call notes
ENGAGEMENT_PATTERNS: Dict[str, List[str]] = {
    "site_visit": [
        "site visit", "come see", "visit the", "tour", "see the facilities",
        "walk through", "come out", "fly out", "love to come", "want to come",
        "see your shop", "see the shop", "visit your",
    ],
    "financials": [
        "financial", "financials", "updated numbers", "p&l", "profit and loss",
        "ebitda", "revenue", "send me the", "get me the", "updated information",
        "cim", "confidential information", "teaser", "deck", "materials",
    ],
    "ceo": [
        "ceo", "partner", "managing director", "founder", "owner", "principal",
        "decision maker", "managing partner", "senior partner",
        "investment committee", "deal team lead",
    ],
    "personal": [
        "wife", "husband", "family", "grew up", "from there", "know the area",
        "personal connection", "familiar with", "spent time", "used to live",
        "my dad", "my mom", "my brother", "my sister", "in-laws", "hometown",
    ],
    "interest": [
        "very interested", "love this", "perfect fit", "exactly what",
        "been looking for", "great opportunity", "move quickly", "priority",
        "top of our list", "excited about", "definitely interested",
        "want to pursue", "strong interest",
    ],
}

# Signal label and points per family
ENGAGEMENT_POINTS: Dict[str, Tuple[str, int]] = {
    "site_visit": ("Site visit requested", 25),
    "financials": ("Financials/materials requested", 20),
    "ceo": ("Senior leadership involved", 15),
    "personal": ("Personal connection to area", 15),
    "interest": ("Strong interest expressed", 20),
}
CALLS_ON_RECORD_POINTS = 10

# Curated service vocabulary, matched as substrings
SERVICE_KEYWORDS: List[str] = [
    "hvac", "heating", "cooling", "air conditioning", "plumbing", "electrical",
    "roofing", "landscaping", "lawn care", "pest control", "cleaning", "janitorial",
    "restoration", "remediation", "water damage", "fire damage", "mold",
    "construction", "remodeling", "renovation", "painting", "flooring",
    "security", "alarm", "surveillance", "fire protection", "sprinkler",
    "it services", "managed services", "cybersecurity", "software", "consulting",
    "staffing", "recruiting", "hr", "payroll", "peo",
    "accounting", "bookkeeping", "tax", "audit", "financial",
    "marketing", "advertising", "digital", "seo", "web design",
    "healthcare", "medical", "dental", "veterinary", "pharmacy",
    "auto", "automotive", "collision", "body shop", "mechanic", "auto body",
    "insurance", "claims", "adjusting", "underwriting",
    "logistics", "trucking", "freight", "shipping", "warehousing",
    "manufacturing", "fabrication", "machining", "assembly",
    "food service", "catering", "restaurant", "hospitality",
    "education", "training", "tutoring", "childcare",
    "real estate", "property management", "brokerage",
    "legal", "law firm", "compliance", "regulatory",
    "engineering", "architecture", "surveying", "environmental",
    "residential", "commercial", "industrial", "government", "municipal",
    "installation", "maintenance", "repair", "service",
    "b2b", "b2c", "enterprise", "smb", "consumer",
    # Collision repair
    "ppg", "paint", "frame", "adas", "calibration", "i-car", "oem", "certified",
    "dent", "bodywork", "refinish", "estimating", "appraisal",
]

# Owner goals: (deal-side patterns, buyer-side patterns)
SUCCESSION_PATTERNS = (
    [
        "succession", "trusted employee", "right hand", "hand off", "groom",
        "if i sell", "when i sell", "gets 10%", "gets a piece", "been with me",
        "my guy", "key person", "general manager", "gm", "operations manager",
        "second in command", "number two", "years of experience",
    ],
    [
        "management", "retain", "keep management", "existing team", "continuity",
        "operational expertise", "lean on", "local leadership", "gm stays",
        "management stays", "keep the team",
    ],
)
EMPLOYEE_PATTERNS = (
    [
        "my people", "without them", "employees", "team", "staff", "family",
        "treat them well", "take care of", "happy employees", "good culture",
        "not corporate", "employee retention", "loyalty", "tenure",
    ],
    [
        "retain", "keep", "employees", "team", "culture", "people first",
        "investment in people", "employee focused", "training", "development",
    ],
)
AUTONOMY_PATTERNS = (
    [
        "culture", "autonomy", "independent", "not like caliber", "not like gerber",
        "not corporate", "keep the name", "brand", "reputation", "quality",
        "way we do things", "our approach", "local feel", "community",
    ],
    [
        "autonomy", "independent", "decentralized", "local brand", "entrepreneur",
        "owner operator", "not a consolidator", "platform approach", "support not control",
    ],
)
INTEGRATION_PATTERN = "integration"

DEAL_STAY_LONG = ["stay on", "remain", "continue", "long transition", "help grow", "advise"]
DEAL_STAY_SHORT = ["short transition", "quick exit", "move on", "retire", "step away", "done"]
BUYER_NEEDS_STAY = ["stay", "remain", "required", "management stays", "need owner"]
BUYER_FLEXIBLE_STAY = ["flexible", "optional", "negotiate", "discuss"]

DEAL_ALL_CASH = ["all cash", "cash out", "full exit", "clean break"]
DEAL_ROLLOVER = ["rollover", "equity", "partnership", "upside", "second bite"]
DEAL_EARNOUT = ["earnout", "earn-out", "performance", "milestone"]
BUYER_ROLLOVER = ["rollover", "equity", "partnership", "alignment", "skin in the game"]
BUYER_EARNOUT = ["earnout", "earn-out", "performance based"]

# Owner goals point deltas
OWNER_GOAL_POINTS: Dict[str, int] = {
    "SUCCESSION_PAIRED": 20,
    "SUCCESSION_DEAL_ONLY": 10,
    "EMPLOYEES_PAIRED": 15,
    "EMPLOYEES_DEAL_ONLY": 5,
    "AUTONOMY_PAIRED": 15,
    "AUTONOMY_VS_INTEGRATION": -10,
    "STAY_ALIGNED": 15,
    "EXIT_FLEXIBLE": 10,
    "EXIT_VS_STAY": -15,
    "ROLLOVER_ALIGNED": 15,
    "CASH_VS_ROLLOVER": -10,
    "EARNOUT_ALIGNED": 10,
}
OWNER_GOALS_FLOOR = 20

# Learning penalty from rejection history: category -> (min count, points)
LEARNING_RULES: Dict[str, Tuple[int, int]] = {
    "size_too_small": (2, 10),
    "geography": (2, 8),
    "services": (2, 8),
    "timing": (3, 5),
    "portfolio_conflict": (1, 3),
}
# size_too_small only applies to deals under this revenue (millions)
SMALL_DEAL_REVENUE = 5

# Data completeness checklist points
BUYER_COMPLETENESS_POINTS = 10
DEAL_COMPLETENESS_POINTS = 5
HIGH_COMPLETENESS_PCT = 70
MEDIUM_COMPLETENESS_PCT = 40
