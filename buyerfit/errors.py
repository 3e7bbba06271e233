"""Error hierarchy for the scoring pipeline.

Only whole-request failures are raised. Missing per-field data is never an
error (scorers fall back to neutral scores) and per-row persistence failures
are captured as ``PersistResult`` values rather than raised.
"""


class ScoringError(Exception):
    """Base error for buyer-deal scoring."""
    pass


class NotFoundError(ScoringError):
    """Deal or tracker does not exist; nothing is scored."""
    pass


class DataFetchError(ScoringError):
    """A required read (the buyer universe) failed."""
    pass
