"""Rating engine, match guard and match processing services."""

from .validation import ValidationError
from .rating import update_ratings
from .status import MatchState, check_eligibility
from .ingress import MatchReference, parse_payload, parse_query
from .processor import MatchProcessor, NoOpOutcome, RatingOutcome

__all__ = [
    "ValidationError",
    "update_ratings",
    "MatchState",
    "check_eligibility",
    "MatchReference",
    "parse_payload",
    "parse_query",
    "MatchProcessor",
    "NoOpOutcome",
    "RatingOutcome",
]
