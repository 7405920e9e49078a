from __future__ import annotations

import enum
from dataclasses import dataclass

from ..config import StatusNames
from ..repositories.base import MatchRecord


class MatchState(str, enum.Enum):
    OPEN = "open"
    PROCESSED = "processed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    state: MatchState
    status_name: str | None


def _normalize(name: str | None) -> str:
    return (name or "").strip().casefold()


def resolve_status(primary: str | None, legacy: str | None) -> str | None:
    """Return the primary status when it is set, otherwise the legacy one."""

    if primary is not None and primary.strip():
        return primary
    if legacy is not None and legacy.strip():
        return legacy
    return None


def classify_status(name: str | None, statuses: StatusNames) -> MatchState:
    normalized = _normalize(name)
    if not normalized:
        return MatchState.UNKNOWN
    if normalized == _normalize(statuses.processed):
        return MatchState.PROCESSED
    if normalized in {_normalize(s) for s in statuses.open}:
        return MatchState.OPEN
    return MatchState.UNKNOWN


def check_eligibility(record: MatchRecord, statuses: StatusNames) -> Eligibility:
    """Decide whether ``record`` should be rated now.

    Only open matches are eligible. A processed match (a replayed webhook) and
    a match whose status is unset or unrecognised are both reported as
    ineligible; neither is an error.
    """

    name = resolve_status(record.status, record.legacy_status)
    state = classify_status(name, statuses)
    return Eligibility(eligible=state is MatchState.OPEN, state=state, status_name=name)
