#!/usr/bin/env python3
"""Admin helper to rate matches by id without going through the webhook."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict

from elo_webhook.config import load_settings
from elo_webhook.exceptions import DomainException
from elo_webhook.repositories import create_repository
from elo_webhook.services.processor import MatchProcessor, NoOpOutcome
from elo_webhook.services.status import check_eligibility
from elo_webhook.services.validation import ValidationError


def _describe(outcome: Any) -> Dict[str, Any]:
    if isinstance(outcome, NoOpOutcome):
        return {
            "matchId": outcome.match_id,
            "processed": False,
            "status": outcome.eligibility.status_name,
        }
    return {
        "matchId": outcome.match_id,
        "processed": True,
        "playerA": {"old": outcome.player_a.old, "new": outcome.player_a.new},
        "playerB": {"old": outcome.player_b.old, "new": outcome.player_b.new},
    }


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Apply the Elo update for one or more open matches."
    )
    parser.add_argument("match_ids", nargs="+", help="Identifiers of the match records")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report whether each match is eligible; write nothing.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = load_settings()
    repository = create_repository(settings)
    processor = MatchProcessor(repository, settings.statuses)
    failures = 0

    try:
        for match_id in args.match_ids:
            try:
                if args.dry_run:
                    match = await repository.get_match(match_id)
                    eligibility = check_eligibility(match, settings.statuses)
                    result = {
                        "matchId": match_id,
                        "eligible": eligibility.eligible,
                        "status": eligibility.status_name,
                    }
                else:
                    result = _describe(await processor.process(match_id))
            except (DomainException, ValidationError) as exc:
                failures += 1
                result = {"matchId": match_id, "error": getattr(exc, "detail", None) or str(exc)}
            print(json.dumps(result, sort_keys=True))
    finally:
        await repository.aclose()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
