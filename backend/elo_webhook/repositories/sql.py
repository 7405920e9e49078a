"""Record repository backed by two SQL tables.

Every call runs in its own session and transaction, mirroring a document
store without multi-record transactions. ``commit_match`` is a conditional
``UPDATE`` guarded by the status value the processor observed.
"""

from __future__ import annotations

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..db_errors import describe_db_error
from ..exceptions import NotFoundError, StaleRecordError, UpstreamError
from ..models import MatchRecord as MatchRow, PlayerRecord as PlayerRow
from ..services.rating import round_half_away
from ..services.status import resolve_status
from .base import MatchAudit, MatchRecord, PlayerRecord


class SqlRecordRepository:
    def __init__(self, session_maker: sessionmaker) -> None:
        self._session_maker = session_maker

    async def get_match(self, match_id: str) -> MatchRecord:
        try:
            async with self._session_maker() as session:
                row = await session.get(MatchRow, match_id)
        except SQLAlchemyError as exc:
            raise UpstreamError(
                f"reading match '{match_id}' failed: "
                f"{describe_db_error(exc, MatchRow.__tablename__)}"
            ) from exc
        if row is None:
            raise NotFoundError("match", match_id)
        return MatchRecord(
            id=row.id,
            status=row.status,
            legacy_status=row.legacy_status,
            player_a_ids=tuple(row.player_a_ids or ()),
            player_b_ids=tuple(row.player_b_ids or ()),
            goals_a=row.goals_a,
            goals_b=row.goals_b,
            k_factor=row.k_factor,
        )

    async def get_player(self, player_id: str) -> PlayerRecord:
        try:
            async with self._session_maker() as session:
                row = await session.get(PlayerRow, player_id)
        except SQLAlchemyError as exc:
            raise UpstreamError(
                f"reading player '{player_id}' failed: "
                f"{describe_db_error(exc, PlayerRow.__tablename__)}"
            ) from exc
        if row is None:
            raise NotFoundError("player", player_id)
        return PlayerRecord(id=row.id, rating=row.rating)

    async def update_player_rating(self, player_id: str, rating: int) -> None:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    update(PlayerRow)
                    .where(PlayerRow.id == player_id)
                    .values(rating=int(rating))
                )
                updated = result.rowcount
                await session.commit()
        except SQLAlchemyError as exc:
            raise UpstreamError(
                f"updating player '{player_id}' failed: "
                f"{describe_db_error(exc, PlayerRow.__tablename__)}"
            ) from exc
        if updated == 0:
            raise NotFoundError("player", player_id)

    async def commit_match(
        self, match_id: str, audit: MatchAudit, *, expected_status: str | None
    ) -> None:
        primary_unset = or_(MatchRow.status.is_(None), func.trim(MatchRow.status) == "")
        if expected_status is None:
            status_matches = and_(
                primary_unset,
                or_(
                    MatchRow.legacy_status.is_(None),
                    func.trim(MatchRow.legacy_status) == "",
                ),
            )
        else:
            status_matches = or_(
                MatchRow.status == expected_status,
                and_(primary_unset, MatchRow.legacy_status == expected_status),
            )

        stmt = (
            update(MatchRow)
            .where(MatchRow.id == match_id, status_matches)
            .values(
                elo_a_before=audit.elo_a_before,
                elo_b_before=audit.elo_b_before,
                elo_a_after=audit.elo_a_after,
                elo_b_after=audit.elo_b_after,
                k_factor=round_half_away(audit.k_factor),
                status=audit.status,
            )
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                updated = result.rowcount
                await session.commit()
                if updated == 1:
                    return
                current = (
                    await session.execute(
                        select(MatchRow.status, MatchRow.legacy_status).where(
                            MatchRow.id == match_id
                        )
                    )
                ).one_or_none()
        except SQLAlchemyError as exc:
            raise UpstreamError(
                f"updating match '{match_id}' failed: "
                f"{describe_db_error(exc, MatchRow.__tablename__)}"
            ) from exc

        if current is None:
            raise NotFoundError("match", match_id)
        raise StaleRecordError(
            match_id, expected_status, resolve_status(current.status, current.legacy_status)
        )

    async def aclose(self) -> None:
        return None
