from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.sql import func

from .db import Base


class MatchRecord(Base):
    __tablename__ = "match_record"
    id = Column(String, primary_key=True)
    status = Column(String, nullable=True, index=True)
    legacy_status = Column(String, nullable=True)
    player_a_ids = Column(JSON, nullable=False, default=list)
    player_b_ids = Column(JSON, nullable=False, default=list)
    goals_a = Column(Integer, nullable=True)
    goals_b = Column(Integer, nullable=True)
    k_factor = Column(Integer, nullable=True)
    elo_a_before = Column(Integer, nullable=True)
    elo_b_before = Column(Integer, nullable=True)
    elo_a_after = Column(Integer, nullable=True)
    elo_b_after = Column(Integer, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class PlayerRecord(Base):
    __tablename__ = "player_record"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    rating = Column(Integer, nullable=True)
