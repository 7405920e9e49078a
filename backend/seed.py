import asyncio
import os
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from elo_webhook.config import DEFAULT_OPEN_STATUSES
from elo_webhook.models import MatchRecord, PlayerRecord

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def main():
    async with Session() as s:
        existing = (await s.execute(select(PlayerRecord))).scalars().all()
        have = {x.id for x in existing}
        for pid, name in [
            ("alice", "Alice"),
            ("bob", "Bob"),
            ("carol", "Carol"),
        ]:
            if pid not in have:
                s.add(PlayerRecord(id=pid, name=name, rating=1000))
        await s.commit()

        # open demo matches, ready to be rated through the webhook
        existing_matches = {
            x.id for x in (await s.execute(select(MatchRecord))).scalars().all()
        }
        matches = [
            MatchRecord(
                id="demo-1",
                status=DEFAULT_OPEN_STATUSES[0],
                player_a_ids=["alice"],
                player_b_ids=["bob"],
                goals_a=3,
                goals_b=1,
            ),
            MatchRecord(
                id="demo-2",
                legacy_status=DEFAULT_OPEN_STATUSES[0],
                player_a_ids=["bob"],
                player_b_ids=["carol"],
                goals_a=2,
                goals_b=2,
                k_factor=32,
            ),
        ]
        for m in matches:
            if m.id not in existing_matches:
                s.add(m)
        await s.commit()

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
