from __future__ import annotations

import asyncio
import json

import fakeredis.aioredis
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from pc28.constants import k_current_issue, k_history, k_last_result
from pc28.db.session import Base
from pc28.models.bet_record import BetRecord
from pc28.models.issue import Issue
from pc28.schemas.bets import BetType
from pc28.services import issue_service
from pc28.services.bootstrap_service import warmup_results_from_db
from pc28.services.context import LotteryContext


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pc28.db'}")

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def fake_redis(monkeypatch):
    fake = fakeredis.aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(issue_service, "r", fake)
    return fake


def test_record_batch_and_warmup(ctx, make_result, session_factory):
    ctx.place_bet("pc2.0", BetType.BIG, 100)
    ctx.place_bet("pc2.0", BetType.SMALL, 50)
    batch = ctx.finalize(make_result("839"))

    async def _go():
        async with session_factory() as s:
            await issue_service.record_batch(s, batch)
        async with session_factory() as s:
            issues = (await s.execute(select(Issue))).scalars().all()
            bets = (await s.execute(select(func.count()).select_from(BetRecord))).scalar_one()
        fresh = LotteryContext()
        async with session_factory() as s:
            loaded = await warmup_results_from_db(s, fresh)
        return issues, bets, fresh, loaded

    issues, bets, fresh, loaded = asyncio.run(_go())

    assert len(issues) == 1
    row = issues[0]
    assert (row.issue_no, row.sum_value, row.bs, row.oe, row.combo) == (1020, 20, 1, 2, "大双")
    assert bets == 2
    assert loaded == 1
    assert fresh.results.latest() == batch.result


def test_upsert_same_issue_twice(make_result, session_factory):
    result = make_result("839")

    async def _go():
        for _ in range(2):
            async with session_factory() as s:
                await issue_service.upsert_issue_from_result(s, result)
                await s.commit()
        async with session_factory() as s:
            return (await s.execute(select(func.count()).select_from(Issue))).scalar_one()

    assert asyncio.run(_go()) == 1


def test_redis_history_is_newest_first_without_duplicates(make_result, fake_redis):
    async def _go():
        await issue_service.set_redis_after_issue(make_result("839", issue=1020))
        await issue_service.set_redis_after_issue(make_result("124", issue=1040))
        await issue_service.set_redis_after_issue(make_result("124", issue=1040))
        return await fake_redis.lrange(k_history(), 0, -1), await fake_redis.get(k_last_result())

    items, last = asyncio.run(_go())

    assert [json.loads(i)["issue"] for i in items] == [1040, 1020]
    assert json.loads(last)["sum"] == 7


def test_current_issue_cache(ctx, fake_redis):
    async def _go():
        await issue_service.set_current_issue_cache("pc2.0", ctx.round, ctx.phase("pc2.0").value)
        return await fake_redis.hgetall(k_current_issue("pc2.0"))

    cached = asyncio.run(_go())

    assert cached["issue"] == "1020"
    assert cached["allow_bet"] == "1"
    assert cached["blocks_remaining"] == "19"
