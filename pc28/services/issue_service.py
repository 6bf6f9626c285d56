import json
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pc28.constants import k_current_issue, k_history, k_last_result
from pc28.core.timeutil import from_ms
from pc28.db.redis import r
from pc28.models.bet_record import BetRecord
from pc28.models.issue import Issue
from pc28.schemas.bets import SettledBatch, Wager, WagerStatus
from pc28.schemas.lottery import Parity, RoundResult, RoundState, Size

logger = logging.getLogger(__name__)

HISTORY_CACHE_SIZE = 200


async def upsert_issue_from_result(db: AsyncSession, result: RoundResult) -> Issue:
    n1, n2, n3 = result.source_numbers
    attrs = result.attributes
    fields = dict(
        block_hash=result.hash,
        open_time=from_ms(result.timestamp),
        n1=n1, n2=n2, n3=n3,
        sum_value=result.sum,
        bs=1 if attrs.size is Size.BIG else 2,
        oe=1 if attrs.parity is Parity.ODD else 2,
        is_pair=attrs.is_pair,
        is_leopard=attrs.is_leopard,
        combo=attrs.combo,
    )
    row = (await db.execute(select(Issue).where(Issue.issue_no == result.issue))).scalar_one_or_none()
    if row:
        for k, v in fields.items():
            setattr(row, k, v)
    else:
        row = Issue(issue_no=result.issue, **fields)
        db.add(row)
    return row


async def add_bet_records(db: AsyncSession, wagers: Iterable[Wager]) -> int:
    n = 0
    for w in wagers:
        db.add(BetRecord(
            wager_id=w.id,
            game_id=w.game_id,
            issue_no=w.issue,
            bet_type=w.type.value,
            label=w.label,
            odds=w.odds,
            stake_amount=w.amount,
            result_status=1 if w.status is WagerStatus.WON else 2,
            win_amount=w.payout or 0,
            settled_at=from_ms(w.settled_at) if w.settled_at else None,
        ))
        n += 1
    return n


async def record_batch(db: AsyncSession, batch: SettledBatch) -> None:
    """开奖结果 + 已结算注单，一个事务写入"""
    await upsert_issue_from_result(db, batch.result)
    await add_bet_records(db, batch.wagers)
    await db.commit()


def result_item(result: RoundResult) -> dict:
    return result.model_dump(mode="json")


async def set_redis_after_issue(result: RoundResult):
    h_key = k_history()
    lr_key = k_last_result()

    payload = json.dumps(result_item(result), ensure_ascii=False, sort_keys=True)

    # 先删除历史里相同期号（避免重复）
    existing = await r.lrange(h_key, 0, HISTORY_CACHE_SIZE - 1)
    if existing:
        pipe = r.pipeline()
        for item in existing:
            try:
                if json.loads(item).get("issue") == result.issue:
                    pipe.lrem(h_key, 0, item)
            except ValueError:
                continue
        await pipe.execute()

    # 头插 + 限长 + 更新 last_result（保证最新在前）
    pipe = r.pipeline()
    pipe.lpush(h_key, payload)
    pipe.ltrim(h_key, 0, HISTORY_CACHE_SIZE - 1)
    pipe.set(lr_key, payload)
    await pipe.execute()


async def set_current_issue_cache(game_id: str, state: RoundState, phase: str):
    payload = {
        "game_id": game_id,
        "issue": str(state.next_issue),
        "current_issue": str(state.current_issue),
        "tip_height": str(state.tip_height),
        "blocks_remaining": str(state.blocks_remaining),
        "phase": phase,
        "allow_bet": "1" if phase == "open" else "0",
    }
    await r.hset(k_current_issue(game_id), mapping=payload)
    await r.expire(k_current_issue(game_id), 3600)
