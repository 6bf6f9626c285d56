# pc28/tasks/scheduler.py
import logging
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from pc28.core.config import settings
from pc28.core.errors import ChainUnavailable
from pc28.db.session import AsyncSessionLocal
from pc28.schemas.bets import SettledBatch
from pc28.services.chain_client import TronClient
from pc28.services.context import LotteryContext
from pc28.services.issue_service import (
    record_batch,
    set_current_issue_cache,
    set_redis_after_issue,
)
from pc28.services.result_service import derive_from_block

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


class ChainTipPoller:
    """
    每次 tick：取链上最新区块 → 推进期次 → 跨过期界时取开奖区块并结算。
    节点失败只记日志，本轮跳过，下一轮重试。
    """

    def __init__(self, ctx: LotteryContext, client: TronClient):
        self.ctx = ctx
        self.client = client
        self.last_finalized: Optional[int] = None

    def _due_issues(self, current_issue: int) -> List[int]:
        # 轮询间隔大于出块间隔或停机期间错过的期次，若仍有注单也一并补结
        missed = [
            i for i in self.ctx.ledger.pending_issues()
            if i < current_issue and (self.last_finalized is None or i > self.last_finalized)
        ]
        return missed + [current_issue]

    async def tick(self) -> List[SettledBatch]:
        try:
            tip = await self.client.get_latest_block()
        except ChainUnavailable as e:
            logger.warning("[poller] chain tip unavailable: %s", e)
            return []
        if tip is None:
            return []

        state = self.ctx.observe_tip(tip.height)
        if self.last_finalized is not None and state.current_issue <= self.last_finalized:
            return []

        batches: List[SettledBatch] = []
        for issue in self._due_issues(state.current_issue):
            if tip.height == issue:
                block = tip
            else:
                try:
                    block = await self.client.get_block_by_height(issue)
                except ChainUnavailable as e:
                    logger.warning("[poller] block #%s unavailable: %s", issue, e)
                    break
            if block is None or block.height != issue:
                logger.info("[poller] block #%s not ready, retry next tick", issue)
                break

            result = derive_from_block(block)
            batches.append(self.ctx.finalize(result))
            self.last_finalized = issue
            logger.info("[poller] issue %s finalized: %s = %s",
                        issue, "+".join(map(str, result.source_numbers)), result.sum)
        return batches


async def persist_batches(ctx: LotteryContext, batches: List[SettledBatch]) -> None:
    """写库 + 写 Redis；失败只影响报表，不影响内存中的结算结果"""
    for batch in batches:
        try:
            async with AsyncSessionLocal() as session:
                await record_batch(session, batch)
            await set_redis_after_issue(batch.result)
        except Exception as e:
            logger.exception("[persist] issue %s failed: %s", batch.issue, e)

    if ctx.round is None:
        return
    try:
        for game in ctx.configs.visible():
            await set_current_issue_cache(game.id, ctx.round, ctx.phase(game.id).value)
    except Exception as e:
        logger.exception("[persist] current issue cache failed: %s", e)


async def collector_job(ctx: LotteryContext, poller: ChainTipPoller):
    """
    拉取最新区块 → 推进期次 → 开奖结算 → 写库/写 Redis 缓存
    """
    try:
        batches = await poller.tick()
        await persist_batches(ctx, batches)
    except Exception as e:
        logger.exception("[collector_job] error: %s", e)


def start_scheduler(ctx: LotteryContext, client: Optional[TronClient] = None) -> ChainTipPoller:
    """
    启动调度器：按 POLL_SECONDS 轮询链上高度并结算。
    max_instances=1 保证同一时刻只有一个 tick 在跑。
    """
    poller = ChainTipPoller(ctx, client or TronClient())
    scheduler.add_job(
        collector_job,
        "interval",
        seconds=settings.POLL_SECONDS,
        args=[ctx, poller],
        id="chain_tip_poller",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=10,
    )

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")
    return poller


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
