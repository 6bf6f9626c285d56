import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pc28.core.timeutil import to_ms
from pc28.db.session import engine, Base
from pc28.models.issue import Issue
from pc28.schemas.lottery import Parity, ResultAttributes, RoundResult, Size
from pc28.services.context import LotteryContext

logger = logging.getLogger(__name__)


async def init_db():
    # 确保模型已注册到 Base.metadata
    import pc28.models.bet_record  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def row_to_result(row: Issue) -> RoundResult:
    return RoundResult(
        issue=row.issue_no,
        hash=row.block_hash,
        source_numbers=(row.n1, row.n2, row.n3),
        sum=row.sum_value,
        attributes=ResultAttributes(
            size=Size.BIG if row.bs == 1 else Size.SMALL,
            parity=Parity.ODD if row.oe == 1 else Parity.EVEN,
            is_pair=bool(row.is_pair),
            is_leopard=bool(row.is_leopard),
            combo=row.combo,
        ),
        timestamp=to_ms(row.open_time),
    )


async def warmup_results_from_db(session: AsyncSession, ctx: LotteryContext) -> int:
    """把最近 N 期开奖结果装回内存历史（旧→新依次加入）"""
    rows = (
        await session.execute(
            select(Issue).order_by(Issue.issue_no.desc()).limit(ctx.results.limit)
        )
    ).scalars().all()
    for row in reversed(rows):
        ctx.results.add(row_to_result(row))
    if rows:
        logger.info("warmed up %s results, latest issue %s", len(rows), rows[0].issue_no)
    return len(rows)
