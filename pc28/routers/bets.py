from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends

from pc28.core.deps import get_ctx, to_http
from pc28.core.errors import BetRejected, InvalidConfig
from pc28.schemas.bets import (
    BalanceOut, BetIn, CancelIn, CancelOut, CancelTypeIn,
    IssueReportItem, RoundStats, Wager,
)
from pc28.services.context import LotteryContext
from pc28.services.history import issue_report

router = APIRouter(prefix="/api/bets", tags=["bets"])


@router.post("/place", response_model=Wager)
async def place_bet(payload: BetIn, ctx: LotteryContext = Depends(get_ctx)):
    """
    下注：
      - 只能投下一期（next_issue），封盘/暂停直接拒绝
      - 赔率取游戏配置当下的值并快照到注单
      - 单玩法单期累计不得超过 max_bet
    """
    try:
        return ctx.place_bet(payload.game_id, payload.type, payload.amount)
    except (BetRejected, InvalidConfig) as e:
        raise to_http(e)


@router.post("/cancel", response_model=CancelOut)
async def cancel_all(payload: CancelIn, ctx: LotteryContext = Depends(get_ctx)):
    """撤销本游戏本期全部注单并退款"""
    try:
        refund = ctx.cancel_all_bets(payload.game_id)
    except (BetRejected, InvalidConfig) as e:
        raise to_http(e)
    return CancelOut(refund=refund, balance=ctx.balances.player)


@router.post("/cancel-type", response_model=CancelOut)
async def cancel_type(payload: CancelTypeIn, ctx: LotteryContext = Depends(get_ctx)):
    try:
        refund = ctx.cancel_bets_by_type(payload.game_id, payload.type)
    except (BetRejected, InvalidConfig) as e:
        raise to_http(e)
    return CancelOut(refund=refund, balance=ctx.balances.player)


@router.get("/active", response_model=List[Wager])
async def active_bets(game: Optional[str] = None, ctx: LotteryContext = Depends(get_ctx)):
    return ctx.ledger.pending(game_id=game)


@router.get("/round", response_model=Optional[RoundStats])
async def round_stats(game: str, ctx: LotteryContext = Depends(get_ctx)):
    if ctx.round is None:
        return None
    return ctx.ledger.round_stats(game, ctx.round.next_issue)


@router.get("/history", response_model=List[Wager])
async def bet_history(limit: int = 50, game: Optional[str] = None, ctx: LotteryContext = Depends(get_ctx)):
    return ctx.bets.list(game_id=game, limit=limit)


@router.get("/report", response_model=List[IssueReportItem])
async def battle_report(game: str, ctx: LotteryContext = Depends(get_ctx)):
    """战报：最近 5 期的下注额与盈亏"""
    return issue_report(ctx.bets.list(game_id=game), limit=5)


@router.get("/balance", response_model=BalanceOut)
async def balance(ctx: LotteryContext = Depends(get_ctx)):
    return BalanceOut(balance=ctx.balances.player)
