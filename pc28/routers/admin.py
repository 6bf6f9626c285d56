from typing import List, Optional

from fastapi import APIRouter, Depends

from pc28.core.deps import get_ctx, to_http
from pc28.core.errors import InvalidConfig
from pc28.schemas.game import (
    DashboardOut, GameConfig, HistoryStatsOut, LimitsIn,
    OddsUpdateIn, SpecialRulesIn, StatusUpdateIn,
)
from pc28.services.context import LotteryContext
from pc28.services.history import dashboard, history_stats

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/odds", response_model=GameConfig)
async def update_odds(payload: OddsUpdateIn, ctx: LotteryContext = Depends(get_ctx)):
    try:
        return ctx.update_odds(payload.game_id, payload.type, payload.odds)
    except InvalidConfig as e:
        raise to_http(e)


@router.post("/status", response_model=GameConfig)
async def set_status(payload: StatusUpdateIn, ctx: LotteryContext = Depends(get_ctx)):
    try:
        return ctx.set_game_status(payload.game_id, payload.status)
    except InvalidConfig as e:
        raise to_http(e)


@router.post("/special-rules", response_model=GameConfig)
async def set_special_rules(payload: SpecialRulesIn, ctx: LotteryContext = Depends(get_ctx)):
    try:
        return ctx.set_special_rules(payload.game_id, payload.enabled, payload.single_odds, payload.combo_odds)
    except InvalidConfig as e:
        raise to_http(e)


@router.post("/limits", response_model=List[GameConfig])
async def apply_limits(payload: LimitsIn, ctx: LotteryContext = Depends(get_ctx)):
    """批量设置限额：min >= 0 且 max >= min，至少选一个游戏"""
    try:
        return ctx.apply_limits(payload.game_ids, payload.min_bet, payload.max_bet)
    except InvalidConfig as e:
        raise to_http(e)


@router.put("/games", response_model=List[GameConfig])
async def save_games(payload: List[GameConfig], ctx: LotteryContext = Depends(get_ctx)):
    try:
        ctx.configs.replace_all(payload)
    except InvalidConfig as e:
        raise to_http(e)
    return ctx.configs.list()


@router.get("/games", response_model=List[GameConfig])
async def all_games(ctx: LotteryContext = Depends(get_ctx)):
    return ctx.configs.list()


@router.get("/dashboard", response_model=DashboardOut)
async def get_dashboard(ctx: LotteryContext = Depends(get_ctx)):
    return dashboard(ctx.bets.list(), ctx.ledger.pending(), ctx.balances.house)


@router.get("/bets", response_model=HistoryStatsOut)
async def bets_stats(game: Optional[str] = None, ctx: LotteryContext = Depends(get_ctx)):
    # game 为空表示全部游戏
    return history_stats(ctx.bets.list(game_id=game))
