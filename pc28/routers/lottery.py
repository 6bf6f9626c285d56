from typing import List
from fastapi import APIRouter, Depends, Query

from pc28.core.deps import get_ctx, to_http
from pc28.core.errors import UnknownGame
from pc28.schemas.game import BetOption, GameConfig
from pc28.schemas.lottery import CurrentIssueResp, HistoryResp
from pc28.services.context import LotteryContext

router = APIRouter(prefix="/api/lottery", tags=["lottery"])

@router.get("/games", response_model=List[GameConfig])
async def games(ctx: LotteryContext = Depends(get_ctx)):
    # 大厅只展示未隐藏的游戏
    return ctx.configs.visible()

@router.get("/current", response_model=CurrentIssueResp)
async def current_issue(game: str = Query(...), ctx: LotteryContext = Depends(get_ctx)):
    try:
        phase = ctx.phase(game)
    except UnknownGame as e:
        raise to_http(e)
    st = ctx.round
    if st is None:
        return CurrentIssueResp(game_id=game, phase=phase.value)
    return CurrentIssueResp(
        game_id=game,
        phase=phase.value,
        tip_height=st.tip_height,
        current_issue=st.current_issue,
        next_issue=st.next_issue,
        blocks_remaining=st.blocks_remaining,
        locked=st.locked,
        progress_percent=st.progress_percent,
    )

@router.get("/last")
async def last_result(ctx: LotteryContext = Depends(get_ctx)):
    lr = ctx.results.latest()
    return lr.model_dump(mode="json") if lr else {}

@router.get("/history", response_model=HistoryResp)
async def history(limit: int = 20, ctx: LotteryContext = Depends(get_ctx)):
    # 新→旧
    return {"list": ctx.results.list(limit)}

@router.get("/odds", response_model=List[BetOption])
async def get_odds(game: str = Query(..., description="游戏 ID"), ctx: LotteryContext = Depends(get_ctx)):
    try:
        return ctx.configs.get(game).odds
    except UnknownGame as e:
        raise to_http(e)

@router.get("/events")
async def events(after: int = 0, ctx: LotteryContext = Depends(get_ctx)):
    return ctx.events.recent(after)
