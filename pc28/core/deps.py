from fastapi import HTTPException, Request, status

from pc28.core.errors import BetRejected, InvalidConfig, UnknownGame
from pc28.services.context import LotteryContext


def get_ctx(request: Request) -> LotteryContext:
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="服务未就绪")
    return ctx


def to_http(e: Exception) -> HTTPException:
    """领域异常 → HTTP 错误；reason 给前端区分具体提示"""
    if isinstance(e, BetRejected):
        return HTTPException(status_code=400, detail={"reason": e.reason.value, "message": e.message})
    if isinstance(e, UnknownGame):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidConfig):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
