# pc28/core/errors.py
from __future__ import annotations
from enum import Enum


class RejectReason(str, Enum):
    PAUSED = "PAUSED"
    LOCKED = "LOCKED"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    BELOW_MIN = "BELOW_MIN"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


# 前端直接展示的提示文案
REJECT_MESSAGES = {
    RejectReason.PAUSED: "该游戏目前暂停下注",
    RejectReason.LOCKED: "已封盘，禁止下注",
    RejectReason.INVALID_AMOUNT: "金额非法",
    RejectReason.BELOW_MIN: "低于单注最低下注金额",
    RejectReason.LIMIT_EXCEEDED: "超出该玩法单期累计限额",
    RejectReason.INSUFFICIENT_BALANCE: "余额不足",
}


class BetRejected(Exception):
    """下注/撤单被拒绝；reason 供调用方区分具体原因"""

    def __init__(self, reason: RejectReason, message: str | None = None):
        self.reason = reason
        self.message = message or REJECT_MESSAGES[reason]
        super().__init__(f"{reason.value}: {self.message}")


class InvalidConfig(ValueError):
    """后台配置写入校验失败，不会落地任何修改"""


class UnknownGame(InvalidConfig):
    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"未知游戏: {game_id}")


class ChainUnavailable(Exception):
    """区块节点暂时不可用（网络/HTTP/解析失败），与“区块尚未产生”区分"""


class InvariantViolation(RuntimeError):
    """逻辑错误：不应发生，出现即说明调用纪律被破坏"""
