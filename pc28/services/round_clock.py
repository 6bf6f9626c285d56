# pc28/services/round_clock.py
from enum import Enum
from typing import Optional

from pc28.schemas.game import GameStatus
from pc28.schemas.lottery import RoundState


class GamePhase(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    PAUSED = "paused"
    HIDDEN = "hidden"


def round_state(tip_height: int, blocks_per_issue: int, lock_margin: int) -> RoundState:
    """
    期号按绝对高度取整：同一高度任何观察者都得到同一期号，轮询中断后自动恢复。
      current_issue = floor(tip / K) * K
      next_issue    = current_issue + K
      locked        = 剩余区块 < lock_margin
    """
    if blocks_per_issue <= 0:
        raise ValueError("blocks_per_issue must be positive")
    if lock_margin < 0:
        raise ValueError("lock_margin must not be negative")
    if tip_height < 0:
        raise ValueError("tip_height must not be negative")

    current_issue = (tip_height // blocks_per_issue) * blocks_per_issue
    next_issue = current_issue + blocks_per_issue
    remaining = max(0, next_issue - tip_height)
    progress = (blocks_per_issue - remaining) / blocks_per_issue * 100
    return RoundState(
        tip_height=tip_height,
        current_issue=current_issue,
        next_issue=next_issue,
        blocks_remaining=remaining,
        locked=remaining < lock_margin,
        progress_percent=max(0.0, min(100.0, progress)),
    )


def game_phase(status: GameStatus, state: Optional[RoundState]) -> GamePhase:
    # 还没拿到链上高度时按封盘处理
    if status is GameStatus.HIDDEN:
        return GamePhase.HIDDEN
    if status is GameStatus.MAINTENANCE:
        return GamePhase.PAUSED
    if state is None or state.locked:
        return GamePhase.LOCKED
    return GamePhase.OPEN
