from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from pc28.constants import BET_TYPE_TABLE
from pc28.schemas.lottery import RoundResult


class BetType(str, Enum):
    BIG = "big"
    SMALL = "small"
    ODD = "odd"
    EVEN = "even"
    BIG_ODD = "big_odd"
    BIG_EVEN = "big_even"
    SMALL_ODD = "small_odd"
    SMALL_EVEN = "small_even"
    PAIR = "pair"
    LEOPARD = "leopard"

    @property
    def label(self) -> str:
        return BET_LABELS[self]


BET_LABELS = {BetType(t): label for t, label, _, _ in BET_TYPE_TABLE}


class WagerStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


class Wager(BaseModel):
    """单笔注单。结算时生成新的已结算副本，原对象不可变"""
    model_config = ConfigDict(frozen=True)

    id: str
    type: BetType
    label: str
    amount: Decimal = Field(gt=0)
    odds: Decimal  # 下注时的赔率快照
    status: WagerStatus = WagerStatus.PENDING
    issue: int
    game_id: str
    payout: Optional[Decimal] = None  # 含本金
    settled_at: Optional[int] = None
    created_at: int = 0


class SettledBatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue: int
    result: RoundResult
    wagers: List[Wager] = []
    total_stake: Decimal = Decimal("0")
    total_payout: Decimal = Decimal("0")

    @property
    def house_delta(self) -> Decimal:
        return self.total_stake - self.total_payout

    @property
    def is_empty(self) -> bool:
        return not self.wagers


# 下单/撤单入参
class BetIn(BaseModel):
    game_id: str
    type: BetType
    amount: Decimal = Field(gt=0)


class CancelIn(BaseModel):
    game_id: str


class CancelTypeIn(BaseModel):
    game_id: str
    type: BetType


class CancelOut(BaseModel):
    refund: Decimal
    balance: Decimal


class BalanceOut(BaseModel):
    balance: Decimal


class IssueReportItem(BaseModel):
    issue: int
    bet: Decimal
    profit: Decimal


class RoundStats(BaseModel):
    issue: int
    total_bet: Decimal
    count: int
