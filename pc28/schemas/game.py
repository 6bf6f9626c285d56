from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from pc28.schemas.bets import BetType


class GameStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    HIDDEN = "hidden"


class BetOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: BetType
    label: str
    odds: Decimal = Field(gt=0)


class GameConfig(BaseModel):
    """单个游戏的完整配置快照；任何修改都整体替换"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    badge: Optional[str] = None
    status: GameStatus = GameStatus.ACTIVE
    odds: List[BetOption]
    min_bet: Decimal = Field(ge=0)
    max_bet: Decimal
    special_rules_enabled: bool = False
    special_single_odds: Decimal = Field(gt=0)
    special_combo_odds: Decimal = Field(gt=0)

    @model_validator(mode="after")
    def _check(self) -> "GameConfig":
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet 不能小于 min_bet")
        types = [o.type for o in self.odds]
        if len(types) != len(set(types)):
            raise ValueError("赔率表玩法重复")
        missing = set(BetType) - set(types)
        if missing:
            raise ValueError(f"赔率表缺少玩法: {sorted(t.value for t in missing)}")
        return self

    def odds_for(self, bet_type: BetType) -> BetOption:
        for o in self.odds:
            if o.type == bet_type:
                return o
        raise KeyError(bet_type)


# 后台入参
class OddsUpdateIn(BaseModel):
    game_id: str
    type: BetType
    odds: Decimal


class StatusUpdateIn(BaseModel):
    game_id: str
    status: GameStatus


class SpecialRulesIn(BaseModel):
    game_id: str
    enabled: bool
    single_odds: Decimal
    combo_odds: Decimal


class LimitsIn(BaseModel):
    game_ids: List[str]
    min_bet: Decimal
    max_bet: Decimal


class DashboardOut(BaseModel):
    total_turnover: Decimal
    total_payout: Decimal
    net_profit: Decimal
    house_win_rate: float
    current_exposure: Decimal
    max_potential_payout: Decimal
    house_balance: Decimal


class HistoryStatsOut(BaseModel):
    count: int
    turnover: Decimal
    payout: Decimal
    house_pnl: Decimal
    house_win_rate: float
