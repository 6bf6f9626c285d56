from enum import Enum
from typing import Optional, List, Tuple
from pydantic import BaseModel, ConfigDict, Field


class BlockData(BaseModel):
    """区块节点返回的最小字段集"""
    model_config = ConfigDict(frozen=True)

    hash: str
    height: int
    timestamp: int  # 毫秒


class Size(str, Enum):
    BIG = "Big"
    SMALL = "Small"


class Parity(str, Enum):
    ODD = "Odd"
    EVEN = "Even"


class ResultAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    size: Size
    parity: Parity
    is_pair: bool
    is_leopard: bool
    combo: str  # 例如 "大双"


class RoundResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue: int
    hash: str
    source_numbers: Tuple[int, int, int]
    sum: int = Field(ge=0, le=27)
    attributes: ResultAttributes
    timestamp: int


class RoundState(BaseModel):
    model_config = ConfigDict(frozen=True)

    tip_height: int
    current_issue: int
    next_issue: int
    blocks_remaining: int
    locked: bool
    progress_percent: float


class CurrentIssueResp(BaseModel):
    game_id: str
    phase: str
    tip_height: Optional[int] = None
    current_issue: Optional[int] = None
    next_issue: Optional[int] = None
    blocks_remaining: Optional[int] = None
    locked: bool = True
    progress_percent: float = 0


class HistoryResp(BaseModel):
    list: List[RoundResult]
