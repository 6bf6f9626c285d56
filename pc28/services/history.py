from __future__ import annotations
import threading
from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, List, Optional

from pc28.schemas.bets import IssueReportItem, Wager
from pc28.schemas.game import DashboardOut, HistoryStatsOut
from pc28.schemas.lottery import RoundResult


class ResultHistory:
    """最近 N 期开奖结果，新→旧，同一期只保留一条"""

    def __init__(self, limit: int = 20):
        self._lock = threading.Lock()
        self._items: List[RoundResult] = []
        self.limit = limit

    def add(self, result: RoundResult) -> bool:
        with self._lock:
            if any(r.issue == result.issue for r in self._items):
                return False
            self._items.insert(0, result)
            self._items.sort(key=lambda r: r.issue, reverse=True)
            del self._items[self.limit:]
            return True

    def latest(self) -> Optional[RoundResult]:
        with self._lock:
            return self._items[0] if self._items else None

    def list(self, limit: Optional[int] = None) -> List[RoundResult]:
        with self._lock:
            return list(self._items[:limit])


class BetHistory:
    """已结算注单，只追加"""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: List[Wager] = []

    def extend(self, wagers: Iterable[Wager]) -> None:
        with self._lock:
            self._items.extend(wagers)

    def list(self, game_id: Optional[str] = None, limit: Optional[int] = None) -> List[Wager]:
        """新→旧"""
        with self._lock:
            items = list(reversed(self._items))
        if game_id is not None:
            items = [w for w in items if w.game_id == game_id]
        return items[:limit]

    def __len__(self) -> int:
        return len(self._items)


def _rate(pnl: Decimal, turnover: Decimal) -> float:
    return float(pnl / turnover * 100) if turnover > 0 else 0.0


def dashboard(settled: List[Wager], active: List[Wager], house_balance: Decimal) -> DashboardOut:
    turnover = sum((w.amount for w in settled), Decimal("0"))
    payout = sum((w.payout or Decimal("0") for w in settled), Decimal("0"))
    net = turnover - payout
    return DashboardOut(
        total_turnover=turnover,
        total_payout=payout,
        net_profit=net,
        house_win_rate=_rate(net, turnover),
        current_exposure=sum((w.amount for w in active), Decimal("0")),
        max_potential_payout=sum((w.amount * w.odds for w in active), Decimal("0")),
        house_balance=house_balance,
    )


def history_stats(settled: List[Wager]) -> HistoryStatsOut:
    turnover = sum((w.amount for w in settled), Decimal("0"))
    payout = sum((w.payout or Decimal("0") for w in settled), Decimal("0"))
    return HistoryStatsOut(
        count=len(settled),
        turnover=turnover,
        payout=payout,
        house_pnl=turnover - payout,
        house_win_rate=_rate(turnover - payout, turnover),
    )


def issue_report(settled: List[Wager], limit: int = 5) -> List[IssueReportItem]:
    """战报：按期汇总下注额与盈亏（派彩 - 本金），最近 limit 期"""
    report: "OrderedDict[int, List[Decimal]]" = OrderedDict()
    for w in settled:
        entry = report.setdefault(w.issue, [Decimal("0"), Decimal("0")])
        entry[0] += w.amount
        entry[1] += (w.payout or Decimal("0")) - w.amount
    issues = sorted(report, reverse=True)[:limit]
    return [IssueReportItem(issue=i, bet=report[i][0], profit=report[i][1]) for i in issues]
