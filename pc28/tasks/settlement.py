# pc28/tasks/settlement.py
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Callable, Dict, Optional

from pc28.core.errors import InvariantViolation
from pc28.core.timeutil import now_ms
from pc28.schemas.bets import BetType, SettledBatch, Wager, WagerStatus
from pc28.schemas.game import GameConfig
from pc28.schemas.lottery import Parity, ResultAttributes, RoundResult, Size
from pc28.services.bet_service import WagerLedger
from pc28.services.config_store import GameConfigStore
from pc28.services.events import ROUND_SETTLED, EventHub
from pc28.services.history import BetHistory
from pc28.services.wallet import Balances, q2

logger = logging.getLogger(__name__)


# ------------------------------
# 玩法命中规则
# ------------------------------
HIT_RULES: Dict[BetType, Callable[[ResultAttributes], bool]] = {
    BetType.BIG: lambda a: a.size is Size.BIG,
    BetType.SMALL: lambda a: a.size is Size.SMALL,
    BetType.ODD: lambda a: a.parity is Parity.ODD,
    BetType.EVEN: lambda a: a.parity is Parity.EVEN,
    BetType.BIG_ODD: lambda a: a.size is Size.BIG and a.parity is Parity.ODD,
    BetType.BIG_EVEN: lambda a: a.size is Size.BIG and a.parity is Parity.EVEN,
    BetType.SMALL_ODD: lambda a: a.size is Size.SMALL and a.parity is Parity.ODD,
    BetType.SMALL_EVEN: lambda a: a.size is Size.SMALL and a.parity is Parity.EVEN,
    BetType.PAIR: lambda a: a.is_pair,
    BetType.LEOPARD: lambda a: a.is_leopard,
}

# 13/14 特殊赔率：只改和值本身属性对应的玩法
SPECIAL_SINGLE = {13: (BetType.SMALL, BetType.ODD), 14: (BetType.BIG, BetType.EVEN)}
SPECIAL_COMBO = {13: (BetType.SMALL_ODD,), 14: (BetType.BIG_EVEN,)}


def is_hit(bet_type: BetType, attrs: ResultAttributes) -> bool:
    return HIT_RULES[bet_type](attrs)


def payout_ratio(wager: Wager, total_sum: int, cfg: Optional[GameConfig]) -> Decimal:
    """默认用下注时的赔率快照；开启特殊规则且和值为 13/14 时按规则覆盖"""
    if cfg is None or not cfg.special_rules_enabled:
        return wager.odds
    if wager.type in SPECIAL_SINGLE.get(total_sum, ()):
        return cfg.special_single_odds
    if wager.type in SPECIAL_COMBO.get(total_sum, ()):
        return cfg.special_combo_odds
    return wager.odds


class SettlementEngine:
    def __init__(
        self,
        ledger: WagerLedger,
        configs: GameConfigStore,
        balances: Balances,
        history: BetHistory,
        events: Optional[EventHub] = None,
    ):
        self.ledger = ledger
        self.configs = configs
        self.balances = balances
        self.history = history
        self.events = events

    def settle(self, result: RoundResult) -> SettledBatch:
        """
        结算一期。同一期只会 drain 到一次注单，第二次调用为空操作。
        配置在本期开始时取一次快照，之后的后台修改只影响下一期。
        """
        wagers = self.ledger.drain(result.issue)
        if not wagers:
            return SettledBatch(issue=result.issue, result=result)

        games = self.configs.snapshot()
        now = now_ms()
        settled = []
        total_stake = Decimal("0")
        total_payout = Decimal("0")

        for w in wagers:
            if w.issue != result.issue or w.status is not WagerStatus.PENDING:
                raise InvariantViolation(f"wager {w.id} cannot be settled by issue {result.issue}")

            won = is_hit(w.type, result.attributes)
            ratio = payout_ratio(w, result.sum, games.get(w.game_id))
            payout = q2(w.amount * ratio) if won else Decimal("0.00")

            settled.append(w.model_copy(update={
                "status": WagerStatus.WON if won else WagerStatus.LOST,
                "payout": payout,
                "settled_at": now,
            }))
            total_stake += w.amount
            total_payout += payout

        self.balances.apply_settlement(total_stake, total_payout)
        self.history.extend(settled)

        batch = SettledBatch(
            issue=result.issue,
            result=result,
            wagers=settled,
            total_stake=total_stake,
            total_payout=total_payout,
        )
        logger.warning(
            "第%s期：和值 %s（%s），%s 笔，投注 %.2f，派彩 %.2f，庄家 %+.2f",
            result.issue, result.sum, result.attributes.combo, len(settled),
            total_stake, total_payout, batch.house_delta,
        )
        if self.events is not None:
            self.events.emit(ROUND_SETTLED, {
                "result": result.model_dump(mode="json"),
                "wagers": [s.model_dump(mode="json") for s in settled],
                "total_stake": str(total_stake),
                "total_payout": str(total_payout),
            })
        return batch
