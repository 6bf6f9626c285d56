from __future__ import annotations
import logging
import threading
import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from pc28.core.errors import BetRejected, RejectReason
from pc28.core.timeutil import now_ms
from pc28.schemas.bets import BetType, RoundStats, Wager
from pc28.schemas.game import GameStatus
from pc28.services.config_store import GameConfigStore
from pc28.services.wallet import Balances, q2

logger = logging.getLogger(__name__)


class WagerLedger:
    """
    待结算注单，按期号分区。
    锁顺序固定为 ledger -> wallet，结算侧先 drain 释放 ledger 锁再动钱包。
    """

    def __init__(self, configs: GameConfigStore, balances: Balances):
        self._lock = threading.Lock()
        self._pending: Dict[int, List[Wager]] = {}
        self._drained_upto: Optional[int] = None
        self.configs = configs
        self.balances = balances

    def _cumulative_locked(self, game_id: str, issue: int, bet_type: BetType) -> Decimal:
        return sum(
            (w.amount for w in self._pending.get(issue, ())
             if w.game_id == game_id and w.type == bet_type),
            Decimal("0"),
        )

    def cumulative(self, game_id: str, issue: int, bet_type: BetType) -> Decimal:
        with self._lock:
            return self._cumulative_locked(game_id, issue, bet_type)

    def place(self, game_id: str, bet_type: BetType, amount, issue: int) -> Wager:
        amount = Decimal(str(amount))
        if amount <= 0 or amount != q2(amount):
            raise BetRejected(RejectReason.INVALID_AMOUNT)

        with self._lock:
            # 已结算（或正在结算）的期次不再接受注单
            if self._drained_upto is not None and issue <= self._drained_upto:
                raise BetRejected(RejectReason.LOCKED)

            cfg = self.configs.get(game_id)
            if cfg.status is not GameStatus.ACTIVE:
                raise BetRejected(RejectReason.PAUSED)
            if amount < cfg.min_bet:
                raise BetRejected(RejectReason.BELOW_MIN, f"单注最低下注金额为 {cfg.min_bet}")

            existing = self._cumulative_locked(game_id, issue, bet_type)
            if existing + amount > cfg.max_bet:
                remaining = max(Decimal("0"), cfg.max_bet - existing)
                raise BetRejected(
                    RejectReason.LIMIT_EXCEEDED,
                    f"超出限额：该玩法单期累计限额 {cfg.max_bet}，当前已投 {existing}，剩余可投 {remaining}",
                )

            option = cfg.odds_for(bet_type)
            with self.balances.lock:
                if self.balances.player < amount:
                    raise BetRejected(RejectReason.INSUFFICIENT_BALANCE)
                self.balances.debit_player_locked(amount)

            wager = Wager(
                id=uuid.uuid4().hex[:12],
                type=bet_type,
                label=option.label,
                amount=amount,
                odds=option.odds,
                issue=issue,
                game_id=game_id,
                created_at=now_ms(),
            )
            self._pending.setdefault(issue, []).append(wager)

        logger.info("bet placed: issue=%s game=%s type=%s amount=%s odds=%s",
                    issue, game_id, bet_type.value, amount, wager.odds)
        return wager

    def _cancel(self, issue: int, match) -> Decimal:
        with self._lock:
            bucket = self._pending.get(issue, [])
            removed = [w for w in bucket if match(w)]
            if not removed:
                return Decimal("0")
            kept = [w for w in bucket if not match(w)]
            if kept:
                self._pending[issue] = kept
            else:
                self._pending.pop(issue, None)
            refund = sum((w.amount for w in removed), Decimal("0"))
            self.balances.credit_player(refund)
        return refund

    def cancel_all(self, game_id: str, issue: int) -> Decimal:
        refund = self._cancel(issue, lambda w: w.game_id == game_id)
        if refund:
            logger.info("bets cancelled: issue=%s game=%s refund=%s", issue, game_id, refund)
        return refund

    def cancel_type(self, game_id: str, issue: int, bet_type: BetType) -> Decimal:
        refund = self._cancel(issue, lambda w: w.game_id == game_id and w.type == bet_type)
        if refund:
            logger.info("bets cancelled: issue=%s game=%s type=%s refund=%s",
                        issue, game_id, bet_type.value, refund)
        return refund

    def drain(self, issue: int) -> List[Wager]:
        """取走该期全部待结算注单；同一期第二次调用返回空列表"""
        with self._lock:
            if self._drained_upto is None or issue > self._drained_upto:
                self._drained_upto = issue
            return self._pending.pop(issue, [])

    # ---------- 只读 ----------
    def pending(self, game_id: Optional[str] = None, issue: Optional[int] = None) -> List[Wager]:
        with self._lock:
            out = [w for bucket in self._pending.values() for w in bucket]
        return [
            w for w in out
            if (game_id is None or w.game_id == game_id) and (issue is None or w.issue == issue)
        ]

    def pending_issues(self) -> List[int]:
        with self._lock:
            return sorted(self._pending)

    def round_stats(self, game_id: str, issue: int) -> RoundStats:
        bets = self.pending(game_id=game_id, issue=issue)
        return RoundStats(
            issue=issue,
            total_bet=sum((w.amount for w in bets), Decimal("0")),
            count=len(bets),
        )
