# pc28/services/context.py
from __future__ import annotations
import logging
import time
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from pc28.core.config import Settings, settings as default_settings
from pc28.core.errors import BetRejected, RejectReason
from pc28.schemas.bets import BetType, SettledBatch, Wager
from pc28.schemas.game import GameConfig, GameStatus
from pc28.schemas.lottery import RoundResult, RoundState
from pc28.services.bet_service import WagerLedger
from pc28.services.config_store import GameConfigStore
from pc28.services.events import BET_REJECTED, ROUND_ADVANCED, EventHub
from pc28.services.history import BetHistory, ResultHistory
from pc28.services.round_clock import GamePhase, game_phase, round_state
from pc28.services.wallet import Balances
from pc28.tasks.settlement import SettlementEngine

logger = logging.getLogger(__name__)


class LotteryContext:
    """
    一个玩家会话的全部可变状态：配置、余额、注单、历史、事件。
    路由与调度器都显式拿到同一个 context，不依赖模块级全局变量。
    """

    def __init__(
        self,
        blocks_per_issue: int = 20,
        lock_margin: int = 5,
        games: Optional[Iterable[GameConfig]] = None,
        player_balance: Decimal = Decimal("10000"),
        house_balance: Decimal = Decimal("88888888"),
        history_limit: int = 20,
        stale_after: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.blocks_per_issue = blocks_per_issue
        self.lock_margin = lock_margin
        self.configs = GameConfigStore(games)
        self.balances = Balances(player_balance, house_balance)
        self.ledger = WagerLedger(self.configs, self.balances)
        self.results = ResultHistory(history_limit)
        self.bets = BetHistory()
        self.events = EventHub()
        self.engine = SettlementEngine(self.ledger, self.configs, self.balances, self.bets, self.events)
        self.round: Optional[RoundState] = None
        # 超过 stale_after 秒没观察到链上高度（节点故障）时按封盘处理；None 表示不检查
        self.stale_after = stale_after
        self._clock = clock
        self._observed_at: Optional[float] = None

    # ---------- 期次 ----------
    def observe_tip(self, tip_height: int) -> RoundState:
        state = round_state(tip_height, self.blocks_per_issue, self.lock_margin)
        prev, self.round = self.round, state
        self._observed_at = self._clock()
        if prev is None or prev.tip_height != state.tip_height:
            self.events.emit(ROUND_ADVANCED, {
                "issue": state.next_issue,
                "current_issue": state.current_issue,
                "blocks_remaining": state.blocks_remaining,
                "locked": state.locked,
            })
        return state

    def tip_is_stale(self) -> bool:
        if self.stale_after is None or self._observed_at is None:
            return False
        return self._clock() - self._observed_at > self.stale_after

    def _phase_of(self, game_id: str, state: Optional[RoundState]) -> GamePhase:
        phase = game_phase(self.configs.get(game_id).status, state)
        if phase is GamePhase.OPEN and self.tip_is_stale():
            return GamePhase.LOCKED
        return phase

    def phase(self, game_id: str) -> GamePhase:
        return self._phase_of(game_id, self.round)

    def finalize(self, result: RoundResult) -> SettledBatch:
        self.results.add(result)
        return self.engine.settle(result)

    # ---------- 玩家操作 ----------
    def _open_issue(self, game_id: str) -> int:
        """当前可下注/撤单的期号；封盘或暂停直接拒绝"""
        st = self.round
        phase = self._phase_of(game_id, st)
        if phase in (GamePhase.PAUSED, GamePhase.HIDDEN):
            raise BetRejected(RejectReason.PAUSED)
        if phase is GamePhase.LOCKED:
            raise BetRejected(RejectReason.LOCKED)
        return st.next_issue

    def _rejected(self, game_id: str, e: BetRejected) -> None:
        logger.info("bet rejected: game=%s reason=%s", game_id, e.reason.value)
        self.events.emit(BET_REJECTED, {"game_id": game_id, "reason": e.reason.value, "message": e.message})

    def place_bet(self, game_id: str, bet_type: BetType, amount) -> Wager:
        try:
            issue = self._open_issue(game_id)
            return self.ledger.place(game_id, BetType(bet_type), amount, issue)
        except BetRejected as e:
            self._rejected(game_id, e)
            raise

    def cancel_all_bets(self, game_id: str) -> Decimal:
        try:
            issue = self._open_issue(game_id)
        except BetRejected as e:
            self._rejected(game_id, e)
            raise
        return self.ledger.cancel_all(game_id, issue)

    def cancel_bets_by_type(self, game_id: str, bet_type: BetType) -> Decimal:
        try:
            issue = self._open_issue(game_id)
        except BetRejected as e:
            self._rejected(game_id, e)
            raise
        return self.ledger.cancel_type(game_id, issue, BetType(bet_type))

    # ---------- 后台 ----------
    def update_odds(self, game_id: str, bet_type: BetType, value) -> GameConfig:
        return self.configs.apply_odds_change(game_id, BetType(bet_type), value)

    def set_game_status(self, game_id: str, status: GameStatus) -> GameConfig:
        return self.configs.set_status(game_id, status)

    def set_special_rules(self, game_id: str, enabled: bool, single_odds, combo_odds) -> GameConfig:
        return self.configs.set_special_rules(game_id, enabled, single_odds, combo_odds)

    def apply_limits(self, game_ids: List[str], min_bet, max_bet) -> List[GameConfig]:
        return self.configs.apply_limits(game_ids, min_bet, max_bet)


def build_context(cfg: Settings = default_settings) -> LotteryContext:
    return LotteryContext(
        blocks_per_issue=cfg.BLOCKS_PER_ISSUE,
        lock_margin=cfg.LOCK_MARGIN_BLOCKS,
        player_balance=Decimal(cfg.INITIAL_BALANCE),
        house_balance=Decimal(cfg.INITIAL_HOUSE_BALANCE),
        history_limit=cfg.HISTORY_LIMIT,
        stale_after=cfg.TIP_STALE_SECONDS,
    )
