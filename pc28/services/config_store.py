from __future__ import annotations
import logging
import threading
from decimal import Decimal
from typing import Dict, Iterable, List

from pydantic import ValidationError

from pc28.constants import BET_TYPE_TABLE, DEFAULT_GAMES, SPECIAL_COMBO_ODDS, SPECIAL_SINGLE_ODDS
from pc28.core.errors import InvalidConfig, UnknownGame
from pc28.schemas.bets import BetType
from pc28.schemas.game import BetOption, GameConfig, GameStatus

logger = logging.getLogger(__name__)


def default_odds(high: bool = False) -> List[BetOption]:
    return [
        BetOption(type=BetType(t), label=label, odds=Decimal(high_odds if high else odds))
        for t, label, odds, high_odds in BET_TYPE_TABLE
    ]


def default_games() -> List[GameConfig]:
    return [
        GameConfig(
            id=gid,
            name=name,
            description=desc,
            badge=badge,
            status=GameStatus.ACTIVE,
            odds=default_odds(high),
            min_bet=Decimal(min_bet),
            max_bet=Decimal(max_bet),
            special_rules_enabled=special,
            special_single_odds=SPECIAL_SINGLE_ODDS,
            special_combo_odds=SPECIAL_COMBO_ODDS,
        )
        for gid, name, desc, badge, high, min_bet, max_bet, special in DEFAULT_GAMES
    ]


class GameConfigStore:
    """
    游戏配置：读返回不可变快照，写先校验再整体替换（加锁，单写者）。
    """

    def __init__(self, games: Iterable[GameConfig] | None = None):
        self._lock = threading.Lock()
        self._games: Dict[str, GameConfig] = {}
        for g in games if games is not None else default_games():
            self._games[g.id] = g

    # ---------- 读 ----------
    def get(self, game_id: str) -> GameConfig:
        try:
            return self._games[game_id]
        except KeyError:
            raise UnknownGame(game_id) from None

    def list(self) -> List[GameConfig]:
        return list(self._games.values())

    def visible(self) -> List[GameConfig]:
        return [g for g in self._games.values() if g.status is not GameStatus.HIDDEN]

    def snapshot(self) -> Dict[str, GameConfig]:
        """整表快照（结算时一期只取一次）"""
        return dict(self._games)

    # ---------- 写 ----------
    def _rebuild(self, current: GameConfig, **changes) -> GameConfig:
        data = current.model_dump()
        data.update(changes)
        try:
            return GameConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidConfig(f"配置无效({current.id}): {e.errors()[0]['msg']}") from e

    def apply_odds_change(self, game_id: str, bet_type: BetType, value) -> GameConfig:
        value = Decimal(str(value))
        if value <= 0:
            raise InvalidConfig("赔率必须大于 0")
        with self._lock:
            cur = self.get(game_id)
            odds = [
                {"type": o.type, "label": o.label, "odds": value if o.type == bet_type else o.odds}
                for o in cur.odds
            ]
            new = self._rebuild(cur, odds=odds)
            self._games[game_id] = new
        logger.info("odds updated: game=%s type=%s odds=%s", game_id, bet_type.value, value)
        return new

    def set_status(self, game_id: str, status: GameStatus) -> GameConfig:
        with self._lock:
            new = self._rebuild(self.get(game_id), status=GameStatus(status))
            self._games[game_id] = new
        logger.info("status updated: game=%s status=%s", game_id, new.status.value)
        return new

    def set_special_rules(self, game_id: str, enabled: bool, single_odds, combo_odds) -> GameConfig:
        with self._lock:
            new = self._rebuild(
                self.get(game_id),
                special_rules_enabled=bool(enabled),
                special_single_odds=Decimal(str(single_odds)),
                special_combo_odds=Decimal(str(combo_odds)),
            )
            self._games[game_id] = new
        logger.info("special rules updated: game=%s enabled=%s single=%s combo=%s",
                    game_id, new.special_rules_enabled, new.special_single_odds, new.special_combo_odds)
        return new

    def apply_limits(self, game_ids: List[str], min_bet, max_bet) -> List[GameConfig]:
        min_bet, max_bet = Decimal(str(min_bet)), Decimal(str(max_bet))
        if not game_ids:
            raise InvalidConfig("请至少选择一个游戏来应用限额设置")
        if min_bet < 0 or max_bet < min_bet:
            raise InvalidConfig("限额设置无效，请检查数值")
        with self._lock:
            # 全部校验通过后再一次性替换
            updated = [self._rebuild(self.get(gid), min_bet=min_bet, max_bet=max_bet) for gid in game_ids]
            for g in updated:
                self._games[g.id] = g
        logger.info("limits updated: games=%s min=%s max=%s", ",".join(game_ids), min_bet, max_bet)
        return updated

    def replace_all(self, games: Iterable[GameConfig]) -> None:
        games = list(games)
        if not games:
            raise InvalidConfig("游戏列表不能为空")
        ids = [g.id for g in games]
        if len(ids) != len(set(ids)):
            raise InvalidConfig("游戏 ID 重复")
        with self._lock:
            self._games = {g.id: g for g in games}
        logger.info("game configs replaced: %s", ",".join(ids))
