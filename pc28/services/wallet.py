import logging
import threading
from decimal import Decimal, ROUND_HALF_UP

from pc28.core.errors import InvariantViolation

logger = logging.getLogger(__name__)


def q2(v) -> Decimal:
    return Decimal(v).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class Balances:
    """
    玩家余额 + 庄家余额。所有增减都是加锁的读-改-写。
    玩家余额不得为负；庄家余额允许为负（当期派彩大于收注）。
    """

    def __init__(self, player: Decimal = Decimal("10000"), house: Decimal = Decimal("88888888")):
        self.lock = threading.Lock()
        self._player = q2(player)
        self._house = q2(house)

    @property
    def player(self) -> Decimal:
        return self._player

    @property
    def house(self) -> Decimal:
        return self._house

    def debit_player_locked(self, amount: Decimal) -> Decimal:
        """调用方已持有 self.lock"""
        amount = q2(amount)
        if amount > self._player:
            raise InvariantViolation(f"player balance underflow: {self._player} - {amount}")
        self._player -= amount
        return self._player

    def credit_player(self, amount: Decimal) -> Decimal:
        amount = q2(amount)
        if amount < 0:
            raise InvariantViolation(f"negative credit: {amount}")
        with self.lock:
            self._player += amount
            return self._player

    def apply_settlement(self, total_stake: Decimal, total_payout: Decimal) -> None:
        """派彩入玩家；庄家 += 收注 - 派彩"""
        total_stake, total_payout = q2(total_stake), q2(total_payout)
        if total_payout < 0 or total_stake < 0:
            raise InvariantViolation("negative settlement totals")
        with self.lock:
            self._player += total_payout
            self._house += total_stake - total_payout
