from __future__ import annotations

from decimal import Decimal

import pytest

from pc28.schemas.lottery import RoundResult
from pc28.services.context import LotteryContext
from pc28.services.result_service import derive

BLOCKS_PER_ISSUE = 20
LOCK_MARGIN = 5


@pytest.fixture
def ctx() -> LotteryContext:
    """Fresh context whose round is open: tip 1001 -> betting on issue 1020."""
    c = LotteryContext(
        blocks_per_issue=BLOCKS_PER_ISSUE,
        lock_margin=LOCK_MARGIN,
        player_balance=Decimal("10000"),
        house_balance=Decimal("1000000"),
    )
    c.observe_tip(1001)
    return c


@pytest.fixture
def make_result():
    def _make(digits: str, issue: int = 1020, timestamp: int = 1_700_000_000_000) -> RoundResult:
        # Letters are stripped by the deriver, so the digits only need to sit at the end.
        return derive(f"0000000000abcdef{digits}", issue, timestamp)

    return _make
