from __future__ import annotations

import asyncio
from decimal import Decimal

from pc28.core.errors import ChainUnavailable
from pc28.schemas.bets import BetType
from pc28.schemas.lottery import BlockData
from pc28.services.events import ROUND_ADVANCED
from pc28.tasks.scheduler import ChainTipPoller


class FakeChain:
    """In-memory chain: blocks by height, a movable tip and switchable outages."""

    def __init__(self, tip: int):
        self.tip = tip
        self.down = False
        self.missing: set[int] = set()
        self.by_height_calls: list[int] = []

    def block(self, height: int) -> BlockData:
        # hash ends with the height's digits padded, so results are predictable
        return BlockData(hash=f"00ff{height:06d}", height=height, timestamp=height * 3000)

    async def get_latest_block(self):
        if self.down:
            raise ChainUnavailable("boom")
        return self.block(self.tip)

    async def get_block_by_height(self, height: int):
        self.by_height_calls.append(height)
        if self.down:
            raise ChainUnavailable("boom")
        if height in self.missing or height > self.tip:
            return None
        return self.block(height)


def run(coro):
    return asyncio.run(coro)


def test_cold_start_settles_first_observed_boundary(ctx):
    chain = FakeChain(tip=1005)
    poller = ChainTipPoller(ctx, chain)

    batches = run(poller.tick())

    assert [b.issue for b in batches] == [1000]
    assert chain.by_height_calls == [1000]
    assert poller.last_finalized == 1000
    assert ctx.results.latest().issue == 1000


def test_tip_on_boundary_uses_tip_block(ctx):
    chain = FakeChain(tip=1000)
    poller = ChainTipPoller(ctx, chain)

    run(poller.tick())

    assert chain.by_height_calls == []
    assert poller.last_finalized == 1000


def test_each_issue_is_settled_once(ctx):
    chain = FakeChain(tip=1001)
    poller = ChainTipPoller(ctx, chain)
    run(poller.tick())  # finalizes 1000

    ctx.place_bet("pc2.0", BetType.BIG, 100)
    chain.tip = 1010
    assert run(poller.tick()) == []

    chain.tip = 1023  # boundary 1020 was skipped over between polls
    batches = run(poller.tick())
    assert [b.issue for b in batches] == [1020]
    assert len(batches[0].wagers) == 1

    assert run(poller.tick()) == []
    assert len(ctx.bets) == 1


def test_outage_skips_cycle_and_recovers(ctx):
    chain = FakeChain(tip=1001)
    poller = ChainTipPoller(ctx, chain)
    run(poller.tick())
    ctx.place_bet("pc2.0", BetType.SMALL, 100)

    chain.tip = 1021
    chain.down = True
    assert run(poller.tick()) == []
    assert poller.last_finalized == 1000
    assert ctx.ledger.pending_issues() == [1020]

    chain.down = False
    batches = run(poller.tick())
    assert [b.issue for b in batches] == [1020]
    assert ctx.ledger.pending() == []


def test_block_not_yet_available_is_retried(ctx):
    chain = FakeChain(tip=1021)
    chain.missing.add(1020)
    poller = ChainTipPoller(ctx, chain)

    assert run(poller.tick()) == []
    assert poller.last_finalized is None

    chain.missing.clear()
    assert [b.issue for b in run(poller.tick())] == [1020]


def test_missed_issues_with_wagers_are_caught_up(ctx):
    chain = FakeChain(tip=1001)
    poller = ChainTipPoller(ctx, chain)
    run(poller.tick())
    ctx.place_bet("pc2.0", BetType.BIG, 100)

    # poller was down for several rounds
    chain.tip = 1065
    batches = run(poller.tick())

    assert [b.issue for b in batches] == [1020, 1060]
    assert len(batches[0].wagers) == 1
    assert poller.last_finalized == 1060


def test_tick_updates_round_and_emits_event(ctx):
    chain = FakeChain(tip=1016)
    poller = ChainTipPoller(ctx, chain)

    run(poller.tick())

    assert ctx.round.tip_height == 1016
    assert ctx.round.locked is True
    advanced = [e for e in ctx.events.recent() if e["event"] == ROUND_ADVANCED][-1]
    assert advanced["data"] == {
        "issue": 1020, "current_issue": 1000, "blocks_remaining": 4, "locked": True,
    }


def test_settlement_through_poller_conserves_money(ctx):
    chain = FakeChain(tip=1001)
    poller = ChainTipPoller(ctx, chain)
    run(poller.tick())
    for t in BetType:
        ctx.place_bet("netdisk", t, 10)
    house_before = ctx.balances.house
    player_before = ctx.balances.player

    chain.tip = 1020
    (batch,) = run(poller.tick())

    assert batch.total_stake == Decimal("100")
    assert ctx.balances.house - house_before == batch.total_stake - batch.total_payout
    assert ctx.balances.player - player_before == batch.total_payout
