from __future__ import annotations

from decimal import Decimal

import pytest

from pc28.core.errors import InvariantViolation
from pc28.schemas.bets import BetType, Wager, WagerStatus
from pc28.services.events import ROUND_SETTLED
from pc28.tasks.settlement import is_hit, payout_ratio


def _by_type(batch):
    return {w.type: w for w in batch.wagers}


@pytest.mark.parametrize(
    "digits, winners",
    [
        # 8+3+9 = 20
        ("839", {BetType.BIG, BetType.EVEN, BetType.BIG_EVEN}),
        # 1+2+4 = 7
        ("124", {BetType.SMALL, BetType.ODD, BetType.SMALL_ODD}),
        # 5+5+5 = 15
        ("555", {BetType.BIG, BetType.ODD, BetType.BIG_ODD, BetType.LEOPARD}),
        # 3+3+0 = 6
        ("330", {BetType.SMALL, BetType.EVEN, BetType.SMALL_EVEN, BetType.PAIR}),
    ],
)
def test_hit_rules(make_result, digits, winners):
    attrs = make_result(digits).attributes
    assert {t for t in BetType if is_hit(t, attrs)} == winners


def test_settle_pays_winners_and_moves_house(ctx, make_result):
    ctx.place_bet("pc2.0", BetType.BIG, 100)
    ctx.place_bet("pc2.0", BetType.SMALL, 50)
    ctx.place_bet("pc2.0", BetType.BIG_EVEN, 10)
    player_before, house_before = ctx.balances.player, ctx.balances.house

    batch = ctx.finalize(make_result("839"))

    bets = _by_type(batch)
    assert bets[BetType.BIG].status is WagerStatus.WON
    assert bets[BetType.BIG].payout == Decimal("200.00")
    assert bets[BetType.SMALL].status is WagerStatus.LOST
    assert bets[BetType.SMALL].payout == Decimal("0")
    assert bets[BetType.BIG_EVEN].payout == Decimal("38.00")
    assert all(w.settled_at for w in batch.wagers)

    assert batch.total_stake == Decimal("160")
    assert batch.total_payout == Decimal("238.00")
    assert ctx.balances.player - player_before == Decimal("238.00")
    # house paid out more than it took in: allowed to go down
    assert ctx.balances.house - house_before == Decimal("-78.00")
    assert batch.house_delta == Decimal("-78.00")


def test_conservation_of_money(ctx, make_result):
    for t, amt in [(BetType.BIG, 30), (BetType.ODD, 70), (BetType.PAIR, 15), (BetType.LEOPARD, 10)]:
        ctx.place_bet("netdisk", t, amt)
    player_before, house_before = ctx.balances.player, ctx.balances.house

    batch = ctx.finalize(make_result("117"))

    assert ctx.balances.house - house_before == batch.total_stake - batch.total_payout
    assert ctx.balances.player - player_before == batch.total_payout
    assert batch.total_stake == Decimal("125")


def test_settle_twice_is_a_no_op(ctx, make_result):
    ctx.place_bet("pc2.0", BetType.BIG, 100)
    result = make_result("839")

    ctx.finalize(result)
    balances = (ctx.balances.player, ctx.balances.house)
    history_len = len(ctx.bets)

    again = ctx.engine.settle(result)

    assert again.is_empty
    assert (ctx.balances.player, ctx.balances.house) == balances
    assert len(ctx.bets) == history_len


def test_empty_issue_is_cheap_no_op(ctx, make_result):
    batch = ctx.finalize(make_result("839", issue=2000))

    assert batch.is_empty
    assert batch.total_stake == 0
    assert ctx.balances.player == Decimal("10000")
    assert [e for e in ctx.events.recent() if e["event"] == ROUND_SETTLED] == []


def test_only_the_finalized_issue_is_drained(ctx, make_result):
    ctx.place_bet("pc2.0", BetType.BIG, 100)
    ctx.observe_tip(1021)
    ctx.place_bet("pc2.0", BetType.BIG, 40)  # issue 1040

    batch = ctx.finalize(make_result("839", issue=1020))

    assert len(batch.wagers) == 1
    assert [w.issue for w in ctx.ledger.pending()] == [1040]


def test_special_rule_sum_13(ctx, make_result):
    """Sum 13: small uses the special single odds, big_odd keeps its own odds."""
    ctx.apply_limits(["pc2.0"], 1, 50000)
    ctx.place_bet("pc2.0", BetType.SMALL, 100)
    ctx.place_bet("pc2.0", BetType.ODD, 100)
    ctx.place_bet("pc2.0", BetType.SMALL_ODD, 100)
    ctx.place_bet("pc2.0", BetType.BIG_ODD, 100)

    batch = ctx.finalize(make_result("157"))  # 1+5+7 = 13, small odd

    bets = _by_type(batch)
    assert batch.result.sum == 13
    assert bets[BetType.SMALL].payout == Decimal("198.00")
    assert bets[BetType.ODD].payout == Decimal("198.00")
    assert bets[BetType.SMALL_ODD].payout == Decimal("160.00")
    # big_odd loses on 13 anyway; its ratio is never overridden
    assert bets[BetType.BIG_ODD].status is WagerStatus.LOST


def test_special_rule_sum_14(ctx, make_result):
    ctx.place_bet("pc2.0", BetType.BIG, 100)
    ctx.place_bet("pc2.0", BetType.EVEN, 100)
    ctx.place_bet("pc2.0", BetType.BIG_EVEN, 100)

    bets = _by_type(ctx.finalize(make_result("167")))  # 14, big even

    assert bets[BetType.BIG].payout == Decimal("198.00")
    assert bets[BetType.EVEN].payout == Decimal("198.00")
    assert bets[BetType.BIG_EVEN].payout == Decimal("160.00")


def test_special_rule_is_asymmetric(make_result, ctx):
    """Only the types matching the special sum's own attributes are overridden."""
    cfg = ctx.configs.get("pc2.0")

    def wager(t):
        return Wager(id="x", type=t, label=t.label, amount=Decimal("100"), odds=Decimal("3.8"),
                     issue=1020, game_id="pc2.0")

    # at 13 the overridden types are small / odd / small_odd only
    assert payout_ratio(wager(BetType.BIG_ODD), 13, cfg) == Decimal("3.8")
    assert payout_ratio(wager(BetType.EVEN), 13, cfg) == Decimal("3.8")
    assert payout_ratio(wager(BetType.SMALL_EVEN), 13, cfg) == Decimal("3.8")
    assert payout_ratio(wager(BetType.SMALL_ODD), 13, cfg) == Decimal("1.6")
    # at 14 the overridden types are big / even / big_even only
    assert payout_ratio(wager(BetType.SMALL), 14, cfg) == Decimal("3.8")
    assert payout_ratio(wager(BetType.BIG_ODD), 14, cfg) == Decimal("3.8")
    assert payout_ratio(wager(BetType.BIG_EVEN), 14, cfg) == Decimal("1.6")
    assert payout_ratio(wager(BetType.BIG), 14, cfg) == Decimal("1.98")
    # other sums never override
    assert payout_ratio(wager(BetType.BIG), 15, cfg) == Decimal("3.8")


def test_special_rule_disabled_uses_snapshot_odds(ctx, make_result):
    ctx.place_bet("pure", BetType.SMALL, 100)

    bets = _by_type(ctx.finalize(make_result("157")))

    assert bets[BetType.SMALL].payout == Decimal("200.00")


def test_admin_edit_after_settlement_only_affects_next_round(ctx, make_result):
    ctx.place_bet("pc2.0", BetType.SMALL, 100)
    first = _by_type(ctx.finalize(make_result("157")))
    ctx.set_special_rules("pc2.0", True, "1.5", "1.2")

    ctx.observe_tip(1021)
    ctx.place_bet("pc2.0", BetType.SMALL, 100)
    second = _by_type(ctx.finalize(make_result("157", issue=1040)))

    assert first[BetType.SMALL].payout == Decimal("198.00")
    assert second[BetType.SMALL].payout == Decimal("150.00")


def test_settled_wagers_go_to_history_and_emit_event(ctx, make_result):
    ctx.place_bet("pc2.0", BetType.BIG, 100)
    batch = ctx.finalize(make_result("839"))

    assert ctx.bets.list() == batch.wagers
    event = [e for e in ctx.events.recent() if e["event"] == ROUND_SETTLED][-1]
    assert event["data"]["result"]["issue"] == 1020
    assert event["data"]["wagers"][0]["status"] == "won"
    assert ctx.results.latest().issue == 1020


def test_foreign_issue_wager_is_an_invariant_violation(ctx, make_result):
    stray = Wager(id="bad", type=BetType.BIG, label="大", amount=Decimal("10"), odds=Decimal("2"),
                  issue=9999, game_id="pc2.0")
    ctx.ledger._pending[1020] = [stray]

    with pytest.raises(InvariantViolation):
        ctx.engine.settle(make_result("839"))
