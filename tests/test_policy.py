import pytest

from holdem.cards import parse_cards
from holdem.models import ActionType, Phase
from holdem.policy import PolicyConfig, required_equity

from .helpers import FixedEquityPolicy

HAND = parse_cards(["Ah", "Kd"])


def decide(policy, pot=30, to_call=10, *, stack=990, committed=10, opponent_committed=20):
    return policy.decide(
        HAND,
        [],
        pot,
        to_call,
        Phase.PRE_FLOP,
        stack=stack,
        committed=committed,
        opponent_committed=opponent_committed,
        big_blind=20,
    )


def test_required_equity_is_pot_odds():
    assert required_equity(30, 10) == pytest.approx(0.25)
    assert required_equity(100, 0) == 0.0


def test_strong_equity_raises_the_pot():
    decision = decide(FixedEquityPolicy(0.9))
    assert decision.action == ActionType.RAISE
    assert not decision.bluff
    # Full pot on top of the 20 already in front of the opponent.
    assert decision.raise_to == 50
    assert decision.rationale == "equity 90.0% vs needed 25.0% -> RAISE to 50"


def test_value_raise_below_pot_threshold_uses_half_pot():
    decision = decide(FixedEquityPolicy(0.6), pot=100)
    assert decision.action == ActionType.RAISE
    assert decision.raise_to == 20 + 50


def test_middling_equity_calls_or_checks():
    assert decide(FixedEquityPolicy(0.4)).action == ActionType.CALL
    assert decide(FixedEquityPolicy(0.1), to_call=0).action == ActionType.CHECK


def test_poor_equity_folds_facing_a_bet():
    decision = decide(FixedEquityPolicy(0.1))
    assert decision.action == ActionType.FOLD
    assert decision.raise_to is None


def test_fold_with_nothing_to_call_becomes_check():
    decision = decide(FixedEquityPolicy(0.0), to_call=0)
    assert decision.action == ActionType.CHECK


def test_low_equity_bluff_raises_half_pot():
    decision = decide(FixedEquityPolicy(0.2, roll=0.05), pot=40)
    assert decision.action == ActionType.RAISE
    assert decision.bluff
    assert decision.raise_to == 20 + 20
    assert "BLUFF RAISE" in decision.rationale


def test_no_bluff_above_the_equity_ceiling():
    decision = decide(FixedEquityPolicy(0.4, roll=0.0), to_call=20, pot=40)
    assert not decision.bluff
    assert decision.action == ActionType.CALL


def test_raise_target_is_capped_by_stack_and_floored_at_big_blind():
    short = decide(FixedEquityPolicy(0.95), pot=400, stack=100, committed=20, opponent_committed=40)
    assert short.raise_to == 120

    tiny_pot = decide(FixedEquityPolicy(0.7, config=PolicyConfig(trials=10)), pot=10, to_call=0, opponent_committed=0)
    assert tiny_pot.raise_to == 20


def test_no_bluff_when_raising_is_impossible():
    decision = decide(FixedEquityPolicy(0.05, roll=0.0), pot=1020, to_call=980, stack=980, committed=20, opponent_committed=1000)
    assert decision.bluff

    blocked = FixedEquityPolicy(0.05, roll=0.0).decide(
        HAND, [], 1020, 980, Phase.PRE_FLOP, stack=980, committed=20, opponent_committed=1000, can_raise=False
    )
    assert blocked.action == ActionType.FOLD
    assert not blocked.bluff


def test_value_hand_calls_when_raising_is_impossible():
    decision = FixedEquityPolicy(0.9).decide(
        HAND, [], 1020, 980, Phase.PRE_FLOP, stack=980, committed=20, opponent_committed=1000, can_raise=False
    )
    assert decision.action == ActionType.CALL
    assert decision.raise_to is None
