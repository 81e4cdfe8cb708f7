import random

import pytest

from holdem.cards import parse_cards
from holdem.equity import (
    estimate_equity,
    is_strong_starting_hand,
    sample_opponent_hand,
    simulate_equity,
)
from holdem.models import Phase

from .helpers import HighRoll


def test_royal_flush_on_the_river_never_loses():
    result = simulate_equity(
        parse_cards(["As", "Ks"]),
        parse_cards(["Qs", "Js", "Ts", "2d", "3c"]),
        Phase.RIVER,
        trials=200,
        rng=random.Random(1),
    )
    assert result.trials == 200
    assert result.win_probability == 1.0


def test_pocket_aces_are_a_big_favourite_preflop():
    equity = estimate_equity(parse_cards(["Ah", "Ad"]), [], Phase.PRE_FLOP, trials=400, rng=random.Random(3))
    assert 0.75 < equity <= 1.0


def test_weak_hand_on_a_dry_board_is_an_underdog():
    equity = estimate_equity(
        parse_cards(["7c", "2d"]),
        parse_cards(["Ks", "Qh", "9s", "4d", "Jc"]),
        Phase.RIVER,
        trials=300,
        rng=random.Random(4),
    )
    assert 0.0 <= equity < 0.25


def test_equity_is_reproducible_with_a_seeded_rng():
    hero = parse_cards(["Th", "9h"])
    board = parse_cards(["8h", "7c", "2h"])
    first = simulate_equity(hero, board, Phase.FLOP, trials=150, rng=random.Random(11))
    second = simulate_equity(hero, board, Phase.FLOP, trials=150, rng=random.Random(11))
    assert first == second


def test_input_validation():
    hero = parse_cards(["Ah", "Kh"])
    with pytest.raises(ValueError, match="exactly 2 cards"):
        simulate_equity(parse_cards(["Ah"]), [], trials=10)
    with pytest.raises(ValueError, match="0, 3, 4 or 5"):
        simulate_equity(hero, parse_cards(["2c", "3c"]), trials=10)
    with pytest.raises(ValueError, match="does not match phase"):
        simulate_equity(hero, parse_cards(["2c", "3c", "4c"]), Phase.TURN, trials=10)
    with pytest.raises(ValueError, match="Duplicate"):
        simulate_equity(hero, parse_cards(["Ah", "3c", "4c"]), trials=10)
    with pytest.raises(ValueError, match="trials must be positive"):
        simulate_equity(hero, [], trials=0)


def test_strong_starting_hands():
    assert is_strong_starting_hand(*parse_cards(["5c", "5d"]))
    assert is_strong_starting_hand(*parse_cards(["Td", "Jc"]))
    assert is_strong_starting_hand(*parse_cards(["Ah", "2c"]))
    assert not is_strong_starting_hand(*parse_cards(["9h", "Kc"]))
    assert not is_strong_starting_hand(*parse_cards(["7c", "2d"]))


def test_sampler_keeps_top_two_when_unbiased_or_strong():
    pool = parse_cards(["7c", "2d", "As", "Ad"])
    assert sample_opponent_hand(list(pool), HighRoll(), biased=False) == (pool[0], pool[1])

    strong = parse_cards(["Kc", "Kd", "7c", "2d"])
    assert sample_opponent_hand(list(strong), HighRoll(), biased=True) == (strong[0], strong[1])


def test_sampler_keeps_a_weak_hand_when_the_coin_flip_lands():
    pool = parse_cards(["7c", "2d", "As", "Ad"])
    assert sample_opponent_hand(list(pool), HighRoll(roll=0.0), biased=True) == (pool[0], pool[1])


def test_sampler_gives_up_after_bounded_retries():
    # Every possible holding is weak, so the sampler must settle for the last draw.
    pool = parse_cards(["2c", "3d", "4h", "6s", "7c", "8d", "9h"])
    first, second = sample_opponent_hand(pool, HighRoll(seed=8), biased=True, retries=3)
    assert first in pool and second in pool and first != second


class CountingRandom(HighRoll):
    """HighRoll that counts reshuffles and can force the order after each one."""

    def __init__(self, arrangements=(), roll: float = 0.99) -> None:
        super().__init__(roll=roll)
        self.shuffles = 0
        self.arrangements = [list(order) for order in arrangements]

    def shuffle(self, pool) -> None:
        self.shuffles += 1
        if self.arrangements:
            pool[:] = self.arrangements.pop(0)
        else:
            super().shuffle(pool)


def test_weak_holdings_are_redrawn_at_most_retries_times():
    pool = parse_cards(["2c", "3d", "4h", "6s", "7c", "8d", "9h"])
    rng = CountingRandom()
    sample_opponent_hand(pool, rng, biased=True, retries=2)
    assert rng.shuffles == 2

    rng = CountingRandom()
    sample_opponent_hand(list(pool), rng, biased=False)
    assert rng.shuffles == 0


def test_strong_redraw_is_accepted():
    weak_first = parse_cards(["7c", "2d", "As", "Ad"])
    strong_first = parse_cards(["As", "Ad", "7c", "2d"])
    rng = CountingRandom(arrangements=[strong_first])

    hand = sample_opponent_hand(list(weak_first), rng, biased=True, retries=2)

    assert hand == (strong_first[0], strong_first[1])
    assert rng.shuffles == 1


def test_biased_sampler_favours_strong_holdings():
    rng = random.Random(77)
    deck = parse_cards([rank + suit for rank in "23456789TJQKA" for suit in "shdc"])

    def strong_share(biased: bool) -> float:
        strong = 0
        for _ in range(2000):
            pool = list(deck)
            rng.shuffle(pool)
            if is_strong_starting_hand(*sample_opponent_hand(pool, rng, biased)):
                strong += 1
        return strong / 2000

    uniform = strong_share(False)
    biased = strong_share(True)
    # Roughly 0.28 uniform against roughly 0.49 with the bias.
    assert biased > uniform + 0.1


def test_range_bias_applies_only_once_the_board_is_out(monkeypatch):
    calls = []
    original = sample_opponent_hand

    def recording(pool, rng, biased, *args, **kwargs):
        calls.append(biased)
        return original(pool, rng, biased, *args, **kwargs)

    monkeypatch.setattr("holdem.equity.sample_opponent_hand", recording)
    hero = parse_cards(["Qh", "Qd"])

    simulate_equity(hero, [], Phase.PRE_FLOP, trials=5, rng=random.Random(1))
    assert calls == [False] * 5

    calls.clear()
    simulate_equity(hero, parse_cards(["2c", "7d", "9s"]), Phase.FLOP, trials=5, rng=random.Random(1))
    assert calls == [True] * 5

    calls.clear()
    simulate_equity(hero, parse_cards(["2c", "7d", "9s"]), Phase.FLOP, trials=5, rng=random.Random(1), range_bias=False)
    assert calls == [False] * 5


def test_equity_climbs_as_the_board_completes_the_nuts():
    hero = parse_cards(["As", "Ks"])
    flop = parse_cards(["Qs", "Js", "2d"])
    turn = flop + parse_cards(["Ts"])
    river = turn + parse_cards(["4c"])

    on_flop = estimate_equity(hero, flop, Phase.FLOP, trials=400, rng=random.Random(5))
    on_turn = estimate_equity(hero, turn, Phase.TURN, trials=400, rng=random.Random(5))
    on_river = estimate_equity(hero, river, Phase.RIVER, trials=400, rng=random.Random(5))

    assert on_flop <= on_turn + 0.02
    assert on_turn <= on_river + 0.02
    assert on_flop < 1.0
    assert on_river == 1.0
