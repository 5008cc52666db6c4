"""
Distribution: the whole pool (52 cards + jokers) is dealt round-robin.
Hand sizes differ by at most one; each hand is sorted weakest to strongest.
"""
from __future__ import annotations

from typing import NamedTuple

from .capabilities import NumpyRandomSource, RandomSource
from .deck import Deck, card_order
from .errors import PlayersEmpty


class Deal(NamedTuple):
    """Result of a deal. hands[i] belongs to the i-th seated player."""
    hands: list[Deck]
    first: int  # seat index of the player who leads


def deal_hands(
    player_count: int,
    rng: RandomSource | None = None,
    joker_count: int = 2,
) -> Deal:
    """
    Shuffle the full pool and split it round-robin into ``player_count`` hands.
    The first seated player leads.
    """
    if player_count <= 0:
        raise PlayersEmpty("players is empty")
    if rng is None:
        rng = NumpyRandomSource()
    deck = Deck.all(joker_count)
    deck.shuffle(rng)
    hands = deck.split(player_count)
    for hand in hands:
        hand.sort(card_order)
    return Deal(hands=hands, first=0)


def hand_sizes(player_count: int, joker_count: int = 2) -> list[int]:
    """Expected hand sizes for a round-robin deal (first seats get the extras)."""
    if player_count <= 0:
        raise PlayersEmpty("players is empty")
    total = 52 + joker_count
    base, extra = divmod(total, player_count)
    return [base + (1 if i < extra else 0) for i in range(player_count)]
