"""
Cards and card piles: 52 numbered cards (4 suits × 13) plus jokers.

Strength order follows the shedding-game convention 3 < 4 < ... < K < A < 2,
exposed through ``cardinal``. An unassigned joker outranks every numbered card.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from functools import cmp_to_key
from typing import Callable, Iterable, Iterator, Optional

from .errors import InvalidSplit, NotFound, ParseError


class Suit(IntEnum):
    """Spade, Diamond, Heart, Clover. UNSUITED only marks an unassigned joker."""
    SPADE = 0
    DIAMOND = 1
    HEART = 2
    CLOVER = 3
    UNSUITED = 4

    @classmethod
    def suits(cls) -> list["Suit"]:
        return [cls.SPADE, cls.DIAMOND, cls.HEART, cls.CLOVER]

    @property
    def char(self) -> str:
        return "sdhc*"[self]


RANK_ACE = 1
RANK_JACK = 11
ALL_RANKS = tuple(range(1, 14))

_RANK_CHARS = {1: "A", 10: "T", 11: "J", 12: "Q", 13: "K"}
_CHAR_RANKS = {v: k for k, v in _RANK_CHARS.items()}
_CHAR_SUITS = {"s": Suit.SPADE, "d": Suit.DIAMOND, "h": Suit.HEART, "c": Suit.CLOVER}

# Unicode playing-card blocks start at the ace of each suit; the Knight code
# point sits between Jack and Queen and is never used.
_GLYPH_BASE = {
    Suit.SPADE: 0x1F0A1,
    Suit.HEART: 0x1F0B1,
    Suit.DIAMOND: 0x1F0C1,
    Suit.CLOVER: 0x1F0D1,
    Suit.UNSUITED: 0x1F0A1,
}
_JOKER_GLYPH = "\U0001F0DF"


@dataclass(frozen=True)
class Card:
    """
    A single card. Either:
    - number: suit + rank (1=Ace .. 13=King)
    - joker: unassigned (suit UNSUITED, rank None) or played as (suit, rank)
    """

    kind: str  # "number" | "joker"
    suit: Suit = Suit.UNSUITED
    rank: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind == "number":
            assert self.suit != Suit.UNSUITED and self.rank is not None
            assert 1 <= self.rank <= 13
        elif self.kind == "joker":
            assert (self.rank is None) == (self.suit == Suit.UNSUITED)
        else:
            raise ValueError(f"Unknown card kind: {self.kind}")

    def is_joker(self) -> bool:
        return self.kind == "joker"

    def is_assigned(self) -> bool:
        return self.kind == "joker" and self.rank is not None

    @property
    def effective_rank(self) -> Optional[int]:
        """Rank used for comparisons; None for an unassigned joker."""
        return self.rank

    @property
    def effective_suit(self) -> Suit:
        return self.suit

    def __str__(self) -> str:
        return format_card(self)

    def __repr__(self) -> str:
        return str(self)


JOKER = Card(kind="joker")


def make_number_card(suit: Suit, rank: int) -> Card:
    return Card(kind="number", suit=suit, rank=rank)


def make_joker(suit: Suit | None = None, rank: int | None = None) -> Card:
    """Unassigned joker, or a joker played as (suit, rank)."""
    if suit is None or rank is None:
        return JOKER
    return Card(kind="joker", suit=suit, rank=rank)


def cardinal(rank: int) -> int:
    """Strength index: rank 3 -> 0 (weakest) ... rank 2 -> 12 (strongest)."""
    return (rank + 10) % 13


def card_order(a: Card, b: Card) -> int:
    """
    Comparator on effective rank strength.
    An unassigned joker is greater than every numbered rank; two of them tie.
    """
    ra, rb = a.effective_rank, b.effective_rank
    if ra is None and rb is None:
        return 0
    if ra is None:
        return 1
    if rb is None:
        return -1
    ca, cb = cardinal(ra), cardinal(rb)
    return (ca > cb) - (ca < cb)


def _rank_str(rank: int) -> str:
    return _RANK_CHARS.get(rank) or str(rank)


def format_card(card: Card) -> str:
    """'Ah', 'Td', 'joker', or 'joker(as Qs)' for an assigned joker."""
    if card.is_assigned():
        return f"joker(as {_rank_str(card.rank)}{card.suit.char})"
    if card.is_joker():
        return "joker"
    assert card.rank is not None
    return f"{_rank_str(card.rank)}{card.suit.char}"


def _parse_number(text: str) -> tuple[Suit, int]:
    if len(text) != 2:
        raise ParseError(f"invalid card {text!r}")
    rank_c, suit_c = text[0], text[1]
    if rank_c in _CHAR_RANKS:
        rank = _CHAR_RANKS[rank_c]
    elif rank_c in "23456789":
        rank = int(rank_c)
    else:
        raise ParseError(f"invalid rank {rank_c!r} in {text!r}")
    if suit_c not in _CHAR_SUITS:
        raise ParseError(f"invalid suit {suit_c!r} in {text!r}")
    return _CHAR_SUITS[suit_c], rank


def parse_card(text: str) -> Card:
    """Inverse of format_card."""
    if text == "joker":
        return JOKER
    if text.startswith("joker(as ") and text.endswith(")"):
        suit, rank = _parse_number(text[len("joker(as "):-1])
        return make_joker(suit, rank)
    suit, rank = _parse_number(text)
    return make_number_card(suit, rank)


def parse_cards(texts: Iterable[str]) -> list[Card]:
    return [parse_card(t) for t in texts]


def card_glyph(card: Card) -> str:
    """Unicode playing-card character for display."""
    if card.is_joker():
        return _JOKER_GLYPH
    assert card.rank is not None
    offset = card.rank - 1 if card.rank <= RANK_JACK else card.rank
    return chr(_GLYPH_BASE[card.suit] + offset)


def make_pool(joker_count: int = 2) -> list[Card]:
    """Full pool: suit-major, rank 1..13, then unassigned jokers."""
    cards: list[Card] = []
    for s in Suit.suits():
        for rank in ALL_RANKS:
            cards.append(make_number_card(s, rank))
    cards.extend(JOKER for _ in range(joker_count))
    return cards


def play_rank(cards: Iterable[Card]) -> Optional[int]:
    """Shared effective rank of a play; None if it holds only unassigned jokers."""
    for c in cards:
        if c.effective_rank is not None:
            return c.effective_rank
    return None


def group_compare(a: list[Card], b: list[Card]) -> int:
    """
    Compare two same-rank plays: sort both by card_order and return the first
    non-equal element-wise verdict (-1, 0, 1).
    """
    key = cmp_to_key(card_order)
    for x, y in zip(sorted(a, key=key), sorted(b, key=key)):
        verdict = card_order(x, y)
        if verdict != 0:
            return verdict
    return 0


@dataclass
class Deck:
    """Ordered pile of cards (a hand, Trushes, Excluded or one play)."""

    cards: list[Card] = field(default_factory=list)

    @classmethod
    def all(cls, joker_count: int = 2) -> "Deck":
        return cls(make_pool(joker_count))

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __contains__(self, card: object) -> bool:
        return card in self.cards

    def __str__(self) -> str:
        if not self.cards:
            return "(empty)"
        return "[" + ",".join(str(c) for c in self.cards) + "]"

    def is_empty(self) -> bool:
        return not self.cards

    def shuffle(self, rng) -> None:
        """Uniform permutation using any source with ``shuffle(list)``."""
        rng.shuffle(self.cards)

    def sort(self, comparator: Callable[[Card, Card], int] = card_order) -> None:
        self.cards.sort(key=cmp_to_key(comparator))

    def split(self, n: int) -> list["Deck"]:
        """Round-robin into n decks, keeping relative order in each."""
        if n <= 0:
            raise InvalidSplit("cannot split a deck into 0 parts")
        decks = [Deck() for _ in range(n)]
        for i, card in enumerate(self.cards):
            decks[i % n].cards.append(card)
        return decks

    def remove(self, cards: Iterable[Card]) -> None:
        """Remove one occurrence per requested card; all or nothing."""
        remaining = list(self.cards)
        for card in cards:
            try:
                remaining.remove(card)
            except ValueError:
                raise NotFound(f"Card {card} not in {self}") from None
        self.cards = remaining

    def extend(self, cards: Iterable[Card]) -> None:
        self.cards.extend(cards)


__all__ = [
    "Suit",
    "Card",
    "JOKER",
    "RANK_ACE",
    "ALL_RANKS",
    "make_number_card",
    "make_joker",
    "cardinal",
    "card_order",
    "format_card",
    "parse_card",
    "parse_cards",
    "card_glyph",
    "make_pool",
    "play_rank",
    "group_compare",
    "Deck",
]
