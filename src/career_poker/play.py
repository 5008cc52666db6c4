"""
Legality of a proposed play and the rank effects applied once it is accepted.

servable() checks, in order: same rank, beats the top of the river (reversed
under revolution), expected size (9 toggles 1 <-> 3), step rule, suit lock.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from .deck import ALL_RANKS, Card, Suit, cardinal, group_compare, play_rank
from .effect import Effect, toggle_river_size
from .errors import (
    CareerPokerError,
    InvalidRank,
    MustBeatTop,
    MustStep,
    NotSameNumber,
    SizeMismatch,
    SuitMismatch,
)
from .game import EXCLUDED, TRUSHES, Game, Prompt, PromptKind

logger = logging.getLogger(__name__)


def is_same_number(cards: Iterable[Card]) -> bool:
    """All ranked cards share one rank (jokers alone trivially do)."""
    return len({c.effective_rank for c in cards if c.effective_rank is not None}) <= 1


def suits_of(cards: Iterable[Card]) -> Set[Suit]:
    return {c.effective_suit for c in cards if c.effective_suit != Suit.UNSUITED}


def match_suits(reference: Iterable[Card], candidate: Iterable[Card]) -> bool:
    """``candidate`` keeps every suit of ``reference``."""
    return suits_of(candidate) >= suits_of(reference)


def expected_river_size(effect: Effect, rank: Optional[int]) -> Optional[int]:
    if rank == 9 and effect.is_active(9):
        return toggle_river_size(effect.river_size)
    return effect.river_size


def servable(game: Game, cards: List[Card]) -> None:
    """Raise the first rule the play breaks; return None if it may be served."""
    if not is_same_number(cards):
        raise NotSameNumber("not same number")
    top = game.top()
    if top is None:
        return
    effect = game.effect

    verdict = group_compare(cards, top)
    if effect.is_reversed():
        verdict = -verdict
    if verdict <= 0:
        raise MustBeatTop("must be greater than top card")

    rank = play_rank(cards)
    expected = expected_river_size(effect, rank)
    if len(cards) != expected:
        raise SizeMismatch(f"expected river size {expected} but {len(cards)}")

    if effect.is_step:
        top_rank = play_rank(top)
        if rank is None or top_rank is None or cardinal(rank) - cardinal(top_rank) != 1:
            raise MustStep("must be step")

    if effect.suit_limits and not match_suits(top, cards):
        raise SuitMismatch(
            f"expected suits {sorted(s.char for s in suits_of(top))} "
            f"but {sorted(s.char for s in suits_of(cards))}"
        )


def is_servable(game: Game, cards: List[Card]) -> bool:
    if not cards:
        return False
    try:
        servable(game, cards)
    except CareerPokerError:
        return False
    return True


def _select_prompt(kind: PromptKind, player_id: str, where: str) -> Prompt:
    return Prompt(
        kind=kind,
        player_ids=[player_id],
        question=f"select cards from {where}",
        options=["ok"],
        origin=player_id,
    )


def resolve_play(game: Game, player_id: str, cards: List[Card]) -> Optional[Prompt]:
    """
    Apply the effect of an accepted play already on top of the river.
    Returns the prompt it opened, if any; the caller ends the turn otherwise.
    """
    rank = play_rank(cards)
    if rank is not None and rank not in ALL_RANKS:
        raise InvalidRank(f"invalid number {rank}")

    effect = game.effect
    effect.river_size = len(cards)
    if len(cards) == 4:
        effect.revoluted = not effect.revoluted
        logger.debug("revolution by %s: revoluted=%s", player_id, effect.revoluted)

    if not effect.is_active(rank):
        return None

    hand = game.hand(player_id)
    if rank == 3:
        effect.effect_limits.update(ALL_RANKS)
    elif rank == 4:
        if not hand.is_empty() and not game.deck(TRUSHES).is_empty():
            return game.open_prompt(_select_prompt(PromptKind.SELECT_4, player_id, "trushes"))
    elif rank == 7:
        if not hand.is_empty():
            return game.open_prompt(_select_prompt(PromptKind.SELECT_7, player_id, "hands"))
    elif rank == 9:
        effect.river_size = toggle_river_size(effect.river_size)
    elif rank == 10:
        effect.effect_limits.update(range(1, 10))
    elif rank == 11:
        effect.turn_revoluted = True
    elif rank == 12:
        effect.is_step = True
        effect.suit_limits = suits_of(cards)
    elif rank == 13:
        if not hand.is_empty() and not game.deck(EXCLUDED).is_empty():
            return game.open_prompt(_select_prompt(PromptKind.SELECT_13, player_id, "excluded"))
    # 1, 2, 5, 6 and 8 act through the turn engine or not at all.
    return None


__all__ = [
    "is_same_number",
    "suits_of",
    "match_suits",
    "expected_river_size",
    "servable",
    "is_servable",
    "resolve_play",
]
