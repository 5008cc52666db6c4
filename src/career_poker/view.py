"""
Read-only projection of a Game for one viewer.

Only the viewer's own hand is listed card by card; other hands are reduced to
their sizes. Rendering the projection is the host's job.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .deck import Card, card_glyph
from .game import EXCLUDED, TRUSHES, Game
from .play import is_servable


@dataclass
class CardView:
    glyph: str
    text: str
    selected: bool = False


@dataclass
class PromptView:
    kind: str
    question: str
    options: List[str]
    player_ids: List[str]
    answered: List[str]


@dataclass
class GameView:
    viewer: str
    current: Optional[str]
    is_current: bool
    hand: List[CardView]
    trushes: List[CardView]
    excluded: List[CardView]
    river: List[CardView]  # top of the river only
    hand_sizes: Dict[str, int]
    show_prompt: bool
    prompt: Optional[PromptView]
    can_serve: bool
    revoluted: bool
    finished: bool
    finished_player_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _cards(cards: Iterable[Card], selected: List[Card]) -> List[CardView]:
    return [CardView(glyph=card_glyph(c), text=str(c), selected=c in selected) for c in cards]


def view_for(game: Game, viewer: str) -> GameView:
    selected = game.selection(viewer)
    prompt = game.active_prompt()
    prompt_view = None
    if prompt is not None:
        prompt_view = PromptView(
            kind=prompt.kind.value,
            question=prompt.question,
            options=list(prompt.options),
            player_ids=list(prompt.player_ids),
            answered=[p for p in prompt.player_ids if p in game.answers],
        )
    is_current = game.current == viewer
    top = game.top() or []
    hand = game.hand(viewer) if viewer in game.players else []
    return GameView(
        viewer=viewer,
        current=game.current,
        is_current=is_current,
        hand=_cards(hand, selected),
        trushes=_cards(game.deck(TRUSHES), selected),
        excluded=_cards(game.deck(EXCLUDED), selected),
        river=_cards(top, []),
        hand_sizes={p: len(game.hand(p)) for p in game.players},
        show_prompt=game.awaiting_answer(viewer),
        prompt=prompt_view,
        can_serve=(
            is_current
            and prompt is None
            and not game.finished
            and is_servable(game, selected)
        ),
        revoluted=game.effect.is_reversed(),
        finished=game.finished,
        finished_player_ids=list(game.finished_player_ids),
    )


__all__ = ["CardView", "PromptView", "GameView", "view_for"]
