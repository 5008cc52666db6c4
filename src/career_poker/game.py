"""
Match state and turn order: players, named piles, the current chain (river),
pending prompts and staged selections.

The turn engine walks the *active* players (non-empty hands). A chain closes
("flush") when the turn comes back to the player who made its last accepted
play.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .config import RulesConfig
from .deck import Card, Deck, card_order, play_rank
from .effect import Effect
from .errors import FieldNotFound

logger = logging.getLogger(__name__)

RANK_SKIP = 5
RANK_EIGHT_CUT = 8
RANK_EXCLUDE = 2
RANK_ONE_CHANCE = 1


@dataclass(frozen=True)
class FieldKey:
    """Name of a pile: a player's hand, Trushes (discard) or Excluded."""

    kind: str  # "hand" | "trushes" | "excluded"
    player_id: Optional[str] = None

    @classmethod
    def hand(cls, player_id: str) -> "FieldKey":
        return cls("hand", player_id)

    @classmethod
    def parse(cls, text: str) -> "FieldKey":
        if text.startswith("hand:"):
            return cls.hand(text[len("hand:"):])
        if text in ("trushes", "excluded"):
            return cls(text)
        raise FieldNotFound(f"field {text} not found")

    def __str__(self) -> str:
        if self.kind == "hand":
            return f"hand:{self.player_id}"
        return self.kind


TRUSHES = FieldKey("trushes")
EXCLUDED = FieldKey("excluded")


class PromptKind(str, Enum):
    SELECT_4 = "Select4"
    SELECT_7 = "Select7"
    SELECT_13 = "Select13"
    USE_ONE_CHANCE = "UseOneChance"


@dataclass
class Prompt:
    """A decision the addressed players must answer before play continues."""

    kind: PromptKind
    player_ids: List[str]
    question: str
    options: List[str]
    origin: str  # player whose play opened the prompt
    id: int = 0


@dataclass
class Game:
    """The aggregate for one match. Mutated only through ``events.apply``."""

    players: List[str]
    fields: Dict[FieldKey, Deck] = field(default_factory=dict)
    river: List[List[Card]] = field(default_factory=list)
    current: Optional[str] = None
    last_served_player_id: Optional[str] = None
    effect: Effect = field(default_factory=Effect)
    prompts: List[Prompt] = field(default_factory=list)
    selects: Dict[str, List[Card]] = field(default_factory=dict)
    answers: Dict[str, str] = field(default_factory=dict)
    finished: bool = False
    finished_player_ids: List[str] = field(default_factory=list)
    pending_task_id: Optional[str] = None
    prompt_seq: int = 0
    config: RulesConfig = field(default_factory=RulesConfig)

    @classmethod
    def new(cls, players: Iterable[str], config: RulesConfig | None = None) -> "Game":
        """Empty piles for every seated player, plus Trushes and Excluded."""
        players = list(players)
        fields: Dict[FieldKey, Deck] = {TRUSHES: Deck(), EXCLUDED: Deck()}
        for player_id in players:
            fields[FieldKey.hand(player_id)] = Deck()
        return cls(
            players=players,
            fields=fields,
            selects={p: [] for p in players},
            config=config or RulesConfig(),
        )

    # ---- Piles ----

    def deck(self, key: FieldKey) -> Deck:
        deck = self.fields.get(key)
        if deck is None:
            raise FieldNotFound(f"field {key} not found")
        return deck

    def hand(self, player_id: str) -> Deck:
        return self.deck(FieldKey.hand(player_id))

    def transfer(self, src: FieldKey, dst: FieldKey, cards: List[Card]) -> None:
        source, dest = self.deck(src), self.deck(dst)
        source.remove(cards)
        dest.extend(cards)
        if dst.kind == "hand":
            dest.sort(card_order)

    def selection(self, player_id: str) -> List[Card]:
        return list(self.selects.get(player_id, []))

    def top(self) -> Optional[List[Card]]:
        return self.river[-1] if self.river else None

    # ---- Prompts ----

    def active_prompt(self) -> Optional[Prompt]:
        return self.prompts[0] if self.prompts else None

    def open_prompt(self, prompt: Prompt) -> Prompt:
        self.prompt_seq += 1
        prompt.id = self.prompt_seq
        self.prompts.append(prompt)
        logger.debug("prompt %s opened for %s", prompt.kind.value, prompt.player_ids)
        return prompt

    def awaiting_answer(self, player_id: str) -> bool:
        prompt = self.active_prompt()
        return (
            prompt is not None
            and player_id in prompt.player_ids
            and player_id not in self.answers
        )

    # ---- Turn order ----

    def active_player_ids(self) -> List[str]:
        """Seated players whose hand is non-empty, in seating order."""
        return [p for p in self.players if not self.hand(p).is_empty()]

    def relative_player(self, player_id: str, delta: int) -> Optional[str]:
        """
        Walk ``delta`` steps (signed) around the active players from ``player_id``.
        A player who is out counts from the gap they left in the seating order,
        so +1 and 0 both reach the next active player and -1 the previous one.
        """
        active = self.active_player_ids()
        if not active:
            return None
        n = len(active)
        if player_id in active:
            return active[(active.index(player_id) + delta) % n]
        seat = self.players.index(player_id)
        gap = sum(1 for p in active if self.players.index(p) < seat)
        if delta > 0:
            return active[(gap + delta - 1) % n]
        return active[(gap + delta) % n]

    def _record_finishers(self) -> None:
        for player_id in self.players:
            if self.hand(player_id).is_empty() and player_id not in self.finished_player_ids:
                self.finished_player_ids.append(player_id)

    def _step_after_play(self) -> int:
        top = self.top()
        if not top:
            return 1
        rank = play_rank(top)
        if not self.effect.is_active(rank):
            return 1
        if rank == RANK_SKIP:
            return len(top) + 1
        if rank in (RANK_EIGHT_CUT, RANK_ONE_CHANCE):
            return 0
        return 1

    def end_turn(self, player_id: str, served: bool) -> None:
        """
        Advance ``current`` after an accepted play (``served``) or pass, and
        flush the chain when the turn returns to its last server.
        """
        self._record_finishers()
        active = self.active_player_ids()
        if len(active) <= 1:
            self.finished = True
            self.finished_player_ids.extend(p for p in active if p not in self.finished_player_ids)
            self.current = self.relative_player(player_id, 1)
            logger.debug("match ended: %s", self.finished_player_ids)
            return

        step = self._step_after_play() if served else 1
        self.current = self.relative_player(player_id, step)

        anchor = self.last_served_player_id
        if anchor is not None and self.hand(anchor).is_empty():
            self.last_served_player_id = self.relative_player(anchor, 1)

        if self.current == self.last_served_player_id:
            self.flush()

    def flush(self, to: FieldKey | None = None) -> None:
        """Close the chain: river -> Trushes (Excluded after an active 2)."""
        if to is None:
            top = self.top()
            rank = play_rank(top) if top else None
            to = EXCLUDED if rank == RANK_EXCLUDE and self.effect.is_active(rank) else TRUSHES
        dest = self.deck(to)
        for cards in self.river:
            dest.extend(cards)
        self.river.clear()
        self.effect = self.effect.new_chain()
        logger.debug("chain flushed to %s; %s leads", to, self.current)


__all__ = [
    "FieldKey",
    "TRUSHES",
    "EXCLUDED",
    "PromptKind",
    "Prompt",
    "Game",
]
