"""
Player operations: the only way a Game changes.

Operations form a closed set (Distribute, Select, Serve, Pass, Answer, plus
the host-fired Expire and Reset) dispatched by ``apply``. ``apply`` works on a
deep copy and returns it, so a rejected operation leaves the caller's Game
untouched.

Usage:
    game = distribute(["a", "b", "c"], rng=NumpyRandomSource(seed=1))
    game = apply(game, "a", Select(parse_card("3h")))
    game = apply(game, "a", Serve())
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .capabilities import NumpyRandomSource, RandomSource, Scheduler
from .config import RulesConfig
from .deal import deal_hands
from .deck import RANK_ACE, Card, Deck, parse_card
from .errors import (
    CareerPokerError,
    EmptySelection,
    InvalidAnswer,
    InvalidEvent,
    MatchEnded,
    NotFound,
    NotYourTurn,
    PendingAnswerRequired,
    PlayersEmpty,
    RiverEmpty,
)
from .game import EXCLUDED, TRUSHES, FieldKey, Game, Prompt, PromptKind
from .play import resolve_play, servable

logger = logging.getLogger(__name__)

OPTION_OK = "ok"
OPTION_SERVE = "serve"
OPTION_SKIP = "skip"


@dataclass(frozen=True)
class Distribute:
    """Deal the whole pool to the seated players."""


@dataclass(frozen=True)
class Select:
    """Toggle a card in the player's staged selection."""
    card: Card


@dataclass(frozen=True)
class Serve:
    """Play the staged selection."""


@dataclass(frozen=True)
class Pass:
    pass


@dataclass(frozen=True)
class Answer:
    option: str


@dataclass(frozen=True)
class Expire:
    """Deferred call: resolve the active prompt, unanswered players declining."""


@dataclass(frozen=True)
class Reset:
    """Empty game for the same seated players."""


Operation = Union[Distribute, Select, Serve, Pass, Answer, Expire, Reset]


# ---- Guards ----

def _ensure_running(game: Game) -> None:
    if game.finished:
        raise MatchEnded("match has ended")


def _ensure_may_act(game: Game, player_id: str) -> None:
    _ensure_running(game)
    if game.active_prompt() is not None:
        if game.awaiting_answer(player_id):
            raise PendingAnswerRequired("please answer")
        raise PendingAnswerRequired("waiting for other players to answer")
    if game.current != player_id:
        raise NotYourTurn("not your turn")


# ---- Handlers ----

def _on_distribute(game: Game, player_id: str, op: Distribute, rng: RandomSource) -> Game:
    if not game.players:
        raise PlayersEmpty("players is empty")
    fresh = Game.new(game.players, game.config)
    deal = deal_hands(len(fresh.players), rng=rng, joker_count=fresh.config.joker_count)
    for seat, hand in zip(fresh.players, deal.hands):
        fresh.fields[FieldKey.hand(seat)] = hand
    fresh.current = fresh.players[deal.first]
    logger.debug("dealt %d hands; %s leads", len(deal.hands), fresh.current)
    return fresh


def _on_reset(game: Game, player_id: str, op: Reset, rng: RandomSource) -> Game:
    return Game.new(game.players, game.config)


def _on_select(game: Game, player_id: str, op: Select, rng: RandomSource) -> Game:
    _ensure_running(game)
    game.hand(player_id)  # FieldNotFound for an unseated id
    staged = game.selects.setdefault(player_id, [])
    if op.card in staged:
        staged.remove(op.card)
    else:
        staged.append(op.card)
    return game


def _one_chance_contenders(game: Game, player_id: str) -> List[str]:
    """Other active players holding an Ace, in turn order after ``player_id``."""
    if not game.config.one_chance_enabled or not game.effect.is_active(RANK_ACE):
        return []
    seat = game.players.index(player_id)
    order = game.players[seat + 1:] + game.players[:seat]
    active = set(game.active_player_ids())
    return [
        p for p in order
        if p in active and any(c.effective_rank == RANK_ACE for c in game.hand(p))
    ]


def _complete_play(game: Game, player_id: str, cards: List[Card]) -> None:
    """Resolve the play's effect, then end the turn unless a prompt opened."""
    if resolve_play(game, player_id, cards) is not None:
        return
    game.last_served_player_id = player_id
    game.end_turn(player_id, served=True)


def _on_serve(game: Game, player_id: str, op: Serve, rng: RandomSource) -> Game:
    _ensure_may_act(game, player_id)
    cards = game.selection(player_id)
    if not cards:
        raise EmptySelection("please select cards")
    servable(game, cards)

    game.hand(player_id).remove(cards)
    game.river.append(cards)
    game.selects[player_id] = []
    logger.debug("%s served %s", player_id, Deck(cards))

    contenders = _one_chance_contenders(game, player_id)
    if contenders:
        game.open_prompt(Prompt(
            kind=PromptKind.USE_ONE_CHANCE,
            player_ids=contenders,
            question="select A if use one chance",
            options=[OPTION_SERVE, OPTION_SKIP],
            origin=player_id,
        ))
        return game
    _complete_play(game, player_id, cards)
    return game


def _on_pass(game: Game, player_id: str, op: Pass, rng: RandomSource) -> Game:
    _ensure_may_act(game, player_id)
    if not game.river:
        raise RiverEmpty("cannot pass because river is empty")
    logger.debug("%s passed", player_id)
    game.end_turn(player_id, served=False)
    return game


_SELECT_SOURCES = {
    PromptKind.SELECT_4: TRUSHES,
    PromptKind.SELECT_13: EXCLUDED,
}


def _select_source(prompt: Prompt) -> FieldKey:
    if prompt.kind == PromptKind.SELECT_7:
        return FieldKey.hand(prompt.origin)
    return _SELECT_SOURCES[prompt.kind]


def _required_selection_size(game: Game, prompt: Prompt) -> int:
    top = game.top()
    played = len(top) if top else 0
    return min(played, len(game.deck(_select_source(prompt))))


def _check_one_chance_card(game: Game, player_id: str) -> None:
    """The staged selection must be a single Ace from the hand, not its last card."""
    staged = game.selection(player_id)
    if len(staged) != 1 or staged[0].effective_rank != RANK_ACE:
        raise InvalidAnswer("please select A")
    hand = game.hand(player_id)
    if staged[0] not in hand:
        raise NotFound(f"Card {staged[0]} not in {hand}")
    if len(hand) == 1:
        raise InvalidAnswer("cannot move up a game using one chance")


def _validate_answer(game: Game, player_id: str, prompt: Prompt, option: str) -> None:
    if option not in prompt.options:
        raise InvalidAnswer(f"answer must be one of {prompt.options}")
    staged = game.selection(player_id)

    if prompt.kind == PromptKind.USE_ONE_CHANCE:
        if option == OPTION_SERVE:
            _check_one_chance_card(game, player_id)
        return

    needed = _required_selection_size(game, prompt)
    if len(staged) != needed:
        raise InvalidAnswer(f"please select {needed} cards in {_select_source(prompt)}")
    # Trial removal on a copy: all staged cards must be in the source pile.
    Deck(list(game.deck(_select_source(prompt)))).remove(staged)


def _resolve_select(game: Game, prompt: Prompt, answers: Mapping[str, str]) -> None:
    origin = prompt.origin
    staged = game.selection(origin)
    if answers.get(origin) == OPTION_OK and staged:
        if prompt.kind == PromptKind.SELECT_7:
            target = game.relative_player(origin, -1)
            if target is not None and target != origin:
                game.transfer(FieldKey.hand(origin), FieldKey.hand(target), staged)
                logger.debug("%s passed %s to %s", origin, Deck(staged), target)
        else:
            game.transfer(_select_source(prompt), FieldKey.hand(origin), staged)
            logger.debug("%s took %s from %s", origin, Deck(staged), _select_source(prompt))
    game.selects[origin] = []
    game.last_served_player_id = origin
    game.end_turn(origin, served=True)


def _holds_one_chance_card(game: Game, player_id: str) -> bool:
    try:
        _check_one_chance_card(game, player_id)
    except CareerPokerError:
        return False
    return True


def _resolve_one_chance(
    game: Game,
    prompt: Prompt,
    answers: Mapping[str, str],
    rng: RandomSource,
) -> None:
    served = game.top()
    assert served is not None, "river is empty on one chance"
    challengers = [p for p in prompt.player_ids if answers.get(p) == OPTION_SERVE]
    # Selections may have changed since answering.
    eligible = [p for p in challengers if _holds_one_chance_card(game, p)]
    if eligible:
        challenger = eligible[0]
        if rng.fair_chance(len(game.active_player_ids())):
            ace = game.selection(challenger)
            # The contested play is superseded: its chain closes unresolved.
            game.flush(TRUSHES)
            game.hand(challenger).remove(ace)
            for p in challengers:
                game.selects[p] = []
            game.river.append(ace)
            logger.debug("%s interrupted with one chance %s", challenger, Deck(ace))
            _complete_play(game, challenger, ace)
            return
        logger.debug("one chance by %s did not go through", challenger)
    for p in challengers:
        game.selects[p] = []
    _complete_play(game, prompt.origin, served)


def _resolve_prompt(game: Game, rng: RandomSource) -> None:
    prompt = game.prompts.pop(0)
    answers = dict(game.answers)
    game.answers.clear()
    if prompt.kind == PromptKind.USE_ONE_CHANCE:
        _resolve_one_chance(game, prompt, answers, rng)
    else:
        _resolve_select(game, prompt, answers)


def _on_answer(game: Game, player_id: str, op: Answer, rng: RandomSource) -> Game:
    _ensure_running(game)
    prompt = game.active_prompt()
    if prompt is None:
        raise InvalidAnswer("no prompt")
    if not game.awaiting_answer(player_id):
        raise InvalidAnswer("no answer expected from you")
    _validate_answer(game, player_id, prompt, op.option)
    game.answers[player_id] = op.option
    if set(prompt.player_ids) <= set(game.answers):
        _resolve_prompt(game, rng)
    return game


def _on_expire(game: Game, player_id: str, op: Expire, rng: RandomSource) -> Game:
    _ensure_running(game)
    if game.active_prompt() is None:
        raise InvalidAnswer("no prompt to expire")
    game.pending_task_id = None
    logger.debug("prompt expired; unanswered: %s",
                 [p for p in game.active_prompt().player_ids if p not in game.answers])
    _resolve_prompt(game, rng)
    return game


_HANDLERS: Dict[type, Callable[[Game, str, Any, RandomSource], Game]] = {
    Distribute: _on_distribute,
    Select: _on_select,
    Serve: _on_serve,
    Pass: _on_pass,
    Answer: _on_answer,
    Expire: _on_expire,
    Reset: _on_reset,
}


def _sync_scheduler(
    before: Game,
    after: Game,
    op: Operation,
    scheduler: Optional[Scheduler],
) -> None:
    """Cancel the expiry of a resolved prompt and schedule one for a new prompt."""
    if scheduler is None:
        return
    prompt_before, prompt_after = before.active_prompt(), after.active_prompt()
    same_prompt = (
        prompt_before is not None
        and prompt_after is not None
        and prompt_before.id == prompt_after.id
    )
    if before.pending_task_id is not None and not same_prompt:
        # A fired Expire needs no cancel.
        if not isinstance(op, Expire):
            scheduler.cancel(before.pending_task_id)
        after.pending_task_id = None
    if prompt_after is not None and after.pending_task_id is None:
        after.pending_task_id = scheduler.schedule(Expire(), after.config.prompt_timeout_ms)


def apply(
    game: Game,
    player_id: str,
    op: Operation,
    rng: RandomSource | None = None,
    scheduler: Scheduler | None = None,
) -> Game:
    """
    Apply one operation for ``player_id`` and return the new Game.
    Raises a CareerPokerError subclass and leaves ``game`` as it was on failure.
    """
    handler = _HANDLERS.get(type(op))
    if handler is None:
        raise InvalidEvent(f"unknown operation {op!r}")
    if rng is None:
        rng = NumpyRandomSource()
    work = copy.deepcopy(game)
    result = handler(work, player_id, op, rng)
    _sync_scheduler(game, result, op, scheduler)
    return result


def distribute(
    players: List[str],
    rng: RandomSource | None = None,
    config: RulesConfig | None = None,
) -> Game:
    """Create a match for ``players`` and deal it."""
    return apply(Game.new(players, config), players[0] if players else "", Distribute(), rng=rng)


def from_event(name: str, value: Mapping[str, str] | None = None) -> Operation:
    """Parse a host event (name + string values) into an operation."""
    value = value or {}
    if name == "distribute":
        return Distribute()
    if name == "select":
        if "card" not in value:
            raise InvalidEvent("select requires a card")
        return Select(parse_card(value["card"]))
    if name == "serve":
        return Serve()
    if name == "pass":
        return Pass()
    if name == "answer":
        if "option" not in value:
            raise InvalidEvent("answer requires an option")
        return Answer(value["option"])
    if name == "expire":
        return Expire()
    if name == "reset":
        return Reset()
    raise InvalidEvent(f"invalid event {name!r}")


__all__ = [
    "Distribute",
    "Select",
    "Serve",
    "Pass",
    "Answer",
    "Expire",
    "Reset",
    "Operation",
    "apply",
    "distribute",
    "from_event",
]
