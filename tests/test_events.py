"""Tests for player operations: serving, prompts, one chance, expiry."""
import copy
import random

import pytest

from career_poker.capabilities import FixedChance, NumpyRandomSource, RecordingScheduler
from career_poker.config import RulesConfig
from career_poker.deck import Deck, parse_card, parse_cards
from career_poker.errors import (
    EmptySelection,
    FieldNotFound,
    InvalidAnswer,
    InvalidEvent,
    MatchEnded,
    MustBeatTop,
    NotFound,
    NotYourTurn,
    ParseError,
    PendingAnswerRequired,
    RiverEmpty,
    SizeMismatch,
)
from career_poker.events import (
    Answer,
    Distribute,
    Expire,
    Pass,
    Reset,
    Select,
    Serve,
    apply,
    distribute,
    from_event,
)
from career_poker.game import EXCLUDED, TRUSHES, Game, PromptKind
from career_poker.play import is_servable, servable


def _game(hands: dict, config: RulesConfig | None = None) -> Game:
    game = Game.new(list(hands), config)
    for player_id, text in hands.items():
        game.hand(player_id).extend(parse_cards(text.split()))
    game.current = list(hands)[0]
    return game


def _select(game: Game, player_id: str, text: str) -> Game:
    for card in parse_cards(text.split()):
        game = apply(game, player_id, Select(card))
    return game


def _serve(game: Game, player_id: str, text: str, **kwargs) -> Game:
    return apply(_select(game, player_id, text), player_id, Serve(), **kwargs)


def test_select_toggles():
    game = _game({"a": "3h 4h", "b": "5s"})
    game = _select(game, "a", "3h 4h")
    assert [str(c) for c in game.selection("a")] == ["3h", "4h"]
    game = _select(game, "a", "3h")
    assert [str(c) for c in game.selection("a")] == ["4h"]


def test_serve_and_pass_guards():
    game = _game({"a": "3h 4h", "b": "5s"})
    with pytest.raises(EmptySelection):
        apply(game, "a", Serve())
    with pytest.raises(RiverEmpty):
        apply(game, "a", Pass())
    with pytest.raises(NotYourTurn):
        apply(_select(game, "b", "5s"), "b", Serve())
    with pytest.raises(NotYourTurn):
        apply(game, "b", Pass())


def test_rejected_operation_leaves_game_untouched():
    game = _serve(_game({"a": "Qh 3c", "b": "Js 5s", "c": "6d"}), "a", "Qh")
    game = _select(game, "b", "Js")
    snapshot = copy.deepcopy(game)
    with pytest.raises(MustBeatTop):
        apply(game, "b", Serve())
    assert game == snapshot


def test_accepted_operation_returns_a_new_game():
    game = _game({"a": "3c 4c", "b": "5s"})
    snapshot = copy.deepcopy(game)
    selected = apply(game, "a", Select(parse_card("3c")))
    assert game == snapshot
    assert selected.selection("a") == [parse_card("3c")]


def test_three_disables_effects_and_locks_size():
    game = _serve(_game({"a": "3h 3d", "b": "Kh"}), "a", "3h 3d")
    assert game.effect.river_size == 2
    assert game.effect.effect_limits == set(range(1, 14))
    assert game.current == "b"
    # a has gone out, leaving b alone: the match is over.
    assert game.finished
    with pytest.raises(SizeMismatch):
        servable(game, parse_cards(["Kh"]))
    with pytest.raises(MatchEnded):
        apply(_select(game, "b", "Kh"), "b", Serve())


def test_select4_takes_cards_back_from_trushes():
    game = _game({"p": "4h 4d 9c", "q": "5s 6s"})
    game.deck(TRUSHES).extend(parse_cards(["As", "Ad"]))
    game = _serve(game, "p", "4h 4d")
    prompt = game.active_prompt()
    assert prompt.kind == PromptKind.SELECT_4
    assert prompt.player_ids == ["p"]
    assert game.current == "p"

    with pytest.raises(PendingAnswerRequired):
        apply(game, "p", Pass())
    with pytest.raises(PendingAnswerRequired):
        apply(_select(game, "q", "5s"), "q", Serve())
    with pytest.raises(InvalidAnswer):
        apply(game, "q", Answer("ok"))

    game = _select(game, "p", "As")
    with pytest.raises(InvalidAnswer):
        apply(game, "p", Answer("ok"))
    with pytest.raises(InvalidAnswer):
        apply(game, "p", Answer("maybe"))

    game = apply(_select(game, "p", "Ad"), "p", Answer("ok"))
    assert game.active_prompt() is None
    assert [str(c) for c in game.hand("p")] == ["9c", "As", "Ad"]
    assert game.deck(TRUSHES).is_empty()
    assert game.selection("p") == []
    assert game.current == "q"
    assert game.last_served_player_id == "p"


def test_select_must_come_from_source_pile():
    game = _game({"p": "4h 9c", "q": "5s 6s"})
    game.deck(TRUSHES).extend(parse_cards(["Kd"]))
    game = _serve(game, "p", "4h")
    game = _select(game, "p", "9c")
    with pytest.raises(NotFound):
        apply(game, "p", Answer("ok"))


def test_select7_gives_cards_to_previous_player():
    game = _serve(_game({"a": "7h 3s 4d", "b": "5c 6c", "c": "8c 9c"}), "a", "7h")
    assert game.active_prompt().kind == PromptKind.SELECT_7
    game = apply(_select(game, "a", "3s"), "a", Answer("ok"))
    assert str(game.hand("c")) == "[3s,8c,9c]"
    assert str(game.hand("a")) == "[4d]"
    assert game.current == "b"


def test_select13_takes_cards_from_excluded():
    game = _game({"a": "Kh 5s", "b": "6c"})
    game.deck(EXCLUDED).extend(parse_cards(["2s"]))
    game = _serve(game, "a", "Kh")
    assert game.active_prompt().kind == PromptKind.SELECT_13
    game = apply(_select(game, "a", "2s"), "a", Answer("ok"))
    assert str(game.hand("a")) == "[5s,2s]"
    assert game.deck(EXCLUDED).is_empty()
    assert game.current == "b"


def test_answer_without_prompt():
    game = _game({"a": "3h", "b": "4h"})
    with pytest.raises(InvalidAnswer):
        apply(game, "a", Answer("ok"))
    with pytest.raises(InvalidAnswer):
        apply(game, "a", Expire())


def _one_chance_game() -> Game:
    return _serve(_game({"a": "Ks 3c", "b": "Ah 4c", "c": "6d 7d"}), "a", "Ks")


def test_one_chance_prompt_addresses_ace_holders():
    game = _one_chance_game()
    prompt = game.active_prompt()
    assert prompt.kind == PromptKind.USE_ONE_CHANCE
    assert prompt.player_ids == ["b"]
    assert prompt.options == ["serve", "skip"]
    assert str(Deck(game.top())) == "[Ks]"
    disabled = _serve(
        _game({"a": "Ks 3c", "b": "Ah 4c"}, RulesConfig(one_chance_enabled=False)), "a", "Ks"
    )
    assert disabled.active_prompt() is None


def test_one_chance_interrupt_wins():
    rng = FixedChance(verdict=True)
    game = apply(_select(_one_chance_game(), "b", "Ah"), "b", Answer("serve"), rng=rng)
    assert rng.calls == [3]
    assert game.active_prompt() is None
    assert str(game.hand("b")) == "[4c]"
    assert str(game.hand("a")) == "[3c]"
    # The Ace cuts like an 8: b leads the next chain.
    assert str(game.deck(TRUSHES)) == "[Ks,Ah]"
    assert game.river == []
    assert game.current == "b"


def test_one_chance_interrupt_loses():
    rng = FixedChance(verdict=False)
    game = apply(_select(_one_chance_game(), "b", "Ah"), "b", Answer("serve"), rng=rng)
    assert rng.calls == [3]
    assert str(game.hand("b")) == "[Ah,4c]"
    assert game.selection("b") == []
    assert str(Deck(game.top())) == "[Ks]"
    assert game.last_served_player_id == "a"
    assert game.current == "b"


def test_one_chance_skip_draws_nothing():
    rng = FixedChance(verdict=True)
    game = apply(_one_chance_game(), "b", Answer("skip"), rng=rng)
    assert rng.calls == []
    assert str(Deck(game.top())) == "[Ks]"
    assert game.current == "b"


def test_one_chance_requires_a_spare_ace():
    game = _one_chance_game()
    with pytest.raises(InvalidAnswer):
        apply(game, "b", Answer("serve"))
    with pytest.raises(InvalidAnswer):
        apply(_select(game, "b", "4c"), "b", Answer("serve"))
    last_ace = _serve(_game({"a": "Ks 3c", "b": "Ah", "c": "6d"}), "a", "Ks")
    with pytest.raises(InvalidAnswer):
        apply(_select(last_ace, "b", "Ah"), "b", Answer("serve"))


def test_prompt_expiry_is_scheduled_and_cancelled():
    scheduler = RecordingScheduler()
    game = apply(_select(_game({"a": "Ks 3c", "b": "Ah 4c", "c": "6d"}), "a", "Ks"), "a", Serve(), scheduler=scheduler)
    assert scheduler.scheduled == [("task-0", Expire(), 5000)]
    assert game.pending_task_id == "task-0"

    answered = apply(game, "b", Answer("skip"), scheduler=scheduler)
    assert scheduler.cancelled == ["task-0"]
    assert answered.pending_task_id is None


def test_expire_resolves_prompt_as_declined():
    scheduler = RecordingScheduler()
    game = apply(_select(_game({"a": "Ks 3c", "b": "Ah 4c", "c": "6d"}), "a", "Ks"), "a", Serve(), scheduler=scheduler)
    rng = FixedChance(verdict=True)
    game = apply(game, "host", Expire(), rng=rng, scheduler=scheduler)
    assert game.active_prompt() is None
    assert game.pending_task_id is None
    assert scheduler.cancelled == []
    assert rng.calls == []
    assert game.current == "b"
    assert str(game.hand("b")) == "[Ah,4c]"


def test_expire_on_select_prompt_moves_nothing():
    game = _game({"p": "4h 9c", "q": "5s"})
    game.deck(TRUSHES).extend(parse_cards(["Kd"]))
    game = _serve(game, "p", "4h")
    game = apply(game, "host", Expire())
    assert game.active_prompt() is None
    assert str(game.deck(TRUSHES)) == "[Kd]"
    assert game.current == "q"


def test_reset_keeps_seats():
    game = distribute(["a", "b", "c"], rng=NumpyRandomSource(seed=1))
    game = apply(game, "a", Reset())
    assert game.players == ["a", "b", "c"]
    assert all(game.hand(p).is_empty() for p in game.players)
    assert game.current is None
    game = apply(game, "a", Distribute(), rng=NumpyRandomSource(seed=1))
    assert sum(len(game.hand(p)) for p in game.players) == 54


def test_from_event():
    assert from_event("select", {"card": "Ah"}) == Select(parse_card("Ah"))
    assert from_event("answer", {"option": "skip"}) == Answer("skip")
    assert from_event("pass") == Pass()
    assert from_event("expire") == Expire()
    with pytest.raises(InvalidEvent):
        from_event("select")
    with pytest.raises(InvalidEvent):
        from_event("shuffle")
    with pytest.raises(ParseError):
        from_event("select", {"card": "Zz"})
    with pytest.raises(InvalidEvent):
        apply(Game.new(["a"]), "a", "serve")


def _candidate_plays(hand: Deck) -> list:
    by_rank: dict = {}
    for card in hand:
        if not card.is_joker():
            by_rank.setdefault(card.rank, []).append(card)
    plays = [[card] for card in hand]
    for cards in by_rank.values():
        plays.extend(cards[:k] for k in range(2, len(cards) + 1))
    return plays


def _total_cards(game: Game) -> int:
    return sum(len(d) for d in game.fields.values()) + sum(len(p) for p in game.river)


def test_random_match_runs_to_the_end():
    rng = random.Random(7)
    game = distribute(["a", "b", "c", "d"], rng=NumpyRandomSource(seed=7))
    for _ in range(3000):
        if game.finished:
            break
        prompt = game.active_prompt()
        if prompt is not None:
            if prompt.kind == PromptKind.USE_ONE_CHANCE:
                player_id = next(p for p in prompt.player_ids if p not in game.answers)
                game = apply(game, player_id, Answer("skip"))
            else:
                game = apply(game, "host", Expire())
        else:
            player_id = game.current
            plays = [p for p in _candidate_plays(game.hand(player_id)) if is_servable(game, p)]
            if plays:
                chosen = rng.choice(plays)
                for card in chosen:
                    game = apply(game, player_id, Select(card))
                game = apply(game, player_id, Serve())
            else:
                game = apply(game, player_id, Pass())
        assert _total_cards(game) == 54
    assert game.finished
    assert sorted(game.finished_player_ids) == ["a", "b", "c", "d"]


def _four_seat_one_chance_game() -> Game:
    hands = {"a": "Ks 3c", "b": "Ah 4c", "c": "Ad 5c", "d": "As 7d"}
    return _serve(_game(hands), "a", "Ks")


def test_one_chance_waits_for_every_addressee():
    game = _four_seat_one_chance_game()
    assert game.active_prompt().player_ids == ["b", "c", "d"]

    game = apply(game, "c", Answer("skip"))
    assert game.active_prompt() is not None
    assert game.current == "a"
    game = apply(_select(game, "d", "As"), "d", Answer("serve"))
    assert game.active_prompt() is not None
    assert game.current == "a"
    with pytest.raises(InvalidAnswer):
        apply(game, "d", Answer("skip"))

    rng = FixedChance(verdict=True)
    game = apply(game, "b", Answer("skip"), rng=rng)
    assert rng.calls == [4]
    assert game.active_prompt() is None
    assert game.answers == {}
    assert str(game.hand("d")) == "[7d]"
    assert str(game.deck(TRUSHES)) == "[Ks,As]"
    assert game.current == "d"


def test_one_chance_draw_goes_to_first_challenger_in_turn_order():
    game = _four_seat_one_chance_game()
    game = apply(_select(game, "d", "As"), "d", Answer("serve"))
    game = apply(_select(game, "c", "Ad"), "c", Answer("serve"))
    rng = FixedChance(verdict=True)
    game = apply(game, "b", Answer("skip"), rng=rng)
    assert rng.calls == [4]
    assert str(game.hand("c")) == "[5c]"
    assert str(game.hand("d")) == "[As,7d]"
    assert game.selection("d") == []
    assert str(game.deck(TRUSHES)) == "[Ks,Ad]"
    assert game.current == "c"


def test_select_by_unseated_player():
    game = _game({"a": "3h", "b": "4h"})
    with pytest.raises(FieldNotFound):
        apply(game, "zed", Select(parse_card("3h")))
