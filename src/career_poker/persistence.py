"""
Game serialization for the host's save/load between operations.

Exports and imports a Game to/from JSON-compatible dicts. Cards are stored in
their text form ("Ah", "joker", "joker(as Qs)"), piles under their field key
("hand:<player>", "trushes", "excluded").
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

from .config import RulesConfig
from .deck import Card, Deck, format_card, parse_card
from .effect import Effect
from .game import FieldKey, Game, Prompt, PromptKind

SCHEMA_VERSION = 1


def _cards_to_list(cards: List[Card]) -> List[str]:
    return [format_card(c) for c in cards]


def _cards_from_list(items: List[str]) -> List[Card]:
    return [parse_card(s) for s in items]


def _prompt_to_dict(prompt: Prompt) -> Dict[str, Any]:
    return {
        "id": prompt.id,
        "kind": prompt.kind.value,
        "player_ids": list(prompt.player_ids),
        "question": prompt.question,
        "options": list(prompt.options),
        "origin": prompt.origin,
    }


def _prompt_from_dict(d: Dict[str, Any]) -> Prompt:
    return Prompt(
        kind=PromptKind(d["kind"]),
        player_ids=list(d["player_ids"]),
        question=d.get("question", ""),
        options=list(d.get("options", [])),
        origin=d["origin"],
        id=int(d.get("id", 0)),
    )


def game_to_dict(game: Game) -> Dict[str, Any]:
    """
    Serialize a Game to a JSON-compatible dict.

    Args:
        game: The game to serialize.

    Returns:
        Dict with schema_version and the full value graph of the game.
    """
    return {
        "schema_version": SCHEMA_VERSION,
        "players": list(game.players),
        "fields": {str(k): _cards_to_list(d.cards) for k, d in game.fields.items()},
        "river": [_cards_to_list(cards) for cards in game.river],
        "current": game.current,
        "last_served_player_id": game.last_served_player_id,
        "effect": game.effect.to_dict(),
        "prompts": [_prompt_to_dict(p) for p in game.prompts],
        "selects": {p: _cards_to_list(cards) for p, cards in game.selects.items()},
        "answers": dict(game.answers),
        "finished": game.finished,
        "finished_player_ids": list(game.finished_player_ids),
        "pending_task_id": game.pending_task_id,
        "prompt_seq": game.prompt_seq,
        "config": game.config.to_dict(),
    }


def game_from_dict(d: Dict[str, Any]) -> Game:
    """
    Deserialize a Game from a dict (e.g. from JSON).

    Args:
        d: Dict produced by game_to_dict (or compatible).

    Returns:
        Restored Game.
    """
    return Game(
        players=list(d["players"]),
        fields={
            FieldKey.parse(k): Deck(_cards_from_list(cards))
            for k, cards in d.get("fields", {}).items()
        },
        river=[_cards_from_list(cards) for cards in d.get("river", [])],
        current=d.get("current"),
        last_served_player_id=d.get("last_served_player_id"),
        effect=Effect.from_dict(d.get("effect", {})),
        prompts=[_prompt_from_dict(p) for p in d.get("prompts", [])],
        selects={p: _cards_from_list(cards) for p, cards in d.get("selects", {}).items()},
        answers=dict(d.get("answers", {})),
        finished=bool(d.get("finished", False)),
        finished_player_ids=list(d.get("finished_player_ids", [])),
        pending_task_id=d.get("pending_task_id"),
        prompt_seq=int(d.get("prompt_seq", 0)),
        config=RulesConfig.from_dict(d.get("config", {})),
    )


def game_to_json(game: Game) -> str:
    """Serialize a Game to a JSON string."""
    return json.dumps(game_to_dict(game), indent=2, ensure_ascii=False)


def game_from_json(s: str) -> Game:
    """Deserialize a Game from a JSON string."""
    return game_from_dict(json.loads(s))


__all__ = [
    "game_to_dict",
    "game_from_dict",
    "game_to_json",
    "game_from_json",
    "SCHEMA_VERSION",
]
