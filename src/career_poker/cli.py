"""
Command-line interface driving a match stored in a JSON state file.

Usage examples:

    python -m career_poker.cli new --players alice bob carol --state match.json --seed 1
    python -m career_poker.cli apply --state match.json alice select --card 3h
    python -m career_poker.cli apply --state match.json alice serve
    python -m career_poker.cli show --state match.json alice
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .capabilities import NumpyRandomSource
from .config import RulesConfig
from .errors import CareerPokerError
from .events import apply, distribute, from_event
from .persistence import game_from_json, game_to_json
from .view import GameView, view_for


def _load(path: str):
    return game_from_json(Path(path).read_text(encoding="utf-8"))


def _save(path: str, game) -> None:
    Path(path).write_text(game_to_json(game), encoding="utf-8")


def _format_view(view: GameView) -> str:
    lines = [
        f"viewer: {view.viewer}  current: {view.current}"
        + ("  (your turn)" if view.is_current else ""),
        "river: " + (" ".join(c.text for c in view.river) or "(empty)"),
        "hand: " + " ".join(f"[{c.text}]" if c.selected else c.text for c in view.hand),
        "trushes: " + str(len(view.trushes)) + "  excluded: " + str(len(view.excluded)),
        "hands: " + ", ".join(f"{p}={n}" for p, n in view.hand_sizes.items()),
    ]
    if view.revoluted:
        lines.append("order: reversed")
    if view.prompt is not None:
        marker = " <- answer required" if view.show_prompt else ""
        lines.append(
            f"prompt: {view.prompt.kind} {view.prompt.question} "
            f"{view.prompt.options}{marker}"
        )
    if view.finished:
        lines.append("finished: " + " > ".join(view.finished_player_ids))
    return "\n".join(lines)


def _add_new_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("new", help="Seat players, deal, and write a state file.")
    parser.add_argument("--players", nargs="+", required=True, help="Player ids in seating order.")
    parser.add_argument("--state", type=str, required=True, help="Path of the state file to write.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the shuffle.")
    parser.add_argument("--jokers", type=int, default=2, help="Number of jokers in the pool.")
    parser.add_argument(
        "--no-one-chance",
        action="store_true",
        help="Disable the Ace one-chance interrupt.",
    )
    parser.set_defaults(func=_cmd_new)


def _cmd_new(args: argparse.Namespace) -> None:
    config = RulesConfig(joker_count=args.jokers, one_chance_enabled=not args.no_one_chance)
    game = distribute(list(args.players), rng=NumpyRandomSource(seed=args.seed), config=config)
    _save(args.state, game)
    print(f"Dealt {len(game.players)} hands; {game.current} leads. State saved to {args.state}")


def _add_apply_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("apply", help="Apply one event for a player.")
    parser.add_argument("--state", type=str, required=True, help="Path of the state file.")
    parser.add_argument("player", type=str, help="Acting player id.")
    parser.add_argument(
        "event",
        choices=["distribute", "select", "serve", "pass", "answer", "expire", "reset"],
        help="Event name.",
    )
    parser.add_argument("--card", type=str, default=None, help='Card for select, e.g. "Ah" or "joker".')
    parser.add_argument("--option", type=str, default=None, help='Option for answer, e.g. "ok", "serve", "skip".')
    parser.add_argument("--seed", type=int, default=None, help="Seed for shuffles and the one-chance draw.")
    parser.set_defaults(func=_cmd_apply)


def _cmd_apply(args: argparse.Namespace) -> None:
    game = _load(args.state)
    value = {}
    if args.card is not None:
        value["card"] = args.card
    if args.option is not None:
        value["option"] = args.option
    op = from_event(args.event, value)
    game = apply(game, args.player, op, rng=NumpyRandomSource(seed=args.seed))
    _save(args.state, game)
    print(_format_view(view_for(game, args.player)))


def _add_show_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("show", help="Print the game as seen by a player.")
    parser.add_argument("--state", type=str, required=True, help="Path of the state file.")
    parser.add_argument("player", type=str, help="Viewing player id.")
    parser.set_defaults(func=_cmd_show)


def _cmd_show(args: argparse.Namespace) -> None:
    print(_format_view(view_for(_load(args.state), args.player)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="career-poker", description="Career Poker rules engine CLI.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level for engine messages (DEBUG, INFO, WARNING, ...).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_new_parser(subparsers)
    _add_apply_parser(subparsers)
    _add_show_parser(subparsers)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        args.func(args)
    except CareerPokerError as e:
        print(f"rejected: {e.reason}: {e}", file=sys.stderr)
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
