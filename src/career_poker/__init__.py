"""Career Poker (Daihinmin family) rules engine."""

__version__ = "0.1.0"

from .deck import Card, Deck, Suit, JOKER, cardinal, card_order, parse_card, format_card, make_pool
from .effect import Effect
from .errors import CareerPokerError, MatchEnded
from .game import FieldKey, Game, Prompt, PromptKind, TRUSHES, EXCLUDED
from .play import servable, is_servable, resolve_play
from .events import (
    Distribute,
    Select,
    Serve,
    Pass,
    Answer,
    Expire,
    Reset,
    apply,
    distribute,
    from_event,
)
from .capabilities import NumpyRandomSource, FixedChance, RecordingScheduler
from .config import RulesConfig
from .view import view_for
from .persistence import game_to_dict, game_from_dict, game_to_json, game_from_json
