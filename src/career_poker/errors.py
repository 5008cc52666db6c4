"""
Typed failures raised by the engine.

Every rejected operation raises a subclass of ``CareerPokerError``; the
``reason`` attribute is a stable identifier hosts can map to messages.
"""
from __future__ import annotations


class CareerPokerError(ValueError):
    """Base class for all engine failures."""

    reason: str = "Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class ParseError(CareerPokerError):
    reason = "ParseError"


class PlayersEmpty(CareerPokerError):
    reason = "PlayersEmpty"


class NotYourTurn(CareerPokerError):
    reason = "NotYourTurn"


class RiverEmpty(CareerPokerError):
    reason = "RiverEmpty"


class EmptySelection(CareerPokerError):
    reason = "EmptySelection"


class NotSameNumber(CareerPokerError):
    reason = "NotSameNumber"


class MustBeatTop(CareerPokerError):
    reason = "MustBeatTop"


class SizeMismatch(CareerPokerError):
    reason = "SizeMismatch"


class MustStep(CareerPokerError):
    reason = "MustStep"


class SuitMismatch(CareerPokerError):
    reason = "SuitMismatch"


class FieldNotFound(CareerPokerError):
    reason = "FieldNotFound"


class NotFound(CareerPokerError):
    reason = "NotFound"


class PendingAnswerRequired(CareerPokerError):
    reason = "PendingAnswerRequired"


class InvalidAnswer(CareerPokerError):
    reason = "InvalidAnswer"


class InvalidRank(CareerPokerError):
    reason = "InvalidRank"


class InvalidSplit(CareerPokerError):
    reason = "InvalidSplit"


class InvalidEvent(CareerPokerError):
    reason = "InvalidEvent"


class MatchEnded(CareerPokerError):
    """Terminal: the match has no next active player."""

    reason = "MatchEnded"


__all__ = [
    "CareerPokerError",
    "ParseError",
    "PlayersEmpty",
    "NotYourTurn",
    "RiverEmpty",
    "EmptySelection",
    "NotSameNumber",
    "MustBeatTop",
    "SizeMismatch",
    "MustStep",
    "SuitMismatch",
    "FieldNotFound",
    "NotFound",
    "PendingAnswerRequired",
    "InvalidAnswer",
    "InvalidRank",
    "InvalidSplit",
    "InvalidEvent",
    "MatchEnded",
]
