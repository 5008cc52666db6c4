"""
Rule overrides active for the current chain (trick).

All fields reset when the chain is flushed, except ``revoluted`` which lasts
for the whole match.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from .deck import Suit


def toggle_river_size(size: Optional[int]) -> Optional[int]:
    """1 <-> 3; any other size is unchanged."""
    if size == 1:
        return 3
    if size == 3:
        return 1
    return size


@dataclass
class Effect:
    river_size: Optional[int] = None
    # Suits a later play must keep (rank 12).
    suit_limits: Set[Suit] = field(default_factory=set)
    # Ranks whose own effect is disabled for this chain.
    effect_limits: Set[int] = field(default_factory=set)
    turn_revoluted: bool = False
    is_step: bool = False
    revoluted: bool = False

    def new_chain(self) -> "Effect":
        return Effect(revoluted=self.revoluted)

    def is_active(self, rank: Optional[int]) -> bool:
        """True if ``rank`` carries a rank effect that is not disabled."""
        return rank is not None and rank not in self.effect_limits

    def is_reversed(self) -> bool:
        return self.revoluted != self.turn_revoluted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "river_size": self.river_size,
            "suit_limits": sorted(s.char for s in self.suit_limits),
            "effect_limits": sorted(self.effect_limits),
            "turn_revoluted": self.turn_revoluted,
            "is_step": self.is_step,
            "revoluted": self.revoluted,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Effect":
        by_char = {s.char: s for s in Suit}
        size = d.get("river_size")
        return cls(
            river_size=int(size) if size is not None else None,
            suit_limits={by_char[c] for c in d.get("suit_limits", [])},
            effect_limits={int(n) for n in d.get("effect_limits", [])},
            turn_revoluted=bool(d.get("turn_revoluted", False)),
            is_step=bool(d.get("is_step", False)),
            revoluted=bool(d.get("revoluted", False)),
        )


__all__ = ["Effect", "toggle_river_size"]
