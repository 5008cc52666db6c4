"""Rule switches and timings for one match."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class RulesConfig:
    """Configuration stored on the Game and persisted with it."""

    joker_count: int = 2
    # Delay handed to the scheduler when a prompt opens (host auto-resolve).
    prompt_timeout_ms: int = 5000
    one_chance_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RulesConfig":
        return cls(
            joker_count=int(d.get("joker_count", 2)),
            prompt_timeout_ms=int(d.get("prompt_timeout_ms", 5000)),
            one_chance_enabled=bool(d.get("one_chance_enabled", True)),
        )


__all__ = ["RulesConfig"]
