"""
Capabilities the engine consumes but does not own.

The small protocols below are the contract between the rules core and its
host:

- ``RandomSource``: uniform shuffles and the one-chance fair draw.
- ``Scheduler``: deferred calls used to auto-resolve a stale prompt. The
  engine never blocks on it; a fired call comes back in as an ``Expire``
  operation.

``NumpyRandomSource`` is the default source; ``FixedChance`` and
``RecordingScheduler`` make the engine deterministic under test.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, MutableSequence, Protocol, Tuple

import numpy as np


class RandomSource(Protocol):
    """Randomness consumed by Distribute (shuffle) and Answer (one-chance gate)."""

    def shuffle(self, items: MutableSequence[Any]) -> None:
        """Permute ``items`` in place, uniformly at random."""

    def fair_chance(self, n: int) -> bool:
        """True with probability 1/n (n = number of still-active players)."""


class Scheduler(Protocol):
    """Host-side deferred call facility."""

    def schedule(self, operation: Any, delay_ms: int) -> str:
        """Arrange for ``operation`` to be applied after ``delay_ms``; return a handle."""

    def cancel(self, handle: str) -> None:
        """Drop a previously scheduled call; unknown handles are ignored."""


@dataclass
class NumpyRandomSource:
    """
    Default randomness backed by a numpy Generator.

    Usage:
        source = NumpyRandomSource(seed=42)
        deck.shuffle(source)
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._rng = np.random.default_rng(self.seed)

    def shuffle(self, items: MutableSequence[Any]) -> None:
        order = self._rng.permutation(len(items))
        items[:] = [items[i] for i in order]

    def fair_chance(self, n: int) -> bool:
        if n <= 1:
            return True
        return int(self._rng.integers(n)) == 0


@dataclass
class FixedChance:
    """Random source whose one-chance verdict is fixed; shuffles are left as-is."""

    verdict: bool = True
    calls: List[int] = field(default_factory=list)

    def shuffle(self, items: MutableSequence[Any]) -> None:
        pass

    def fair_chance(self, n: int) -> bool:
        self.calls.append(n)
        return self.verdict


@dataclass
class RecordingScheduler:
    """Scheduler that only records requests; the host fires them by hand."""

    scheduled: List[Tuple[str, Any, int]] = field(default_factory=list)
    cancelled: List[str] = field(default_factory=list)

    def schedule(self, operation: Any, delay_ms: int) -> str:
        handle = f"task-{len(self.scheduled)}"
        self.scheduled.append((handle, operation, delay_ms))
        return handle

    def cancel(self, handle: str) -> None:
        self.cancelled.append(handle)


__all__ = [
    "RandomSource",
    "Scheduler",
    "NumpyRandomSource",
    "FixedChance",
    "RecordingScheduler",
]
