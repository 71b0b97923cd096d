import random
from typing import List, Optional, Sequence


class WordStream:
    """
    Target words for one typing session.

    The stream is sampled uniformly with replacement from ``pool`` and grows
    by ``refill_size`` words whenever fewer than ``refill_margin`` words are
    left ahead of the cursor, so it never runs out while the pool is non-empty.
    """

    def __init__(
        self,
        pool: Sequence[str],
        initial_size: int = 200,
        refill_margin: int = 50,
        refill_size: int = 100,
        words: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.pool = list(pool)
        self.initial_size = initial_size
        self.refill_margin = refill_margin
        self.refill_size = refill_size
        self._rng = rng or random.Random()
        if words is not None:
            self.words: List[str] = list(words)
        else:
            self.words = self._draw(initial_size)

    def __len__(self) -> int:
        return len(self.words)

    def __getitem__(self, index):
        return self.words[index]

    def _draw(self, count: int) -> List[str]:
        if not self.pool:
            return []
        return [self._rng.choice(self.pool) for _ in range(count)]

    def ensure_ahead(self, cursor: int) -> int:
        """Extends the stream when the cursor gets close to its end. Returns words added."""
        if len(self.words) - cursor >= self.refill_margin:
            return 0
        extra = self._draw(self.refill_size)
        self.words.extend(extra)
        return len(extra)

    def resample(self):
        self.words = self._draw(self.initial_size)

    def window(self, start: int, size: int) -> List[str]:
        return self.words[start:start + size]
