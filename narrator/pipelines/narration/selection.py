"""Pick the single best candidate from a fetched batch."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .scoring import Scorer, has_usable_text
from .types import CandidateItem, CandidateScore

logger = logging.getLogger("narrator.pipeline")


class Selector:
    """Filter unusable candidates, score the rest, and rank them."""

    def __init__(self, scorer: Scorer | None = None) -> None:
        self._scorer = scorer or Scorer()

    def rank(self, items: Sequence[CandidateItem]) -> list[CandidateScore]:
        """Return usable candidates ordered by total score, ties in batch order."""

        usable = [item for item in items if has_usable_text(item)]
        skipped = len(items) - len(usable)
        if skipped:
            logger.info("Skipped %d of %d candidates without usable text", skipped, len(items))
        if not usable:
            return []

        # One reference time per run keeps repeated calls on a batch comparable.
        now = self._scorer.now()
        scored = [self._scorer.score(item, now=now) for item in usable]
        # sorted() is stable, so equal totals keep their original batch order.
        return sorted(scored, key=lambda entry: entry.total_score, reverse=True)

    def select_best(self, items: Sequence[CandidateItem]) -> Optional[CandidateScore]:
        ranking = self.rank(items)
        if not ranking:
            return None
        best = ranking[0]
        logger.info(
            "Selected candidate %s (score=%.3f, words=%d)",
            best.item.source_id,
            best.total_score,
            best.word_count,
        )
        return best


__all__ = ["Selector"]
