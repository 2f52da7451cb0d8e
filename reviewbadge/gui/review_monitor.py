"""
Review monitor for the badge.
Runs one poll cycle at a time and keeps the last good state.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from reviewbadge.analysis.badness_scorer import BadnessScorer
from reviewbadge.github_api.fetcher import ReviewFetcher
from reviewbadge.github_api.models import ReviewRecord
from reviewbadge.gui.presentation import MenuEntry, build_menu, icon_path, spinner_path

logger = logging.getLogger(__name__)


@dataclass
class MonitorState:
    reviews: List[ReviewRecord]
    score: int
    icon: Path
    menu: List[MenuEntry]
    should_bounce: bool = False
    reviews_url: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def badge_count(self) -> int:
        return len(self.reviews)


class ReviewMonitor:
    """
    Drives poll cycles: fetch, score and present.

    The previous cycle's reviews are used as the fetcher's cache and are only
    replaced after a cycle succeeds.
    """

    def __init__(self, fetcher: ReviewFetcher, scorer: BadnessScorer,
                 images_dir: Path, host: str = "github.com"):
        self.fetcher = fetcher
        self.scorer = scorer
        self.images_dir = Path(images_dir)
        self.host = host
        self.state: Optional[MonitorState] = None
        self._previous_reviews: List[ReviewRecord] = []
        self._pending_reviews_count: Optional[int] = None
        self._cycle_lock = threading.Lock()

    @property
    def previous_reviews(self) -> List[ReviewRecord]:
        return self._previous_reviews

    @property
    def current_icon(self) -> Path:
        """Score icon of the last good cycle, or the spinner before the first one."""
        if self.state is None:
            return spinner_path(self.images_dir)
        return self.state.icon

    def run_cycle(self, now: Optional[datetime] = None) -> Optional[MonitorState]:
        """
        Run a single poll cycle.

        Returns:
            The new state, or None if the cycle was skipped or failed. On
            failure the previous state is kept.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Previous poll cycle still running, skipping this tick")
            return None

        try:
            try:
                reviews = self.fetcher.fetch_reviews(self._previous_reviews)
            except Exception as e:
                logger.error(f"Poll cycle failed, keeping previous state: {e}", exc_info=True)
                return None

            now = now or datetime.now(timezone.utc)
            score = self.scorer.score(reviews, now)
            should_bounce = (
                self._pending_reviews_count is not None
                and self._pending_reviews_count < len(reviews)
            )

            self.state = MonitorState(
                reviews=reviews,
                score=score,
                icon=icon_path(score, self.images_dir),
                menu=build_menu(reviews, self.host, now),
                should_bounce=should_bounce,
                reviews_url=self.fetcher.reviews_page_url(self.host),
                updated_at=now
            )
            self._previous_reviews = reviews
            self._pending_reviews_count = len(reviews)

            logger.info(f"Pending reviews: {len(reviews)}, badness score: {score}")
            return self.state
        finally:
            self._cycle_lock.release()
