"""
Badness Scorer for pending reviews.
Turns the decorated review list into a bounded score of how overdue reviews are.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from reviewbadge.analysis.working_hours import WorkCalendar
from reviewbadge.github_api.models import ReviewRecord

logger = logging.getLogger(__name__)

MAX_BADNESS_SCORE = 7
HOURS_PER_POINT = 4


def last_activity(review: ReviewRecord) -> datetime:
    """The latest of: review requested, my last comment."""
    if review.my_last_comment_at and review.my_last_comment_at > review.review_requested_at:
        return review.my_last_comment_at
    return review.review_requested_at


def sort_for_display(reviews: List[ReviewRecord]) -> List[ReviewRecord]:
    """Reviews ordered oldest activity first."""
    return sorted(reviews, key=last_activity)


class BadnessScorer:
    """
    Scores pending reviews from 0 (all attended) to ``max_score``.

    Each review earns one point per ``hours_per_point`` working hours since
    its last activity; the aggregate is the worst single review.
    """

    def __init__(self, calendar: Optional[WorkCalendar] = None,
                 max_score: int = MAX_BADNESS_SCORE, hours_per_point: int = HOURS_PER_POINT):
        self.calendar = calendar or WorkCalendar()
        self.max_score = max_score
        self.hours_per_point = hours_per_point

    def working_hours_since(self, review: ReviewRecord, now: Optional[datetime] = None) -> int:
        """Whole working hours since the review's last activity."""
        now = now or datetime.now(timezone.utc)
        return int(self.calendar.working_hours_between(last_activity(review), now))

    def review_score(self, review: ReviewRecord, now: Optional[datetime] = None) -> int:
        """Unclamped score of a single review."""
        return self.working_hours_since(review, now) // self.hours_per_point

    def score(self, reviews: List[ReviewRecord], now: Optional[datetime] = None) -> int:
        """
        Aggregate badness of the review queue.

        Args:
            reviews: Decorated pending reviews
            now: Reference time, defaults to the current time

        Returns:
            Integer in [0, max_score]; 0 for an empty queue
        """
        if not reviews:
            return 0

        now = now or datetime.now(timezone.utc)
        scores = [self.review_score(review, now) for review in reviews]
        logger.debug(f"Per-review badness scores: {scores}")

        return max(0, min(max(scores), self.max_score))
