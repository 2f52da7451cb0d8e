"""
Presentation helpers for the review badge.
Maps scores to icon assets and reviews to menu entries.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple
from reviewbadge.analysis.badness_scorer import MAX_BADNESS_SCORE, last_activity, sort_for_display
from reviewbadge.github_api.models import ReviewRecord

TITLE_MAX_LENGTH = 60
EMPTY_QUEUE_LABEL = "Your review queue is empty. Good on ya! 🙌"
MENU_HEADER_LABEL = "Your pending reviews"


@dataclass(frozen=True)
class MenuEntry:
    label: str
    url: Optional[str] = None
    enabled: bool = True
    submenu: Tuple['MenuEntry', ...] = ()


def icon_path(score: int, images_dir: Path) -> Path:
    """Icon asset for a badness score (clamped to the available assets)."""
    level = max(0, min(score, MAX_BADNESS_SCORE))
    return Path(images_dir) / "score" / f"score_{level}.png"


def spinner_path(images_dir: Path) -> Path:
    """Icon shown while the first cycle is loading."""
    return Path(images_dir) / "spinner.png"


def truncate(text: str, length: int = TITLE_MAX_LENGTH, omission: str = "...") -> str:
    if len(text) <= length:
        return text
    return text[:length - len(omission)] + omission


def humanize_since(then: datetime, now: Optional[datetime] = None) -> str:
    """
    Format the time since ``then`` in relative words, e.g. "3 hours ago".
    """
    now = now or datetime.now(timezone.utc)
    seconds = (now - then).total_seconds()
    if seconds < 0:
        return "in the future"

    minutes = seconds / 60
    hours = minutes / 60
    days = hours / 24

    if seconds < 45:
        return "a few seconds ago"
    if seconds < 90:
        return "a minute ago"
    if minutes < 45:
        return f"{round(minutes)} minutes ago"
    if minutes < 90:
        return "an hour ago"
    if hours < 22:
        return f"{round(hours)} hours ago"
    if hours < 36:
        return "a day ago"
    if days < 26:
        return f"{round(days)} days ago"
    if days < 45:
        return "a month ago"
    if days < 320:
        return f"{round(days / 30.4)} months ago"
    if days < 548:
        return "a year ago"
    return f"{round(days / 365)} years ago"


def review_label(review: ReviewRecord, now: Optional[datetime] = None) -> str:
    return (
        f"{truncate(review.title)} [from {review.author}] "
        f"[last updated {humanize_since(last_activity(review), now)}]"
    )


def build_menu(reviews: List[ReviewRecord], host: str = "github.com",
               now: Optional[datetime] = None) -> List[MenuEntry]:
    """
    Menu entries for the review queue.

    Reviews are grouped under a single header entry, oldest activity first.
    An empty queue yields a single disabled entry.
    """
    if not reviews:
        return [MenuEntry(label=EMPTY_QUEUE_LABEL, enabled=False)]
    entries = tuple(
        MenuEntry(label=review_label(review, now), url=review.html_url(host))
        for review in sort_for_display(reviews)
    )
    return [MenuEntry(label=MENU_HEADER_LABEL, submenu=entries)]
