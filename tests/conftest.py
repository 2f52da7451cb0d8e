"""
テストの共通設定
"""
from datetime import datetime
from typing import Callable, Optional

import pytest

from reviewbadge.github_api.models import EPOCH, ReviewRecord
from tests.mocks.clock import utc


@pytest.fixture
def make_review() -> Callable[..., ReviewRecord]:
    """ReviewRecordのファクトリ"""
    def _make_review(number: int = 1, review_requested_at: datetime = EPOCH,
                     my_last_comment_at: Optional[datetime] = None,
                     updated_at: Optional[datetime] = None, title: Optional[str] = None) -> ReviewRecord:
        return ReviewRecord(
            number=number,
            title=title or f"PR {number}",
            author="bob",
            created_at=utc(2024, 1, 1),
            updated_at=updated_at or utc(2024, 1, 2),
            review_requested_at=review_requested_at,
            repository="acme/widgets",
            my_last_comment_at=my_last_comment_at
        )
    return _make_review
