"""
GitHub APIレスポンスから組み立てるレビュー関連のデータモデル
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

REVIEW_REQUESTED_EVENT = "review_requested"


class ModelError(ValueError):
    """APIデータの形式が不正な場合のエラー"""
    pass


def parse_github_datetime(value: Optional[str]) -> datetime:
    """GitHubのISO 8601文字列 (例: 2011-01-26T19:01:12Z) をaware datetimeに変換"""
    if not value or not isinstance(value, str):
        raise ModelError(f"日時が不正です: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError as e:
        raise ModelError(f"日時の解析に失敗しました: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _login_of(data: Dict[str, Any], key: str = 'user') -> str:
    user = data.get(key)
    if not isinstance(user, dict) or not user.get('login'):
        raise ModelError(f"{key}.loginが不正です")
    return user['login']


@dataclass(frozen=True)
class PullRequestSummary:
    """検索APIから得られるPRの概要"""
    number: int
    title: str
    author: str
    created_at: datetime
    updated_at: datetime
    api_url: str

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'PullRequestSummary':
        for key in ('number', 'title', 'created_at', 'updated_at', 'url'):
            if key not in item:
                raise ModelError(f"検索結果に必須フィールド '{key}' が不足しています")
        return cls(
            number=int(item['number']),
            title=item['title'],
            author=_login_of(item),
            created_at=parse_github_datetime(item['created_at']),
            updated_at=parse_github_datetime(item['updated_at']),
            api_url=item['url']
        )


@dataclass(frozen=True)
class ActivityEvent:
    """Issue/PRのイベント (review_requested のみ利用)"""
    event: str
    created_at: datetime
    requested_reviewer: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'ActivityEvent':
        reviewer = data.get('requested_reviewer')
        return cls(
            event=data.get('event') or '',
            created_at=parse_github_datetime(data.get('created_at')),
            requested_reviewer=reviewer.get('login') if isinstance(reviewer, dict) else None
        )


@dataclass(frozen=True)
class Comment:
    """PRレビューコメントまたはIssueコメント"""
    author: str
    updated_at: datetime

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Comment':
        # 削除済みユーザー (ghost) のコメントは user が null になる
        user = data.get('user')
        return cls(
            author=user.get('login', '') if isinstance(user, dict) else '',
            updated_at=parse_github_datetime(data.get('updated_at') or data.get('created_at'))
        )


@dataclass(frozen=True)
class ReviewRecord:
    """レビュー待ちPR (装飾済み)"""
    number: int
    title: str
    author: str
    created_at: datetime
    updated_at: datetime
    review_requested_at: datetime
    repository: str
    my_last_comment_at: Optional[datetime] = None

    @classmethod
    def from_summary(
        cls,
        summary: PullRequestSummary,
        repository: str,
        review_requested_at: datetime,
        my_last_comment_at: Optional[datetime] = None
    ) -> 'ReviewRecord':
        return cls(
            number=summary.number,
            title=summary.title,
            author=summary.author,
            created_at=summary.created_at,
            updated_at=summary.updated_at,
            review_requested_at=review_requested_at,
            repository=repository,
            my_last_comment_at=my_last_comment_at
        )

    def refreshed(self, summary: PullRequestSummary) -> 'ReviewRecord':
        """キャッシュ済みの派生値を保持したまま概要フィールドを更新"""
        return replace(
            self,
            title=summary.title,
            author=summary.author,
            created_at=summary.created_at,
            updated_at=summary.updated_at
        )

    def html_url(self, host: str = "github.com") -> str:
        return f"https://{host}/{self.repository}/pull/{self.number}"


@dataclass(frozen=True)
class DecorationResult:
    """PR一件の装飾結果"""
    number: int
    record: Optional[ReviewRecord] = None
    error: Optional[str] = None
    cache_hit: bool = False

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: ReviewRecord, cache_hit: bool = False) -> 'DecorationResult':
        return cls(number=record.number, record=record, cache_hit=cache_hit)

    @classmethod
    def failure(cls, number: int, reason: str) -> 'DecorationResult':
        return cls(number=number, error=reason)
