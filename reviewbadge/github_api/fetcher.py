"""
GitHub APIクライアント (client.py) を使用して、レビュー依頼中のPRを検索し、
レビュー依頼日時と自分の最終コメント日時でPRを装飾する高レベルなロジックを実装します。
前回サイクルの結果を updated_at をキーとしたキャッシュとして利用します。
"""
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote_plus
from reviewbadge.github_api.client import GitHubAPIClient
from reviewbadge.github_api.identity import UserIdentity
from reviewbadge.github_api.models import (
    EPOCH,
    REVIEW_REQUESTED_EVENT,
    ActivityEvent,
    Comment,
    DecorationResult,
    ModelError,
    PullRequestSummary,
    ReviewRecord,
)

logger = logging.getLogger(__name__)

# https://api.github.com/repos/<owner>/<repo>/issues/<number>
_REPOSITORY_URL_RE = re.compile(r"/repos/([^/]+)/([^/]+)/(?:issues|pulls)/\d+/?$")

class FetcherError(Exception):
    """フェッチャーの基底例外クラス"""
    pass

class RepositoryParseError(FetcherError):
    """APIのURLからリポジトリを特定できないエラー"""
    pass


def parse_repository(api_url: Optional[str]) -> str:
    """PRのAPI URLから 'owner/repo' を取り出す"""
    match = _REPOSITORY_URL_RE.search(api_url or "")
    if not match:
        raise RepositoryParseError(f"URLからリポジトリを特定できません: {api_url!r}")
    return f"{match.group(1)}/{match.group(2)}"


def build_search_query(login: str, scope: str) -> str:
    """レビュー依頼中のオープンなPRを検索するクエリ"""
    qualifier = "repo" if "/" in scope else "org"
    return f"state:open type:pr review-requested:{login} {qualifier}:{scope}"


def latest_review_request(events: Iterable[ActivityEvent], login: str) -> datetime:
    """自分へのレビュー依頼イベントの最新日時。見つからなければEPOCH"""
    login = login.lower()
    requested = [
        e.created_at for e in events
        if e.event == REVIEW_REQUESTED_EVENT
        and e.requested_reviewer is not None
        and e.requested_reviewer.lower() == login
    ]
    return max(requested, default=EPOCH)


def latest_comment_by(comments: Iterable[Comment], login: str) -> Optional[datetime]:
    """自分のコメントの最新更新日時。コメントがなければNone"""
    login = login.lower()
    return max((c.updated_at for c in comments if c.author.lower() == login), default=None)


class ReviewFetcher:
    """
    レビュー待ちPRの取得と装飾を行います。
    """

    def __init__(self, client: GitHubAPIClient, identity: UserIdentity, scope: str, max_workers: int = 8):
        """
        ReviewFetcherを初期化します。

        Args:
            client: GitHubAPIClientのインスタンス。
            identity: 認証ユーザーのログイン名を保持するUserIdentity。
            scope: 検索対象のorganization名または 'owner/repo'。
            max_workers: PRの装飾を並列実行するスレッド数の上限。
        """
        self.client = client
        self.identity = identity
        self.scope = scope
        self.max_workers = max_workers

    def search_pull_requests(self, login: str) -> List[PullRequestSummary]:
        """
        レビュー依頼中のPRを更新日時の降順で検索します。

        形式が不正な検索結果は警告を出してスキップします。
        """
        query = build_search_query(login, self.scope)
        items = self.client.search_issues(query, sort="updated", order="desc")

        summaries: List[PullRequestSummary] = []
        for item in items:
            try:
                summaries.append(PullRequestSummary.from_api(item))
            except (ModelError, TypeError, ValueError) as e:
                logger.warning(f"検索結果の解析に失敗したためスキップします (#{item.get('number', 'unknown')}): {e}")
        return summaries

    def _fetch_activity(self, repository: str, number: int):
        """イベント、レビューコメント、Issueコメントを並列に取得"""
        with ThreadPoolExecutor(max_workers=3) as executor:
            events_future = executor.submit(self.client.get_issue_events, repository, number)
            review_comments_future = executor.submit(self.client.get_review_comments, repository, number)
            issue_comments_future = executor.submit(self.client.get_issue_comments, repository, number)

            events = [ActivityEvent.from_api(e) for e in events_future.result()]
            comments = [Comment.from_api(c) for c in review_comments_future.result()]
            comments.extend(Comment.from_api(c) for c in issue_comments_future.result())
        return events, comments

    def decorate(
        self,
        summary: PullRequestSummary,
        login: str,
        cache: Optional[Dict[int, ReviewRecord]] = None
    ) -> DecorationResult:
        """
        PR一件をレビュー依頼日時と自分の最終コメント日時で装飾します。

        前回の結果が存在し updated_at が一致する場合はAPIを呼び出さずに再利用します。

        Args:
            summary: 検索APIから得たPRの概要。
            login: 認証ユーザーのログイン名。
            cache: 前回サイクルのReviewRecord (PR番号をキー)。

        Returns:
            DecorationResult: 成功時はrecord、失敗時はerrorを持つ結果。
        """
        cached = (cache or {}).get(summary.number)
        if cached is not None and cached.updated_at == summary.updated_at:
            logger.debug(f"PR #{summary.number} はキャッシュを再利用します")
            return DecorationResult.success(cached.refreshed(summary), cache_hit=True)

        try:
            repository = parse_repository(summary.api_url)
            events, comments = self._fetch_activity(repository, summary.number)
            record = ReviewRecord.from_summary(
                summary,
                repository=repository,
                review_requested_at=latest_review_request(events, login),
                my_last_comment_at=latest_comment_by(comments, login)
            )
        except Exception as e:
            # 個別のPRの装飾失敗は全体の処理を停止しない
            logger.warning(f"PR #{summary.number} の装飾に失敗しました: {e}")
            return DecorationResult.failure(summary.number, str(e))

        return DecorationResult.success(record)

    def decorate_all(
        self,
        summaries: List[PullRequestSummary],
        login: str,
        previous_reviews: Optional[List[ReviewRecord]] = None
    ) -> List[DecorationResult]:
        """すべてのPRを並列に装飾します。結果の順序は保証しません。"""
        if not summaries:
            return []

        cache = {review.number: review for review in previous_reviews or []}
        results: List[DecorationResult] = []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(summaries))) as executor:
            futures = [executor.submit(self.decorate, summary, login, cache) for summary in summaries]
            for future in as_completed(futures):
                results.append(future.result())

        return results

    def fetch_reviews(self, previous_reviews: Optional[List[ReviewRecord]] = None) -> List[ReviewRecord]:
        """
        レビュー待ちPRを取得して装飾します。

        Args:
            previous_reviews: 前回サイクルの結果 (キャッシュとして読み取り専用で使用)。

        Returns:
            List[ReviewRecord]: 装飾に成功したPRのリスト。
        """
        login = self.identity.login
        summaries = self.search_pull_requests(login)
        results = self.decorate_all(summaries, login, previous_reviews)

        reviews = [r.record for r in results if r.ok]
        cache_hits = sum(1 for r in results if r.cache_hit)
        failures = [r for r in results if not r.ok]

        logger.info(f"レビュー待ちPR {len(reviews)}件 (キャッシュ再利用 {cache_hits}件, 失敗 {len(failures)}件)")
        for failure in failures:
            logger.debug(f"除外したPR #{failure.number}: {failure.error}")

        return reviews

    def reviews_page_url(self, host: str = "github.com") -> str:
        """自分宛てのレビュー依頼一覧ページのURL"""
        qualifier = "repo" if "/" in self.scope else "org"
        query = f"is:pr is:open review-requested:{self.identity.login} sort:updated-desc"
        if qualifier == "repo":
            return f"https://{host}/{self.scope}/pulls?q={quote_plus(query)}"
        return f"https://{host}/pulls?q={quote_plus(f'{query} org:{self.scope}')}"
