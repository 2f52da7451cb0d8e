"""
GitHub REST APIへの低レベルなリクエスト送信、認証ヘッダーの管理、
APIレート制限のハンドリング、ページネーション処理を担当するモジュール
"""
import requests
import time
import logging
from typing import Dict, List, Optional, Callable, Any
from datetime import datetime
from dataclasses import dataclass
from reviewbadge.config.settings import Settings

logger = logging.getLogger(__name__)

class APIError(Exception):
    """API操作の基底例外クラス"""
    pass

class RateLimitError(APIError):
    """レート制限エラー"""
    pass

class AuthenticationError(APIError):
    """認証エラー"""
    pass

class NotFoundError(APIError):
    """リソースが見つからないエラー"""
    pass

@dataclass
class RetryConfig:
    """リトライ設定"""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    backoff_factor: float = 2.0

class RateLimitStatus:
    """レート制限の状態管理"""
    def __init__(self):
        self.remaining: Optional[int] = None
        self.reset_time: Optional[datetime] = None

    def update_from_headers(self, headers: Dict[str, str]):
        """レスポンスヘッダーからレート制限情報を更新"""
        if "X-RateLimit-Remaining" not in headers:
            return
        self.remaining = int(headers.get("X-RateLimit-Remaining", 0))
        reset_timestamp = int(headers.get("X-RateLimit-Reset", 0))
        self.reset_time = datetime.fromtimestamp(reset_timestamp)

    def should_wait(self) -> bool:
        """レート制限により待機が必要かチェック"""
        return self.remaining == 0 and self.reset_time is not None

    def get_wait_time(self) -> float:
        """待機時間を計算"""
        if self.reset_time is None:
            return 0.0
        wait_time = (self.reset_time - datetime.now()).total_seconds() + 1
        return max(wait_time, 0.0)

class GitHubAPIClient:
    """GitHub REST APIクライアント"""

    HEADERS = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": "reviewbadge"
    }

    # 検索APIは最大1000件までしか返さない
    MAX_SEARCH_PAGES = 10
    MAX_LIST_PAGES = 50

    def __init__(self, settings: Settings, retry_config: Optional[RetryConfig] = None):
        """初期化"""
        self.settings = settings
        self.base_url = settings.api_url
        self.retry_config = retry_config or RetryConfig(max_retries=settings.poll_settings.max_retries)
        self.headers = self.HEADERS.copy()
        self.headers["Authorization"] = f"token {settings.github_pat}"
        self.rate_limit_status = RateLimitStatus()

    def _handle_rate_limit(self, response: requests.Response) -> None:
        """レート制限の処理"""
        self.rate_limit_status.update_from_headers(response.headers)

        if self.rate_limit_status.should_wait():
            wait_time = self.rate_limit_status.get_wait_time()
            logger.warning(f"レート制限に達しました。{wait_time:.1f}秒待機します。")
            time.sleep(wait_time)

    def _handle_http_error(self, response: requests.Response) -> None:
        """HTTPエラーの処理"""
        if response.status_code == 401:
            raise AuthenticationError("認証に失敗しました。GitHub Personal Access Tokenを確認してください。")
        elif response.status_code == 403:
            if "X-RateLimit-Remaining" in response.headers and response.headers["X-RateLimit-Remaining"] == "0":
                self.rate_limit_status.update_from_headers(response.headers)
                raise RateLimitError("レート制限に達しました。")
            else:
                raise APIError("アクセスが拒否されました。権限を確認してください。")
        elif response.status_code == 404:
            raise NotFoundError("リソースが見つかりません。")
        elif response.status_code >= 500:
            raise APIError(f"サーバーエラーが発生しました: {response.status_code}")
        else:
            raise APIError(f"HTTPエラー {response.status_code}: {response.text}")

    def _retry_operation(self, operation: Callable, *args, **kwargs):
        """リトライ機能付きの操作実行"""
        delay = self.retry_config.base_delay

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                return operation(*args, **kwargs)
            except RateLimitError:
                # レート制限の場合は特別な処理
                if self.rate_limit_status.should_wait() and attempt < self.retry_config.max_retries:
                    wait_time = self.rate_limit_status.get_wait_time()
                    logger.warning(f"レート制限により待機: {wait_time:.1f}秒")
                    time.sleep(wait_time)
                    continue
                raise
            except (AuthenticationError, NotFoundError):
                # 認証エラーや404エラーはリトライしない
                raise
            except (APIError, requests.exceptions.RequestException) as e:
                if attempt < self.retry_config.max_retries:
                    logger.warning(f"操作に失敗しました (試行 {attempt + 1}/{self.retry_config.max_retries + 1}): {e}")
                    time.sleep(delay)
                    delay = min(delay * self.retry_config.backoff_factor, self.retry_config.max_delay)
                else:
                    logger.error(f"最大試行回数に達しました: {e}")
                    raise

    def _make_request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """APIリクエストの送信"""
        url = f"{self.base_url}/{endpoint}"

        def _make_request_operation():
            try:
                logger.debug(f"APIリクエスト: {method} {url} パラメータ: {params}")
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self.headers,
                    params=params,
                    timeout=self.settings.poll_settings.timeout
                )

                if response.status_code >= 400:
                    self._handle_http_error(response)

                logger.debug(f"APIレスポンス: ステータス {response.status_code}")
                self._handle_rate_limit(response)
                return response
            except requests.exceptions.ConnectionError as e:
                logger.error(f"接続エラー: {e}")
                raise
            except requests.exceptions.Timeout as e:
                logger.error(f"タイムアウト: {e}")
                raise

        return self._retry_operation(_make_request_operation)

    def _get_paginated(self, endpoint: str, params: Optional[Dict[str, Any]] = None, max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        """リスト系エンドポイントを全ページ取得"""
        per_page = self.settings.poll_settings.per_page
        params = dict(params or {})
        params["per_page"] = per_page

        items: List[Dict[str, Any]] = []
        page = 1
        max_pages = max_pages or self.MAX_LIST_PAGES

        while page <= max_pages:
            params["page"] = page
            response = self._make_request("GET", endpoint, params)
            current_items: List[Dict[str, Any]] = response.json()
            if not current_items:  # 空のレスポンスを受け取ったら終了
                break
            items.extend(current_items)
            if len(current_items) < per_page:
                break
            page += 1

        return items

    def get_authenticated_user(self) -> Dict[str, Any]:
        """認証ユーザーの情報を取得"""
        response = self._make_request("GET", "user")
        return response.json()

    def search_issues(self, query: str, sort: str = "updated", order: str = "desc") -> List[Dict[str, Any]]:
        """Issue/PR検索APIで全件取得"""
        per_page = self.settings.poll_settings.per_page
        params: Dict[str, Any] = {
            "q": query,
            "sort": sort,
            "order": order,
            "per_page": per_page
        }

        items: List[Dict[str, Any]] = []
        page = 1
        while page <= self.MAX_SEARCH_PAGES:
            params["page"] = page
            response = self._make_request("GET", "search/issues", params)
            data: Dict[str, Any] = response.json()
            current_items = data.get("items", [])
            items.extend(current_items)
            if len(current_items) < per_page or len(items) >= data.get("total_count", 0):
                break
            page += 1

        logger.info(f"検索クエリ '{query}' で {len(items)} 件を取得しました")
        return items

    def get_issue_events(self, repo_full_name: str, issue_number: int) -> List[Dict[str, Any]]:
        """Issue/PRのイベントを取得"""
        return self._get_paginated(f"repos/{repo_full_name}/issues/{issue_number}/events")

    def get_issue_comments(self, repo_full_name: str, issue_number: int) -> List[Dict[str, Any]]:
        """Issueコメントの取得"""
        return self._get_paginated(f"repos/{repo_full_name}/issues/{issue_number}/comments")

    def get_review_comments(self, repo_full_name: str, pull_number: int) -> List[Dict[str, Any]]:
        """レビューコメントの取得"""
        return self._get_paginated(f"repos/{repo_full_name}/pulls/{pull_number}/comments")
