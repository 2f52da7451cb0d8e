"""
認証ユーザーのログイン名をプロセス単位で保持するモジュール
"""
import logging
import threading
from typing import Optional
from reviewbadge.github_api.client import GitHubAPIClient, APIError

logger = logging.getLogger(__name__)


class UserIdentity:
    """
    認証ユーザーのログイン名。

    初回アクセス時に GET /user で取得し、以降はプロセスが終了するまで
    同じ値を返します (ログイン名は変わらない前提)。
    """

    def __init__(self, client: Optional[GitHubAPIClient] = None, login: Optional[str] = None):
        if client is None and not login:
            raise ValueError("clientまたはloginのどちらかが必要です")
        self.client = client
        self._login = login
        self._lock = threading.Lock()

    @classmethod
    def preset(cls, login: str) -> 'UserIdentity':
        """設定ファイルなどで既知のログイン名から作成"""
        return cls(login=login)

    @property
    def login(self) -> str:
        if self._login is None:
            with self._lock:
                if self._login is None:
                    user = self.client.get_authenticated_user()
                    login = user.get("login")
                    if not login:
                        raise APIError("GET /user のレスポンスにloginが含まれていません")
                    self._login = login
                    logger.info(f"GitHubログイン名: {login}")
        return self._login
