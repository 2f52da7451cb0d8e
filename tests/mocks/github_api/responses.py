from datetime import datetime
from typing import Optional, Any, Dict, List, Union

API_BASE = "https://api.github.com"

def make_search_item(number: int, updated_at: str = "2024-01-02T00:00:00Z", repo: str = "acme/widgets",
                     url: Optional[str] = None, author: str = "bob") -> Dict[str, Any]:
    """検索APIの結果1件を作成"""
    return {
        "number": number,
        "title": f"テストPR {number}",
        "state": "open",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": updated_at,
        "user": {"login": author},
        "url": url or f"{API_BASE}/repos/{repo}/issues/{number}",
        "html_url": f"https://github.com/{repo}/pull/{number}",
        "pull_request": {"url": f"{API_BASE}/repos/{repo}/pulls/{number}"}
    }

def make_review_requested_event(reviewer: str, created_at: str) -> Dict[str, Any]:
    """review_requestedイベントを作成"""
    return {
        "event": "review_requested",
        "created_at": created_at,
        "actor": {"login": "bob"},
        "requested_reviewer": {"login": reviewer}
    }

def make_comment(author: str, updated_at: str) -> Dict[str, Any]:
    """コメントを作成"""
    return {
        "id": 1,
        "body": "テストコメント",
        "user": {"login": author},
        "created_at": updated_at,
        "updated_at": updated_at
    }

MOCK_SEARCH_ITEM = make_search_item(1)

MOCK_USER_RESPONSE = {"login": "alice", "id": 1}

# エラーレスポンス
RATE_LIMIT_ERROR = {
    "message": "API rate limit exceeded",
    "documentation_url": "https://docs.github.com/rest/overview/resources-in-the-rest-api#rate-limiting"
}

NOT_FOUND_ERROR = {
    "message": "Not Found",
    "documentation_url": "https://docs.github.com/rest"
}

# APIレスポンスのモック
def create_mock_response(json_data: Optional[Union[Dict[str, Any], List[Any]]] = None, status_code: int = 200):
    """APIレスポンスのモックを作成"""
    from unittest.mock import MagicMock
    response = MagicMock()
    response.json.return_value = json_data if json_data is not None else []
    response.headers = {
        'X-RateLimit-Remaining': '5000',
        'X-RateLimit-Reset': str(int(datetime.now().timestamp()) + 3600),
        'X-RateLimit-Limit': '5000'
    }
    response.status_code = status_code
    response.text = ""
    return response

# エラーレスポンスのモック
def create_error_response(status_code: int = 404, json_data: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
    """エラーレスポンスのモックを作成"""
    from unittest.mock import MagicMock
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data or NOT_FOUND_ERROR
    response.headers = headers or {}
    response.text = str(json_data or NOT_FOUND_ERROR)
    return response
