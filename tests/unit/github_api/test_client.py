"""
client.pyのテストコード
"""
import pytest
from unittest.mock import patch
from typing import Any
import requests
from reviewbadge.github_api.client import (
    GitHubAPIClient,
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RetryConfig,
)
from tests.mocks.config.settings import create_mock_settings
from tests.mocks.github_api.responses import (
    MOCK_USER_RESPONSE,
    create_error_response,
    create_mock_response,
    make_search_item,
)

@pytest.fixture
def mock_settings() -> Any:
    """Settingsクラスのモック"""
    return create_mock_settings(per_page=2)

@pytest.fixture(autouse=True)
def no_sleep():
    """リトライ待機を無効化"""
    with patch('reviewbadge.github_api.client.time.sleep') as mock_sleep:
        yield mock_sleep

def test_github_api_client_initialization(mock_settings: Any) -> None:
    """GitHubAPIClientの初期化テスト"""
    client = GitHubAPIClient(mock_settings)
    assert client.headers['Authorization'] == 'token test_token'
    assert client.headers['Accept'] == 'application/vnd.github.v3+json'
    assert client.base_url == 'https://api.github.com'
    assert client.retry_config.max_retries == 3

@patch('requests.request')
def test_get_authenticated_user(mock_request: Any, mock_settings: Any) -> None:
    """認証ユーザー取得のテスト"""
    mock_request.return_value = create_mock_response(MOCK_USER_RESPONSE)

    client = GitHubAPIClient(mock_settings)
    user = client.get_authenticated_user()

    assert user['login'] == 'alice'
    assert mock_request.call_args.kwargs['url'] == 'https://api.github.com/user'

@patch('requests.request')
def test_search_issues_paginates(mock_request: Any, mock_settings: Any) -> None:
    """検索APIのページネーションのテスト"""
    mock_request.side_effect = [
        create_mock_response({'total_count': 3, 'items': [make_search_item(1), make_search_item(2)]}),
        create_mock_response({'total_count': 3, 'items': [make_search_item(3)]}),
    ]

    client = GitHubAPIClient(mock_settings)
    items = client.search_issues('state:open type:pr review-requested:alice repo:acme/widgets')

    assert [item['number'] for item in items] == [1, 2, 3]
    assert mock_request.call_count == 2
    params = mock_request.call_args_list[0].kwargs['params']
    assert params['q'] == 'state:open type:pr review-requested:alice repo:acme/widgets'
    assert params['sort'] == 'updated'
    assert params['order'] == 'desc'

@patch('requests.request')
def test_search_issues_stops_at_total_count(mock_request: Any, mock_settings: Any) -> None:
    """total_countに達したら追加のページを要求しない"""
    mock_request.return_value = create_mock_response(
        {'total_count': 2, 'items': [make_search_item(1), make_search_item(2)]}
    )

    client = GitHubAPIClient(mock_settings)
    items = client.search_issues('q')

    assert len(items) == 2
    assert mock_request.call_count == 1

@patch('requests.request')
def test_get_review_comments_paginates(mock_request: Any, mock_settings: Any) -> None:
    """レビューコメント取得のテスト"""
    first = create_mock_response([{'id': 1}, {'id': 2}])
    second = create_mock_response([])
    mock_request.side_effect = [first, second]

    client = GitHubAPIClient(mock_settings)
    comments = client.get_review_comments('acme/widgets', 7)

    assert [c['id'] for c in comments] == [1, 2]
    assert mock_request.call_count == 2
    assert mock_request.call_args_list[0].kwargs['url'] == 'https://api.github.com/repos/acme/widgets/pulls/7/comments'

@patch('requests.request')
def test_get_issue_comments_and_events_endpoints(mock_request: Any, mock_settings: Any) -> None:
    """Issueコメントとイベントのエンドポイントのテスト"""
    mock_request.return_value = create_mock_response([{'id': 1}])

    client = GitHubAPIClient(mock_settings)
    client.get_issue_comments('acme/widgets', 7)
    client.get_issue_events('acme/widgets', 7)

    urls = [c.kwargs['url'] for c in mock_request.call_args_list]
    assert urls == [
        'https://api.github.com/repos/acme/widgets/issues/7/comments',
        'https://api.github.com/repos/acme/widgets/issues/7/events',
    ]

@patch('requests.request')
def test_authentication_error_is_not_retried(mock_request: Any, mock_settings: Any) -> None:
    """401はリトライせずに例外となる"""
    mock_request.return_value = create_error_response(401)

    client = GitHubAPIClient(mock_settings)
    with pytest.raises(AuthenticationError):
        client.get_authenticated_user()
    assert mock_request.call_count == 1

@patch('requests.request')
def test_not_found_error_is_not_retried(mock_request: Any, mock_settings: Any) -> None:
    """404はリトライせずに例外となる"""
    mock_request.return_value = create_error_response(404)

    client = GitHubAPIClient(mock_settings)
    with pytest.raises(NotFoundError):
        client.get_issue_events('acme/missing', 1)
    assert mock_request.call_count == 1

@patch('requests.request')
def test_server_error_is_retried(mock_request: Any, mock_settings: Any, no_sleep: Any) -> None:
    """5xxはリトライされる"""
    mock_request.side_effect = [
        create_error_response(502),
        create_mock_response(MOCK_USER_RESPONSE),
    ]

    client = GitHubAPIClient(mock_settings)
    user = client.get_authenticated_user()

    assert user['login'] == 'alice'
    assert mock_request.call_count == 2
    no_sleep.assert_called_once_with(1.0)

@patch('requests.request')
def test_retries_exhausted(mock_request: Any, mock_settings: Any) -> None:
    """最大試行回数を超えると最後の例外を送出する"""
    mock_request.side_effect = requests.exceptions.ConnectionError("boom")

    client = GitHubAPIClient(mock_settings, RetryConfig(max_retries=2))
    with pytest.raises(requests.exceptions.ConnectionError):
        client.get_authenticated_user()
    assert mock_request.call_count == 3

@patch('requests.request')
def test_rate_limit_error(mock_request: Any, mock_settings: Any) -> None:
    """残り0件の403はRateLimitErrorになる"""
    mock_request.return_value = create_error_response(
        403,
        headers={'X-RateLimit-Remaining': '0', 'X-RateLimit-Reset': '0', 'X-RateLimit-Limit': '5000'}
    )

    client = GitHubAPIClient(mock_settings, RetryConfig(max_retries=1))
    with pytest.raises(RateLimitError):
        client.search_issues('q')
    assert mock_request.call_count == 2

@patch('requests.request')
def test_forbidden_without_rate_limit(mock_request: Any, mock_settings: Any) -> None:
    """レート制限以外の403はAPIError"""
    mock_request.return_value = create_error_response(403)

    client = GitHubAPIClient(mock_settings, RetryConfig(max_retries=0))
    with pytest.raises(APIError) as excinfo:
        client.get_authenticated_user()
    assert not isinstance(excinfo.value, RateLimitError)
