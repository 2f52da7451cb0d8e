"""
identity.pyのテストコード
"""
import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock
from reviewbadge.github_api.client import APIError, GitHubAPIClient
from reviewbadge.github_api.identity import UserIdentity


def test_login_is_fetched_once():
    """ログイン名は初回のみAPIから取得される"""
    client = MagicMock(spec=GitHubAPIClient)
    client.get_authenticated_user.return_value = {"login": "alice"}

    identity = UserIdentity(client)

    assert identity.login == "alice"
    assert identity.login == "alice"
    client.get_authenticated_user.assert_called_once_with()


def test_login_is_fetched_once_across_threads():
    client = MagicMock(spec=GitHubAPIClient)
    client.get_authenticated_user.return_value = {"login": "alice"}
    identity = UserIdentity(client)

    with ThreadPoolExecutor(max_workers=8) as executor:
        logins = list(executor.map(lambda _: identity.login, range(16)))

    assert set(logins) == {"alice"}
    client.get_authenticated_user.assert_called_once_with()


def test_preset_login_skips_lookup():
    identity = UserIdentity.preset("alice")
    assert identity.login == "alice"
    assert identity.client is None


def test_missing_login_in_response():
    client = MagicMock(spec=GitHubAPIClient)
    client.get_authenticated_user.return_value = {}

    with pytest.raises(APIError):
        _ = UserIdentity(client).login


def test_requires_client_or_login():
    with pytest.raises(ValueError):
        UserIdentity()
