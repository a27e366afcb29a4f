"""Tests for core.secrets token storage."""

from unittest.mock import patch

import pytest
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordSetError

from core import secrets
from core.secrets import SERVICE_NAME, TokenSource


def test_keyring_wins_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """A stored token is used even when the env var is set."""
    monkeypatch.setenv("AGENT_API_TOKEN", "from-env")
    with patch("core.secrets.keyring") as mock_kr:
        mock_kr.get_password.return_value = " from-keyring "
        assert secrets.lookup_token("AGENT_API_TOKEN") == ("from-keyring", TokenSource.KEYRING)
        mock_kr.get_password.assert_called_once_with(SERVICE_NAME, "AGENT_API_TOKEN")


def test_env_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENT_API_TOKEN", "from-env")
    with patch("core.secrets.keyring") as mock_kr:
        mock_kr.get_password.return_value = None
        assert secrets.lookup_token("AGENT_API_TOKEN") == ("from-env", TokenSource.ENV)


def test_keyring_error_falls_back_to_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENT_API_TOKEN", "from-env")
    with patch("core.secrets.keyring") as mock_kr:
        mock_kr.get_password.side_effect = KeyringError("locked")
        assert secrets.lookup_token("AGENT_API_TOKEN")[1] == TokenSource.ENV


def test_nothing_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENT_API_TOKEN", "   ")
    with patch("core.secrets.keyring") as mock_kr:
        mock_kr.get_password.return_value = ""
        assert secrets.lookup_token("AGENT_API_TOKEN") == (None, None)


def test_store_token() -> None:
    with patch("core.secrets.keyring") as mock_kr:
        assert secrets.store_token("AGENT_API_TOKEN", "abc") is True
        mock_kr.set_password.assert_called_once_with(SERVICE_NAME, "AGENT_API_TOKEN", "abc")


def test_store_token_refused() -> None:
    with patch("core.secrets.keyring") as mock_kr:
        mock_kr.set_password.side_effect = PasswordSetError("no backend")
        assert secrets.store_token("AGENT_API_TOKEN", "abc") is False


def test_keyring_available_detects_fail_backend() -> None:
    with patch("core.secrets.keyring") as mock_kr:
        mock_kr.get_keyring.return_value = fail.Keyring()
        assert secrets.keyring_available() is False
        mock_kr.get_keyring.return_value = object()
        assert secrets.keyring_available() is True
