"""Tests for current user resolution."""

from unittest.mock import patch

import nuspec.identity as identity


class TestCurrentUser:
    """Display name with login-name fallback."""

    @patch("nuspec.identity.lookup_display_name", return_value="Jane Doe")
    def test_display_name_preferred(self, _mock):
        assert identity.current_user() == "Jane Doe"

    @patch("nuspec.identity.login_name", return_value="jdoe")
    @patch("nuspec.identity.lookup_display_name", return_value=None)
    def test_falls_back_to_login_name(self, _lookup, _login):
        assert identity.current_user() == "jdoe"

    @patch("nuspec.identity.login_name", return_value="jdoe")
    @patch("nuspec.identity.lookup_display_name", return_value="Jane Doe")
    def test_display_name_disabled(self, lookup, _login):
        assert identity.current_user(use_display_name=False) == "jdoe"
        lookup.assert_not_called()


class TestLookupDisplayName:
    """Platform lookups degrade to None."""

    def test_lookup_failure_is_none(self, monkeypatch):
        def boom():
            raise KeyError("uid not found")

        monkeypatch.setattr(identity.sys, "platform", "linux")
        monkeypatch.setattr(identity, "_posix_display_name", boom)
        assert identity.lookup_display_name() is None

    def test_blank_name_is_none(self, monkeypatch):
        monkeypatch.setattr(identity.sys, "platform", "linux")
        monkeypatch.setattr(identity, "_posix_display_name", lambda: "   ")
        assert identity.lookup_display_name() is None

    def test_windows_last_first_is_swapped(self, monkeypatch):
        monkeypatch.setattr(identity.sys, "platform", "win32")
        monkeypatch.setattr(identity, "_windows_display_name", lambda: "Doe, Jane")
        assert identity.lookup_display_name() == "Jane Doe"


class TestLoginName:
    """Login name fallbacks."""

    def test_environment_fallback(self, monkeypatch):
        def no_user():
            raise OSError("no login")

        monkeypatch.setattr(identity.getpass, "getuser", no_user)
        monkeypatch.delenv("USER", raising=False)
        monkeypatch.setenv("USERNAME", "builder")
        assert identity.login_name() == "builder"
