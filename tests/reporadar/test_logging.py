"""Tests for log redaction and setup."""

from __future__ import annotations

import logging

from reporadar.core.logging import REDACTED, redact_secrets, sanitize, setup_logging


class TestSanitize:
    def test_secret_keys_masked(self):
        payload = {
            "Authorization": "Bearer ghp_secret",
            "private_token": "glpat-secret",
            "nested": {"api_key": "k", "retry_after": 3},
        }
        clean = sanitize(payload)
        assert clean["Authorization"] == REDACTED
        assert clean["private_token"] == REDACTED
        assert clean["nested"]["api_key"] == REDACTED
        assert clean["nested"]["retry_after"] == 3

    def test_inline_credentials_masked(self):
        text = "GET /repos?access_token=plain-secret failed; header Bearer abc.def"
        clean = sanitize(text)
        assert "plain-secret" not in clean
        assert "abc.def" not in clean
        assert "access_token=" + REDACTED in clean

    def test_none_token_left_alone(self):
        assert sanitize(None, "token") is None

    def test_lists(self):
        assert sanitize(["token=x"]) == ["token=" + REDACTED]


class TestProcessor:
    def test_event_text_kept(self):
        event = {"event": "sync.completed", "updated": 2, "token": "ghp_x"}
        out = redact_secrets(None, "info", event)
        assert out["event"] == "sync.completed"
        assert out["updated"] == 2
        assert out["token"] == REDACTED


class TestSetup:
    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("REPORADAR_LOG_LEVEL", "ERROR")
        setup_logging("DEBUG")
        assert logging.getLogger("reporadar").level == logging.DEBUG

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv("REPORADAR_LOG_LEVEL", "warning")
        setup_logging()
        assert logging.getLogger("reporadar").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
