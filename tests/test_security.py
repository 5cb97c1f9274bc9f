"""Tests for signing, stored-secret encryption, validators and rate limiting."""

import pytest

from backoffice import rate_limiter
from backoffice.security_utils import decrypt_secret, encrypt_secret, mask_secret
from backoffice.shared.validators import (
    parse_id_list,
    round_money,
    validate_phone,
    validate_webhook_url,
)
from backoffice.webhook_security import sign_payload, terminal_matches, verify_signature


class TestWebhookSignature:
    def test_signature_round_trip(self):
        body = b'{"event":"order_paid"}'
        header = sign_payload("whsec-test", body)

        assert header.startswith("sha256=")
        assert verify_signature("whsec-test", body, header)
        assert not verify_signature("other-secret", body, header)
        assert not verify_signature("whsec-test", body + b" ", header)

    def test_missing_header_fails(self):
        assert not verify_signature("whsec-test", b"{}", None)
        assert not verify_signature("whsec-test", b"{}", "md5=abc")


class TestTerminalCheck:
    def test_skipped_when_nothing_configured(self):
        assert terminal_matches(None, None, "")

    def test_matches_any_known_terminal(self):
        assert terminal_matches("1000", "2000", "1000")
        assert not terminal_matches("3000", "2000", "1000")
        assert not terminal_matches(None, "1000")


class TestSecrets:
    def test_encrypt_and_decrypt(self):
        encrypted = encrypt_secret("pit-123")

        assert encrypted != "pit-123"
        assert decrypt_secret(encrypted) == "pit-123"

    def test_plain_legacy_value_is_returned_as_is(self):
        assert decrypt_secret("not-encrypted") == "not-encrypted"

    def test_mask(self):
        assert mask_secret("pit-1234567890") == "**********7890"
        assert mask_secret("abc") == "***"
        assert mask_secret(None) is None


class TestValidators:
    def test_round_money_half_up(self):
        assert round_money(2.675) == 2.68
        assert round_money("10") == 10.0
        with pytest.raises(ValueError):
            round_money("abc")

    def test_phone(self):
        assert validate_phone("+972 50-123-4567") == "+972501234567"
        with pytest.raises(ValueError):
            validate_phone("12")

    def test_webhook_url(self):
        assert validate_webhook_url(" https://hooks.example.com/x ") == "https://hooks.example.com/x"
        for bad in ("", "hooks.example.com", "ftp://hooks.example.com"):
            with pytest.raises(ValueError):
                validate_webhook_url(bad)

    def test_parse_id_list(self):
        assert parse_id_list("a, b,,a ,c") == ["a", "b", "c"]
        assert parse_id_list(None) == []


class TestRateLimiter:
    def test_memory_fallback_when_redis_is_down(self, monkeypatch):
        def unavailable():
            raise ConnectionError("redis down")

        monkeypatch.setattr(rate_limiter, "get_redis_client", unavailable)
        monkeypatch.setattr(rate_limiter, "memory_cache", {})

        results = [rate_limiter.check_rate_limit("test:1.2.3.4", 2, 60)[0] for _ in range(3)]

        assert results == [True, True, False]

    def test_expired_fallback_windows_are_dropped(self, monkeypatch):
        cache = {"test:10.0.0.1": {"count": 5, "reset_time": 0}}
        monkeypatch.setattr(rate_limiter, "memory_cache", cache)

        rate_limiter._check_memory("test:10.0.0.2", 5, 60)

        assert list(cache) == ["test:10.0.0.2"]


class TestSecurityHeaders:
    def test_headers_on_api_responses(self, client):
        response = client.get("/")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "default-src 'none'" in response.headers["Content-Security-Policy"]
        assert response.headers["Cache-Control"] == "no-store"

    def test_health_is_excluded(self, client):
        response = client.get("/health")

        assert response.json() == {"status": "healthy"}
        assert "X-Frame-Options" not in response.headers
