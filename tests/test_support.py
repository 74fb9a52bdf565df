"""Tests for text helpers, QR rendering, and the token issuer."""

import base64
import time

import pytest

from models.errors import Unauthorized
from services.qr_generator import QRCodeGenerator
from utils.auth import TokenIssuer
from utils.text import extract_text, normalize_text, to_recipient_id


class TestText:
    def test_normalize(self):
        assert normalize_text("  .HeLP ") == ".help"
        assert normalize_text(None) == ""

    def test_extract_ignores_non_text_shapes(self):
        assert extract_text({"imageMessage": {"url": "x"}}) == ""
        assert extract_text({"extendedTextMessage": "not a dict"}) == ""
        assert extract_text(None) == ""

    @pytest.mark.parametrize(
        "raw,expected",
        [("+1 (555) 123-4567", "15551234567@s.whatsapp.net"), (5551234, "5551234@s.whatsapp.net"), ("abc", ""), (None, "")],
    )
    def test_recipient(self, raw, expected):
        assert to_recipient_id(raw) == expected


class TestQRCodeGenerator:
    def test_png_output(self):
        png = base64.b64decode(QRCodeGenerator().create_png_base64("pairing-challenge"))

        assert png.startswith(b"\x89PNG\r\n\x1a\n")

    def test_empty_challenge(self):
        with pytest.raises(ValueError):
            QRCodeGenerator().create_png_bytes("")


class TestTokenIssuer:
    def test_login_and_verify(self):
        issuer = TokenIssuer("admin", "secret", ttl_seconds=60)

        token = issuer.login("admin", "secret")

        assert issuer.verify(token) == "admin"

    @pytest.mark.parametrize("username,password", [("admin", "wrong"), ("root", "secret"), ("", "")])
    def test_bad_credentials(self, username, password):
        with pytest.raises(Unauthorized):
            TokenIssuer("admin", "secret", ttl_seconds=60).login(username, password)

    def test_expired_token(self, monkeypatch):
        issuer = TokenIssuer("admin", "secret", ttl_seconds=10)
        token = issuer.login("admin", "secret")
        later = time.time() + 11
        monkeypatch.setattr(time, "time", lambda: later)

        with pytest.raises(Unauthorized):
            issuer.verify(token)

    def test_missing_token(self):
        with pytest.raises(Unauthorized):
            TokenIssuer("admin", "secret", ttl_seconds=10).verify(None)
