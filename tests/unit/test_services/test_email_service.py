import pytest
import requests
from unittest.mock import MagicMock

from app.services.email_service import EmailService


# ===== Mock Brevo API =====

@pytest.fixture
def mock_brevo(monkeypatch):
    """Replace requests.post with a recorder answering 201."""
    calls = []

    def fake_post(url, headers, json, timeout):
        calls.append({"url": url, "headers": headers, "json": json})
        return MagicMock(status_code=201, text="")

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


@pytest.mark.unit
class TestEmailService:
    """Brevo e-mail delivery."""

    def test_disabled_without_key(self, mock_brevo):
        """Test nothing is sent when no API key is configured."""
        service = EmailService(api_key="")

        assert service.send("carol@example.com", "Hello", "<p>Hi</p>") is False
        assert mock_brevo == []

    def test_password_reset_mail(self, mock_brevo):
        """Test the reset mail carries the token link and the recipient."""
        service = EmailService(api_key="test-key")

        assert service.send_password_reset("carol@example.com", "Carol", "abc123") is True

        sent = mock_brevo[0]
        assert sent["headers"]["api-key"] == "test-key"
        assert sent["json"]["to"] == [{"email": "carol@example.com", "name": "Carol"}]
        assert "reset-password?token=abc123" in sent["json"]["htmlContent"]

    def test_reset_mail_escapes_name(self, mock_brevo):
        """Test the display name is HTML-escaped in the mail body."""
        service = EmailService(api_key="test-key")

        service.send_password_reset("carol@example.com", "<script>alert(1)</script>", "abc123")

        body = mock_brevo[0]["json"]["htmlContent"]
        assert "<script>" not in body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body

    def test_rejected_by_provider(self, monkeypatch):
        """Test a non-2xx answer is reported as a failed send."""
        monkeypatch.setattr(
            requests, "post", lambda *args, **kwargs: MagicMock(status_code=401, text="unauthorized")
        )

        assert EmailService(api_key="bad-key").send("carol@example.com", "Hello", "<p>Hi</p>") is False

    def test_network_error(self, monkeypatch):
        """Test connection failures are logged, not raised."""
        def boom(*args, **kwargs):
            raise requests.ConnectionError("down")

        monkeypatch.setattr(requests, "post", boom)

        assert EmailService(api_key="test-key").send("carol@example.com", "Hello", "<p>Hi</p>") is False
