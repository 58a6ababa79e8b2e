"""
Email notification tests using a fake SMTP client.
"""

import logging
import smtplib

import pytest

from mining_data.config import EmailSettings
from mining_data.notifications.email_sender import send_email, send_notification


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, message, from_addr=None, to_addrs=None):
        self.sent.append((message, from_addr, to_addrs))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_empty_server_is_noop(monkeypatch):
    def no_network(*args, **kwargs):
        raise AssertionError("SMTP should not be contacted")

    monkeypatch.setattr(smtplib, "SMTP", no_network)

    assert send_email("subject", "body", "user", "pw", "", "587", "to@example.com", "from@example.com") is False


def test_send_email(fake_smtp, caplog):
    with caplog.at_level(logging.INFO):
        sent = send_email(
            "Miner offline", "rig-01 stopped hashing",
            "alerts", "pw", "smtp.example.com", "587",
            "ops@example.com", "miner@example.com",
        )

    assert sent is True
    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 587)
    assert smtp.started_tls
    assert smtp.logged_in == ("alerts", "pw")

    message, from_addr, to_addrs = smtp.sent[0]
    assert message["Subject"] == "Miner offline"
    assert message["To"] == "ops@example.com"
    assert message["From"] == "miner@example.com"
    assert "rig-01 stopped hashing" in message.get_content()
    assert from_addr == "miner@example.com"
    assert to_addrs == ["ops@example.com"]
    assert "Email sent: Miner offline" in caplog.text


def test_send_email_skips_login_without_user(fake_smtp):
    assert send_email("s", "b", "", "", "localhost", "25", "to@example.com", "from@example.com")
    assert fake_smtp.instances[0].logged_in is None


def test_send_email_failure_is_logged_not_raised(monkeypatch, caplog):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(smtplib, "SMTP", refuse)

    sent = send_email("s", "b", "u", "p", "smtp.example.com", "587", "to@example.com", "from@example.com")

    assert sent is False
    assert "Problem sending email notification" in caplog.text
    assert "Email sent" not in caplog.text


def test_send_email_bad_port(fake_smtp):
    assert send_email("s", "b", "u", "p", "smtp.example.com", "smtp", "to@example.com", "from@example.com") is False
    assert fake_smtp.instances == []


def test_send_notification_uses_settings(fake_smtp):
    settings = EmailSettings(
        user="alerts", password="pw", server="smtp.example.com", port="2525",
        to="ops@example.com", sender="miner@example.com",
    )

    assert send_notification(settings, "Schema updated", "v2 applied")
    assert fake_smtp.instances[0].port == 2525


def test_send_notification_disabled(monkeypatch):
    def no_network(*args, **kwargs):
        raise AssertionError("SMTP should not be contacted")

    monkeypatch.setattr(smtplib, "SMTP", no_network)

    assert send_notification(EmailSettings(user="alerts", to="ops@example.com"), "s", "b") is False
