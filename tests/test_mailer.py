import smtplib

import pytest

from taskboard import mailer
from taskboard.errors import EmailDeliveryError, ValidationError

SETTINGS = {
    "smtp_host": "smtp.example.com",
    "smtp_port": 587,
    "smtp_ssl": True,
    "smtp_username": "mailer",
    "smtp_password": "hunter2",
    "sender_email": "noreply@example.com",
    "sender_name": "Project Board",
}


class FakeSMTP:
    instances = []
    fail_connect = False
    fail_send = False

    def __init__(self, host, port, timeout=None, context=None):
        if FakeSMTP.fail_connect:
            raise OSError("connection refused")
        self.host, self.port = host, port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        if FakeSMTP.fail_send:
            raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"no such user")})
        self.sent.append(msg)

    def quit(self):
        self.calls.append("quit")


class FakeSMTPSSL(FakeSMTP):
    pass


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_connect = False
    FakeSMTP.fail_send = False
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", FakeSMTPSSL)
    return FakeSMTP


def test_validate_email_settings():
    assert mailer.validate_email_settings(SETTINGS) == []
    assert mailer.validate_email_settings(None) == ["Email settings have not been configured"]
    problems = mailer.validate_email_settings({"smtp_host": " ", "smtp_port": "x", "sender_email": "nope", "smtp_username": "u"})
    assert len(problems) == 4


def test_build_message_uses_sender_name():
    msg = mailer.build_message(SETTINGS, "ana@example.com", "Hello", "Body text")
    assert msg["From"] == "Project Board <noreply@example.com>"
    assert msg["To"] == "ana@example.com"
    assert msg.get_content().strip() == "Body text"


def test_send_email_starttls_and_login():
    mailer.send_email(SETTINGS, "ana@example.com", "Hi", "Body")
    server = FakeSMTP.instances[0]
    assert type(server) is FakeSMTP
    assert server.calls == ["starttls", ("login", "mailer", "hunter2"), "quit"]
    assert server.sent[0]["Subject"] == "Hi"


def test_send_email_implicit_tls_on_465():
    mailer.send_email({**SETTINGS, "smtp_port": 465}, "ana@example.com", "Hi", "Body")
    server = FakeSMTP.instances[0]
    assert type(server) is FakeSMTPSSL
    assert "starttls" not in server.calls


def test_send_email_plain_without_credentials():
    mailer.send_email({**SETTINGS, "smtp_ssl": False, "smtp_username": None}, "ana@example.com", "Hi", "Body")
    assert FakeSMTP.instances[0].calls == ["quit"]


def test_send_email_errors():
    with pytest.raises(ValidationError):
        mailer.send_email({**SETTINGS, "smtp_host": ""}, "ana@example.com", "Hi", "Body")
    FakeSMTP.fail_send = True
    with pytest.raises(EmailDeliveryError):
        mailer.send_email(SETTINGS, "ana@example.com", "Hi", "Body")
    assert FakeSMTP.instances[0].calls[-1] == "quit"


def test_send_test_email_success():
    result = mailer.send_test_email("ana@example.com", "Test", "Body", settings=SETTINGS)
    assert result.ok
    assert (result.validated, result.connected, result.sent) == (True, True, True)


def test_send_test_email_validation_failure():
    result = mailer.send_test_email("not-an-email", " ", "Body", settings=SETTINGS)
    assert not result.validated
    assert "Recipient" in result.error
    assert "Subject" in result.error
    assert FakeSMTP.instances == []


def test_send_test_email_connection_failure():
    FakeSMTP.fail_connect = True
    result = mailer.send_test_email("ana@example.com", "Test", "Body", settings=SETTINGS)
    assert result.validated and not result.connected
    assert result.error.startswith("Could not connect")


def test_send_test_email_rejected():
    FakeSMTP.fail_send = True
    result = mailer.send_test_email("ana@example.com", "Test", "Body", settings=SETTINGS)
    assert result.connected and not result.sent
    assert not result.ok
    assert FakeSMTP.instances[0].calls[-1] == "quit"


def test_send_test_email_loads_saved_settings(database):
    from taskboard import settings_repo

    result = mailer.send_test_email("ana@example.com", "Test", "Body")
    assert "not been configured" in result.error

    settings_repo.save_email_settings(SETTINGS)
    assert mailer.send_test_email("ana@example.com", "Test", "Body").ok
