"""
Tests for the SMTP mailer and local upload storage.
"""

import smtplib

import pytest

from app.utils.email_utils import SMTPMailer
from app.utils.file_utils import LocalFileStorage, content_type_for, is_safe_relative_path


class FakeSMTP:
    instances = []

    def __init__(self, server, port):
        self.server = server
        self.port = port
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user))

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


class TestSMTPMailer:
    async def test_unconfigured_mailer_skips(self, fake_smtp):
        mailer = SMTPMailer("smtp.example.com", 465, None, None)

        assert await mailer("alice@example.com", "Hi", "Body") is False
        assert fake_smtp.instances == []

    async def test_sends_multipart_message(self, fake_smtp):
        mailer = SMTPMailer("smtp.example.com", 465, "no-reply@example.com", "secret")

        assert await mailer("alice@example.com", "Hi", "Body", html="<p>Body</p>") is True

        smtp = fake_smtp.instances[0]
        msg = smtp.messages[0]
        assert smtp.calls == [("login", "no-reply@example.com")]
        assert msg["From"] == "GuestPost Now <no-reply@example.com>"
        assert msg["To"] == "alice@example.com"
        assert msg.get_body(("html",)).get_content().strip() == "<p>Body</p>"

    def test_other_ports_use_starttls(self, fake_smtp):
        mailer = SMTPMailer("smtp.example.com", 587, "user@example.com", "secret", from_email="sales@example.com")

        mailer.send_email("alice@example.com", "Hi", "Body")

        smtp = fake_smtp.instances[0]
        assert smtp.calls[0] == "starttls"
        assert smtp.messages[0]["From"] == "GuestPost Now <sales@example.com>"

    def test_transport_errors_propagate(self, monkeypatch):
        def refuse(server, port):
            raise smtplib.SMTPConnectError(421, "busy")

        monkeypatch.setattr(smtplib, "SMTP_SSL", refuse)
        mailer = SMTPMailer("smtp.example.com", 465, "user@example.com", "secret")

        with pytest.raises(smtplib.SMTPConnectError):
            mailer.send_email("alice@example.com", "Hi", "Body")


class TestLocalFileStorage:
    async def test_save_uses_unique_names_and_keeps_extension(self, file_storage, upload_root):
        first = await file_storage.save(b"a", "list.CSV")
        second = await file_storage.save(b"b", "list.CSV")

        assert first["filePath"] != second["filePath"]
        assert first["filePath"].startswith("site-submissions/")
        assert first["filePath"].endswith(".CSV")
        assert first["fileName"] == "list.CSV"
        assert (upload_root / first["filePath"]).read_bytes() == b"a"

    async def test_delete_missing_file_counts_as_deleted(self, file_storage):
        assert await file_storage.delete("site-submissions/never-existed.csv") is True

    async def test_delete_directory_fails_softly(self, file_storage):
        await file_storage.save(b"a", "x.txt")

        assert await file_storage.delete("site-submissions") is False

    async def test_exists_and_is_file(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))
        stored = await storage.save(b"a", "x.txt", subdirectory="docs")

        assert await storage.exists(stored["filePath"])
        assert await storage.is_file(stored["filePath"])
        assert not await storage.is_file("docs")


class TestPaths:
    @pytest.mark.parametrize("path,expected", [
        ("site-submissions/a.csv", True),
        ("../secret.txt", False),
        ("site-submissions/../../etc/passwd", False),
        ("/etc/passwd", False),
    ])
    def test_is_safe_relative_path(self, path, expected):
        assert is_safe_relative_path(path) is expected

    def test_content_type_lookup(self):
        assert content_type_for("a/b.PDF") == "application/pdf"
        assert content_type_for("a/b.docx").endswith("wordprocessingml.document")
        assert content_type_for("a/b.bin") == "application/octet-stream"
