"""
Tests for the mail transport and its retry behaviour.
"""
import asyncio

from fastapi import BackgroundTasks

from src.config import settings
from src.core import mail
from src.accounts.utils import build_reset_url


class FlakyMailer:
    def __init__(self, failures):
        self.failures = failures
        self.sent = []

    async def send_message(self, message):
        if self.failures:
            self.failures -= 1
            raise ConnectionError("smtp unavailable")
        self.sent.append(message)


def test_send_mail_retries_then_succeeds(monkeypatch):
    mailer = FlakyMailer(failures=2)
    monkeypatch.setattr(mail, "get_fast_mail", lambda: mailer)
    monkeypatch.setattr(settings, "mail_retry_delay", 0)
    monkeypatch.setattr(settings, "mail_max_retries", 3)

    assert asyncio.run(mail.send_mail("ann@x.com", "Welcome!", "<h1>hi</h1>")) is True

    assert len(mailer.sent) == 1
    assert mailer.sent[0].subject == "Welcome!"


def test_send_mail_gives_up_without_raising(monkeypatch):
    mailer = FlakyMailer(failures=10)
    monkeypatch.setattr(mail, "get_fast_mail", lambda: mailer)
    monkeypatch.setattr(settings, "mail_retry_delay", 0)
    monkeypatch.setattr(settings, "mail_max_retries", 3)

    assert asyncio.run(mail.send_mail("ann@x.com", "Welcome!", "<h1>hi</h1>")) is False

    assert mailer.failures == 7
    assert mailer.sent == []


def test_mail_notifier_queues_background_task():
    tasks = BackgroundTasks()

    mail.MailNotifier(tasks).notify("ann@x.com", "Welcome!", "<h1>hi</h1>")

    assert len(tasks.tasks) == 1
    assert tasks.tasks[0].func is mail.send_mail
    assert tasks.tasks[0].args == ("ann@x.com", "Welcome!", "<h1>hi</h1>")


def test_build_reset_url(monkeypatch):
    monkeypatch.setattr(settings, "frontend_url", "https://app.example.com/")

    assert build_reset_url("abc", "id-1") == "https://app.example.com/reset-password?token=abc&id=id-1"
