"""
Service-level tests for concurrency guards, the expiry sweep and the error boundary.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.accounts import service
from src.accounts.exceptions import ConflictException, RateLimitedException
from src.accounts.models import Account, VerificationToken, ResetToken
from src.core.security import hash_password, hash_token, get_token_expiry_time

from conftest import RecordingNotifier


def _create_account(db, email="ann@x.com", verified=False):
    account = Account(name="Ann", email=email, password_hash=hash_password("Secret123"), verified=verified)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def test_concurrent_reset_request_loses_on_unique_owner(db, monkeypatch):
    account = _create_account(db)
    db.add(ResetToken(owner_id=account.id, token_hash=hash_token("x"), expires_at=get_token_expiry_time(60)))
    db.commit()

    # Simulate a second writer that checked before the first one committed
    monkeypatch.setattr(service, "_live_reset_token", lambda db, account_id: None)
    notifier = RecordingNotifier()

    with pytest.raises(RateLimitedException):
        asyncio.run(service.request_password_reset(db, "ann@x.com", notifier))

    assert db.query(ResetToken).count() == 1
    assert notifier.messages == []


def test_concurrent_registration_loses_on_unique_email(db, monkeypatch):
    _create_account(db)
    monkeypatch.setattr(service, "_find_by_email", lambda db, email: None)
    notifier = RecordingNotifier()

    with pytest.raises(ConflictException) as exc_info:
        asyncio.run(service.register_account(db, "Ann", "ann@x.com", "Secret123", notifier))

    assert exc_info.value.detail == "This email already exists!"
    assert db.query(Account).count() == 1
    assert db.query(VerificationToken).count() == 0
    assert notifier.messages == []


def test_purge_expired_tokens(db):
    first = _create_account(db, "a@x.com")
    second = _create_account(db, "b@x.com")
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    db.add_all([
        VerificationToken(owner_id=first.id, token_hash="h", expires_at=past),
        VerificationToken(owner_id=second.id, token_hash="h", expires_at=get_token_expiry_time(60)),
        ResetToken(owner_id=first.id, token_hash=hash_token("a"), expires_at=past),
        ResetToken(owner_id=second.id, token_hash=hash_token("b"), expires_at=get_token_expiry_time(60)),
    ])
    db.commit()

    removed = service.purge_expired_tokens(db)

    assert removed == 2
    assert [t.owner_id for t in db.query(VerificationToken).all()] == [second.id]
    assert [t.owner_id for t in db.query(ResetToken).all()] == [second.id]


def test_verified_flag_survives_every_operation(db):
    account = _create_account(db, verified=True)
    notifier = RecordingNotifier()

    asyncio.run(service.request_password_reset(db, "ann@x.com", notifier))
    asyncio.run(service.reset_password(db, account.id, "NewSecret1", notifier))
    asyncio.run(service.authenticate(db, "ann@x.com", "NewSecret1"))

    db.refresh(account)
    assert account.verified is True


@pytest.mark.parametrize("url,body,target", [
    ("/api/v1/users/create", {"name": "Ann", "email": "ann@x.com", "password": "Secret123"}, "register_account"),
    ("/api/v1/users/signin", {"email": "ann@x.com", "password": "Secret123"}, "authenticate"),
    ("/api/v1/users/verify-email", {"userId": "x", "otp": "1"}, "verify_email"),
    ("/api/v1/users/forgot-password", {"email": "ann@x.com"}, "request_password_reset"),
    ("/api/v1/users/resend-verification", {"email": "ann@x.com"}, "resend_verification"),
    ("/api/v1/users/reset-password/confirm", {"userId": "x", "token": "t", "password": "p"}, "reset_password_with_token"),
])
def test_unexpected_failures_become_internal_errors(client, monkeypatch, url, body, target):
    async def boom(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(service, target, boom)

    response = client.post(url, json=body)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
    assert "exploded" not in response.text


def test_reset_password_unexpected_failure(client, monkeypatch, register, signin):
    register()
    token = signin()

    async def boom(*args, **kwargs):
        raise RuntimeError("smtp exploded")

    monkeypatch.setattr(service, "reset_password", boom)

    response = client.post(
        "/api/v1/users/reset-password",
        json={"password": "NewSecret1"},
        headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
