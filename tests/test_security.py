import time

from arena.core.security import create_session_token, verify_session_token


def test_token_roundtrip_with_uuid_user_id():
    user_id = "6f1c2a8e-0000-4000-8000-1234567890ab"
    assert verify_session_token(create_session_token(user_id)) == user_id


def test_tampered_token_is_rejected():
    token = create_session_token("u-1")
    encoded, sig = token.rsplit(".", 1)
    forged = create_session_token("u-2").rsplit(".", 1)[0] + "." + sig
    assert verify_session_token(forged) is None
    assert verify_session_token(encoded + "." + "0" * len(sig)) is None


def test_garbage_is_rejected():
    for token in (None, "", "no-dot", "!!!.abc", "a.b.c"):
        assert verify_session_token(token) is None


def test_expired_token_is_rejected(monkeypatch):
    token = create_session_token("u-1")
    monkeypatch.setattr(time, "time", lambda: 10**12)
    assert verify_session_token(token) is None
