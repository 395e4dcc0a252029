"""Session token signing and verification.

Tokens are minted by the (external) auth service; this service only needs to
verify them to learn who is calling.
"""
import base64
import hmac
import hashlib
import time

from arena.core.config import get_settings


# Session token: base64(user_id:timestamp).hmac
def _sign_payload(payload: bytes) -> str:
    settings = get_settings()
    sig = hmac.new(settings.secret_key.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=") + "." + sig


def _verify_sig(payload: bytes, sig: str) -> bool:
    settings = get_settings()
    expected = hmac.new(settings.secret_key.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, sig)


def create_session_token(user_id: str) -> str:
    """Create a signed session token for the user."""
    ts = int(time.time())
    payload = f"{user_id}:{ts}".encode("utf-8")
    return _sign_payload(payload)


def verify_session_token(token: str | None) -> str | None:
    """Verify signed token and return user_id if valid; None otherwise."""
    if not token or "." not in token:
        return None
    try:
        encoded, sig = token.rsplit(".", 1)
        pad = 4 - len(encoded) % 4
        if pad != 4:
            encoded += "=" * pad
        payload = base64.urlsafe_b64decode(encoded)
        if not _verify_sig(payload, sig):
            return None
        user_id, ts = payload.decode("utf-8").rsplit(":", 1)
        if not user_id:
            return None
        if abs(time.time() - int(ts)) > get_settings().session_max_age_seconds:
            return None
        return user_id
    except (ValueError, UnicodeDecodeError):
        return None
