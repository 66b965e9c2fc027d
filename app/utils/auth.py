import hmac
import logging
from functools import wraps
from flask import current_app, request
from .responses import error


def _bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return ""
    return auth.split(" ", 1)[1].strip()


def sync_key_required(func):
    """Require ``Authorization: Bearer <SYNC_API_KEY>``."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("SYNC_API_KEY")
        if not expected:
            logging.error("SYNC_API_KEY is not configured; refusing sync request")
            return error("Sync API key not configured", status=500)
        token = _bearer_token()
        if not token:
            return error("Auth header missing", status=401)
        if not hmac.compare_digest(token.encode(), expected.encode()):
            return error("Invalid sync API key", status=401)
        return func(*args, **kwargs)

    return wrapper
