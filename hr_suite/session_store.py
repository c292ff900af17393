"""Redis-backed state for event sessions.

An event session stands in for one browser profile. Each concern (roster,
winner history, grouping) is stored as a single JSON document under its own
key so a corrupt document never takes the others down with it.
"""

import json
import logging
import random
import re
import string
from contextlib import contextmanager
from functools import wraps
from typing import Any, Dict, Optional

import redis
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.http import JsonResponse

logger = logging.getLogger(__name__)

SESSION_CODE_RE = re.compile(r"^[A-Z0-9]{4,16}$")


class EventSessionError(Exception):
    """Raised when a request cannot be applied to an event session."""


def redis_client() -> redis.Redis:
    redis_url = getattr(settings, "REDIS_URL", None)
    if not redis_url:
        raise ImproperlyConfigured("REDIS_URL is not configured in settings.")
    return redis.Redis.from_url(redis_url, decode_responses=True)


def _prefix() -> str:
    return getattr(settings, "HRSUITE_KEY_PREFIX", "hrsuite:")


def state_key(kind: str, code: str) -> str:
    return f"{_prefix()}{kind}:{code}"


def normalize_code(code: str) -> str:
    candidate = (code or "").strip().upper()
    if not SESSION_CODE_RE.match(candidate):
        raise EventSessionError("Session code must be 4-16 letters or digits.")
    return candidate


def generate_code(client: redis.Redis, length: int = 6) -> str:
    alphabet = string.ascii_uppercase + string.digits
    for _ in range(10):
        code = "".join(random.choices(alphabet, k=length))
        if not client.exists(state_key("roster", code)):
            return code
    raise EventSessionError("Failed to create a session. Please try again later.")


def load_state(client: redis.Redis, kind: str, code: str) -> Optional[Any]:
    """Return the decoded document, or ``None`` when missing or unreadable."""
    raw = client.get(state_key(kind, code))
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Discarding corrupt %s state for session %s: %s", kind, code, exc)
        return None


def save_state(client: redis.Redis, kind: str, code: str, document: Any) -> None:
    ttl = getattr(settings, "HRSUITE_SESSION_TTL", None)
    client.set(
        state_key(kind, code),
        json.dumps(document, ensure_ascii=False),
        ex=ttl or None,
    )


@contextmanager
def session_lock(client: redis.Redis, code: str):
    lock = client.lock(
        state_key("lock", code),
        timeout=getattr(settings, "HRSUITE_LOCK_TIMEOUT", 5),
        blocking_timeout=getattr(settings, "HRSUITE_LOCK_WAIT", 5),
    )
    if not lock.acquire(blocking=True):
        raise EventSessionError("System is busy, please try again.")
    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:
            pass


def parse_body(request) -> Dict[str, Any]:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EventSessionError(f"Request body is not valid JSON: {exc}")
    if not isinstance(payload, dict):
        raise EventSessionError("Request body must be a JSON object.")
    return payload


def json_ok(payload: Dict[str, Any], status: int = 200) -> JsonResponse:
    return JsonResponse(
        {"success": True, **payload},
        status=status,
        json_dumps_params={"ensure_ascii": False},
    )


def json_error(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        {"success": False, "error": message},
        status=status,
        json_dumps_params={"ensure_ascii": False},
    )


def redis_guard(func):
    """Inject a Redis client and turn session errors into JSON responses."""

    @wraps(func)
    def _wrapped(request, *args, **kwargs):
        if "code" in kwargs:
            try:
                kwargs["code"] = normalize_code(kwargs["code"])
            except EventSessionError as exc:
                return json_error(str(exc), status=400)
        try:
            client = redis_client()
        except (redis.RedisError, ImproperlyConfigured) as exc:
            return json_error(f"Redis is not configured or unavailable: {exc}", status=503)
        try:
            return func(request, client, *args, **kwargs)
        except EventSessionError as exc:
            return json_error(str(exc), status=400)
        except redis.RedisError as exc:
            logger.warning("Redis access error: %s", exc)
            return json_error(f"Redis access error: {exc}", status=503)

    return _wrapped
