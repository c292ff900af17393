import logging

import redis
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from hr_suite.session_store import (
    EventSessionError,
    generate_code,
    json_ok,
    parse_body,
    redis_guard,
    session_lock,
)

from .ingestion import decode_upload, has_allowed_extension, parse_participants, sample_participants
from .store import Roster, load_roster, save_roster

logger = logging.getLogger(__name__)


def _roster_payload(code: str, roster: Roster) -> dict:
    frequency = roster.name_frequency()
    return {
        "session_code": code,
        "count": len(roster),
        "participants": [
            {**participant.to_payload(), "is_duplicate": frequency[participant.name] > 1}
            for participant in roster
        ],
        "name_frequency": frequency,
        "has_duplicates": any(count > 1 for count in frequency.values()),
    }


def _append(client: redis.Redis, code: str, build) -> JsonResponse:
    with session_lock(client, code):
        roster = load_roster(client, code)
        added = build(roster.ids())
        roster.extend(added)
        save_roster(client, code, roster)
    logger.info("Added %d participants to session %s", len(added), code)
    return json_ok({"added": len(added), **_roster_payload(code, roster)})


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def create_session(request, client: redis.Redis) -> JsonResponse:
    code = generate_code(client)
    save_roster(client, code, Roster())
    return json_ok({"session_code": code})


@require_http_methods(["GET"])
@redis_guard
def roster_detail(request, client: redis.Redis, code: str) -> JsonResponse:
    return json_ok(_roster_payload(code, load_roster(client, code)))


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def add_participants(request, client: redis.Redis, code: str) -> JsonResponse:
    payload = parse_body(request)
    text = payload.get("text")
    if not isinstance(text, str) or not text.strip():
        raise EventSessionError("text must contain at least one name.")
    return _append(client, code, lambda taken: parse_participants(text, taken))


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def upload_participants(request, client: redis.Redis, code: str) -> JsonResponse:
    upload = request.FILES.get("file")
    if upload is None:
        raise EventSessionError("Attach a .csv or .txt file in the 'file' field.")
    if not has_allowed_extension(upload.name):
        raise EventSessionError("Only .csv and .txt files are supported.")
    max_bytes = getattr(settings, "HRSUITE_MAX_UPLOAD_BYTES", 2 * 1024 * 1024)
    if upload.size > max_bytes:
        raise EventSessionError(f"File is too large; the limit is {max_bytes} bytes.")
    try:
        text = decode_upload(upload.read())
    except UnicodeDecodeError as exc:
        raise EventSessionError(f"File must be UTF-8 encoded text ({exc}).")
    return _append(client, code, lambda taken: parse_participants(text, taken))


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def add_sample_participants(request, client: redis.Redis, code: str) -> JsonResponse:
    return _append(client, code, sample_participants)


@csrf_exempt
@require_http_methods(["DELETE"])
@redis_guard
def remove_participant(request, client: redis.Redis, code: str, participant_id: str) -> JsonResponse:
    with session_lock(client, code):
        roster = load_roster(client, code)
        removed = roster.remove_by_id(participant_id)
        if removed:
            save_roster(client, code, roster)
    return json_ok({"removed": removed, **_roster_payload(code, roster)})


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def deduplicate(request, client: redis.Redis, code: str) -> JsonResponse:
    with session_lock(client, code):
        roster = load_roster(client, code)
        removed = roster.deduplicate_by_name()
        save_roster(client, code, roster)
    logger.info("Removed %d duplicate names from session %s", removed, code)
    return json_ok({"removed": removed, **_roster_payload(code, roster)})


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def clear_roster(request, client: redis.Redis, code: str) -> JsonResponse:
    payload = parse_body(request)
    if payload.get("confirm") is not True:
        raise EventSessionError("Clearing the roster requires confirm=true.")
    with session_lock(client, code):
        roster = load_roster(client, code)
        cleared = len(roster)
        roster.clear_all()
        save_roster(client, code, roster)
    logger.info("Cleared %d participants from session %s", cleared, code)
    return json_ok({"removed": cleared, **_roster_payload(code, roster)})
