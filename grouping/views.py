import logging

import redis
from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.utils.http import content_disposition_header
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from hr_suite.session_store import (
    EventSessionError,
    json_error,
    json_ok,
    parse_body,
    redis_guard,
    session_lock,
)
from hr_suite.text_generation import generate_team_names, get_text_generator
from roster.store import load_roster

from .export import export_filename, groups_to_csv
from .services import EmptyRosterError, apply_names, build_batch, load_batch, save_batch

logger = logging.getLogger(__name__)

DEFAULT_GROUP_SIZE = 3


def _group_size(raw) -> int:
    if raw is None:
        return DEFAULT_GROUP_SIZE
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise EventSessionError("group_size must be an integer.")
    try:
        value = int(raw)
    except (TypeError, ValueError, OverflowError):
        raise EventSessionError("group_size must be an integer.")
    return max(value, 1)


def _theme(raw) -> str:
    default = getattr(settings, "HRSUITE_DEFAULT_THEME", "Professional")
    if not isinstance(raw, str) or not raw.strip():
        return default
    return raw.strip()[:100]


@csrf_exempt
@require_http_methods(["GET", "POST"])
@redis_guard
def grouping(request, client: redis.Redis, code: str) -> JsonResponse:
    if request.method == "GET":
        batch = load_batch(client, code)
        return json_ok({"session_code": code, "grouping": batch.to_payload() if batch else None})

    payload = parse_body(request)
    group_size = _group_size(payload.get("group_size"))
    theme = _theme(payload.get("theme"))

    with session_lock(client, code):
        roster = load_roster(client, code)
        try:
            batch = build_batch(roster, group_size, theme)
        except EmptyRosterError as exc:
            return json_error(str(exc), status=409)
        save_batch(client, code, batch)

    logger.info(
        "Session %s grouped %d participants into %d groups of %d",
        code,
        batch.member_count,
        len(batch.groups),
        group_size,
    )

    # Groups are stored with fallback names; generated names only refine them.
    generated = generate_team_names(get_text_generator(), len(batch.groups), theme)
    if apply_names(batch, generated):
        with session_lock(client, code):
            current = load_batch(client, code)
            if current is not None and current.id == batch.id:
                save_batch(client, code, batch)
            else:
                logger.info("Grouping %s was replaced before names arrived; keeping newer batch.", batch.id)

    return json_ok({"session_code": code, "grouping": batch.to_payload()})


@require_http_methods(["GET"])
@redis_guard
def export_csv(request, client: redis.Redis, code: str) -> HttpResponse:
    batch = load_batch(client, code)
    if batch is None or not batch.groups:
        return json_error("No grouping to export yet.", status=404)
    response = HttpResponse(groups_to_csv(batch), content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = content_disposition_header(True, export_filename(timezone.localdate()))
    return response
