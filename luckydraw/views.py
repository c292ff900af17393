import logging

import redis
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from hr_suite.session_store import json_error, json_ok, parse_body, redis_guard, session_lock
from hr_suite.text_generation import generate_announcement, get_text_generator
from roster.store import load_roster

from .services import (
    DrawEngine,
    DrawResult,
    NoEligibleParticipantsError,
    load_winners,
    save_winners,
    winners_to_payload,
)

logger = logging.getLogger(__name__)


def _strict_bool(value, default: bool) -> bool:
    if value is None:
        return default
    return value is True


@require_http_methods(["GET"])
@redis_guard
def draw_status(request, client: redis.Redis, code: str) -> JsonResponse:
    engine = DrawEngine(load_roster(client, code), load_winners(client, code))
    return json_ok(
        {
            "session_code": code,
            "roster_count": len(engine.eligible_pool(exclude_winners=False)),
            "eligible_count": len(engine.eligible_pool(exclude_winners=True)),
            "winners": winners_to_payload(engine.winners),
        }
    )


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def draw(request, client: redis.Redis, code: str) -> JsonResponse:
    payload = parse_body(request)
    prize = payload.get("prize") if isinstance(payload.get("prize"), str) else ""
    allow_repeat = _strict_bool(payload.get("allow_repeat"), default=False)
    announce = _strict_bool(payload.get("announce"), default=True)

    with session_lock(client, code):
        engine = DrawEngine(load_roster(client, code), load_winners(client, code))
        try:
            result: DrawResult = engine.draw(prize, exclude_winners=not allow_repeat)
        except NoEligibleParticipantsError as exc:
            return json_error(str(exc), status=409)
        save_winners(client, code, engine.winners)

    winner = result.winner
    logger.info("Session %s drew %s for %s", code, winner.id, winner.prize)

    # The winner is already stored; the announcement is decoration only.
    announcement = generate_announcement(get_text_generator(), winner.name) if announce else None

    return json_ok(
        {
            "session_code": code,
            "winner": winner.to_payload(),
            "announcement": announcement,
            "pool": [participant.to_payload() for participant in result.pool],
            "frames": [{"index": f.index, "delay_ms": f.delay_ms} for f in result.frames],
            "eligible_remaining": len(result.pool) - (0 if allow_repeat else 1),
            "winners": winners_to_payload(engine.winners),
        }
    )


@csrf_exempt
@require_http_methods(["POST"])
@redis_guard
def clear_winners(request, client: redis.Redis, code: str) -> JsonResponse:
    with session_lock(client, code):
        engine = DrawEngine(load_roster(client, code), load_winners(client, code))
        cleared = len(engine.winners)
        engine.clear_winners()
        save_winners(client, code, engine.winners)
    logger.info("Cleared %d winners from session %s", cleared, code)
    return json_ok({"session_code": code, "cleared": cleared, "winners": []})
