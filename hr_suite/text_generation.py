"""Best-effort flavor text for draws and groupings.

Views never talk to the language model directly. They ask the generator
returned by :func:`get_text_generator`, which is chosen by dotted path in
``settings.HRSUITE_TEXT_GENERATOR`` so tests and offline deployments can swap
in a deterministic implementation.
"""

import logging
from typing import Any, List

from django.conf import settings
from django.utils.module_loading import import_string

from .llm_client import call_llm, parse_json_content

logger = logging.getLogger(__name__)

DEFAULT_GENERATOR = "hr_suite.text_generation.LLMTextGenerator"


def fallback_team_names(count: int) -> List[str]:
    return [f"Team {index}" for index in range(1, count + 1)]


def fallback_announcement(name: str) -> str:
    return f"Congratulations, {name}! You are the winner!"


class TextGenerator:
    """Capability interface for the flavor-text collaborator."""

    def team_names(self, count: int, theme: str) -> List[str]:
        raise NotImplementedError

    def winner_announcement(self, name: str) -> str:
        raise NotImplementedError


class OfflineTextGenerator(TextGenerator):
    """Never leaves the process; always returns the deterministic fallbacks."""

    def team_names(self, count: int, theme: str) -> List[str]:
        return fallback_team_names(count)

    def winner_announcement(self, name: str) -> str:
        return fallback_announcement(name)


class LLMTextGenerator(TextGenerator):
    def team_names(self, count: int, theme: str) -> List[str]:
        if count < 1:
            return []
        prompt = (
            f"Generate {count} creative team names for a corporate event. "
            f"Theme: {theme}. "
            'Return a JSON object of the form {"names": ["...", "..."]} and nothing else.'
        )
        response = call_llm(
            [{"role": "user", "content": prompt}],
            temperature=0.8,
            response_format={"type": "json_object"},
        )
        if not response.get("success"):
            logger.info("Team name generation unavailable: %s", response.get("error"))
            return fallback_team_names(count)

        names = _coerce_names(parse_json_content(response.get("content", "")))
        if not names:
            logger.warning("Language model returned no usable team names.")
            return fallback_team_names(count)
        return names[:count]

    def winner_announcement(self, name: str) -> str:
        prompt = (
            f"Create a short, exciting one-sentence announcement for {name} winning a prize. "
            "Keep it fun and professional."
        )
        response = call_llm([{"role": "user", "content": prompt}], temperature=0.9)
        if not response.get("success"):
            logger.info("Announcement generation unavailable: %s", response.get("error"))
            return fallback_announcement(name)
        return response["content"]


def _coerce_names(payload: Any) -> List[str]:
    if isinstance(payload, dict):
        payload = payload.get("names") or payload.get("teams") or payload.get("team_names")
    if not isinstance(payload, list):
        return []
    return [str(item).strip() for item in payload if isinstance(item, str) and item.strip()]


def get_text_generator() -> TextGenerator:
    path = getattr(settings, "HRSUITE_TEXT_GENERATOR", None) or DEFAULT_GENERATOR
    try:
        generator_class = import_string(path)
    except ImportError:
        logger.warning("Unknown text generator %r; using offline fallbacks.", path)
        return OfflineTextGenerator()
    return generator_class()


def generate_team_names(generator: TextGenerator, count: int, theme: str) -> List[Any]:
    """Ask ``generator`` for names; any failure degrades to the fallback list."""
    try:
        names = generator.team_names(count, theme)
    except Exception:
        logger.exception("Team name generator failed")
        return fallback_team_names(count)
    if not isinstance(names, (list, tuple)):
        logger.warning("Team name generator returned %s instead of a list", type(names).__name__)
        return fallback_team_names(count)
    return list(names)


def generate_announcement(generator: TextGenerator, name: str) -> str:
    try:
        text = generator.winner_announcement(name)
    except Exception:
        logger.exception("Announcement generator failed")
        return fallback_announcement(name)
    if not isinstance(text, str) or not text.strip():
        return fallback_announcement(name)
    return text.strip()
