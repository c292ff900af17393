import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings
from requests import RequestException

logger = logging.getLogger(__name__)


def llm_configured() -> bool:
    return bool(getattr(settings, "LLM_BASE_URL", None) and getattr(settings, "LLM_API_KEY", None))


def call_llm(
    messages: List[Dict[str, str]],
    *,
    model: Optional[str] = None,
    response_format: Optional[Dict[str, Any]] = None,
    temperature: Optional[float] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Send a chat completion request to the configured language model provider.

    The call never raises. It returns a dictionary with keys:
    - success: whether the call succeeded.
    - content: the stripped message text when successful.
    - error: a human-readable message when unsuccessful.
    """

    if not llm_configured():
        return {"success": False, "error": "LLM connection is not configured."}

    base_url = settings.LLM_BASE_URL.rstrip("/")
    payload: Dict[str, Any] = {
        "model": model or getattr(settings, "LLM_MODEL", "deepseek-chat"),
        "messages": messages,
        "stream": False,
    }
    if response_format:
        payload["response_format"] = response_format
    if temperature is not None:
        payload["temperature"] = temperature

    try:
        response = requests.post(
            f"{base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {settings.LLM_API_KEY}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=timeout or getattr(settings, "LLM_TIMEOUT", 15),
        )
        response.raise_for_status()
        content = _message_content(response.json())
    except RequestException as exc:
        logger.warning("HTTP error when reaching language model service: %s", exc)
        return {"success": False, "error": f"Failed to reach language model service ({exc})."}
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        logger.warning("Unexpected language model response: %s", exc)
        return {"success": False, "error": f"Invalid response from language model service ({exc})."}

    if not content:
        return {"success": False, "error": "Empty response from language model service."}
    return {"success": True, "content": content}


def _message_content(response_data: Dict[str, Any]) -> str:
    choices = response_data.get("choices")
    if not choices:
        raise KeyError("Missing 'choices' in response.")
    content = choices[0].get("message", {}).get("content")
    if content is None:
        raise KeyError("Missing 'content' in response message.")
    if isinstance(content, list):
        content = "".join(str(part) for part in content)
    return str(content).strip()


def parse_json_content(content: str) -> Any:
    """Parse model output as JSON, falling back to the first embedded array or object."""
    if not content:
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass
    for pattern in (r"\[.*\]", r"\{.*\}"):
        match = re.search(pattern, content, re.S)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError:
                continue
    return None
