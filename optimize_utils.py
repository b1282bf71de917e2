from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI, OpenAIError

from prompt_builder import PromptFields, build_prompt, idea_from_fields, optimizer_context
from prompts_lib import OPTIMIZE_SYSTEM_PROMPT

logger = logging.getLogger("prompt_workshop")

OPTIMIZE_TEMPERATURE = 0.7
OPTIMIZE_MAX_TOKENS = 220
DEFAULT_TIMEOUT_SECONDS = 30.0

SERVICE_BASE_URLS = {
    "openai": None,
    "grok": "https://api.x.ai/v1",
}
SERVICE_DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "grok": "grok-4",
}
SERVICE_KEY_NAMES = {
    "openai": "OPENAI_API_KEY",
    "grok": "GROK_API_KEY",
}


class OptimizeError(RuntimeError):
    """Failed optimize attempt. ``detail`` is what the endpoint reports."""

    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def normalize_service(value: Optional[str]) -> str:
    key = (value or "").strip().lower()
    if key in {"grok", "xai", "x.ai"}:
        return "grok"
    return "openai"


def build_user_payload(idea: str, fields: Optional[Dict[str, Any]]) -> str:
    return json.dumps({"idea": idea, "fields": fields})


def _build_client(
    api_key: str,
    service: str,
    timeout: float,
    http_client: Optional[httpx.Client],
) -> OpenAI:
    kwargs: Dict[str, Any] = {
        "api_key": api_key,
        "timeout": httpx.Timeout(timeout),
        "max_retries": 0,
    }
    base_url = SERVICE_BASE_URLS.get(service)
    if base_url:
        kwargs["base_url"] = base_url
    if http_client is not None:
        kwargs["http_client"] = http_client
    return OpenAI(**kwargs)


def generate_optimized_prompt(
    idea: str,
    fields: Optional[Dict[str, Any]],
    api_key: str,
    *,
    service: str = "openai",
    model: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    http_client: Optional[httpx.Client] = None,
) -> str:
    """Expand ``idea`` into one prompt line via the completion service.

    Makes exactly one request. Returns the first completion trimmed, which may
    be empty. Any upstream or transport failure raises :class:`OptimizeError`.
    """
    service = normalize_service(service)
    model = model or SERVICE_DEFAULT_MODELS[service]
    client = _build_client(api_key, service, timeout, http_client)

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": OPTIMIZE_SYSTEM_PROMPT},
                {"role": "user", "content": build_user_payload(idea, fields)},
            ],
            temperature=OPTIMIZE_TEMPERATURE,
            max_tokens=OPTIMIZE_MAX_TOKENS,
        )
        return _first_completion_text(response)
    except APIStatusError as exc:
        error_body = ""
        try:
            error_body = exc.response.text
        except Exception:
            error_body = ""
        logger.warning("Completion service returned HTTP %s", exc.status_code)
        raise OptimizeError(error_body or "OpenAI error", status_code=exc.status_code) from exc
    except APIConnectionError as exc:
        logger.warning("Completion service unreachable: %s", exc)
        raise OptimizeError(str(exc) or "Connection error.") from exc
    except (OpenAIError, ValueError) as exc:
        # unparseable bodies, e.g. a proxy HTML page served as application/json
        logger.warning("Completion service sent an unusable reply: %s", exc)
        raise OptimizeError(str(exc) or "OpenAI error") from exc
    finally:
        if http_client is None:
            client.close()


def _first_completion_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return str(content).strip() if content else ""


Optimizer = Callable[[str, Dict[str, Any]], str]


def optimize_with_fallback(fields: PromptFields, optimizer: Optional[Optimizer]) -> tuple[str, str]:
    """Try the optimizer first and fall back to the local prompt.

    Returns ``(prompt, source)`` where source is ``"optimized"`` or ``"fallback"``.
    """
    idea = idea_from_fields(fields)
    if optimizer is None or not idea:
        logger.info("Skipping optimizer, using local prompt")
        return build_prompt(fields), "fallback"

    try:
        text = optimizer(idea, optimizer_context(fields))
    except OptimizeError as exc:
        logger.info("Optimizer failed (%s), using local prompt", exc.status_code or "transport")
        return build_prompt(fields), "fallback"

    cleaned = (text or "").strip()
    if not cleaned:
        logger.info("Optimizer returned an empty prompt, using local prompt")
        return build_prompt(fields), "fallback"
    return cleaned, "optimized"
