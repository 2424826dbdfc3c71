from __future__ import annotations

import logging
import re
from contextlib import nullcontext
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAI, OpenAIError

from . import config
from .errors import ProviderNotConfiguredError, UpstreamProviderError
from .support_prompt import build_prompt

logger = logging.getLogger(__name__)

# Projects differ in which API version exposes a model; v1beta first, then v1.
GEMINI_URL_TEMPLATES = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
    "https://generativelanguage.googleapis.com/v1/models/{model}:generateContent",
)


def _mask_url(url: str) -> str:
    return re.sub(r"(key=)[^&]+", r"\1[REDACTED]", url)


def gemini_urls(model: Optional[str] = None) -> List[str]:
    name = model or config.GOOGLE_GEMINI_MODEL
    return [tpl.format(model=name) for tpl in GEMINI_URL_TEMPLATES]


def _gemini_body(prompt: str) -> Dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": config.LLM_TEMPERATURE,
            "maxOutputTokens": config.LLM_MAX_OUTPUT_TOKENS,
        },
    }


def _extract_gemini_text(data: Any) -> str:
    # canonical shape: candidates[].content.parts[].text
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"] or ""
    except (KeyError, IndexError, TypeError):
        return ""


def generate_with_gemini(
    prompt: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.Client] = None,
) -> str:
    """Call Gemini generateContent, trying each endpoint variant once.

    Raises UpstreamProviderError when every variant times out, fails to connect
    or answers non-2xx. An empty candidate text is returned as "".
    """
    key = api_key or config.GOOGLE_API_KEY
    if not key:
        raise ProviderNotConfiguredError("GOOGLE_API_KEY is not set")
    limit = timeout or config.LLM_TIMEOUT_SECS
    headers = {"Content-Type": "application/json", "x-goog-api-key": key}
    body = _gemini_body(prompt)
    last_error: UpstreamProviderError | None = None

    with (nullcontext(client) if client is not None else httpx.Client(timeout=limit)) as http:
        for url in gemini_urls(model):
            masked = _mask_url(url)
            try:
                r = http.post(url, headers=headers, json=body, timeout=limit)
            except httpx.HTTPError as e:
                logger.warning(f"Generative Language API request error for {masked}: {e}")
                last_error = UpstreamProviderError(str(e) or type(e).__name__, url=masked)
                continue
            if r.is_success:
                try:
                    return _extract_gemini_text(r.json())
                except ValueError as e:
                    logger.warning(f"Generative Language API returned invalid JSON for {masked}: {e}")
                    last_error = UpstreamProviderError("invalid JSON body", status=r.status_code, url=masked)
                    continue
            logger.warning(f"Generative Language API call failed ({r.status_code}) for {masked}: {r.text[:500]}")
            last_error = UpstreamProviderError(
                f"HTTP {r.status_code}", status=r.status_code, url=masked
            )

    last_url = last_error.url if last_error else None
    logger.error(f"Generative Language API all attempts failed: {last_error} (last url={last_url})")
    raise last_error or UpstreamProviderError("no endpoint configured")


def generate_with_openai(prompt: str, *, client: Optional[OpenAI] = None) -> str:
    """Chat-completions call used when only OPENAI_API_KEY is configured."""
    if client is None:
        if not config.OPENAI_API_KEY:
            raise ProviderNotConfiguredError("OPENAI_API_KEY is not set")
        client = OpenAI(api_key=config.OPENAI_API_KEY, max_retries=1)
    try:
        resp = client.chat.completions.create(
            model=config.LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_OUTPUT_TOKENS,
            timeout=config.LLM_TIMEOUT_SECS,
        )
    except OpenAIError as e:
        logger.error(f"OpenAI completion failed: {e}")
        raise UpstreamProviderError(str(e)) from e
    return (resp.choices[0].message.content or "") if resp.choices else ""


def complete_support_reply(message: str, topic: str) -> str:
    """Raw model text for a support question (no post-processing)."""
    prompt = build_prompt(message, topic)
    provider = config.provider_name()
    if provider == "google":
        return generate_with_gemini(prompt)
    if provider == "openai":
        return generate_with_openai(prompt)
    raise ProviderNotConfiguredError(
        "AI not configured. Set GOOGLE_API_KEY (Generative Language API) or OPENAI_API_KEY."
    )
