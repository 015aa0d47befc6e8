from __future__ import annotations

import logging
import os
from typing import Any, Callable, List, Optional, Tuple

from src.briefing import Briefing, dedupe_sources, extract_briefing
from src.config import gemini_model
from src.constants import CATEGORIES, EMPTY_RESPONSE_TEXT, FORMAT_INSTRUCTIONS
from src.quota_tracker import QuotaGovernor, QuotaStatus

logger = logging.getLogger(__name__)

_API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")

GeminiCaller = Callable[[str, str], Tuple[str, List[Any]]]


class BriefingFetchError(RuntimeError):
    """The Gemini call could not be made or failed upstream."""


class QuotaExceededError(RuntimeError):
    def __init__(self, status: QuotaStatus) -> None:
        if status.limited_by == "minute":
            msg = "Per-minute request limit reached. Wait a moment and try again."
        else:
            msg = f"Daily request limit of {status.daily_limit} reached. Resets at {status.reset_at:%H:%M}."
        super().__init__(msg)
        self.status = status


def build_prompt(category: str) -> str:
    try:
        base = CATEGORIES[category]["prompt"]
    except KeyError:
        raise ValueError(f"Unknown category: {category!r}") from None
    return f"{base}\n{FORMAT_INSTRUCTIONS}"


def _resolve_api_key() -> Optional[str]:
    # Streamlit runs server-side, so env vars and st.secrets never reach the browser.
    for name in _API_KEY_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    try:
        import streamlit as st

        for name in _API_KEY_ENV_VARS:
            value = st.secrets.get(name)
            if value:
                return value
    except Exception:
        return None
    return None


def _grounding_chunks(resp: Any) -> List[Any]:
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    return list(getattr(metadata, "grounding_chunks", None) or [])


def call_gemini_grounded(prompt: str, model: str) -> Tuple[str, List[Any]]:
    """Plain-text Gemini call with Google Search grounding.

    Returns the response text and the raw grounding chunks.
    """
    api_key = _resolve_api_key()
    if not api_key:
        raise BriefingFetchError(
            "Missing Gemini API key. Set GEMINI_API_KEY, GOOGLE_API_KEY or API_KEY "
            "in the environment or .streamlit/secrets.toml."
        )

    try:
        from google import genai
        from google.genai import types
    except Exception as e:
        raise BriefingFetchError("google-genai is not installed. Install it with: pip install google-genai") from e

    client = genai.Client(api_key=api_key)
    try:
        resp = client.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )
    except Exception as e:
        raise BriefingFetchError(f"Gemini API call failed: {e}") from e

    text = (resp.text or "").strip() or EMPTY_RESPONSE_TEXT
    return text, _grounding_chunks(resp)


def fetch_briefing(
    category: str,
    governor: QuotaGovernor,
    caller: GeminiCaller = call_gemini_grounded,
    model: Optional[str] = None,
) -> Briefing:
    """check -> record -> call -> extract.

    The call is charged before it is made so failures and retries still count.
    """
    prompt = build_prompt(category)
    status = governor.check()
    if not status.allowed:
        raise QuotaExceededError(status)

    governor.record()
    model_name = model or gemini_model()
    logger.info("Fetching %s briefing with %s", category, model_name)
    try:
        text, chunks = caller(prompt, model_name)
    except BriefingFetchError:
        raise
    except Exception as e:
        raise BriefingFetchError(f"Gemini API call failed: {e}") from e

    briefing = extract_briefing(text)
    if briefing.series_fallback or briefing.stats_fallback:
        logger.warning(
            "Briefing for %s used placeholder data (series=%s, stats=%s)",
            category,
            briefing.series_fallback,
            briefing.stats_fallback,
        )
    return briefing.with_sources(dedupe_sources(chunks))
