# backend/krishi/llm/advisor.py
"""
Chat advisor: prompt construction, the model call, and recovery of the
structured advice from whatever text the model sends back.

The model is asked for a JSON object, but it does not always comply. The
reply is interpreted in three tiers:

* ``Parsed``           - the whole reply is a complete advice object
* ``ExtractedPartial`` - a ``{...}`` block inside the reply parses; gaps are
                         filled with conservative defaults
* ``RawFallback``      - nothing parses; the raw text becomes the advice
"""
import json
import logging
import re
import time
from typing import List, Literal, Optional, Union, Dict, Any

import openai
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from krishi.config import settings
from krishi.errors import ApiError
from krishi.schemas import Advice, ChatRequest

log = logging.getLogger("krishimitra.advisor")

def t() -> float:
    return time.perf_counter()

DEFAULT_FERTILIZER = "Please consult with a local agricultural expert for specific fertilizer recommendations."
DEFAULT_PEST_FLAGS = ["Unable to identify specific pests from the response"]
DEFAULT_SUGGESTIONS = ["Review the advice above and consult local agricultural resources"]

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


# ---------- Prompt ----------

def build_prompt(
    message: str,
    crop: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    lang: Optional[str] = None,
) -> str:
    """Question, crop, location and language, always in that order."""
    lines = [
        "You are an expert agricultural advisor. Please provide farming advice based on the following information:",
        "",
        f"Question: {message}",
        "",
    ]
    if crop:
        lines.append(f"Crop: {crop}")
    if lat is not None and lon is not None:
        lines.append(f"Location: Latitude {lat}, Longitude {lon}")
    if lang:
        lines.append(f"Language preference: {lang}")

    lines += [
        "",
        "Please provide your response in the following JSON format:",
        "- advice_text: Detailed farming advice",
        "- fertilizer: Recommended fertilizer or soil amendment",
        "- pest_flags: Array of potential pests/diseases to watch for",
        "- suggestions: Array of actionable farming suggestions",
        "",
        "Consider the location, crop type, and season when providing advice. Be specific and practical.",
    ]
    return "\n".join(lines)


# ---------- Reply interpretation ----------

class Parsed(BaseModel):
    kind: Literal["parsed"] = "parsed"
    advice: Advice

class ExtractedPartial(BaseModel):
    kind: Literal["extracted"] = "extracted"
    advice: Advice
    filled: List[str] = Field(default_factory=list)   # fields replaced by defaults

class RawFallback(BaseModel):
    kind: Literal["raw"] = "raw"
    advice: Advice
    reason: str = ""

AdviceResult = Union[Parsed, ExtractedPartial, RawFallback]


def _str_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [str(v) for v in value if v is not None]

def _nonempty_str(value: Any) -> Optional[str]:
    return value.strip() if isinstance(value, str) and value.strip() else None

def _complete(obj: Dict[str, Any]) -> Optional[Advice]:
    advice_text = _nonempty_str(obj.get("advice_text"))
    fertilizer = _nonempty_str(obj.get("fertilizer"))
    pest_flags = _str_list(obj.get("pest_flags"))
    suggestions = _str_list(obj.get("suggestions"))
    if advice_text is None or fertilizer is None or pest_flags is None or suggestions is None:
        return None
    return Advice(advice_text=advice_text, fertilizer=fertilizer, pest_flags=pest_flags, suggestions=suggestions)

def _fill(obj: Dict[str, Any], raw: str) -> ExtractedPartial:
    found = {
        "advice_text": _nonempty_str(obj.get("advice_text")),
        "fertilizer": _nonempty_str(obj.get("fertilizer")),
        "pest_flags": _str_list(obj.get("pest_flags")),
        "suggestions": _str_list(obj.get("suggestions")),
    }
    defaults = {
        "advice_text": raw,
        "fertilizer": DEFAULT_FERTILIZER,
        "pest_flags": list(DEFAULT_PEST_FLAGS),
        "suggestions": list(DEFAULT_SUGGESTIONS),
    }
    filled = [k for k, v in found.items() if v is None]
    fields = {k: defaults[k] if v is None else v for k, v in found.items()}
    return ExtractedPartial(advice=Advice(**fields), filled=filled)

def raw_fallback(text: str, reason: str) -> RawFallback:
    return RawFallback(
        advice=Advice(
            advice_text=text,
            fertilizer=DEFAULT_FERTILIZER,
            pest_flags=list(DEFAULT_PEST_FLAGS),
            suggestions=list(DEFAULT_SUGGESTIONS),
        ),
        reason=reason,
    )

def parse_advice(text: str) -> AdviceResult:
    try:
        obj = json.loads(text)
    except ValueError as e:
        reason = f"not JSON: {e}"
    else:
        if isinstance(obj, dict):
            advice = _complete(obj)
            if advice is not None:
                return Parsed(advice=advice)
            reason = "incomplete advice object"
        else:
            reason = "JSON is not an object"

    log.warning("Model reply not directly usable (%s); looking for a JSON block", reason)
    match = _JSON_BLOCK.search(text or "")
    if not match:
        return raw_fallback(text, "no JSON block in reply")
    try:
        obj = json.loads(match.group(0))
    except ValueError as e:
        log.warning("Extracted JSON block failed to parse: %s", e)
        return raw_fallback(text, f"JSON block unparseable: {e}")
    if not isinstance(obj, dict):
        return raw_fallback(text, "JSON block is not an object")
    return _fill(obj, text)


# ---------- Model call ----------

def get_llm():
    """ChatOpenAI bound to JSON-object output."""
    llm = ChatOpenAI(
        model=settings.OPENAI_MODEL,
        api_key=settings.OPENAI_API_KEY,
        temperature=settings.LLM_TEMPERATURE,
        timeout=settings.LLM_TIMEOUT_SEC,
        max_retries=0,
    )
    return llm.bind(response_format={"type": "json_object"})


def classify_llm_error(exc: Exception) -> ApiError:
    if isinstance(exc, openai.AuthenticationError) or "API key" in str(exc):
        return ApiError(500, "Invalid API configuration", "Please check your OPENAI_API_KEY environment variable")
    if isinstance(exc, openai.RateLimitError) or any(w in str(exc).lower() for w in ("quota", "limit")):
        return ApiError(429, "API quota exceeded", "Please try again later")
    return ApiError(500, "Internal server error", str(exc) or exc.__class__.__name__)


async def advise(req: ChatRequest) -> AdviceResult:
    """Ask the model for advice; raises ApiError on configuration or upstream failure."""
    if not settings.OPENAI_API_KEY:
        raise ApiError(500, "Invalid API configuration", "Please check your OPENAI_API_KEY environment variable")

    prompt = build_prompt(req.message, crop=req.crop, lat=req.lat, lon=req.lon, lang=req.lang)
    log.info("Sending prompt to %s: %s...", settings.OPENAI_MODEL, prompt[:200])

    start = t()
    try:
        resp = await get_llm().ainvoke([HumanMessage(content=prompt)])
    except Exception as e:
        log.exception("Advisor model call failed")
        raise classify_llm_error(e) from e
    text = getattr(resp, "content", str(resp))
    if not isinstance(text, str):
        text = str(text)
    total_ms = round((t() - start) * 1000)
    log.info("⏱️  Advisor reply: %sms (%d chars)", total_ms, len(text))

    result = parse_advice(text.strip())
    log.info("Advisor reply interpreted as %s", result.kind)
    return result
