import json
import re
from typing import Any, Dict, List, Optional

import requests

from jobalign.models.ai_settings import get_settings
from jobalign.utils.exceptions import ExternalServiceError, retry_with_logging
from jobalign.utils.logging_config import get_logger
from jobalign.utils.usage import TokenUsage

logger = get_logger(__name__)


def _max_attempts() -> int:
    return get_settings().llm.max_retries


@retry_with_logging(max_attempts=_max_attempts, exceptions=(requests.ConnectionError, requests.Timeout), logger=logger)
def _post(url: str, payload: Dict[str, Any], timeout: int) -> Dict[str, Any]:
    resp = requests.post(url, json=payload, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def _call(service: str, url: str, payload: Dict[str, Any], timeout: int) -> Dict[str, Any]:
    try:
        data = _post(url, payload, timeout)
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise ExternalServiceError(f"{service} request failed: {e}", service_name=service, status_code=status, cause=e) from e
    except (requests.RequestException, ValueError) as e:
        # ValueError covers a non-JSON body
        raise ExternalServiceError(f"{service} request failed: {e}", service_name=service, cause=e) from e

    if not isinstance(data, dict):
        raise ExternalServiceError(f"{service} returned a malformed body", service_name=service)
    return data


def _report_usage(data: Dict[str, Any], usage: Optional[TokenUsage]) -> None:
    if usage is None:
        return
    usage.add(data.get("prompt_eval_count"))
    usage.add(data.get("eval_count"))


def ollama_generate(
    prompt: str,
    model: str = None,
    temperature: float = 0.2,
    schema: Optional[Dict[str, Any]] = None,
    usage: Optional[TokenUsage] = None,
) -> str:
    """Single-shot completion. ``schema`` asks Ollama for JSON matching it."""
    cfg = get_settings().llm
    payload: Dict[str, Any] = {
        "model": model or cfg.model_name,
        "prompt": prompt,
        "options": {"temperature": temperature},
        "stream": False,  # important
    }
    if schema is not None:
        payload["format"] = schema
    data = _call("ollama-generate", f"{cfg.base_url}/api/generate", payload, cfg.timeout)
    _report_usage(data, usage)
    return data.get("response", "") or ""


def ollama_chat(
    messages: List[Dict[str, str]],
    model: str = None,
    temperature: float = 0.7,
    usage: Optional[TokenUsage] = None,
) -> str:
    cfg = get_settings().llm
    payload = {
        "model": model or cfg.model_name,
        "messages": messages,
        "options": {"temperature": temperature},
        "stream": False,
    }
    data = _call("ollama-chat", f"{cfg.base_url}/api/chat", payload, cfg.timeout)
    _report_usage(data, usage)
    return (data.get("message") or {}).get("content", "") or ""


def _as_vector(vec: Any) -> Optional[List[float]]:
    """A list of floats, or None when the entry is missing or not numeric"""
    if not vec or not isinstance(vec, list):
        return None
    try:
        return [float(x) for x in vec]
    except (TypeError, ValueError):
        logger.warning("Discarding malformed embedding entry")
        return None


def ollama_embed(texts: List[str], model: str = None, usage: Optional[TokenUsage] = None) -> List[Optional[List[float]]]:
    """Embed a batch of texts.

    The result is aligned by position with ``texts``; it may be shorter than the
    input or hold empty entries where the service produced no vector.
    """
    cfg = get_settings().embedding
    payload = {"model": model or cfg.model_name, "input": list(texts)}
    data = _call("ollama-embed", f"{cfg.base_url}/api/embed", payload, cfg.timeout)
    _report_usage(data, usage)
    embeddings = data.get("embeddings") or []
    if not isinstance(embeddings, list):
        raise ExternalServiceError("ollama-embed returned a malformed body", service_name="ollama-embed")
    return [_as_vector(vec) for vec in embeddings]


_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def safe_json(s: str, fallback: Any):
    """Parse JSON from model output, tolerating code fences and surrounding prose"""
    if not s:
        return fallback
    text = _FENCE.sub("", s.strip())
    try:
        return json.loads(text)
    except ValueError:
        pass
    # heuristics to find JSON inside
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = text.find(open_ch)
        end = text.rfind(close_ch)
        if start >= 0 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except ValueError:
                continue
    return fallback


def as_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, list):
        # join list of sentences or tokens into one paragraph
        return " ".join([str(t).strip() for t in x if str(t).strip()])
    return str(x).strip()


def as_list(x: Any) -> List[str]:
    if x is None:
        return []
    if isinstance(x, str):
        # split on commas/semicolons; normalize tokens
        parts = [p.strip() for p in x.replace(";", ",").split(",")]
        return [p for p in parts if p]
    if isinstance(x, list):
        return [str(t).strip() for t in x if t is not None and str(t).strip()]
    return []
