import json
import re
from typing import Any, Dict, List

import numpy as np
import requests

_FENCE_START = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?[ \t]*```$")


def gemini_post(base_url: str, api_key: str, model: str, method: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    """POST to models/{model}:{method} and return the decoded JSON body.

    Raises requests.RequestException on transport/HTTP errors and ValueError
    when the body is not JSON.
    """
    url = f"{base_url.rstrip('/')}/models/{model}:{method}"
    resp = requests.post(
        url,
        json=payload,
        headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json()


def gemini_embed(base_url: str, api_key: str, model: str, text: str, timeout: float) -> np.ndarray:
    data = gemini_post(
        base_url, api_key, model, "embedContent",
        {"model": f"models/{model}", "content": {"parts": [{"text": text}]}},
        timeout,
    )
    values = (data.get("embedding") or {}).get("values")
    if not isinstance(values, list) or not values:
        raise ValueError("embedding response has no values")
    vector = np.asarray(values, dtype=np.float64)
    # null entries decode to NaN
    if not np.isfinite(vector).all():
        raise ValueError("embedding response has non-numeric values")
    return vector


def gemini_generate(base_url: str, api_key: str, model: str, parts: List[Dict[str, Any]],
                    timeout: float, temperature: float = None) -> str:
    payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
    if temperature is not None:
        payload["generationConfig"] = {"temperature": temperature}
    data = gemini_post(base_url, api_key, model, "generateContent", payload, timeout)

    candidates = data.get("candidates") or []
    if not candidates:
        raise ValueError("generation response has no candidates")
    content_parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in content_parts if isinstance(p, dict))
    if not text.strip():
        raise ValueError("generation response has no text")
    return text


def strip_code_fences(s: str) -> str:
    """Remove a leading ``` / ```json fence and a trailing ``` fence"""
    s = s.strip()
    s = _FENCE_START.sub("", s, count=1)
    s = _FENCE_END.sub("", s, count=1)
    return s.strip()


def parse_model_json(s: str) -> Any:
    """Fence-strip model output and decode it; json.JSONDecodeError on failure"""
    return json.loads(strip_code_fences(s))
