import json
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np

from cvscanner.models.models import ExtractedField, NarrativePayload
from cvscanner.utils.exceptions import ResponseParseError
from cvscanner.utils.utils import parse_model_json

MAX_STRENGTHS = 5
MAX_WEAKNESSES = 5
MAX_SUGGESTIONS = 3


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between a and b, in [-1, 1].

    Vectors of different length raise ValueError. A zero vector has no
    direction, so any comparison with one is 0.0.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vectors must have the same length ({va.size} != {vb.size})")
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / den


def to_match_percentage(similarity: float) -> int:
    """Scale similarity x100, clamp to [0, 100] and round half up.

    Embedding similarities for CV/job text sit roughly in [0.3, 0.9], so this
    is a plain x100 and not a [-1, 1] -> [0, 100] remap.
    """
    pct = min(100.0, max(0.0, similarity * 100.0))
    return int(np.floor(pct + 0.5))


def project_to_text(fields: Iterable[ExtractedField]) -> str:
    """Render extracted rows as section blocks for embedding.

    Sections keep first-seen order; each block is the section name followed by
    "field: value" lines, blocks separated by a blank line.
    """
    sections: Dict[str, List[str]] = {}
    for row in fields:
        sections.setdefault(row.section, []).append(f"{row.field}: {row.value}")
    return "\n\n".join(f"{section}\n" + "\n".join(lines) for section, lines in sections.items())


def _as_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, list):
        return " ".join([str(t).strip() for t in x if str(t).strip()])
    return str(x).strip()


def _as_list(x: Any, limit: int) -> List[str]:
    if isinstance(x, str):
        x = [x]
    if not isinstance(x, list):
        return []
    return [str(t).strip() for t in x if t is not None and str(t).strip()][:limit]


def parse_narrative(raw: str) -> NarrativePayload:
    """Parse model output into a narrative, defaulting any missing part.

    Anything the model says about a score is dropped here.
    """
    try:
        data = parse_model_json(raw)
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse AI response", raw=raw, cause=e) from e
    if not isinstance(data, dict):
        raise ResponseParseError("Failed to parse AI response: expected a JSON object", raw=raw)

    return NarrativePayload(
        summary=_as_text(data.get("summary")),
        strengths=_as_list(data.get("strengths"), MAX_STRENGTHS),
        weaknesses=_as_list(data.get("weaknesses"), MAX_WEAKNESSES),
        suggestions=_as_list(data.get("suggestions"), MAX_SUGGESTIONS),
    )


def parse_extracted_fields(raw: str) -> List[ExtractedField]:
    """Parse extraction output (a JSON array of section/field/value objects)"""
    try:
        data = parse_model_json(raw)
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse AI response", raw=raw, cause=e) from e
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ResponseParseError("Failed to parse AI response: expected a JSON array of objects", raw=raw)

    return [
        ExtractedField(
            section=_as_text(item.get("section")),
            field=_as_text(item.get("field")),
            value=_as_text(item.get("value")),
        )
        for item in data
    ]
