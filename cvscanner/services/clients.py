"""
Gemini boundary adapters: embeddings, match narrative and PDF field extraction.

Every adapter makes exactly one call per invocation. Failures are converted
to the matching ExternalServiceError subclass and never retried here.
"""
import base64
import json
from typing import List

import numpy as np
import requests

from cvscanner.helpers.prompts import EXTRACT_PROMPT, NARRATIVE_PROMPT
from cvscanner.models.models import ExtractedField
from cvscanner.models.settings import Settings
from cvscanner.utils.exceptions import (
    EmbeddingError,
    ExtractionServiceError,
    NarrativeServiceError,
)
from cvscanner.utils.logging_config import PerformanceMonitor, get_logger
from cvscanner.utils.utils import gemini_embed, gemini_generate

logger = get_logger(__name__)


def _status_of(exc: Exception):
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


class EmbeddingClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.base_url
        self.model = settings.embedding_settings.model_name
        self.timeout = settings.embedding_settings.timeout

    def embed(self, api_key: str, text: str) -> np.ndarray:
        try:
            with PerformanceMonitor(f"embed ({len(text)} chars)", logger):
                return gemini_embed(self.base_url, api_key, self.model, text, self.timeout)
        except (requests.RequestException, ValueError, TypeError) as e:
            raise EmbeddingError(
                f"Failed to get embedding: {e}",
                status_code=_status_of(e),
                details={"model": self.model},
                cause=e,
            ) from e


class NarrativeClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.base_url
        self.model = settings.llm_settings.model_name
        self.timeout = settings.llm_settings.timeout
        self.temperature = settings.llm_settings.temperature

    @staticmethod
    def build_prompt(cv_data: List[ExtractedField], job_title: str, job_description: str,
                     match_percentage: int) -> str:
        cv_json = json.dumps([row.model_dump() for row in cv_data], indent=2, ensure_ascii=False)
        return NARRATIVE_PROMPT.format(
            match_percentage=match_percentage,
            cv_json=cv_json,
            job_title=job_title,
            job_description=job_description,
        )

    def analyze(self, api_key: str, cv_data: List[ExtractedField], job_title: str,
                job_description: str, match_percentage: int) -> str:
        """Return the model's raw text; parsing belongs to the caller"""
        prompt = self.build_prompt(cv_data, job_title, job_description, match_percentage)
        try:
            with PerformanceMonitor("match narrative", logger, threshold_ms=10000):
                return gemini_generate(
                    self.base_url, api_key, self.model, [{"text": prompt}],
                    self.timeout, temperature=self.temperature,
                )
        except (requests.RequestException, ValueError) as e:
            raise NarrativeServiceError(
                f"Failed to analyze job match: {e}",
                status_code=_status_of(e),
                details={"model": self.model},
                cause=e,
            ) from e


class ExtractionClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.base_url
        self.model = settings.llm_settings.model_name
        self.timeout = settings.llm_settings.timeout

    def extract(self, api_key: str, pdf_bytes: bytes) -> str:
        parts = [
            {"inline_data": {"mime_type": "application/pdf",
                             "data": base64.b64encode(pdf_bytes).decode("ascii")}},
            {"text": EXTRACT_PROMPT},
        ]
        try:
            with PerformanceMonitor(f"extract fields ({len(pdf_bytes)} bytes)", logger, threshold_ms=20000):
                return gemini_generate(self.base_url, api_key, self.model, parts, self.timeout)
        except (requests.RequestException, ValueError) as e:
            raise ExtractionServiceError(
                f"Failed to parse CV: {e}",
                status_code=_status_of(e),
                details={"model": self.model},
                cause=e,
            ) from e
