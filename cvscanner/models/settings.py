"""
Service Settings Models
"""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class LLMSettings(BaseModel):
    """Text generation model configuration"""
    model_name: str = Field(default="gemini-2.5-flash", description="Generation model name")
    temperature: Optional[float] = Field(default=0.2, ge=0.0, le=2.0, description="Generation temperature")
    timeout: int = Field(default=120, ge=1, le=600, description="Request timeout in seconds")


class EmbeddingSettings(BaseModel):
    """Embedding model configuration"""
    model_name: str = Field(default="gemini-embedding-001", description="Embedding model name")
    timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")


class ScannerSettings(BaseModel):
    """PDF upload limits"""
    max_upload_mb: int = Field(default=5, ge=1, le=50, description="Maximum PDF size in megabytes")

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


class Settings(BaseModel):
    """Complete service configuration"""
    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Gemini REST base URL")
    llm_settings: LLMSettings = Field(default_factory=LLMSettings)
    embedding_settings: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    scanner_settings: ScannerSettings = Field(default_factory=ScannerSettings)


def load_settings() -> Settings:
    """Build settings from the environment (and .env, if present)"""
    load_dotenv()
    return Settings(
        api_key=os.getenv("GEMINI_API_KEY") or None,
        base_url=os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
        llm_settings=LLMSettings(
            model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
            timeout=int(os.getenv("LLM_TIMEOUT", "120")),
        ),
        embedding_settings=EmbeddingSettings(
            model_name=os.getenv("GEMINI_EMBED_MODEL", "gemini-embedding-001"),
            timeout=int(os.getenv("EMBED_TIMEOUT", "30")),
        ),
        scanner_settings=ScannerSettings(
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "5")),
        ),
    )


@lru_cache()
def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings"""
    return load_settings()
