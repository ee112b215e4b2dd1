from pydantic import BaseModel, ConfigDict, Field
from typing import List


class ExtractedField(BaseModel):
    """One section/field/value row produced by CV extraction"""
    model_config = ConfigDict(frozen=True)

    section: str
    field: str
    value: str


class JobQuery(BaseModel):
    title: str
    description: str


class NarrativePayload(BaseModel):
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class MatchReport(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    match_percentage: int = Field(alias="matchPercentage", ge=0, le=100)
    cosine_similarity: float = Field(alias="cosineSimilarity")
    summary: str = ""
    strengths: List[str] = Field(default_factory=list, max_length=5)
    weaknesses: List[str] = Field(default_factory=list, max_length=5)
    suggestions: List[str] = Field(default_factory=list, max_length=3)
