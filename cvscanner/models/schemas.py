from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from cvscanner.models.models import ExtractedField, MatchReport

METHOD_HYBRID = "hybrid"
METHOD_DESCRIPTION = (
    "Match percentage is the cosine similarity between Gemini embeddings of the CV "
    "and the job posting, scaled to 0-100. Summary, strengths, weaknesses and "
    "suggestions are generated by a Gemini model given that score."
)

# -------- Match --------
class MatchRequest(BaseModel):
    """Inbound match body; missing keys are left to the orchestrator to reject"""
    model_config = ConfigDict(populate_by_name=True)

    cv_data: List[ExtractedField] = Field(default_factory=list, alias="cvData")
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    job_description: Optional[str] = Field(default=None, alias="jobDescription")


class MatchReportData(MatchReport):
    method: str = METHOD_HYBRID
    method_description: str = Field(default=METHOD_DESCRIPTION, alias="methodDescription")


class MatchResponse(BaseModel):
    data: MatchReportData

# -------- Scanner --------
class ParseCVResponse(BaseModel):
    data: List[ExtractedField]


class CSVExportRequest(BaseModel):
    data: List[ExtractedField]
    filename: Optional[str] = None  # source PDF name, used to name the download
