from fastapi import APIRouter, Depends

from cvscanner.models.schemas import MatchReportData, MatchRequest, MatchResponse
from cvscanner.models.settings import Settings, get_settings
from cvscanner.services.clients import EmbeddingClient, NarrativeClient
from cvscanner.services.graph import MatchOrchestrator
from cvscanner.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


def get_embedding_client(settings: Settings = Depends(get_settings)) -> EmbeddingClient:
    return EmbeddingClient(settings)


def get_narrative_client(settings: Settings = Depends(get_settings)) -> NarrativeClient:
    return NarrativeClient(settings)


def get_orchestrator(
    settings: Settings = Depends(get_settings),
    embedding_client: EmbeddingClient = Depends(get_embedding_client),
    narrative_client: NarrativeClient = Depends(get_narrative_client),
) -> MatchOrchestrator:
    return MatchOrchestrator(settings.api_key, embedding_client, narrative_client)


@router.post("/match-job", response_model=MatchResponse)
async def match_job(body: MatchRequest, orchestrator: MatchOrchestrator = Depends(get_orchestrator)):
    """Score a CV against a job posting (embedding similarity + model narrative)"""
    logger.info(f"Match requested: {len(body.cv_data)} CV rows, job title {body.job_title!r}")
    report = await orchestrator.run(body.cv_data, body.job_title, body.job_description)
    return MatchResponse(data=MatchReportData(**report.model_dump()))
