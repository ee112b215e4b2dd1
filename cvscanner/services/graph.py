"""
Job match pipeline.

validate -> embed -> score -> narrate -> merge, run as a LangGraph state graph.
A node that fails raises one of the CVScannerBaseException subclasses, which
aborts the graph; nothing partial is ever returned.
"""
import asyncio
import math
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict

from langgraph.graph import StateGraph, END

from cvscanner.models.models import ExtractedField, JobQuery, MatchReport, NarrativePayload
from cvscanner.services.clients import EmbeddingClient, NarrativeClient
from cvscanner.services.matching import (
    cosine_similarity,
    parse_narrative,
    project_to_text,
    to_match_percentage,
)
from cvscanner.utils.exceptions import (
    CVScannerBaseException,
    EmbeddingError,
    MissingCredentialError,
    MissingInputError,
    NarrativeServiceError,
)
from cvscanner.utils.logging_config import get_logger, log_function_call

logger = get_logger(__name__)


class MatchStage(str, Enum):
    VALIDATING = "validating"
    EMBEDDING = "embedding"
    SCORING = "scoring"
    NARRATING = "narrating"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


class MatchState(TypedDict, total=False):
    cv_data: List[ExtractedField]
    job_title: Optional[str]
    job_description: Optional[str]
    job: JobQuery
    stage: MatchStage
    cv_vector: Any
    job_vector: Any
    similarity: float
    match_percentage: int
    narrative: NarrativePayload
    report: MatchReport


def job_to_text(title: str, description: str) -> str:
    return f"{title}\n\n{description}"


@contextmanager
def _stage(stage: MatchStage):
    logger.debug(f"Match stage: {stage.value}")
    try:
        yield
    except CVScannerBaseException as exc:
        exc.details.setdefault("stage", stage.value)
        logger.warning(f"Match {stage.value} -> {MatchStage.FAILED.value}: {exc.message}")
        raise


class MatchOrchestrator:
    """Scores a CV against a job posting and attaches a model-written narrative.

    The api_key and both clients are injected; nothing here reads the
    environment. Each call to run() is independent.
    """

    def __init__(self, api_key: Optional[str], embedding_client: EmbeddingClient,
                 narrative_client: NarrativeClient):
        self.api_key = api_key
        self.embedding_client = embedding_client
        self.narrative_client = narrative_client
        self.graph = self._build_graph()

    def _build_graph(self):
        g = StateGraph(MatchState)
        g.add_node("validate", self.node_validate)
        g.add_node("embed", self.node_embed)
        g.add_node("score", self.node_score)
        g.add_node("narrate", self.node_narrate)
        g.add_node("merge", self.node_merge)
        g.set_entry_point("validate")
        g.add_edge("validate", "embed")
        g.add_edge("embed", "score")
        g.add_edge("score", "narrate")
        g.add_edge("narrate", "merge")
        g.add_edge("merge", END)
        return g.compile()

    @log_function_call
    async def run(self, cv_data: List[ExtractedField], job_title: Optional[str],
                  job_description: Optional[str]) -> MatchReport:
        state: MatchState = {
            "cv_data": list(cv_data or []),
            "job_title": job_title,
            "job_description": job_description,
        }
        final = await self.graph.ainvoke(state)
        logger.info(
            f"Match done: {final['match_percentage']}% (cosine {final['similarity']:.4f})"
        )
        return final["report"]

    # -------- nodes --------

    async def node_validate(self, state: MatchState) -> Dict[str, Any]:
        with _stage(MatchStage.VALIDATING):
            title = (state.get("job_title") or "").strip()
            description = (state.get("job_description") or "").strip()
            missing = [
                name for name, ok in (
                    ("cvData", bool(state.get("cv_data"))),
                    ("jobTitle", bool(title)),
                    ("jobDescription", bool(description)),
                ) if not ok
            ]
            if missing:
                raise MissingInputError(details={"missing": missing})
            if not self.api_key:
                raise MissingCredentialError()
        return {"stage": MatchStage.EMBEDDING, "job": JobQuery(title=title, description=description)}

    async def node_embed(self, state: MatchState) -> Dict[str, Any]:
        with _stage(MatchStage.EMBEDDING):
            cv_text = project_to_text(state["cv_data"])
            job = state["job"]
            job_text = job_to_text(job.title, job.description)
            try:
                cv_vector, job_vector = await asyncio.gather(
                    asyncio.to_thread(self.embedding_client.embed, self.api_key, cv_text),
                    asyncio.to_thread(self.embedding_client.embed, self.api_key, job_text),
                )
            except EmbeddingError:
                raise
            except Exception as e:
                raise EmbeddingError(f"Failed to get embedding: {e}", cause=e) from e
        return {"stage": MatchStage.SCORING, "cv_vector": cv_vector, "job_vector": job_vector}

    async def node_score(self, state: MatchState) -> Dict[str, Any]:
        with _stage(MatchStage.SCORING):
            try:
                similarity = cosine_similarity(state["cv_vector"], state["job_vector"])
            except ValueError as e:
                # Both vectors come from one model, so this is a configuration problem
                raise EmbeddingError(f"Embedding dimension mismatch: {e}", cause=e) from e
            if not math.isfinite(similarity):
                raise EmbeddingError("Embedding vectors contain non-numeric values")
            pct = to_match_percentage(similarity)
        return {"stage": MatchStage.NARRATING, "similarity": similarity, "match_percentage": pct}

    async def node_narrate(self, state: MatchState) -> Dict[str, Any]:
        with _stage(MatchStage.NARRATING):
            try:
                raw = await asyncio.to_thread(
                    self.narrative_client.analyze,
                    self.api_key,
                    state["cv_data"],
                    state["job"].title,
                    state["job"].description,
                    state["match_percentage"],
                )
            except NarrativeServiceError:
                raise
            except Exception as e:
                raise NarrativeServiceError(f"Failed to analyze job match: {e}", cause=e) from e
            narrative = parse_narrative(raw)
        return {"stage": MatchStage.MERGING, "narrative": narrative}

    async def node_merge(self, state: MatchState) -> Dict[str, Any]:
        with _stage(MatchStage.MERGING):
            narrative = state["narrative"]
            report = MatchReport(
                match_percentage=state["match_percentage"],
                cosine_similarity=state["similarity"],
                summary=narrative.summary,
                strengths=list(narrative.strengths),
                weaknesses=list(narrative.weaknesses),
                suggestions=list(narrative.suggestions),
            )
        return {"stage": MatchStage.DONE, "report": report}
