"""Narration endpoints.

For a stage-by-stage map see `narrator.pipelines.narration.flow.NarrationPipeline`.
`POST /narrations` runs the saga: select the best candidate, persist the
selection, synthesize with provider failover, upload to S3, save the audio
metadata and link it to the selection.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from narrator.pipelines.narration import CandidateItem, NarrationOrchestrator, NarrationPipeline
from narrator.services.content_source import RedditContentSource
from narrator.services.errors import ContentSourceError, ErrorKind, OrchestrationError
from narrator.views import (
    ErrorResponse,
    NarrationRequest,
    NarrationResponse,
    ProcessedResponse,
    ProviderStatusResponse,
    ScoreResponse,
)

router = APIRouter(prefix="/narrations", tags=["narrations"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(NarrationPipeline.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

_ORCHESTRATION_STATUS = {
    ErrorKind.EMPTY_BATCH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NO_VALID_CANDIDATES: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.ALREADY_PROCESSED: status.HTTP_409_CONFLICT,
    ErrorKind.SYNTHESIS_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UPLOAD_FAILED: status.HTTP_502_BAD_GATEWAY,
}

_CONTENT_SOURCE_STATUS = {
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 404, 409, 422, 429, 500, 502)
}


def get_orchestrator(request: Request) -> NarrationOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Narration pipeline is not configured",
        )
    return orchestrator


def get_content_source(request: Request) -> RedditContentSource:
    source = getattr(request.app.state, "content_source", None)
    if source is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content source is not configured",
        )
    return source


OrchestratorDep = Annotated[NarrationOrchestrator, Depends(get_orchestrator)]
ContentSourceDep = Annotated[RedditContentSource, Depends(get_content_source)]


def status_for(error: OrchestrationError) -> int:
    """HTTP status for a failed narration run."""

    return _ORCHESTRATION_STATUS.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _http_error(error: OrchestrationError) -> HTTPException:
    return HTTPException(
        status_code=status_for(error),
        detail=ErrorResponse(detail=str(error), code=error.code).model_dump(),
    )


async def _narrate(orchestrator: NarrationOrchestrator, candidates: list[CandidateItem]) -> NarrationResponse:
    try:
        result = await orchestrator.run(candidates)
    except OrchestrationError as exc:
        raise _http_error(exc) from exc
    return NarrationResponse.from_result(result)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=NarrationResponse,
    responses=_ERROR_RESPONSES,
)
async def create_narration(
    payload: NarrationRequest,
    orchestrator: OrchestratorDep,
) -> NarrationResponse:
    """Narrate the best candidate of the submitted batch."""

    return await _narrate(orchestrator, payload.to_candidates())


@router.post(
    "/collections/{name}",
    status_code=status.HTTP_201_CREATED,
    response_model=NarrationResponse,
    responses=_ERROR_RESPONSES,
)
async def narrate_collection(
    name: str,
    orchestrator: OrchestratorDep,
    source: ContentSourceDep,
    limit: Optional[int] = Query(None, ge=1),
) -> NarrationResponse:
    """Fetch the hot posts of a subreddit and narrate the best one."""

    try:
        candidates = await source.fetch_candidates(name, limit)
    except ContentSourceError as exc:
        logger.warning("Content source failed for %s: %s", name, exc)
        raise HTTPException(
            status_code=_CONTENT_SOURCE_STATUS.get(exc.kind, status.HTTP_502_BAD_GATEWAY),
            detail=ErrorResponse(detail=str(exc), code=exc.code).model_dump(),
        ) from exc

    return await _narrate(orchestrator, candidates)


@router.post("/preview", response_model=list[ScoreResponse])
async def preview_narration(
    payload: NarrationRequest,
    orchestrator: OrchestratorDep,
) -> list[ScoreResponse]:
    """Rank the batch without persisting or synthesizing anything."""

    ranking = orchestrator.preview(payload.to_candidates())
    return [ScoreResponse.from_score(entry) for entry in ranking]


@router.get("/providers", response_model=list[ProviderStatusResponse])
async def providers_status(orchestrator: OrchestratorDep) -> list[ProviderStatusResponse]:
    statuses = await orchestrator.get_providers_status()
    return [ProviderStatusResponse.from_status(entry) for entry in statuses]


@router.get("/{source_id}/processed", response_model=ProcessedResponse)
async def is_processed(source_id: str, orchestrator: OrchestratorDep) -> ProcessedResponse:
    processed = await orchestrator.is_processed(source_id)
    return ProcessedResponse(source_id=source_id, processed=processed)
