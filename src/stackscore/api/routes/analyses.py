"""Repository analysis trigger and record read routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from stackscore.api.dependencies import (
    get_analysis_repo,
    get_github_client,
    get_owner_id,
    get_persistence,
    get_run_logger,
    get_settings,
)
from stackscore.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    APIResponse,
)
from stackscore.config import Settings
from stackscore.errors import AnalysisError
from stackscore.ingestion.github_client import GitHubClient
from stackscore.logger import RunLogger
from stackscore.repositories.protocols import AnalysisRepository
from stackscore.services.analysis_persistence import (
    AnalysisPersistenceService,
)
from stackscore.services.analysis_service import run_analysis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analyses"])


@router.post("/analyze-repository", response_model=None)
async def analyze_repository(
    body: AnalyzeRequest,
    owner_id: str = Depends(get_owner_id),
    settings: Settings = Depends(get_settings),
    persistence: AnalysisPersistenceService = Depends(get_persistence),
    github: GitHubClient = Depends(get_github_client),
    run_logger: RunLogger | None = Depends(get_run_logger),
) -> JSONResponse:
    """Run the analysis pipeline synchronously for one repository."""
    try:
        result = await run_analysis(
            body.repo_url,
            owner_id,
            persistence,
            settings=settings,
            github=github,
            run_logger=run_logger,
        )
    except AnalysisError as exc:
        logger.warning(
            "event=analyze_failed repo=%s error=%s", body.repo_url, exc
        )
        return JSONResponse(status_code=500, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("event=analyze_crashed repo=%s", body.repo_url)
        return JSONResponse(
            status_code=500,
            content={"error": str(exc) or "Unknown error"},
        )

    response = AnalyzeResponse.model_validate(result.to_response())
    return JSONResponse(content=response.model_dump(by_alias=True))


@router.get("/analyses")
async def list_analyses(
    owner_id: str = Depends(get_owner_id),
    repo: AnalysisRepository = Depends(get_analysis_repo),
) -> APIResponse:
    """The caller's analyses, newest first."""
    analyses = await repo.list_by_owner(owner_id)
    return APIResponse(
        success=True,
        data=[a.to_dict() for a in analyses],
    )


@router.get("/analyses/{analysis_id}", response_model=None)
async def get_analysis(
    analysis_id: str,
    owner_id: str = Depends(get_owner_id),
    repo: AnalysisRepository = Depends(get_analysis_repo),
) -> APIResponse | JSONResponse:
    """One analysis record, visible only to its owner."""
    analysis = await repo.get_by_id(analysis_id, owner_id=owner_id)
    if analysis is None:
        return JSONResponse(
            status_code=404,
            content=APIResponse(
                success=False, error="Analysis not found"
            ).model_dump(),
        )
    return APIResponse(success=True, data=analysis.to_dict())
