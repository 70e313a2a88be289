"""Request/response schemas for the HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class APIResponse(BaseModel):
    """Response envelope for the record read endpoints."""

    success: bool
    data: Any | None = None
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AnalyzeRequest(BaseModel):
    """Request body for POST /analyze-repository."""

    model_config = ConfigDict(populate_by_name=True)

    repo_url: str = Field(alias="repoUrl", min_length=1, max_length=500)


class AnalyzeResponse(BaseModel):
    """Success body for POST /analyze-repository."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    analysis_id: str = Field(alias="analysisId")
    score: int
    files_analyzed: int = Field(alias="filesAnalyzed")
    languages: int
    frameworks: int
    security_issues: int = Field(alias="securityIssues")
