"""Analysis record ORM model."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from stackscore.constants import AnalysisStatus
from stackscore.models.base import Base


class Analysis(Base):
    __tablename__ = "analyses"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    owner_id: Mapped[str] = mapped_column(String(128), index=True)
    repo_url: Mapped[str] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(
        String(20), default=AnalysisStatus.PENDING
    )
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggestions: Mapped[list[str]] = mapped_column(JSON, default=list)
    tech_stack: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    file_insights: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list
    )
    code_files_found: Mapped[int] = mapped_column(Integer, default=0)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        onupdate=lambda: datetime.now(UTC),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "repo_url": self.repo_url,
            "status": self.status,
            "score": self.score,
            "summary": self.summary,
            "suggestions": list(self.suggestions or []),
            "tech_stack": dict(self.tech_stack or {}),
            "file_insights": list(self.file_insights or []),
            "code_files_found": self.code_files_found,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
