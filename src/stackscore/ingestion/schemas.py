"""Pydantic models for the ingestion data flow."""

from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from stackscore.constants import UNKNOWN_EXTENSION, FileKind


class RepoLocator(BaseModel):
    """Input to the tree fetcher: which repository to read."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


class RepoInfo(BaseModel):
    """Repository metadata resolved from the host."""

    model_config = ConfigDict(frozen=True)

    name: str
    default_branch: str


class TreeEntry(BaseModel):
    """One raw entry of the recursive tree listing."""

    model_config = ConfigDict(frozen=True)

    path: str
    type: str
    size: int = 0


class RepoTree(BaseModel):
    """Output of the tree fetcher: metadata plus the raw listing."""

    info: RepoInfo
    entries: list[TreeEntry]


class FileCandidate(BaseModel):
    """A tree entry after classification."""

    model_config = ConfigDict(frozen=True)

    path: str
    size: int
    kind: FileKind

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def extension(self) -> str:
        """Extension token without the dot, e.g. ``py``."""
        suffix = PurePosixPath(self.path).suffix
        return suffix[1:].lower() if suffix else UNKNOWN_EXTENSION


class ClassifiedFiles(BaseModel):
    """Output of the classifier, one list per tag."""

    code: list[FileCandidate] = Field(
        default_factory=lambda: list[FileCandidate]()
    )
    manifest: list[FileCandidate] = Field(
        default_factory=lambda: list[FileCandidate]()
    )
    doc: list[FileCandidate] = Field(
        default_factory=lambda: list[FileCandidate]()
    )
    ignored: list[FileCandidate] = Field(
        default_factory=lambda: list[FileCandidate]()
    )
