"""Repository ingestion: locate, list, classify, fetch."""

from stackscore.ingestion.classifier import classify_files
from stackscore.ingestion.github_client import GitHubClient
from stackscore.ingestion.locator import parse_repo_url
from stackscore.ingestion.schemas import (
    ClassifiedFiles,
    FileCandidate,
    RepoInfo,
    RepoLocator,
    RepoTree,
    TreeEntry,
)

__all__ = [
    "ClassifiedFiles",
    "FileCandidate",
    "GitHubClient",
    "RepoInfo",
    "RepoLocator",
    "RepoTree",
    "TreeEntry",
    "classify_files",
    "parse_repo_url",
]
