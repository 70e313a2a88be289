"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON, SQL,
HTTP payloads) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class AnalysisStatus(StrEnum):
    """Analysis record lifecycle status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class FileKind(StrEnum):
    """Classification tag assigned to every tree entry."""

    CODE = "code"
    MANIFEST = "manifest"
    DOC = "doc"
    IGNORED = "ignored"


class TagCategory(StrEnum):
    """Which TechStackProfile set a detection rule feeds."""

    FRAMEWORK = "framework"
    TOOL = "tool"
    ARCHITECTURE = "architecture"


class ReviewState(StrEnum):
    """States of the per-file validate-then-retry loop."""

    ATTEMPTING = "attempting"
    VALID = "valid"
    EXHAUSTED = "exhausted"


# ── Review Contract ──────────────────────────────────────

REVIEW_BATCH_SIZE = 10
REVIEW_MAX_ATTEMPTS = 3
REVIEW_CONTENT_CHARS = 3000
REVIEW_DEFAULT_SCORE = 7
SCORE_MIN = 1
SCORE_MAX = 10

SCORE_MARKER = "SCORE:"
PURPOSE_HEADER = "FILE PURPOSE:"
QUALITY_HEADER = "CODE QUALITY REVIEW:"
ARCHITECTURE_HEADER = "ARCHITECTURE ANALYSIS:"
SECURITY_HEADER = "SECURITY REVIEW:"
DEBT_HEADER = "TECHNICAL DEBT ASSESSMENT:"
RECOMMENDATIONS_HEADER = "TOP 5 ACTIONABLE RECOMMENDATIONS:"

# Contract order of the reviewer's headers
SECTION_HEADERS: tuple[str, ...] = (
    SCORE_MARKER,
    PURPOSE_HEADER,
    QUALITY_HEADER,
    ARCHITECTURE_HEADER,
    SECURITY_HEADER,
    DEBT_HEADER,
    RECOMMENDATIONS_HEADER,
)

FORBIDDEN_MARKUP_CHARS = frozenset("*#_-")

# ── Scoring ──────────────────────────────────────────────

ARCHITECTURE_BONUS_PER_PATTERN = 0.5
ARCHITECTURE_BONUS_CAP = 2.0
FRAMEWORK_BONUS_PER_FRAMEWORK = 0.2
FRAMEWORK_BONUS_CAP = 1.0
SECURITY_PENALTY_PER_FILE = 0.3
SECURITY_PENALTY_CAP = 2.0

MAX_SUGGESTIONS = 20
SUGGESTION_SLICES = (10, 5, 5)  # recommendations, quality, security

# ── File Classification ──────────────────────────────────

MAX_FILE_SIZE_BYTES = 100_000

CODE_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".cpp", ".c",
    ".cs", ".php", ".rb", ".go", ".rs", ".kt", ".swift", ".vue",
    ".svelte", ".dart", ".scala", ".clj", ".hs", ".ml", ".r", ".sql",
})

CONFIG_EXTENSIONS = frozenset({
    ".json", ".yml", ".yaml", ".toml", ".xml", ".ini", ".env",
    ".config",
})

DOC_EXTENSIONS = frozenset({".md", ".txt", ".rst"})

MANIFEST_FILENAMES = frozenset({
    "package.json",
    "composer.json",
    "Dockerfile",
    "requirements.txt",
    "pom.xml",
    "build.gradle",
    "Cargo.toml",
    "go.mod",
    "pyproject.toml",
    "Gemfile",
})

# Directory segments that always exclude a path
EXCLUDED_SEGMENTS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
)

UNKNOWN_EXTENSION = "unknown"

# ── GitHub ───────────────────────────────────────────────

GITHUB_HOSTS = frozenset({"github.com", "www.github.com"})
GITHUB_API_VERSION = "2022-11-28"

# ── Circuit Breaker / Transport Retry ────────────────────

CB_LLM_FAILURE_THRESHOLD = 5
CB_LLM_RECOVERY_TIMEOUT = 30

TRANSPORT_RETRY_ATTEMPTS = 3
TRANSPORT_RETRY_INITIAL_WAIT = 1
TRANSPORT_RETRY_MAX_WAIT = 8

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200

# ── Auth Exempt Paths ────────────────────────────────────

AUTH_EXEMPT_PATHS = frozenset({
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
})

OWNER_ID_HEX_LENGTH = 32
STALE_PENDING_ERROR = "Analysis interrupted before completion"

# ── Summary Text ─────────────────────────────────────────

NO_FILES_SUMMARY = (
    "Repository analyzed but no supported source files found."
)
NO_FILES_SUGGESTION = (
    "Add supported file types and frameworks to improve analysis"
)
