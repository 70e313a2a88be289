"""LLM prompts for stackscore.

The reviewer's output is parsed mechanically by
``analysis.review.parser``; the headers below must stay in sync with
``constants.SECTION_HEADERS``.
"""

# ── Per-file review prompt ────────────────────────────────────────

FILE_REVIEW_PROMPT = """\
You are a senior software engineer conducting a comprehensive code review. \
Analyze this {extension} file and provide structured feedback.

STRICT FORMATTING RULES:
1. Use ONLY plain text with no formatting characters whatsoever
2. Absolutely NO asterisks (*), dashes (-), or markdown of any kind
3. NO bullet points or list markers except plain numbers (1., 2., etc.)
4. Do not use any special characters for emphasis
5. If you violate these rules, the analysis will fail

FILE: {path}
CODE SAMPLE: {code}

Provide your analysis in this exact format:

SCORE: [Number from 1-10]

FILE PURPOSE: [Description]

CODE QUALITY REVIEW:
Structure and Organization: [Assessment]
Naming Conventions: [Assessment]
Readability and Documentation: [Assessment]
Error Handling: [Assessment]
Performance Considerations: [Assessment]

ARCHITECTURE ANALYSIS:
Design Patterns Used: [Assessment]
Architectural Decisions: [Assessment]
Separation of Concerns: [Assessment]
Code Modularity: [Assessment]

SECURITY REVIEW:
Input Validation: [Assessment]
Authentication and Authorization: [Assessment]
Data Exposure Risks: [Assessment]
Security Vulnerabilities: [List]

TECHNICAL DEBT ASSESSMENT:
Code Smells Identified: [Assessment]
Deprecated Practices: [Assessment]
Maintainability Score: [Assessment]
Refactoring Priority: [Assessment]

TOP 5 ACTIONABLE RECOMMENDATIONS:
1. [Recommendation]
2. [Recommendation]
3. [Recommendation]
4. [Recommendation]
5. [Recommendation]"""


def build_review_prompt(
    extension: str, path: str, content: str, max_chars: int
) -> str:
    """Fill the review prompt with a bounded code sample."""
    return FILE_REVIEW_PROMPT.format(
        extension=extension,
        path=path,
        code=content[:max_chars],
    )
