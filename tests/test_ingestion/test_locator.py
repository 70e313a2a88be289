"""Tests for repository URL parsing."""

import pytest

from stackscore.errors import (
    AnalysisError,
    InvalidRepository,
    RecoverableError,
)
from stackscore.ingestion.locator import parse_repo_url


class TestParseRepoUrl:
    def test_https_url(self) -> None:
        loc = parse_repo_url("https://github.com/acme/demo")
        assert (loc.owner, loc.name) == ("acme", "demo")
        assert loc.slug == "acme/demo"

    def test_trailing_git_suffix_stripped(self) -> None:
        loc = parse_repo_url("https://github.com/acme/demo.git")
        assert loc.name == "demo"

    def test_extra_segments_ignored(self) -> None:
        loc = parse_repo_url("https://github.com/acme/demo/tree/main/src")
        assert loc.slug == "acme/demo"

    def test_trailing_slash_and_whitespace(self) -> None:
        loc = parse_repo_url("  https://github.com/acme/demo/  ")
        assert loc.slug == "acme/demo"

    def test_bare_owner_name(self) -> None:
        assert parse_repo_url("acme/demo").slug == "acme/demo"

    def test_host_without_scheme(self) -> None:
        assert parse_repo_url("github.com/acme/demo").slug == "acme/demo"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "https://gitlab.com/acme/demo",
            "ftp://github.com/acme/demo",
            "https://github.com/acme",
            "acme",
            "https://github.com/acme/de mo",
        ],
    )
    def test_malformed_raises(self, url: str) -> None:
        with pytest.raises(InvalidRepository):
            parse_repo_url(url)

    def test_invalid_repository_is_fatal(self) -> None:
        with pytest.raises(InvalidRepository) as exc_info:
            parse_repo_url("not a url")
        assert isinstance(exc_info.value, AnalysisError)
        assert not isinstance(exc_info.value, RecoverableError)
