"""Tests for Settings parsing and engine creation."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from stackscore.config import create_app_engine
from tests.conftest import make_settings


class TestSkipDirectories:
    def test_comma_separated_string(self) -> None:
        s = make_settings(skip_directories="vendor, target ,,docs")
        assert s.skip_directories == ["vendor", "target", "docs"]

    def test_list_passthrough(self) -> None:
        s = make_settings(skip_directories=["a", "b"])
        assert s.skip_directories == ["a", "b"]

    def test_defaults_include_vendor(self) -> None:
        assert "vendor" in make_settings().skip_directories


class TestAuthTokens:
    def test_pairs_parsed(self) -> None:
        s = make_settings(auth_tokens="tok-a=alice, tok-b=bob")
        assert s.auth_tokens == {"tok-a": "alice", "tok-b": "bob"}

    def test_empty_string(self) -> None:
        assert make_settings(auth_tokens="").auth_tokens == {}

    def test_malformed_entry_skipped_and_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="stackscore.config"):
            s = make_settings(auth_tokens="tok-a=alice,broken")
        assert s.auth_tokens == {"tok-a": "alice"}
        assert "auth_token_malformed" in caplog.text
        # Token values never reach the log
        assert "broken" not in caplog.text


class TestPositiveIntegers:
    @pytest.mark.parametrize(
        "field",
        [
            "review_batch_size",
            "review_max_attempts",
            "review_content_chars",
            "max_file_size_bytes",
        ],
    )
    def test_zero_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError, match="positive"):
            make_settings(**{field: 0})

    def test_review_defaults(self) -> None:
        s = make_settings()
        assert s.review_batch_size == 10
        assert s.review_max_attempts == 3
        assert s.review_content_chars == 3000
        assert s.reviewer_temperature == 0.1
        assert s.reviewer_max_tokens == 800


class TestCreateAppEngine:
    async def test_url_conversion_creates_parent(
        self, tmp_path: Path
    ) -> None:
        db_file = tmp_path / "nested" / "test.db"
        engine = create_app_engine(f"sqlite:///{db_file}")
        assert "aiosqlite" in str(engine.url)
        assert db_file.parent.is_dir()
        await engine.dispose()

    async def test_wal_mode_set_on_connect(self, tmp_path: Path) -> None:
        from sqlalchemy import text

        engine = create_app_engine(f"sqlite:///{tmp_path / 'wal.db'}")
        async with engine.connect() as conn:
            row = await conn.execute(text("PRAGMA journal_mode"))
            mode = row.scalar()
        await engine.dispose()
        assert mode == "wal"

    async def test_memory_url_passthrough(self) -> None:
        engine = create_app_engine("sqlite+aiosqlite:///:memory:")
        assert str(engine.url) == "sqlite+aiosqlite:///:memory:"
        await engine.dispose()
