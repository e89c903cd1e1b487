"""
Logging Tests
-------------
Tests for match_id propagation and the structured formatter.
"""

import asyncio
import json
import logging

import pytest

from cmdmatch.infra.logging import (
    JSONFormatter, MatchContext, MatchIdFilter, configure_logging,
    get_log_file_path, get_logger, get_match_id, reset_logging,
)


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


class TestMatchContext:
    """match_id scoping."""

    def test_sets_and_restores(self):
        """The id is visible inside the block only."""
        assert get_match_id() is None
        with MatchContext() as match_id:
            assert match_id.startswith("match_")
            assert get_match_id() == match_id
        assert get_match_id() is None

    def test_explicit_id(self):
        """A given id is used as-is."""
        with MatchContext("match_fixed"):
            assert get_match_id() == "match_fixed"

    def test_nested(self):
        """Inner contexts restore the outer id."""
        with MatchContext("outer"):
            with MatchContext("inner"):
                assert get_match_id() == "inner"
            assert get_match_id() == "outer"

    @pytest.mark.asyncio
    async def test_concurrent_tasks_isolated(self):
        """Tasks on one loop don't see each other's id."""
        async def worker(name):
            with MatchContext(name):
                await asyncio.sleep(0)
                return get_match_id()

        assert await asyncio.gather(worker("a"), worker("b")) == ["a", "b"]


class TestFilterAndFormatter:
    """Record enrichment."""

    def make_record(self, **extra):
        record = logging.LogRecord("cmdmatch.test", logging.INFO, __file__, 1, "hello", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_filter_adds_match_id(self):
        """Records get the current match_id, or '-'."""
        record = self.make_record()
        MatchIdFilter().filter(record)
        assert record.match_id == "-"

        with MatchContext("match_abc"):
            record = self.make_record()
            MatchIdFilter().filter(record)
        assert record.match_id == "match_abc"

    def test_json_formatter(self):
        """Known extra fields are included."""
        record = self.make_record(match_id="match_1", command_id=3, error_category="UNKNOWN_OPTION")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["match_id"] == "match_1"
        assert entry["command_id"] == 3
        assert entry["error_category"] == "UNKNOWN_OPTION"
        assert "field" not in entry


class TestConfiguration:
    """Logger setup."""

    def test_get_logger_namespaced(self):
        """Names get the package prefix once."""
        assert get_logger("commands.matcher").name == "cmdmatch.commands.matcher"
        assert get_logger("cmdmatch.infra").name == "cmdmatch.infra"

    def test_not_configured_on_import(self):
        """The library installs no handlers by itself."""
        assert logging.getLogger("cmdmatch").handlers == []

    def test_configure_is_idempotent(self):
        """A second call adds nothing."""
        configure_logging(level=logging.DEBUG)
        configure_logging(level=logging.DEBUG)
        assert len(logging.getLogger("cmdmatch").handlers) == 1

    def test_file_logging(self, tmp_path):
        """File output is JSON lines carrying the match_id."""
        configure_logging(level=logging.DEBUG, log_dir=str(tmp_path), console=False, file=True)
        with MatchContext("match_file"):
            get_logger("test").info("written", extra={"command_id": 7})

        for handler in logging.getLogger("cmdmatch").handlers:
            handler.flush()

        path = get_log_file_path()
        assert path == tmp_path / "cmdmatch.log"
        entry = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["match_id"] == "match_file"
        assert entry["command_id"] == 7

    @pytest.mark.asyncio
    async def test_find_logs_under_one_match_id(self, registry, caplog):
        """Every record from one lookup shares a match_id."""
        registry.add("foo", ["<a:number>", "<a>"])
        handler_filter = MatchIdFilter()
        caplog.handler.addFilter(handler_filter)
        try:
            with caplog.at_level(logging.DEBUG, logger="cmdmatch"):
                await registry.find_matching_command("!foo x")
        finally:
            caplog.handler.removeFilter(handler_filter)

        ids = {r.match_id for r in caplog.records if r.name == "cmdmatch.commands.matcher"}
        assert len(ids) == 1
        assert ids.pop().startswith("match_")
