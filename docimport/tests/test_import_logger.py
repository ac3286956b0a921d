"""Tests for docimport.core.import_logger module.

Tests:
- Logger naming under the docimport tree
- Structured key=value formatting
- Per-import log files, including overlapping imports
- get_logger caching and reset
"""

import asyncio
import logging

import pytest

from docimport.core.import_logger import ROOT_LOGGER_NAME, ImportLogger, _format_data, get_logger, reset_loggers


class TestImportLogger:
    """Tests for ImportLogger."""

    def test_name_nested_under_root(self):
        assert ImportLogger("workout-import").logger.name == "docimport.workout-import"
        assert ImportLogger("docimport.core.x").logger.name == "docimport.core.x"
        assert ImportLogger().logger.name == ROOT_LOGGER_NAME

    def test_single_console_handler(self):
        ImportLogger("a")
        ImportLogger("b")
        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1

    def test_structured_data_in_message(self, caplog):
        logger = ImportLogger("body-measurements-import")
        logger.info("Saved", user_id="u1", count=3)
        assert "Saved | user_id=u1, count=3" in caplog.text

    def test_error_includes_exception(self, caplog):
        ImportLogger("x").error("Import failed", exc=ValueError("bad file"), request_id="r1")
        assert "Import failed | request_id=r1 | ValueError: bad file" in caplog.text

    def test_verbose_toggles_console_level(self):
        logger = ImportLogger("x")
        logger.set_verbose(True)
        [handler] = logging.getLogger(ROOT_LOGGER_NAME).handlers
        assert handler.level == logging.DEBUG
        logger.set_verbose(False)
        assert handler.level == logging.INFO

    def test_import_log_file(self, tmp_path):
        logger = ImportLogger("body", log_dir=tmp_path)
        run = logger.start_import("inbody_march.pdf", request_id="r1")
        logger.warning("Invalid date found: march")
        logger.end_import(run, success=True, stats={"imported": 2})

        [log_file] = tmp_path.glob("inbody_march_*.log")
        assert log_file == run.log_file
        text = log_file.read_text(encoding="utf-8")
        assert f"Starting import: inbody_march.pdf | run_id={run.run_id}, request_id=r1" in text
        assert "WARN: Invalid date found: march" in text
        assert "imported: 2" in text
        assert "Import COMPLETE" in text
        assert run.handler is None
        assert logger.logger.handlers == []

    def test_failed_import_status(self, caplog):
        logger = ImportLogger("body")
        run = logger.start_import("scan.pdf")
        logger.end_import(run, success=False)
        assert "Import FAILED [" in caplog.text

    @pytest.mark.asyncio
    async def test_overlapping_runs_keep_separate_files(self, tmp_path):
        logger = ImportLogger("body", log_dir=tmp_path)

        async def one_import(source, delay):
            run = logger.start_import(source)
            await asyncio.sleep(delay)
            logger.info(f"parsed {source}")
            logger.end_import(run)
            return run

        first, second = await asyncio.gather(one_import("a.pdf", 0.05), one_import("b.pdf", 0.01))

        assert logger.logger.handlers == []
        assert first.log_file != second.log_file
        first_text = first.log_file.read_text(encoding="utf-8")
        second_text = second.log_file.read_text(encoding="utf-8")
        assert "parsed a.pdf" in first_text and "b.pdf" not in first_text
        assert "parsed b.pdf" in second_text and "a.pdf" not in second_text


class TestFormatData:
    """Tests for _format_data."""

    def test_long_values_truncated(self):
        formatted = _format_data({"text": "x" * 80, "items": list(range(10)), "n": 1})
        assert formatted == f"text={'x' * 47}..., items=[10 items], n=1"


class TestGetLogger:
    """Tests for get_logger and reset_loggers."""

    def test_cached(self):
        assert get_logger("workflow") is get_logger("workflow")

    def test_late_verbose_and_log_dir(self, tmp_path):
        logger = get_logger("workflow")
        get_logger("workflow", verbose=True, log_dir=tmp_path)
        assert logger.verbose
        assert logger._log_dir == tmp_path

    def test_reset(self):
        first = get_logger("workflow")
        reset_loggers()
        assert get_logger("workflow") is not first
