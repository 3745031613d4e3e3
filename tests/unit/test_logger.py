"""
Unit tests for the shared loguru setup (resumefit.utils.logger).
"""

import sys

import pytest
from loguru import logger

from resumefit import __version__
from resumefit.contexts.targeting.logger import _log_debug, setup_targeting_logger


@pytest.fixture
def restore_loguru():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.mark.unit
class TestSetupLogger:
    def test_provenance_header(self, tmp_path, monkeypatch, restore_loguru):
        monkeypatch.setenv("RESUMEFIT_DATA", "/data/resumefit.json")
        monkeypatch.delenv("COMPILE_URL", raising=False)

        log_file = setup_targeting_logger(tmp_path / "run", "gemini:default")

        assert log_file == tmp_path / "run" / "target.log"
        text = log_file.read_text(encoding="utf-8")
        assert f"resumefit {__version__} [target]" in text
        assert "RESUMEFIT_DATA: /data/resumefit.json" in text
        assert "COMPILE_URL" not in text
        assert "LLM provider: gemini:default" in text

    def test_file_keeps_debug_with_context_prefix(self, tmp_path, restore_loguru):
        log_file = setup_targeting_logger(tmp_path, "fake")
        _log_debug("raw reply follows")

        assert "| DEBUG   | [target] raw reply follows" in log_file.read_text(encoding="utf-8")
