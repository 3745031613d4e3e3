"""
Loguru setup shared by every context.

Each session gets its own directory with a DEBUG log file, mirrored to stdout
at LOG_LEVEL (default INFO). Every log starts with a provenance header naming
the command, the resumefit version and the configuration a tailoring run read,
so a log can be matched to the settings that produced it.

Context-specific wrappers live in contexts/{context}/logger.py.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from loguru import logger

from resumefit import __version__

load_dotenv()

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

# Settings that change what a run does; recorded when set
PROVENANCE_ENV_VARS = ("RESUMEFIT_CONFIG", "RESUMEFIT_DATA", "LLM_PROVIDER", "COMPILE_URL")


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[Dict[str, Any]] = None,
) -> Path:
    """
    Route loguru to <log_dir>/<context_name>.log and stdout, then log provenance.

    Args:
        context_name: Session identifier ("target", "render", "template")
        log_dir: Directory for this logging session (created if missing)
        extra_provenance: Context-specific header fields (provider, compile URL, ...)

    Returns:
        Path to log file

    Example:
        log_file = setup_logger(
            context_name="target",
            log_dir=Path("outs/logs/tailor_20261019_123456"),
            extra_provenance={"LLM provider": "gemini:default"},
        )
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    logger.level("WARNING", color="<yellow>")

    # File keeps everything, including raw model replies and compiler logs
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        colorize=True,
    )

    log_provenance(context_name, extra_provenance)
    return log_file


def log_provenance(context_name: str, extra_context: Optional[Dict[str, Any]] = None) -> None:
    """Log the provenance header: command, versions, run settings, then extra_context."""
    logger.info("=" * 80)
    logger.info(f"resumefit {__version__} [{context_name}]")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")

    for name in PROVENANCE_ENV_VARS:
        value = os.getenv(name)
        if value:
            logger.info(f"{name}: {value}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)
