"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
All templating modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from resumefit.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[template]"


def setup_templating_logger(log_dir: Path, template_name: str = "") -> Path:
    """
    Setup logger for templating context.

    Args:
        log_dir: Directory for this session
        template_name: Category/template being inspected (for provenance)

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="template",
        log_dir=log_dir,
        extra_provenance={"Template": template_name or "(unnamed)"},
    )


# Wrapper functions with automatic [template] prefix


def _log_info(message: str) -> None:
    """Log info message with [template] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [template] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [template] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [template] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level templating-specific logging helpers


def log_sections_found(sections, skill_labels) -> None:
    """Log the editable regions located in a template."""
    _log_info(f"Found {len(sections)} rewriteable sections, {len(skill_labels)} skill lines")
    for section in sections:
        _log_debug(f"  {section.kind}: {section.name} ({len(section.bullets)} bullets)")
    for label in skill_labels:
        _log_debug(f"  skills: {label}")


def log_injection(num_projects: int, injection_point: str) -> None:
    """Log where project blocks were spliced."""
    if num_projects:
        _log_info(f"Injected {num_projects} project(s) at {injection_point}")
    else:
        _log_debug(f"No projects selected; cleared {injection_point}")


def log_repairs(repairs: dict) -> None:
    """Log the count of each deterministic repair applied."""
    applied = {name: count for name, count in repairs.items() if count}
    if not applied:
        _log_debug("No LaTeX repairs needed")
        return
    summary = ", ".join(f"{name}={count}" for name, count in applied.items())
    _log_info(f"Applied LaTeX repairs: {summary}")
