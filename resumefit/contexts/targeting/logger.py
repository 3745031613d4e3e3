"""
Targeting context logger.

Provides logging interface for targeting context with automatic [target] prefix.
All targeting modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from resumefit.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[target]"


def setup_targeting_logger(log_dir: Path, provider_name: str) -> Path:
    """
    Setup logger for targeting context.

    Args:
        log_dir: Directory for this session
        provider_name: LLM provider/model used for the passes

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="target",
        log_dir=log_dir,
        extra_provenance={"LLM provider": provider_name},
    )


# Wrapper functions with automatic [target] prefix


def _log_info(message: str) -> None:
    """Log info message with [target] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [target] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [target] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [target] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [target] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level targeting-specific logging helpers


def log_model_reply(pass_name: str, response) -> None:
    """
    Log a model reply: token usage at debug level, raw text verbatim.

    Args:
        pass_name: 'keywords', 'bullets' or 'skills'
        response: LLMResponse
    """
    _log_debug(
        f"{pass_name} pass: {response.model} "
        f"({response.input_tokens} in / {response.output_tokens} out tokens)"
    )
    # Raw output keeps the reply's own line breaks in the log file
    logger.opt(raw=True).debug(
        f"\n{'=' * 80}\nMODEL REPLY ({pass_name}):\n{'=' * 80}\n{response.content}\n"
    )


def log_unparseable_reply(raw: str) -> None:
    """Log a reply that no recovery strategy could parse."""
    _log_warning("Model reply could not be parsed; continuing with no operations")
    logger.opt(raw=True).debug(f"\n{'=' * 80}\nUNPARSEABLE REPLY:\n{'=' * 80}\n{raw}\n")


def log_ops_applied(applied: int, skipped: int) -> None:
    """Log the outcome of one apply_operations() batch."""
    if skipped:
        _log_warning(f"Applied {applied} operation(s), skipped {skipped}")
    else:
        _log_info(f"Applied {applied} operation(s)")


def log_policy_reverts(section: str, reverted: list) -> None:
    """Log bullets reverted by the post-hoc bullet policy."""
    if reverted:
        _log_info(f"Policy reverted bullet(s) {reverted} in '{section}'")
