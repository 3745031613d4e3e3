"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from resumefit.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, compile_url: str) -> Path:
    """
    Setup logger for rendering context.

    Args:
        log_dir: Directory for this rendering session
        compile_url: Remote compile endpoint (for provenance)

    Returns:
        Path to log file

    Example:
        from resumefit.contexts.rendering.logger import setup_rendering_logger

        log_file = setup_rendering_logger(log_dir, settings.compile_url)
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Compile service": compile_url},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_compilation_start(main_filename: str, files: list, url: str) -> None:
    """Log start of a remote compilation."""
    _log_info(f"Compiling {main_filename} via {url}")
    for name, content in files:
        _log_debug(f"  {name}: {len(content)} chars")


def log_compilation_result(result, elapsed_time: float, verbose: bool = False) -> None:
    """
    Log compilation result with diagnostics.

    Args:
        result: CompilationResult from compile_remote()
        elapsed_time: Time taken to compile (including the redirect)
        verbose: Show more warnings/errors (default: False)
    """
    if result.success:
        pages = f", {result.page_count} page(s)" if result.page_count is not None else ""
        _log_success(
            f"Compilation succeeded: {len(result.pdf_bytes)} bytes{pages} ({elapsed_time:.2f}s)"
        )
    else:
        _log_error(f"Compilation failed: {len(result.errors)} errors ({elapsed_time:.2f}s)")
        error_limit = 10 if verbose else 5
        for i, err in enumerate(result.errors[:error_limit], 1):
            _log_error(f"  Error {i}: {err}")
        if len(result.errors) > error_limit:
            _log_error(f"  ... and {len(result.errors) - error_limit} more errors")

    if result.warnings:
        _log_warning(f"{len(result.warnings)} warnings detected")
        warning_limit = 10 if verbose else 3
        for i, warn in enumerate(result.warnings[:warning_limit], 1):
            _log_debug(f"  Warning {i}: {warn}")
        if len(result.warnings) > warning_limit:
            _log_debug(f"  ... and {len(result.warnings) - warning_limit} more warnings")

    # Full compiler log on failure, verbatim
    if verbose or not result.success:
        if result.log:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nCOMPILER LOG:\n{'=' * 80}\n{result.log}\n"
            )
