"""
Remote LaTeX Compilation Module

Compiles a document through a texlive.net style CGI endpoint: the main .tex file
(and optionally its .cls) is POSTed as filename[]/filecontents[] pairs, the
service answers with a redirect to the produced file, and the body is either a
PDF or the compiler log.
"""

import re
import time
from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import requests
from PyPDF2 import PdfReader

from resumefit.config import PipelineSettings
from resumefit.contexts.rendering.logger import (
    _log_debug,
    log_compilation_result,
    log_compilation_start,
)
from resumefit.exceptions import CompilationError
from resumefit.utils.text_processing import snippet_around

PDF_MAGIC = b"%PDF"
REDIRECT_STATUSES = (301, 302, 303, 307)


@dataclass
class CompilationResult:
    """
    Result of a remote LaTeX compilation.

    Attributes:
        success: Whether the service returned a PDF
        pdf_bytes: The PDF (empty if failed)
        log: Compiler log text (empty on success)
        errors: List of parsed LaTeX errors
        warnings: List of parsed LaTeX warnings
        page_count: Number of pages in generated PDF (None if not available)
    """

    success: bool
    pdf_bytes: bytes = b""
    log: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    page_count: Optional[int] = None


def _parse_latex_log(log_content: str) -> Tuple[List[str], List[str]]:
    """
    Parse LaTeX log for errors and warnings.

    Args:
        log_content: Compiler log text

    Returns:
        Tuple of (errors, warnings)
    """
    errors = []
    warnings = []

    # LaTeX error pattern: "! Error message"
    error_pattern = re.compile(r"^! (.+)$", re.MULTILINE)
    for match in error_pattern.finditer(log_content):
        errors.append(match.group(1).strip())

    # Additional error patterns that don't start with "!"
    additional_error_patterns = [
        r"Undefined control sequence",
        r"File ended while scanning use of",
        r"Emergency stop",
    ]
    for pattern in additional_error_patterns:
        match = re.search(rf"({pattern}.*?)$", log_content, re.MULTILINE)
        if match and match.group(1) not in errors:
            errors.append(match.group(1))

    warning_patterns = [
        r"LaTeX Warning: (.+)",
        r"Package \w+ Warning: (.+)",
        r"Overfull \\hbox \((.+)\)",
        r"Underfull \\hbox \((.+)\)",
    ]
    for pattern in warning_patterns:
        for match in re.finditer(pattern, log_content, re.MULTILINE):
            warnings.append(match.group(1).strip())

    return errors, warnings


def page_count(pdf_bytes: bytes) -> Optional[int]:
    """Get page count from PDF bytes, or None if unreadable."""
    try:
        return len(PdfReader(BytesIO(pdf_bytes)).pages)
    except Exception:
        return None


def pdf_filename(owner_name: str, company: str) -> str:
    """
    Download name of a tailored résumé.

    Example:
        >>> pdf_filename("Jane Doe", "Acme  Robotics")
        'Jane_Doe_Acme_Robotics.pdf'
    """
    parts = [
        re.sub(r"\s+", "_", part.strip()) for part in (owner_name, company) if part and part.strip()
    ]
    return "_".join(parts or ["Resume"]) + ".pdf"


def _first_error(log: str) -> Tuple[Optional[str], Optional[str]]:
    """(first '!' error line, bounded snippet around it); snippet of the tail if no marker."""
    match = re.search(r"^!.*$", log, re.MULTILINE)
    if match:
        return match.group(0).strip(), snippet_around(log, match.start())
    if not log.strip():
        return None, None
    tail = log.rstrip().splitlines()[-8:]
    return None, "\n".join(tail)


def compile_remote(
    tex: str,
    settings: PipelineSettings,
    cls_content: str = "",
    class_filename: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> CompilationResult:
    """
    Compile tex through the remote service and return the PDF.

    Args:
        tex: Final LaTeX document
        settings: Supplies compile_url, engine, main/class filenames and timeout
        cls_content: Optional class file uploaded next to the document
        class_filename: Name the class file is uploaded under (must match
            \\documentclass); defaults to settings.default_class_filename
        session: requests session (injected by tests)

    Returns:
        CompilationResult with success=True and the PDF bytes

    Raises:
        CompilationError: If the service is unreachable or returns a log instead
            of a PDF. The full log is logged at debug level; the error carries
            the first '!' line and a bounded snippet.
    """
    session = session or requests.Session()

    files = [(settings.main_filename, tex)]
    if cls_content:
        files.append((class_filename or settings.default_class_filename, cls_content))

    # Repeated multipart fields, in filename/filecontents order
    multipart = []
    for name, content in files:
        multipart.append(("filename[]", (None, name)))
        multipart.append(("filecontents[]", (name, content.encode("utf-8"), "text/plain")))
    multipart.append(("engine", (None, settings.engine)))
    multipart.append(("return", (None, "pdf")))

    log_compilation_start(settings.main_filename, files, settings.compile_url)
    start_time = time.time()

    try:
        response = session.post(
            settings.compile_url,
            files=multipart,
            allow_redirects=False,
            timeout=settings.compile_timeout_s,
        )
        if response.status_code in REDIRECT_STATUSES:
            location = response.headers.get("Location")
            if not location:
                raise CompilationError("Compile service redirected without a Location header")
            target = urljoin(settings.compile_url, location)
            _log_debug(f"Following redirect to {target}")
            response = session.get(target, timeout=settings.compile_timeout_s)
    except requests.RequestException as e:
        raise CompilationError(f"Compile service unreachable: {e}") from e

    body = response.content or b""
    elapsed = time.time() - start_time

    if body[:4] == PDF_MAGIC:
        result = CompilationResult(success=True, pdf_bytes=body, page_count=page_count(body))
        log_compilation_result(result, elapsed)
        return result

    log = body.decode("utf-8", errors="replace")
    errors, warnings = _parse_latex_log(log)
    result = CompilationResult(success=False, log=log, errors=errors, warnings=warnings)
    log_compilation_result(result, elapsed)

    first_error, snippet = _first_error(log)
    raise CompilationError(
        "LaTeX compile failed", log=log, first_error=first_error, snippet=snippet
    )
