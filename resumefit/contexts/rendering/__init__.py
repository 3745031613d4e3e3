"""
Rendering Context

Responsibilities:
- Sends the final LaTeX (and its class file) to the remote compile service
- Follows the service's redirect to the produced document
- Validates that a PDF came back and extracts diagnostics when it did not

Owns: Remote LaTeX compilation, compiler log diagnostics
Never: Modifies template content
"""

from resumefit.contexts.rendering.compiler import (
    CompilationResult,
    compile_remote,
    pdf_filename,
)

__all__ = ["CompilationResult", "compile_remote", "pdf_filename"]
