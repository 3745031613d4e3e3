"""Exceptions raised by the tailoring pipeline."""

from typing import Optional


class ResumeFitError(Exception):
    """Base class for every failure that aborts a tailoring request."""

    pass


class ConfigurationError(ResumeFitError):
    """
    Raised before any network call when the request cannot be served.

    Missing API key, unknown category, or a category without a LaTeX template.
    """

    pass


class ModelRequestError(ResumeFitError):
    """
    Exception raised when the model API answers with a non-success status.

    Attributes:
        message: Error description
        status: HTTP status code (None when the provider SDK hides it)
        pass_name: Model pass that failed ('keywords', 'bullets' or 'skills')
        body: Response body excerpt
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        pass_name: Optional[str] = None,
        body: Optional[str] = None,
    ):
        self.message = message
        self.status = status
        self.pass_name = pass_name
        self.body = body

        parts = [message]
        if status is not None:
            parts.append(f"(HTTP {status})")
        if pass_name:
            parts.append(f"during {pass_name} pass")

        super().__init__(" ".join(parts))


class CompilationError(ResumeFitError):
    """
    Exception raised when the compile service returns a log instead of a PDF.

    Attributes:
        message: Error description
        log: Full compiler log (logged at debug level, never shown whole)
        first_error: First '!' error line of the log, if any
        snippet: Bounded window of the log around the first error
    """

    def __init__(
        self,
        message: str,
        log: str = "",
        first_error: Optional[str] = None,
        snippet: Optional[str] = None,
    ):
        self.message = message
        self.log = log
        self.first_error = first_error
        self.snippet = snippet

        parts = [message]
        if first_error:
            parts.append(f"\nFirst error: {first_error}")
        if snippet:
            parts.append(f"\nLog excerpt:\n{snippet}")

        super().__init__("\n".join(parts))
