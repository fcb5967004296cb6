"""
Error taxonomy for ClauseCloud.

Every error carries the HTTP status it maps to; the API layer turns them into
``{"error": message}`` bodies.
"""


class ClauseCloudError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ClauseCloudError):
    """Missing or malformed request fields."""

    status_code = 400


class UploadTooLargeError(ValidationError):
    """Upload exceeds the configured size limit."""

    status_code = 413


class NotFoundError(ClauseCloudError):
    """Referenced identifier does not exist."""

    status_code = 404


class ExtractionError(ClauseCloudError):
    """Uploaded content could not be turned into text."""

    status_code = 400


class UpstreamModelError(ClauseCloudError):
    """The completion call failed or its output could not be used."""

    status_code = 500


class AnalysisError(UpstreamModelError):
    def __init__(self, message: str = "Failed to analyze contract"):
        super().__init__(message)


class ComparisonError(UpstreamModelError):
    def __init__(self, message: str = "Failed to generate comparison"):
        super().__init__(message)


class ChatError(UpstreamModelError):
    def __init__(self, message: str = "Failed to get response from the model"):
        super().__init__(message)


class PortfolioQueryError(UpstreamModelError):
    def __init__(self, message: str = "Failed to answer portfolio query"):
        super().__init__(message)
