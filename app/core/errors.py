"""Error taxonomy shared by every pipeline stage.

Each error carries two messages: ``log`` is written to the server log and may
contain upstream details, ``message`` is the short text returned to the
client. The HTTP status is a class attribute so the API layer can map any
subclass without knowing about it.
"""


class QuoteServiceError(Exception):
    """Base class for errors that end a request with a JSON error body."""

    status_code = 500
    default_message = "Something went wrong finding your movie quotes"

    def __init__(self, log: str, message: str | None = None):
        self.log = log
        self.message = message or self.default_message
        super().__init__(log)


class InvalidRequestError(QuoteServiceError):
    """Malformed or missing request input."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(QuoteServiceError):
    """No matching data was found."""

    status_code = 404
    default_message = "No matching movie quotes found"


class ServiceUnavailableError(QuoteServiceError):
    """An upstream service is unreachable or not configured."""

    status_code = 503
    default_message = "A required service is temporarily unavailable"


class UpstreamError(QuoteServiceError):
    """An upstream service returned something we could not use."""

    status_code = 500


class EmbeddingError(UpstreamError):
    """Embedding request failed or returned malformed data."""

    default_message = "Error analyzing your request"


class EmbeddingUnavailableError(ServiceUnavailableError):
    """Embedding API unreachable, rate limited or missing credentials."""


class VectorStoreError(UpstreamError):
    """Vector index returned an error."""

    default_message = "Error searching movie quotes"


class VectorStoreUnavailableError(ServiceUnavailableError):
    """Vector index unreachable, unauthenticated or not connected."""

    default_message = "Movie quote search is temporarily unavailable"


class LLMServiceError(UpstreamError):
    """Chat completion failed or returned malformed data."""

    default_message = "Error generating movie quote recommendation"


class LLMServiceUnavailableError(ServiceUnavailableError):
    """Chat completion API unreachable or missing credentials."""


class LLMRateLimitError(LLMServiceUnavailableError):
    """Chat completion API rate limit exceeded."""

    default_message = "Too many requests right now, please try again shortly"
