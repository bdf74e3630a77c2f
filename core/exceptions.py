"""
Pipeline error taxonomy

Hierarchy:
- PipelineError
  - TransientNetworkError: retryable (bounded) network failure
    - RateLimitedError: HTTP 429 from a provider
  - QuotaExceededError: daily quota reached, rejected before sending
  - DataUnavailableError: missing price/quote, the item is skipped
  - PersistenceError: store read/write failure

Provider clients translate library exceptions (aiohttp, psycopg) into these
at the provider boundary, so services never catch library types directly.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors"""


class TransientNetworkError(PipelineError):
    """Retryable network failure (timeouts, connection resets, 5xx)"""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class RateLimitedError(TransientNetworkError):
    """Provider answered HTTP 429"""

    def __init__(self, message: str):
        super().__init__(message, status=429)


class QuotaExceededError(PipelineError):
    """Daily request quota reached for a provider"""

    def __init__(self, provider: str, limit: int):
        super().__init__(f"{provider}: daily quota of {limit} requests reached")
        self.provider = provider
        self.limit = limit


class DataUnavailableError(PipelineError):
    """Price, quote or transaction data could not be obtained"""


class PersistenceError(PipelineError):
    """Store operation failed"""
