"""
Internal exception types.

None of these escape the public feed operations: adapters turn
UpstreamUnavailable into fallback records and the enricher turns
AnalysisUnavailable into the apology annotation.
"""


class UpstreamUnavailable(Exception):
    """A third-party source could not serve a usable response."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class QuotaExceeded(UpstreamUnavailable):
    """The rate limit guard refused the request."""


class AnalysisUnavailable(Exception):
    """The impact analysis service failed or returned an invalid payload."""
