"""
Error Taxonomy

Expected failures (an exchange answered 503, CoinGecko rate limited us) are
carried as error objects inside a failed ``Result`` and never raised.
Programming errors over the closed exchange/status domain are raised.

Hierarchy:
    CoinHubError
    ├── TransportError            - upstream HTTP call did not succeed
    ├── IdentityResolutionError   - registry list or symbol map unavailable
    ├── AggregationError          - one or more sources failed during a pass
    ├── KlineNotFoundError        - waterfall exhausted every exchange
    ├── UnmappedExchangeError     - raised: exchange not in a closed table
    └── UnmappedStatusError       - raised: unknown exchange status code
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


class CoinHubError(Exception):
    """Base class for all application errors."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        reasons: Optional[Iterable["CoinHubError"]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.reasons: List[CoinHubError] = list(reasons or [])
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        data: Dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source": self.source,
        }
        if self.reasons:
            data["reasons"] = [reason.to_dict() for reason in self.reasons]
        return data

    def __str__(self) -> str:
        parts = [self.message]
        if self.source:
            parts.append(f"[source={self.source}]")
        if self.reasons:
            parts.append("(" + "; ".join(str(reason) for reason in self.reasons) + ")")
        return " ".join(parts)


class TransportError(CoinHubError):
    """An upstream HTTP call failed (non-2xx, network error, malformed body)."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ) -> None:
        super().__init__(message, source)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body[:500] if self.response_body else None,
            "request_url": self.request_url,
        })
        return data

    def is_rate_limited(self) -> bool:
        return self.status_code == 429


class IdentityResolutionError(CoinHubError):
    """The registry coin list or an exchange symbol map could not be fetched."""


class AggregationError(CoinHubError):
    """An aggregation pass was aborted; ``reasons`` names every failing source."""

    @property
    def failed_sources(self) -> List[str]:
        return [reason.source for reason in self.reasons if reason.source]


class KlineNotFoundError(CoinHubError):
    """No exchange returned bars for the requested coin."""


class UnmappedExchangeError(CoinHubError, LookupError):
    """An exchange id is missing from a closed lookup table."""


class UnmappedStatusError(CoinHubError, ValueError):
    """An exchange returned a trading status outside its known enum."""
