"""
Provider Exceptions - Error hierarchy for upstream data clients.

Provider errors never reach the pipeline: the retry policy reads them
to decide whether to try again, then the fan-out layer logs them and
substitutes an empty slice.
"""

from typing import Optional


class ProviderError(Exception):
    """Base exception for all provider client errors."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        chain: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider_name = provider_name
        self.chain = chain

    def __str__(self) -> str:
        prefix = f"[{self.provider_name}] " if self.provider_name else ""
        suffix = f" (chain={self.chain})" if self.chain else ""
        return f"{prefix}{self.message}{suffix}"


class FetchError(ProviderError):
    """HTTP or transport failure talking to a provider."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        chain: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message, provider_name, chain)
        self.status_code = status_code
        self.response_body = response_body

    @property
    def is_client_error(self) -> bool:
        """4xx responses; retrying will not help."""
        return self.status_code is not None and 400 <= self.status_code < 500


class RateLimitError(ProviderError):
    """Provider answered 429."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
    ) -> None:
        super().__init__(message, provider_name)
        self.retry_after_seconds = retry_after_seconds


class ChainNotSupportedError(ProviderError):
    """Requested chain is not supported by the provider."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        chain: Optional[str] = None,
        supported_chains: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, provider_name, chain)
        self.supported_chains = supported_chains or []
