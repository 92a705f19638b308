"""Provider failures surfaced to the consumer of an event stream."""

from __future__ import annotations

from typing import Optional


class ProviderError(RuntimeError):
    """Terminal failure of a provider exchange (transport, auth, rate limit, bad model id).

    Events yielded before the failure stay valid. Not retried here.
    """

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code
