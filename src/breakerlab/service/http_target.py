from __future__ import annotations

import httpx

from breakerlab.config import TargetConfig
from breakerlab.service.flaky import ServiceUnavailableError


class HttpOperation:
    """Breaker operation that performs one HTTP request against a target.

    Non-2xx responses are raised as :class:`ServiceUnavailableError`; transport
    errors from httpx propagate unchanged. Either way the breaker records a
    failure.
    """

    def __init__(self, target: TargetConfig, client: httpx.Client | None = None) -> None:
        self.target = target
        self._owns_client = client is None
        self._client = client or httpx.Client()

    def __call__(self) -> str:
        resp = self._client.request(
            self.target.method,
            self.target.url,
            headers=dict(self.target.headers),
            timeout=self.target.timeout_sec,
        )
        if not resp.is_success:
            msg = f"{self.target.method} {self.target.url} returned {resp.status_code}"
            raise ServiceUnavailableError(msg)
        return resp.text

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
