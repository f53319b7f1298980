from __future__ import annotations

from breakerlab.service.external import ExternalService
from breakerlab.service.flaky import (
    FALLBACK_RESPONSE,
    SUCCESS_RESPONSE,
    FlakyService,
    ServiceUnavailableError,
)
from breakerlab.service.http_target import HttpOperation

__all__ = [
    "FALLBACK_RESPONSE",
    "SUCCESS_RESPONSE",
    "ExternalService",
    "FlakyService",
    "HttpOperation",
    "ServiceUnavailableError",
]
