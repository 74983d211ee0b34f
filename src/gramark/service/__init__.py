"""Correction service client, wire types and URL resolution."""

from __future__ import annotations

from gramark.service.client import CorrectionClient
from gramark.service.errors import (
    CorrectionServiceError,
    MalformedResponseError,
    ServiceAuthenticationError,
    ServiceConnectionError,
    ServiceForbiddenError,
    ServiceHTTPError,
    ServiceRateLimitError,
    ServiceTimeoutError,
)
from gramark.service.models import (
    ConfidenceLevel,
    CorrectionRequest,
    CorrectionServiceType,
    FixPart,
    FixPartType,
    HighlightRange,
    KindInfo,
    Problem,
    ProblemCategory,
    ProblemFix,
    ProblemHighlighting,
    SentenceWithProblems,
)
from gramark.service.resolver import ConfigurationUrlResolver, ResolutionResult

__all__ = [
    "ConfidenceLevel",
    "ConfigurationUrlResolver",
    "CorrectionClient",
    "CorrectionRequest",
    "CorrectionServiceError",
    "CorrectionServiceType",
    "FixPart",
    "FixPartType",
    "HighlightRange",
    "KindInfo",
    "MalformedResponseError",
    "Problem",
    "ProblemCategory",
    "ProblemFix",
    "ProblemHighlighting",
    "ResolutionResult",
    "SentenceWithProblems",
    "ServiceAuthenticationError",
    "ServiceConnectionError",
    "ServiceForbiddenError",
    "ServiceHTTPError",
    "ServiceRateLimitError",
    "ServiceTimeoutError",
]
