"""Page-view analytics retrieval with per-page failure isolation."""

from .core.container import DIContainer
from .core.service import PageViewService
from .domain.models import Metric, Scope, StatusLevel

__all__ = [
    "PageViewService",
    "DIContainer",
    "Metric",
    "Scope",
    "StatusLevel",
    "domain",
    "query",
    "core",
    "backends",
    "utils",
]
