"""Backend abstractions and shared behavior implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from pageview_service.domain.exceptions import BackendError, BackendTransportError
from pageview_service.domain.interfaces import IAnalyticsBackend
from pageview_service.domain.models import RawRow, ReportRequest


class BaseBackend(IAnalyticsBackend, ABC):
    """Template-method base class that handles logging and error mapping.

    Each call is a single round trip. Failures are never retried here;
    callers that need a retry invoke the service again.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(
            f"{__name__}.{self.__class__.__name__}"
        )

    def execute(self, request: ReportRequest) -> List[RawRow]:
        """Public API that aligns with IAnalyticsBackend.execute."""

        self.log_request(request)
        try:
            rows = self._fetch_rows(request)
        except BackendError:
            raise
        except Exception as exc:
            self.logger.exception("Unexpected backend failure")
            raise BackendTransportError(
                "Unexpected backend failure",
                context={"backend": self.__class__.__name__},
            ) from exc
        self.log_response(request, rows)
        return rows

    @abstractmethod
    def _fetch_rows(self, request: ReportRequest) -> List[RawRow]:
        """Backend-specific transport implemented by subclasses."""

    def log_request(self, request: ReportRequest) -> None:
        self.logger.debug(
            "backend_request",
            extra={
                "metric": request.metric.value,
                "dimension": request.dimension.value if request.dimension else None,
                "filter": request.filter.expression if request.filter else None,
                "start": request.date_range.start.isoformat(),
                "end": request.date_range.end.isoformat(),
                "backend": self.__class__.__name__,
            },
        )

    def log_response(self, request: ReportRequest, rows: List[RawRow]) -> None:
        self.logger.debug(
            "backend_response",
            extra={
                "rows": len(rows),
                "metric": request.metric.value,
                "backend": self.__class__.__name__,
            },
        )
