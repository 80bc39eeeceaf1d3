"""Main page-view service facade coordinating queries and batch execution."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from itertools import islice
from typing import Dict, List, Optional, Sequence

from pageview_service.core.config import ServiceConfig
from pageview_service.domain.exceptions import (
    BackendTransportError,
    InvalidArgumentError,
    PageViewServiceError,
)
from pageview_service.domain.interfaces import IAnalyticsBackend, IClock, ITitleNormalizer
from pageview_service.domain.models import (
    BatchOutcome,
    DenseSeries,
    Metric,
    RawRow,
    ReportRequest,
    Result,
    Scope,
)
from pageview_service.query.aggregator import ResultAggregator
from pageview_service.query.builder import ReportRequestBuilder
from pageview_service.query.date_range import DateRangeResolver, SystemClock
from pageview_service.query.reconstructor import collect_top_pages, densify
from pageview_service.titles import TitleNormalizer
from pageview_service.utils.validators import validate_limit, validate_metric

logger = logging.getLogger(__name__)


class PageViewService:
    """High-level API for fetching per-page, site-wide and top-page views."""

    def __init__(
        self,
        config: ServiceConfig,
        backend: IAnalyticsBackend,
        *,
        clock: Optional[IClock] = None,
        normalizer: Optional[ITitleNormalizer] = None,
        aggregator: Optional[ResultAggregator] = None,
    ) -> None:
        self._config = config
        self._backend = backend
        self._clock = clock or SystemClock()
        self._resolver = DateRangeResolver(self._clock)
        self._normalizer = normalizer or TitleNormalizer()
        self._aggregator = aggregator or ResultAggregator(
            max_workers=config.max_workers
        )
        self._builder = ReportRequestBuilder(
            config.profile_id, article_path=config.article_path
        )

    def get_entity_series(
        self,
        entities: Sequence[str],
        num_days: int,
        metric: Metric = Metric.PAGEVIEWS,
    ) -> BatchOutcome:
        """Fetch one dense series per page; failures are isolated per page."""

        if isinstance(entities, str):
            raise InvalidArgumentError(
                "entities must be a sequence of titles", context={"entities": entities}
            )
        metric = validate_metric(metric)
        date_range = self._resolver.resolve(num_days)
        identifiers = self._unique_identifiers(entities)

        def execute_one(identifier: str) -> DenseSeries:
            request = self._builder.entity_series(identifier, date_range, metric)
            return densify(self._call_backend(request), date_range)

        logger.info(
            "entity_series_requested",
            extra={
                "entities": len(identifiers),
                "metric": metric.value,
                "start": date_range.start.isoformat(),
                "end": date_range.end.isoformat(),
            },
        )
        return self._aggregator.run_entities(identifiers, execute_one)

    def get_aggregate_series(
        self, num_days: int, metric: Metric = Metric.PAGEVIEWS
    ) -> Result[DenseSeries]:
        """Fetch the site-wide dense series; a backend failure is fatal."""

        metric = validate_metric(metric)
        date_range = self._resolver.resolve(num_days)

        def execute() -> DenseSeries:
            request = self._builder.aggregate_series(date_range, metric)
            return densify(self._call_backend(request), date_range)

        return self._aggregator.run_single(execute, label="site page views")

    def get_top_entities(self, limit: Optional[int] = None) -> Result[Dict[str, int]]:
        """Fetch the most viewed pages, ordered by view count descending."""

        limit = self._config.top_pages_limit if limit is None else limit
        validate_limit(limit)
        date_range = self._resolver.resolve(self._config.top_pages_days)
        if not self._config.site_name:
            logger.warning(
                "top_pages_without_site_name",
                extra={"hint": "set site_name to strip the title suffix"},
            )

        def execute() -> Dict[str, int]:
            request = self._builder.top_pages(date_range, limit)
            top = collect_top_pages(
                self._call_backend(request),
                self._config.site_name,
                self._normalizer,
            )
            return dict(islice(top.items(), limit))

        return self._aggregator.run_single(execute, label="top pages")

    def supports(self, metric: Metric, scope: Scope) -> bool:
        if Scope(scope) is Scope.TOP:
            return Metric(metric) is Metric.PAGEVIEWS
        return Metric(metric) in (Metric.PAGEVIEWS, Metric.UNIQUE_PAGEVIEWS)

    def cache_expiry(self, metric: Metric, scope: Scope) -> int:
        """Seconds callers may cache results; data only changes at UTC midnight."""

        if not self.supports(metric, scope):
            raise InvalidArgumentError(
                "Unsupported metric/scope combination",
                context={"metric": Metric(metric).value, "scope": Scope(scope).value},
            )
        now = self._clock.now().astimezone(timezone.utc)
        next_midnight = datetime.combine(
            now.date() + timedelta(days=1), time(), timezone.utc
        )
        return max(1, int((next_midnight - now).total_seconds()))

    def invalidate_date_cache(self) -> None:
        self._resolver.invalidate()

    @property
    def last_complete_day(self) -> date:
        return self._resolver.last_complete_day

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _call_backend(self, request: ReportRequest) -> List[RawRow]:
        """Any failure of an injected backend counts as a transport failure."""

        try:
            return self._backend.execute(request)
        except PageViewServiceError:
            raise
        except Exception as exc:
            raise BackendTransportError(
                "Analytics backend request failed",
                context={"error": exc.__class__.__name__},
            ) from exc

    def _unique_identifiers(self, entities: Sequence[str]) -> List[str]:
        seen: Dict[str, None] = {}
        for entity in entities:
            seen.setdefault(self._normalizer.normalize(str(entity)), None)
        return list(seen)
