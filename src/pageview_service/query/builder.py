"""Builds one report request per batch."""

from __future__ import annotations

from pageview_service.domain.models import (
    DateRange,
    Dimension,
    DimensionFilter,
    Metric,
    ReportRequest,
)
from pageview_service.titles import title_to_path


class ReportRequestBuilder:
    """Produces well-formed request specifications for each query shape.

    Entities are never combined into one request so that a backend error for
    one page cannot poison the others.
    """

    def __init__(self, view_id: str, *, article_path: str = "/wiki/$1") -> None:
        self._view_id = view_id
        self._article_path = article_path

    def entity_series(
        self, identifier: str, date_range: DateRange, metric: Metric
    ) -> ReportRequest:
        return ReportRequest(
            view_id=self._view_id,
            metric=metric,
            date_range=date_range,
            dimension=Dimension.DATE,
            filter=DimensionFilter(
                dimension=Dimension.PAGE_PATH,
                expression=title_to_path(identifier, self._article_path),
            ),
            page_size=date_range.days,
        )

    def aggregate_series(self, date_range: DateRange, metric: Metric) -> ReportRequest:
        return ReportRequest(
            view_id=self._view_id,
            metric=metric,
            date_range=date_range,
            dimension=Dimension.DATE,
            page_size=date_range.days,
        )

    def top_pages(self, date_range: DateRange, limit: int) -> ReportRequest:
        return ReportRequest(
            view_id=self._view_id,
            metric=Metric.PAGEVIEWS,
            date_range=date_range,
            dimension=Dimension.PAGE_TITLE,
            order_by_metric_desc=True,
            page_size=limit,
        )
