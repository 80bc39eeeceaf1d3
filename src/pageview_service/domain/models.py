"""Domain value objects describing page-view queries and their outcomes."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import (
    Any,
    Dict,
    FrozenSet,
    Generic,
    Iterator,
    Literal,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")

DenseSeries = Dict[str, Optional[int]]
"""Day (ISO ``YYYY-MM-DD``) to view count; ``None`` marks a day without data."""


class Metric(str, Enum):
    """Metrics the analytics backend can report per page or site."""

    PAGEVIEWS = "ga:pageviews"
    UNIQUE_PAGEVIEWS = "ga:uniquePageviews"


class Scope(str, Enum):
    """Query shapes offered by the service."""

    ARTICLE = "article"
    SITE = "site"
    TOP = "top"


class Dimension(str, Enum):
    """Report dimensions used by the request builder."""

    DATE = "ga:date"
    PAGE_TITLE = "ga:pageTitle"
    PAGE_PATH = "ga:pagePath"


class StatusLevel(str, Enum):
    """Overall classification of a service call."""

    GOOD = "good"
    DEGRADED = "degraded"
    FATAL = "fatal"


class DateRange(BaseModel):
    """Inclusive range of whole UTC days."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def iter_days(self) -> Iterator[date]:
        for offset in range(self.days):
            yield self.start + timedelta(days=offset)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_api(self) -> Dict[str, str]:
        return {
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
        }


class RawRow(BaseModel):
    """Single untrusted row as returned by the analytics backend."""

    model_config = ConfigDict(frozen=True)

    dimension_key: str
    metric_value: str


class DimensionFilter(BaseModel):
    """Exact-match filter restricting a report to one entity."""

    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    expression: str

    def to_api(self) -> Dict[str, Any]:
        return {
            "filters": [
                {
                    "dimensionName": self.dimension.value,
                    "operator": "EXACT",
                    "expressions": [self.expression],
                }
            ]
        }


class ReportRequest(BaseModel):
    """Backend-agnostic specification of one report round trip."""

    model_config = ConfigDict(frozen=True)

    view_id: str
    metric: Metric
    date_range: DateRange
    dimension: Optional[Dimension] = None
    filter: Optional[DimensionFilter] = None
    order_by_metric_desc: bool = False
    page_size: Optional[int] = Field(default=None, gt=0)

    @field_validator("view_id")
    @classmethod
    def validate_view_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("view_id must be a non-empty string")
        return value

    def to_payload(self) -> Dict[str, Any]:
        """Render the request as a Reporting API v4 ``reportRequests`` entry."""

        payload: Dict[str, Any] = {
            "viewId": self.view_id,
            "dateRanges": [self.date_range.to_api()],
            "metrics": [{"expression": self.metric.value}],
        }
        if self.dimension is not None:
            payload["dimensions"] = [{"name": self.dimension.value}]
        if self.filter is not None:
            payload["dimensionFilterClauses"] = [self.filter.to_api()]
        if self.order_by_metric_desc:
            payload["orderBys"] = [
                {"fieldName": self.metric.value, "sortOrder": "DESCENDING"}
            ]
        if self.page_size is not None:
            payload["pageSize"] = self.page_size
        return payload


class EntitySuccess(BaseModel):
    """Batch for one entity completed and produced a dense series."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    series: DenseSeries
    ok: Literal[True] = True


class EntityFailure(BaseModel):
    """Batch for one entity failed; ``kind`` tells outages from bad payloads."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    reason: str
    kind: Literal["transport", "contract"] = "transport"
    ok: Literal[False] = False


EntityResult = Union[EntitySuccess, EntityFailure]


class Result(BaseModel, Generic[T]):
    """Outcome of a service call: status, payload and diagnostics."""

    model_config = ConfigDict(frozen=True)

    status: StatusLevel
    value: Optional[T] = None
    messages: Tuple[str, ...] = Field(default_factory=tuple)

    @property
    def is_good(self) -> bool:
        return self.status is StatusLevel.GOOD

    @property
    def is_ok(self) -> bool:
        return self.status is not StatusLevel.FATAL

    @classmethod
    def good(cls, value: T) -> "Result[T]":
        return cls(status=StatusLevel.GOOD, value=value)

    @classmethod
    def fatal(cls, *messages: str) -> "Result[T]":
        return cls(status=StatusLevel.FATAL, messages=tuple(messages))


class BatchOutcome(Result[Dict[str, DenseSeries]]):
    """Per-entity outcome folded from independent batches.

    ``value`` only holds series for entities whose batch succeeded; callers
    consult ``success`` to tell "no data" from "failed to fetch".
    """

    success: Dict[str, bool] = Field(default_factory=dict)
    failures: Dict[str, str] = Field(default_factory=dict)
    success_count: int = Field(default=0, ge=0)
    fail_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_counts(self) -> "BatchOutcome":
        if self.success_count + self.fail_count != len(self.success):
            raise ValueError("success and failure counts must cover every entity")
        return self

    @property
    def succeeded(self) -> FrozenSet[str]:
        return frozenset(key for key, ok in self.success.items() if ok)

    @property
    def failed(self) -> FrozenSet[str]:
        return frozenset(key for key, ok in self.success.items() if not ok)

    @classmethod
    def from_results(cls, results: Mapping[str, EntityResult]) -> "BatchOutcome":
        values: Dict[str, DenseSeries] = {}
        success: Dict[str, bool] = {}
        failures: Dict[str, str] = {}
        for identifier, result in results.items():
            success[identifier] = result.ok
            if isinstance(result, EntitySuccess):
                values[identifier] = result.series
            else:
                failures[identifier] = result.reason

        success_count = len(values)
        fail_count = len(failures)
        if fail_count == 0:
            status = StatusLevel.GOOD
        elif success_count > 0:
            status = StatusLevel.DEGRADED
        else:
            status = StatusLevel.FATAL

        messages = tuple(
            f"Failed to fetch page views for '{identifier}': {reason}"
            for identifier, reason in failures.items()
        )
        return cls(
            status=status,
            value=values,
            messages=messages,
            success=success,
            failures=failures,
            success_count=success_count,
            fail_count=fail_count,
        )
