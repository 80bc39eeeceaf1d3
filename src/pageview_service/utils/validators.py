"""Input validation helpers used across the service."""

from __future__ import annotations

from pageview_service.domain.exceptions import InvalidArgumentError
from pageview_service.domain.models import Metric


def validate_num_days(num_days: int) -> None:
    if isinstance(num_days, bool) or not isinstance(num_days, int):
        raise InvalidArgumentError(
            "num_days must be an integer", context={"num_days": num_days}
        )
    if num_days <= 0:
        raise InvalidArgumentError(
            "num_days must be greater than zero", context={"num_days": num_days}
        )


def validate_limit(limit: int) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidArgumentError(
            "limit must be a positive integer", context={"limit": limit}
        )


def validate_metric(metric: Metric) -> Metric:
    try:
        return Metric(metric)
    except ValueError as exc:
        raise InvalidArgumentError(
            "Unknown metric", context={"metric": metric}
        ) from exc
