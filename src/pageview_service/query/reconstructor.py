"""Turns sparse backend rows into dense, ordered results."""

from __future__ import annotations

import re
from datetime import date
from typing import Dict, Sequence

from pageview_service.domain.exceptions import BackendContractViolation
from pageview_service.domain.interfaces import ITitleNormalizer
from pageview_service.domain.models import DateRange, DenseSeries, RawRow

_DATE_KEY_PATTERN = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_COUNT_PATTERN = re.compile(r"^\d+$")

SITE_NAME_DELIMITER = " - "


def parse_date_key(key: str) -> date:
    match = _DATE_KEY_PATTERN.match(key)
    if match is None:
        raise BackendContractViolation(
            "Row dimension is not a YYYYMMDD date", context={"dimension": key}
        )
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError as exc:
        raise BackendContractViolation(
            "Row dimension is not a valid calendar date", context={"dimension": key}
        ) from exc


def parse_count(value: str) -> int:
    if not _COUNT_PATTERN.match(value):
        raise BackendContractViolation(
            "Row metric is not a base-10 integer", context={"value": value}
        )
    return int(value)


def densify(rows: Sequence[RawRow], date_range: DateRange) -> DenseSeries:
    """Map every day of ``date_range`` to its count, or None when absent.

    Rows dated outside the range are dropped. A malformed row aborts the
    whole batch with BackendContractViolation.
    """

    series: DenseSeries = {day.isoformat(): None for day in date_range.iter_days()}
    for row in rows:
        day = parse_date_key(row.dimension_key)
        if not date_range.contains(day):
            continue
        series[day.isoformat()] = parse_count(row.metric_value)
    return series


def strip_site_name(composite_key: str, site_name: str) -> str:
    """Remove a trailing ``" - <site_name>"`` suffix, last occurrence only."""

    if not site_name:
        return composite_key
    suffix = f"{SITE_NAME_DELIMITER}{site_name}"
    if composite_key.endswith(suffix):
        return composite_key[: -len(suffix)]
    return composite_key


def collect_top_pages(
    rows: Sequence[RawRow], site_name: str, normalizer: ITitleNormalizer
) -> Dict[str, int]:
    """Build an ordered ``identifier -> count`` mapping from top-pages rows."""

    top: Dict[str, int] = {}
    for row in rows:
        title = strip_site_name(row.dimension_key, site_name)
        identifier = normalizer.normalize(title)
        count = parse_count(row.metric_value)
        top[identifier] = top.get(identifier, 0) + count
    return top
