"""Domain-level interfaces defining contracts for page-view collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import List, Protocol

from .models import RawRow, ReportRequest


class IAnalyticsBackend(Protocol):
    """Executes one report request against the analytics reporting API."""

    def execute(self, request: ReportRequest) -> List[RawRow]:
        """Return the raw rows for the request or raise a BackendError."""


class ITitleNormalizer(Protocol):
    """Maps raw page titles to canonical entity identifiers."""

    def normalize(self, raw_title: str) -> str:
        """Return the canonical identifier; never fails."""


class IClock(Protocol):
    """Source of the current time, injectable so tests can fix "now"."""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC datetime."""
