"""Runs independent batches and folds their outcomes into one status."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from pageview_service.domain.exceptions import (
    BackendContractViolation,
    BackendError,
)
from pageview_service.domain.models import (
    BatchOutcome,
    DenseSeries,
    EntityFailure,
    EntityResult,
    EntitySuccess,
    Result,
)

T = TypeVar("T")


class ResultAggregator:
    """Executes batches in isolation and merges results by entity identity.

    No batch is retried and no failure cancels another batch. With
    ``max_workers`` above one, batches run on a bounded thread pool; the
    merged outcome is identical to sequential execution.
    """

    def __init__(
        self,
        *,
        max_workers: int = 1,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be greater than zero")
        self._max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)

    def run_entities(
        self,
        identifiers: Sequence[str],
        execute_one: Callable[[str], DenseSeries],
    ) -> BatchOutcome:
        def run(identifier: str) -> EntityResult:
            try:
                series = execute_one(identifier)
            except BackendError as exc:
                self._log_failure(exc, identifier=identifier)
                return EntityFailure(
                    identifier=identifier,
                    reason=exc.message,
                    kind=self._failure_kind(exc),
                )
            return EntitySuccess(identifier=identifier, series=series)

        if self._max_workers == 1 or len(identifiers) <= 1:
            outcomes: List[EntityResult] = [run(identifier) for identifier in identifiers]
        else:
            workers = min(self._max_workers, len(identifiers))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(run, identifiers))

        results: Dict[str, EntityResult] = {
            outcome.identifier: outcome for outcome in outcomes
        }
        outcome = BatchOutcome.from_results(results)
        self.logger.info(
            "entity_batches_completed",
            extra={
                "status": outcome.status.value,
                "success_count": outcome.success_count,
                "fail_count": outcome.fail_count,
            },
        )
        return outcome

    def run_single(self, execute: Callable[[], T], *, label: str) -> Result[T]:
        """Run the only batch of an aggregate call; its failure is fatal."""

        try:
            value = execute()
        except BackendError as exc:
            self._log_failure(exc, identifier=label)
            return Result.fatal(f"Failed to fetch {label}: {exc.message}")
        return Result.good(value)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _failure_kind(error: BackendError) -> str:
        if isinstance(error, BackendContractViolation):
            return "contract"
        return "transport"

    def _log_failure(self, error: BackendError, *, identifier: str) -> None:
        extra = {
            "identifier": identifier,
            "error_type": error.__class__.__name__,
            "context": error.context,
        }
        if isinstance(error, BackendContractViolation):
            self.logger.error("backend_contract_violation", extra=extra)
        else:
            self.logger.warning("backend_transport_failure", extra=extra)
