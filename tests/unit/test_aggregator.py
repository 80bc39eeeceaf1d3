import logging
import threading
import time

import pytest

from pageview_service.domain.exceptions import (
    BackendContractViolation,
    BackendRateLimitError,
    InvalidArgumentError,
)
from pageview_service.domain.models import StatusLevel
from pageview_service.query.aggregator import ResultAggregator


def _series(value):
    return {"2000-01-01": value}


def _execute_with_failures(failing: dict):
    def execute_one(identifier: str):
        if identifier in failing:
            raise failing[identifier]
        return _series(len(identifier))

    return execute_one


def test_run_entities_all_good():
    aggregator = ResultAggregator()

    outcome = aggregator.run_entities(["A", "BB"], _execute_with_failures({}))

    assert outcome.status is StatusLevel.GOOD
    assert outcome.value == {"A": _series(1), "BB": _series(2)}
    assert outcome.messages == ()


def test_run_entities_isolates_failures():
    aggregator = ResultAggregator()
    failing = {"B": BackendRateLimitError(), "D": BackendContractViolation()}

    outcome = aggregator.run_entities(
        ["A", "B", "C", "D"], _execute_with_failures(failing)
    )

    assert outcome.status is StatusLevel.DEGRADED
    assert outcome.success == {"A": True, "B": False, "C": True, "D": False}
    assert outcome.success_count + outcome.fail_count == 4
    assert set(outcome.value) == {"A", "C"}
    assert outcome.failures["B"] == BackendRateLimitError.default_message


def test_run_entities_all_failed_is_fatal():
    aggregator = ResultAggregator()
    failing = {"A": BackendRateLimitError(), "B": BackendRateLimitError()}

    outcome = aggregator.run_entities(["A", "B"], _execute_with_failures(failing))

    assert outcome.status is StatusLevel.FATAL
    assert not outcome.is_ok
    assert len(outcome.messages) == 2


def test_run_entities_does_not_swallow_non_backend_errors():
    aggregator = ResultAggregator()

    def execute_one(identifier):
        raise InvalidArgumentError("bad")

    with pytest.raises(InvalidArgumentError):
        aggregator.run_entities(["A"], execute_one)


def test_run_entities_concurrent_matches_sequential():
    identifiers = [f"Page{i}" for i in range(12)]
    failing = {"Page3": BackendRateLimitError(), "Page8": BackendRateLimitError()}
    delays = {identifier: (12 - i) * 0.002 for i, identifier in enumerate(identifiers)}
    seen_threads = set()

    def execute_one(identifier):
        seen_threads.add(threading.get_ident())
        time.sleep(delays[identifier])
        return _execute_with_failures(failing)(identifier)

    sequential = ResultAggregator().run_entities(identifiers, execute_one)
    concurrent = ResultAggregator(max_workers=4).run_entities(identifiers, execute_one)

    assert concurrent.success == sequential.success
    assert list(concurrent.success) == identifiers
    assert concurrent.value == sequential.value
    assert concurrent.status is StatusLevel.DEGRADED
    assert len(seen_threads) > 1


def test_run_single_success_and_failure():
    aggregator = ResultAggregator()

    good = aggregator.run_single(lambda: {"x": 1}, label="top pages")
    assert good.is_good
    assert good.value == {"x": 1}

    def fail():
        raise BackendRateLimitError()

    bad = aggregator.run_single(fail, label="top pages")
    assert bad.status is StatusLevel.FATAL
    assert bad.value is None
    assert bad.messages[0].startswith("Failed to fetch top pages")


def test_contract_violations_logged_at_error(caplog):
    aggregator = ResultAggregator()
    failing = {"A": BackendContractViolation(), "B": BackendRateLimitError()}

    with caplog.at_level(logging.WARNING, logger="pageview_service.query.aggregator"):
        aggregator.run_entities(["A", "B"], _execute_with_failures(failing))

    levels = {record.getMessage(): record.levelno for record in caplog.records}
    assert levels["backend_contract_violation"] == logging.ERROR
    assert levels["backend_transport_failure"] == logging.WARNING


def test_rejects_non_positive_worker_count():
    with pytest.raises(ValueError):
        ResultAggregator(max_workers=0)
