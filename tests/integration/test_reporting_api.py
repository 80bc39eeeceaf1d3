import json
from datetime import date

import httpx
import pytest
from google.auth import exceptions as auth_exceptions

from pageview_service.backends.reporting_api import ReportingApiBackend
from pageview_service.domain.exceptions import (
    BackendAuthError,
    BackendContractViolation,
    BackendRateLimitError,
    BackendTransportError,
    BackendUnavailableError,
)
from pageview_service.domain.models import DateRange, Metric, RawRow
from pageview_service.query.builder import ReportRequestBuilder

RANGE = DateRange(start=date(2000, 1, 1), end=date(2000, 1, 5))


class _FakeCredentials:
    """Stands in for google-auth credentials; refresh mints a new token."""

    def __init__(self, token=None, error=None):
        self.token = token
        self.valid = token is not None
        self.refresh_calls = 0
        self._error = error

    def refresh(self, request):
        self.refresh_calls += 1
        if self._error is not None:
            raise self._error
        self.token = f"fresh-{self.refresh_calls}"
        self.valid = True


def _build_client(handler):
    transport = httpx.MockTransport(handler)
    return httpx.Client(transport=transport)


def _report(rows):
    data = {} if rows is None else {"rows": rows}
    return {"reports": [{"columnHeader": {}, "data": data}]}


def _request():
    return ReportRequestBuilder("123456").entity_series("Foo", RANGE, Metric.PAGEVIEWS)


def test_backend_maps_rows_successfully():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        captured["headers"] = dict(request.headers)
        return httpx.Response(
            200,
            json=_report(
                [
                    {"dimensions": ["20000101"], "metrics": [{"values": ["1000"]}]},
                    {"dimensions": ["20000104"], "metrics": [{"values": ["10"]}]},
                ]
            ),
        )

    credentials = _FakeCredentials(token="tok")
    backend = ReportingApiBackend(
        _build_client(handler), credentials=credentials, auth_request=object()
    )

    rows = backend.execute(_request())

    assert rows == [
        RawRow(dimension_key="20000101", metric_value="1000"),
        RawRow(dimension_key="20000104", metric_value="10"),
    ]
    assert captured["url"].endswith("/v4/reports:batchGet")
    assert captured["headers"]["authorization"] == "Bearer tok"
    assert credentials.refresh_calls == 0
    report_request = captured["body"]["reportRequests"][0]
    assert report_request["viewId"] == "123456"
    assert report_request["dimensions"] == [{"name": "ga:date"}]


def test_backend_refreshes_expired_service_account_token_once():
    headers = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers["authorization"])
        return httpx.Response(200, json=_report([]))

    credentials = _FakeCredentials()
    backend = ReportingApiBackend(
        _build_client(handler), credentials=credentials, auth_request=object()
    )
    backend.execute(_request())
    backend.execute(_request())

    assert headers == ["Bearer fresh-1", "Bearer fresh-1"]
    assert credentials.refresh_calls == 1


@pytest.mark.parametrize(
    "error, expected",
    [
        (auth_exceptions.RefreshError("invalid_grant"), BackendAuthError),
        (auth_exceptions.TransportError("dns failure"), BackendTransportError),
    ],
)
def test_backend_maps_token_refresh_failures(error, expected):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no report request without a token")

    backend = ReportingApiBackend(
        _build_client(handler),
        credentials=_FakeCredentials(error=error),
        auth_request=object(),
    )

    with pytest.raises(expected):
        backend.execute(_request())


def test_backend_without_credentials_sends_no_authorization_header():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["headers"] = dict(request.headers)
        return httpx.Response(200, json=_report([]))

    ReportingApiBackend(_build_client(handler)).execute(_request())

    assert "authorization" not in captured["headers"]


def test_backend_without_rows_returns_empty_list():
    backend = ReportingApiBackend(
        _build_client(lambda request: httpx.Response(200, json=_report(None)))
    )
    assert backend.execute(_request()) == []


@pytest.mark.parametrize(
    "status, error",
    [
        (401, BackendAuthError),
        (403, BackendAuthError),
        (429, BackendRateLimitError),
        (500, BackendUnavailableError),
        (503, BackendUnavailableError),
        (400, BackendTransportError),
    ],
)
def test_backend_maps_http_errors(status, error):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": "nope"}})

    backend = ReportingApiBackend(_build_client(handler))

    with pytest.raises(error) as excinfo:
        backend.execute(_request())
    assert excinfo.value.message == "nope"
    assert excinfo.value.context == {"status_code": status}


def test_backend_maps_network_errors_to_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    backend = ReportingApiBackend(_build_client(handler))

    with pytest.raises(BackendTransportError):
        backend.execute(_request())


@pytest.mark.parametrize(
    "body",
    [
        {"unexpected": True},
        {"reports": []},
        _report([{"dimensions": [], "metrics": [{"values": ["1"]}]}]),
        _report([{"dimensions": ["20000101"]}]),
    ],
)
def test_backend_malformed_report_is_contract_violation(body):
    backend = ReportingApiBackend(
        _build_client(lambda request: httpx.Response(200, json=body))
    )
    with pytest.raises(BackendContractViolation):
        backend.execute(_request())


def test_backend_non_json_body_is_contract_violation():
    backend = ReportingApiBackend(
        _build_client(lambda request: httpx.Response(200, text="<html>"))
    )
    with pytest.raises(BackendContractViolation):
        backend.execute(_request())
