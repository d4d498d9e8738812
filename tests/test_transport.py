# outcome classification against a mocked http layer, the network is never touched

import errno
import socket
from datetime import datetime, timezone
from http.client import BadStatusLine, RemoteDisconnected

import pytest
import requests
import responses
from urllib3.exceptions import LocationParseError, MaxRetryError, ProtocolError

from jsonfetch.models import (
    Failure,
    HttpError,
    InvalidResponseType,
    InvalidUrl,
    NoData,
    NoNetwork,
    Other,
    RequestDescriptor,
    Success,
)
from jsonfetch.service import Service
from jsonfetch.transport import RequestsTransport, classify_exception, classify_response

URL = "https://httpbin.org/json"
NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
REQUEST = RequestDescriptor.for_date(NOW)


@pytest.fixture
def transport():
    with RequestsTransport(timeout=1.0, user_agent="jsonfetch-tests") as t:
        yield t


@responses.activate
def test_ok_with_body_is_success(transport):
    responses.add(responses.GET, URL, body=b'{"slideshow": {}}', status=200)

    assert transport.send(REQUEST) == Success(b'{"slideshow": {}}')


@responses.activate
def test_request_goes_to_the_exact_url(transport):
    responses.add(responses.GET, URL, body=b"{}", status=200)

    transport.send(REQUEST)

    sent = responses.calls[0].request
    assert sent.url == "https://httpbin.org/json?date=2024-01-02T03:04:05Z"
    assert sent.headers["User-Agent"] == "jsonfetch-tests"


@responses.activate
@pytest.mark.parametrize("status", [200, 204, 299])
def test_ok_without_body_is_no_data(transport, status):
    responses.add(responses.GET, URL, body=b"", status=status)

    assert transport.send(REQUEST) == Failure(NoData())


@responses.activate
@pytest.mark.parametrize("status", [199, 300, 404, 500])
def test_non_2xx_is_http_error(transport, status):
    responses.add(responses.GET, URL, body=b"nope", status=status)

    assert transport.send(REQUEST) == Failure(HttpError(status))


@responses.activate
def test_dns_failure_is_no_network(transport):
    offline = socket.gaierror(socket.EAI_AGAIN, "Temporary failure in name resolution")
    responses.add(responses.GET, URL, body=requests.ConnectionError(MaxRetryError(None, "/json", reason=offline)))

    assert transport.send(REQUEST) == Failure(NoNetwork())


@responses.activate
def test_unreachable_network_is_no_network(transport):
    responses.add(
        responses.GET, URL, body=requests.ConnectionError(OSError(errno.ENETUNREACH, "Network is unreachable"))
    )

    assert transport.send(REQUEST) == Failure(NoNetwork())


@responses.activate
def test_missing_status_line_is_invalid_response_type(transport):
    garbage = ProtocolError("Connection aborted.", BadStatusLine("SSH-2.0-OpenSSH_9.6"))
    responses.add(responses.GET, URL, body=requests.ConnectionError(garbage))

    assert transport.send(REQUEST) == Failure(InvalidResponseType())


@responses.activate
def test_refused_connection_is_other(transport):
    refused = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
    responses.add(responses.GET, URL, body=requests.ConnectionError(refused))

    outcome = transport.send(REQUEST)

    assert outcome == Failure(Other("requests.exceptions.ConnectionError"))
    assert "Connection refused" in outcome.error.message


@responses.activate
def test_timeout_is_other(transport):
    responses.add(responses.GET, URL, body=requests.ReadTimeout("read timed out"))

    assert transport.send(REQUEST) == Failure(Other("requests.exceptions.ReadTimeout"))


def test_other_compares_by_code_not_message():
    assert Other("requests.exceptions.ReadTimeout", "a") == Other("requests.exceptions.ReadTimeout", "b")
    assert Other("requests.exceptions.ReadTimeout", "a") != Other("requests.exceptions.ConnectTimeout", "a")


def test_remote_disconnect_counts_as_missing_status_line():
    exc = requests.ConnectionError(ProtocolError("Connection aborted.", RemoteDisconnected("closed")))

    assert classify_exception(exc) == Failure(InvalidResponseType())


@pytest.mark.parametrize("resp", [object(), type("R", (), {"status_code": None})(), type("R", (), {"status_code": True})()])
def test_response_without_status_is_invalid_response_type(resp):
    assert classify_response(resp) == Failure(InvalidResponseType())


@responses.activate
def test_service_receives_transport_outcome_through_the_pool(transport):
    body = b'{"slideshow": {"title": "Sample Slide Show"}}'
    responses.add(responses.GET, URL, body=body, status=200)

    outcome = Service(transport).fetch(now=NOW).result(timeout=5)

    assert outcome == Success(body)


@responses.activate
def test_perform_request_calls_back_once_from_a_worker(transport):
    responses.add(responses.GET, URL, status=404)
    received = []

    transport.perform_request(REQUEST, received.append)
    transport.close()

    assert received == [Failure(HttpError(404))]


@responses.activate
def test_unwrapped_urllib3_error_is_other(transport):
    responses.add(responses.GET, URL, body=LocationParseError("a..b"))

    assert transport.send(REQUEST) == Failure(Other("urllib3.exceptions.LocationParseError"))


@responses.activate
def test_unwrapped_error_still_resolves_the_future(transport):
    responses.add(responses.GET, URL, body=LocationParseError("a..b"))

    outcome = Service(transport).fetch(now=NOW).result(timeout=5)

    assert outcome == Failure(Other("urllib3.exceptions.LocationParseError"))


@pytest.mark.parametrize("host", ["a..b", ".httpbin.org", "x" * 64 + ".org"])
def test_host_with_bad_label_is_invalid_url_before_any_request(transport, host):
    outcome = Service(transport, host=host).fetch(now=NOW).result(timeout=5)

    assert outcome == Failure(InvalidUrl())
