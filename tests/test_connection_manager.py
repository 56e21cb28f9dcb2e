"""Tests for the HTTP side of the client."""

import pytest
import requests

from studybuddy.client.config import ChatConfig
from studybuddy.client.connection_manager import ConnectionManager
from studybuddy.client.errors import (EmptyResponseError, TransportError, UpstreamError,
                                      remediation_message)

from .helpers import FakeResponse, FakeSession


def test_payload_omits_unset_fields():
    manager = ConnectionManager(ChatConfig(language="", communication_style=""), session=FakeSession())
    assert manager.build_payload([]) == {"messages": []}


def test_payload_includes_context(config):
    config.context = "Chlorophyll absorbs light."
    payload = ConnectionManager(config, session=FakeSession()).build_payload([])
    assert payload["context"] == "Chlorophyll absorbs light."
    assert payload["communicationStyle"] == "neutral"


def test_headers_without_api_key():
    headers = ConnectionManager(ChatConfig(), session=FakeSession()).build_headers()
    assert headers == {"Content-Type": "application/json"}


def test_open_stream_returns_response(config):
    response = FakeResponse(chunks=[b"data: [DONE]\n"])
    manager = ConnectionManager(config, session=FakeSession(response))
    assert manager.open_stream([{"role": "user", "content": "hi"}]) is response
    assert not response.closed


def test_open_stream_upstream_error_detail(config):
    response = FakeResponse(status_code=503, body=b'{"error": {"message": "overloaded"}}')
    manager = ConnectionManager(config, session=FakeSession(response))
    with pytest.raises(UpstreamError) as excinfo:
        manager.open_stream([])
    assert excinfo.value.status_code == 503
    assert excinfo.value.detail == "overloaded"
    assert response.closed


def test_open_stream_timeout(config):
    manager = ConnectionManager(config, session=FakeSession(requests.exceptions.ConnectTimeout("slow")))
    with pytest.raises(TransportError, match="Timed out connecting"):
        manager.open_stream([])


def test_open_stream_without_body(config):
    manager = ConnectionManager(config, session=FakeSession(FakeResponse(raw=False)))
    with pytest.raises(EmptyResponseError):
        manager.open_stream([])


def test_iter_chunks_skips_empty_and_wraps_read_errors(config):
    response = FakeResponse(chunks=[b"a", b"", b"b"], error=requests.exceptions.ChunkedEncodingError("cut"))
    manager = ConnectionManager(config, session=FakeSession())
    chunks = []
    with pytest.raises(TransportError, match="Stream interrupted"):
        for chunk in manager.iter_chunks(response):
            chunks.append(chunk)
    assert chunks == [b"a", b"b"]


def test_upstream_error_flags():
    assert UpstreamError(429).rate_limited
    assert UpstreamError(403).auth_failed
    assert not UpstreamError(500).auth_failed


def test_remediation_messages():
    assert "deployed" in remediation_message(404)
    assert remediation_message(500) == "Failed to connect to Study Buddy. Please try again later."
    assert remediation_message(500, "boom").endswith("Server said: boom")
    # Known statuses ignore server text.
    assert remediation_message(429, "slow down") == remediation_message(429)


@pytest.mark.parametrize("status, problem", [
    (404, "Endpoint not found"),
    (401, "Authentication failed"),
    (403, "Authentication failed"),
    (500, "status 500"),
])
def test_check_setup_explains_failures(config, status, problem):
    session = FakeSession(FakeResponse(status_code=status))
    report = ConnectionManager(config, session=session).check_setup()
    assert not report.ok
    assert report.status_code == status
    assert problem in report.problems[0]
    assert session.requests[0]["json"]["messages"] == [{"role": "user", "content": "test"}]


def test_check_setup_ok(config):
    report = ConnectionManager(config, session=FakeSession(FakeResponse())).check_setup()
    assert report.ok
    assert report.base_url_set and report.api_key_set


def test_check_setup_missing_key_and_unreachable(connection_error):
    report = ConnectionManager(ChatConfig(), session=FakeSession(connection_error)).check_setup()
    assert not report.api_key_set
    assert report.status_code is None
    assert len(report.problems) == 2
    assert "Cannot reach endpoint http://localhost:8787/v1/assistant" in report.problems[1]
