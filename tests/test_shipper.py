"""Tests for the shipper module."""

import json
from datetime import datetime

import httpx
import pytest

from seeker_client.events import LogEvent
from seeker_client.formatter import EventFormatter
from seeker_client.models import PropertyDefinition, TargetConfig
from seeker_client.shipper import (
    FAILED,
    JSON_CONTENT_TYPE,
    SENT,
    SKIPPED,
    HttpShipper,
    SendResult,
    build_target_uri,
)

URL = "http://seeker.local:5000"


def _event(message="hello"):
    return LogEvent(timestamp=datetime(2024, 1, 1), level="Info", message=message)


def _shipper(recorder, server_url=URL, **kw):
    return HttpShipper(TargetConfig(server_url=server_url, **kw), client=recorder.client())


class TestBuildTargetUri:
    def test_host_only(self):
        assert build_target_uri(URL) == "http://seeker.local:5000/api/v1/logs"

    def test_trailing_slash(self):
        assert build_target_uri(URL + "/") == "http://seeker.local:5000/api/v1/logs"

    def test_base_path_kept(self):
        assert build_target_uri("https://logs.example.com/seeker") == (
            "https://logs.example.com/seeker/api/v1/logs"
        )
        assert build_target_uri("https://logs.example.com/seeker/") == (
            "https://logs.example.com/seeker/api/v1/logs"
        )

    def test_relative_url_rejected(self):
        with pytest.raises(ValueError):
            build_target_uri("seeker.local/logs")

    def test_non_http_scheme_rejected(self):
        with pytest.raises(ValueError):
            build_target_uri("ftp://seeker.local")


class TestSendLog:
    def test_posts_single_object(self, recorder):
        result = _shipper(recorder).send_log(_event())
        assert result == SendResult(SENT, event_count=1, status_code=200)

        [req] = recorder.requests
        assert req.method == "POST"
        assert str(req.url) == "http://seeker.local:5000/api/v1/logs"
        assert req.headers["content-type"] == JSON_CONTENT_TYPE
        assert req.content == EventFormatter().render(_event()).encode("utf-8")

    def test_body_is_utf8(self, recorder):
        _shipper(recorder).send_log(_event("größe"))
        assert json.loads(recorder.requests[0].content.decode("utf-8"))["message"] == "größe"

    def test_properties_in_body(self, recorder):
        shipper = _shipper(
            recorder, properties=[PropertyDefinition(name="app", value="billing")]
        )
        shipper.send_log(_event())
        body = json.loads(recorder.requests[0].content)
        assert body["properties"] == {"app": "billing"}

    def test_error_status_still_counts_as_sent(self, make_recorder):
        recorder = make_recorder(status_code=503)
        result = _shipper(recorder).send_log(_event())
        assert result.outcome == SENT
        assert result.status_code == 503
        assert result.ok


class TestSendLogs:
    def test_posts_array_in_order(self, recorder):
        events = [_event("one"), _event("two"), _event("three")]
        result = _shipper(recorder).send_logs(events)
        assert result.outcome == SENT
        assert result.event_count == 3

        [req] = recorder.requests
        fmt = EventFormatter()
        assert req.content.decode("utf-8") == "[" + ",".join(fmt.render(e) for e in events) + "]"

    def test_empty_batch_posts_empty_array(self, recorder):
        result = _shipper(recorder).send_logs([])
        assert result.outcome == SENT
        assert result.event_count == 0
        assert recorder.requests[0].content == b"[]"

    def test_accepts_generator(self, recorder):
        _shipper(recorder).send_logs(_event(m) for m in ("a", "b"))
        body = json.loads(recorder.requests[0].content)
        assert [d["message"] for d in body] == ["a", "b"]


class TestSkippedWithoutServerUrl:
    def test_single(self, recorder):
        result = _shipper(recorder, server_url=None).send_log(_event())
        assert result.outcome == SKIPPED
        assert result.ok
        assert recorder.requests == []

    def test_batch(self, recorder):
        result = _shipper(recorder, server_url="  ").send_logs([_event(), _event()])
        assert result.outcome == SKIPPED
        assert recorder.requests == []


class TestFailuresAreSwallowed:
    def test_connect_error(self, make_recorder):
        recorder = make_recorder(error=httpx.ConnectError)
        result = _shipper(recorder).send_log(_event())
        assert result.outcome == FAILED
        assert not result.ok
        assert result.error.startswith("ConnectError")

    def test_read_timeout_on_batch(self, make_recorder):
        recorder = make_recorder(error=httpx.ReadTimeout)
        result = _shipper(recorder).send_logs([_event(), _event()])
        assert result.outcome == FAILED
        assert result.event_count == 2

    def test_malformed_url(self, recorder):
        result = _shipper(recorder, server_url="not a url").send_log(_event())
        assert result.outcome == FAILED
        assert recorder.requests == []

    def test_failing_iterable(self, recorder):
        def events():
            yield _event()
            raise RuntimeError("source broke")

        result = _shipper(recorder).send_logs(events())
        assert result.outcome == FAILED
        assert "source broke" in result.error

    def test_connection_refused(self, closed_port):
        config = TargetConfig(server_url=f"http://127.0.0.1:{closed_port}", timeout_seconds=2)
        with HttpShipper(config) as shipper:
            result = shipper.send_log(_event())
        assert result.outcome == FAILED


class TestClientLifecycle:
    def test_owned_client_closed(self):
        shipper = HttpShipper(TargetConfig(server_url=URL))
        shipper.close()
        assert shipper._client.is_closed

    def test_external_client_left_open(self, recorder):
        client = recorder.client()
        HttpShipper(TargetConfig(server_url=URL), client=client).close()
        assert not client.is_closed
        client.close()

    def test_timeout_passed_to_client(self):
        with HttpShipper(TargetConfig(server_url=URL, timeout_seconds=1.5)) as shipper:
            assert shipper._client.timeout.connect == 1.5
