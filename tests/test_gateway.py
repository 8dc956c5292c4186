import unittest

import pytest
import requests

from skycast.config import Settings
from skycast.data_sources import gateway as gateway_mod
from skycast.data_sources.gateway import UpstreamGateway
from skycast.errors import ErrorKind, GatewayError


class _RawBody:
    """Byte stream standing in for urllib3's response; counts what was pulled."""

    def __init__(self, data: bytes):
        self.data = data
        self.bytes_read = 0

    def read(self, amt=None, decode_content=None):
        end = len(self.data) if amt is None else self.bytes_read + amt
        chunk = self.data[self.bytes_read:end]
        self.bytes_read += len(chunk)
        return chunk


class DummyResp:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self._text = text
        self.raw = _RawBody(text.encode("utf-8"))
        self.closed = False

    @property
    def text(self):
        self.raw.read()
        return self._text

    def json(self):
        self.raw.read()
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def close(self):
        self.closed = True


class StubSession:
    """Replays a scripted list of responses / exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.closed = False

    def get(self, url, params=None, headers=None, timeout=None, stream=False):
        self.calls.append(
            {"url": url, "params": params, "headers": headers, "timeout": timeout, "stream": stream}
        )
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        self.closed = True


def _gateway(session, **overrides):
    settings = Settings(retry_backoff_seconds=0, **overrides)
    return UpstreamGateway(settings, session=session)


class TestUpstreamGateway(unittest.TestCase):
    def test_success_returns_decoded_object(self):
        session = StubSession(DummyResp(payload={"ok": True}))
        gw = _gateway(session)
        self.assertEqual(gw.fetch_json("http://x/api", params={"a": 1}), {"ok": True})
        self.assertEqual(len(session.calls), 1)
        self.assertEqual(session.calls[0]["params"], {"a": 1})
        self.assertEqual(session.calls[0]["timeout"], 30.0)

    def test_retries_once_on_connection_error(self):
        session = StubSession(requests.ConnectionError("boom"), DummyResp(payload={"ok": 1}))
        gw = _gateway(session)
        self.assertEqual(gw.fetch_json("http://x/api"), {"ok": 1})
        self.assertEqual(len(session.calls), 2)

    def test_two_network_failures_are_network_error(self):
        session = StubSession(requests.Timeout("slow"), requests.ConnectionError("down"))
        gw = _gateway(session)
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        self.assertIs(ctx.exception.kind, ErrorKind.NETWORK)
        self.assertTrue(ctx.exception.kind.is_retryable)
        self.assertEqual(ctx.exception.url, "http://x/api")
        self.assertEqual(len(session.calls), 2)

    def test_http_error_is_not_retried_and_body_truncated(self):
        session = StubSession(DummyResp(status_code=500, text="x" * 2000))
        gw = _gateway(session)
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        err = ctx.exception
        self.assertIs(err.kind, ErrorKind.UPSTREAM)
        self.assertEqual(err.status_code, 500)
        self.assertEqual(len(err.body), 512)
        self.assertIn("API error 500", err.message)
        self.assertEqual(len(session.calls), 1)

    def test_oversized_error_page_is_not_downloaded(self):
        resp = DummyResp(status_code=500, text="y" * (8 * 1024 * 1024))
        session = StubSession(resp)
        gw = _gateway(session)
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        self.assertEqual(len(ctx.exception.body), 512)
        self.assertEqual(resp.raw.bytes_read, 512)
        self.assertTrue(resp.closed)
        self.assertTrue(session.calls[0]["stream"])

    def test_success_response_is_closed(self):
        resp = DummyResp(payload={"ok": True})
        gw = _gateway(StubSession(resp))
        gw.fetch_json("http://x/api")
        self.assertTrue(resp.closed)

    def test_body_read_failure_is_network_error(self):
        resp = DummyResp(payload=requests.exceptions.ChunkedEncodingError("connection reset"))
        gw = _gateway(StubSession(resp))
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        self.assertIs(ctx.exception.kind, ErrorKind.NETWORK)
        self.assertTrue(resp.closed)

    def test_body_limit_is_configurable(self):
        session = StubSession(DummyResp(status_code=404, text="abcdef"))
        gw = _gateway(session, error_body_limit=3)
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        self.assertEqual(ctx.exception.body, "abc")

    def test_undecodable_body_is_decode_error(self):
        session = StubSession(DummyResp(payload=ValueError("Expecting value"), text="<html>"))
        gw = _gateway(session)
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        self.assertIs(ctx.exception.kind, ErrorKind.DECODE)
        self.assertFalse(ctx.exception.kind.is_retryable)
        self.assertEqual(len(session.calls), 1)

    def test_non_object_body_is_decode_error(self):
        session = StubSession(DummyResp(payload=[1, 2, 3]))
        gw = _gateway(session)
        with self.assertRaises(GatewayError) as ctx:
            gw.fetch_json("http://x/api")
        self.assertIs(ctx.exception.kind, ErrorKind.DECODE)

    def test_explicit_timeout_overrides_settings(self):
        session = StubSession(DummyResp(payload={}))
        gw = UpstreamGateway(Settings(), timeout=6.0, session=session)
        gw.fetch_json("http://x/api")
        self.assertEqual(session.calls[0]["timeout"], 6.0)

    def test_close_closes_session(self):
        session = StubSession()
        gw = _gateway(session)
        gw.close()
        self.assertTrue(session.closed)


def test_backoff_sleeps_between_attempts(monkeypatch):
    sleeps = []
    monkeypatch.setattr(gateway_mod.time, "sleep", lambda s: sleeps.append(s))
    session = StubSession(requests.ConnectionError("boom"), DummyResp(payload={}))
    gw = UpstreamGateway(Settings(retry_backoff_seconds=1.5), session=session)
    gw.fetch_json("http://x/api")
    assert sleeps == [1.5]


def test_no_sleep_without_retry(monkeypatch):
    sleeps = []
    monkeypatch.setattr(gateway_mod.time, "sleep", lambda s: sleeps.append(s))
    gw = UpstreamGateway(Settings(), session=StubSession(DummyResp(status_code=503, text="busy")))
    with pytest.raises(GatewayError):
        gw.fetch_json("http://x/api")
    assert sleeps == []


if __name__ == "__main__":
    unittest.main()
