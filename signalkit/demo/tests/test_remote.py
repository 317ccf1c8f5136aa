import asyncio

import requests

from signalkit.core.status import ChangeKind, Phase
from signalkit.demo.remote import USER_AGENT, RemoteResourceSignal
from signalkit.settings.base import DemoSettings


class DummySettings:
    demo = DemoSettings(
        counter_delay=0,
        notification_delay=0,
        color_delay=0,
        toggle_delay=0,
        http_timeout=2,
    )


def make_response(status_code: int, body: bytes, content_type: str) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.headers["Content-Type"] = content_type
    return response


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        self.response.url = url
        return self.response

    def close(self):
        self.closed = True


def load(signal: RemoteResourceSignal, url: str):
    changes = []
    signal.subscribe(changes.append)
    asyncio.run(signal.load(url))
    return [change.kind for change in changes]


def test_loads_json_body():
    session = FakeSession(make_response(200, b'{"name": "signalkit"}', "application/json"))
    signal = RemoteResourceSignal(DummySettings(), session=session)

    kinds = load(signal, "https://example.org/api")

    assert kinds == [ChangeKind.BUSY, ChangeKind.SUCCESS]
    assert signal.body == {"name": "signalkit"}
    assert signal.status_code == 200
    assert session.calls == [("https://example.org/api", 2)]
    assert session.headers["User-Agent"] == USER_AGENT


def test_loads_text_body():
    session = FakeSession(make_response(200, b"hello", "text/plain"))
    signal = RemoteResourceSignal(DummySettings(), session=session)
    load(signal, "https://example.org/hello")
    assert signal.body == "hello"
    assert signal.content_type == "text/plain"


def test_http_error_becomes_error_status():
    session = FakeSession(make_response(404, b"missing", "text/plain"))
    signal = RemoteResourceSignal(DummySettings(), session=session)

    kinds = load(signal, "https://example.org/missing")

    assert kinds == [ChangeKind.BUSY, ChangeKind.ERROR]
    assert signal.error == "HTTP 404 for https://example.org/missing"
    assert signal.body is None


def test_timeout_becomes_error_status():
    signal = RemoteResourceSignal(DummySettings(), session=FakeSession(error=requests.Timeout("slow")))
    load(signal, "https://example.org/slow")
    assert signal.status.phase is Phase.ERROR
    assert signal.error == "Timed out after 2s"


def test_connection_error_becomes_error_status():
    error = requests.ConnectionError("refused")
    signal = RemoteResourceSignal(DummySettings(), session=FakeSession(error=error))
    load(signal, "https://example.org/down")
    assert signal.error == "Request failed: refused"


def test_unexpected_fault_uses_its_message():
    signal = RemoteResourceSignal(DummySettings(), session=FakeSession(error=ValueError("bad url")))
    load(signal, "nope")
    assert signal.error == "bad url"


def test_dispose_closes_session_once():
    session = FakeSession()
    signal = RemoteResourceSignal(DummySettings(), session=session)
    signal.dispose()
    session.closed = False
    signal.dispose()
    assert not session.closed
