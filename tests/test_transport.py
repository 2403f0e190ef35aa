# tests/test_transport.py

import requests

from senior_strength.services.transport import ExpoPushTransport, PostmarkEmailTransport


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status
        self.ok = status < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    def __init__(self, *responses, exc=None):
        self.responses = list(responses)
        self.exc = exc
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.exc:
            raise self.exc
        return self.responses.pop(0)


def test_expo_batch_maps_results_per_token():
    s = FakeSession(FakeResponse({"data": [
        {"status": "ok"},
        {"status": "error", "message": "DeviceNotRegistered"},
    ]}))
    t = ExpoPushTransport(url="https://push.test", session=s)
    out = t.send_push_batch(["a", "b"], "Hi", "Body", {"type": "x"})
    assert [o.ok for o in out] == [True, False]
    assert out[1].error == "DeviceNotRegistered"
    msg = s.calls[0]["json"][0]
    assert msg == {"to": "a", "title": "Hi", "body": "Body", "data": {"type": "x"}, "sound": "default", "badge": 1}


def test_expo_request_failure_fails_every_token_in_chunk():
    s = FakeSession(exc=requests.ConnectionError("down"))
    out = ExpoPushTransport(session=s).send_push_batch(["a", "b", "c"], "t", "b")
    assert len(out) == 3
    assert not any(o.ok for o in out)


def test_expo_chunks_of_one_hundred():
    tokens = [f"t{i}" for i in range(150)]
    s = FakeSession(
        FakeResponse({"data": [{"status": "ok"}] * 100}),
        FakeResponse({"data": [{"status": "ok"}] * 50}),
    )
    out = ExpoPushTransport(session=s).send_push_batch(tokens, "t", "b")
    assert len(s.calls) == 2
    assert len(s.calls[1]["json"]) == 50
    assert all(o.ok for o in out)


def test_expo_missing_result_is_failure():
    s = FakeSession(FakeResponse({"data": []}))
    out = ExpoPushTransport(session=s).send_push("a", "t", "b")
    assert not out.ok


def test_postmark_sends_both_bodies():
    s = FakeSession(FakeResponse({"MessageID": "1"}))
    t = PostmarkEmailTransport("server-token", "reports@test", url="https://mail.test", session=s)
    out = t.send_email("family@example.com", "Subject", "<p>hi</p>", "hi")
    assert out.ok
    call = s.calls[0]
    assert call["headers"]["X-Postmark-Server-Token"] == "server-token"
    assert call["json"]["HtmlBody"] == "<p>hi</p>"
    assert call["json"]["TextBody"] == "hi"
    assert call["json"]["To"] == "family@example.com"


def test_postmark_error_message_is_reported():
    s = FakeSession(FakeResponse({"Message": "Inactive recipient"}, status=422))
    out = PostmarkEmailTransport("tok", "from@test", session=s).send_email("x@test", "s", "h", "t")
    assert not out.ok
    assert out.error == "Inactive recipient"


def test_postmark_without_token_does_not_call():
    s = FakeSession()
    out = PostmarkEmailTransport("", "from@test", session=s).send_email("x@test", "s", "h", "t")
    assert not out.ok
    assert s.calls == []
