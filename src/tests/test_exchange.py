import base64
import json
import socket
import threading
import time

import httpx
import pytest

from labs_validator.errors import ExchangeTimeout, NetworkError, ProtocolError
from labs_validator.exchange import ResultExchanger, parse_response

from conftest import CALLBACK_URL, RecordingHandler


def test_envelope_is_posted_as_json(make_exchanger):
    handler = RecordingHandler(json_body={"result": "tkn"})
    exchanger = make_exchanger(handler)

    exchanger.send(CALLBACK_URL, "auth-token", b'{"requiressl":"true"}')

    assert len(handler.requests) == 1
    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == CALLBACK_URL
    assert request.headers["content-type"] == "application/json"

    body = json.loads(request.content)
    assert body["auth"] == "auth-token"
    assert base64.b64decode(body["data"]) == b'{"requiressl":"true"}'


def test_success_response_is_parsed(make_exchanger):
    exchanger = make_exchanger(RecordingHandler(json_body={"result": "signed.token.value"}))

    response = exchanger.send(CALLBACK_URL, "auth", b"data")

    assert response.result == "signed.token.value"
    assert response.error == ""
    assert response.findings is None


def test_error_response_with_findings(make_exchanger):
    body = {
        "error": "1 failing check",
        "findings": [
            {
                "type": "Dockerfile Security Check",
                "id": "DS002",
                "title": "Image user should not be 'root'",
                "message": "Specify at least 1 USER command",
                "description": "Running containers as root is risky.",
                "severity": "HIGH",
            }
        ],
    }
    exchanger = make_exchanger(RecordingHandler(json_body=body))

    response = exchanger.send(CALLBACK_URL, "auth", b"data")

    assert response.error == "1 failing check"
    assert response.result == ""
    assert len(response.findings) == 1
    assert response.findings[0].id == "DS002"
    assert response.findings[0].severity == "HIGH"


def test_http_error_status_does_not_raise(make_exchanger):
    exchanger = make_exchanger(RecordingHandler(json_body={"error": "bad token"}, status_code=403))

    response = exchanger.send(CALLBACK_URL, "auth", b"data")

    assert response.error == "bad token"


def test_empty_endpoint_is_a_network_error(make_exchanger):
    handler = RecordingHandler(json_body={})
    exchanger = make_exchanger(handler)

    with pytest.raises(NetworkError):
        exchanger.send("", "auth", b"data")

    assert handler.requests == []


def test_timeout_is_reported_without_retry(make_exchanger):
    handler = RecordingHandler(error=lambda request: httpx.ReadTimeout("timed out", request=request))
    exchanger = make_exchanger(handler)

    with pytest.raises(ExchangeTimeout):
        exchanger.send(CALLBACK_URL, "auth", b"data")

    assert len(handler.requests) == 1


def test_connection_failure_is_a_network_error(make_exchanger):
    handler = RecordingHandler(error=lambda request: httpx.ConnectError("refused", request=request))
    exchanger = make_exchanger(handler)

    with pytest.raises(NetworkError) as excinfo:
        exchanger.send(CALLBACK_URL, "auth", b"data")

    assert not isinstance(excinfo.value, ExchangeTimeout)
    assert "refused" in str(excinfo.value)


def test_non_json_body_is_a_protocol_error(make_exchanger):
    exchanger = make_exchanger(RecordingHandler(content=b"<html>502 Bad Gateway</html>", status_code=502))

    with pytest.raises(ProtocolError):
        exchanger.send(CALLBACK_URL, "auth", b"data")


@pytest.mark.parametrize(
    "raw",
    [
        b"[]",
        b'{"result": 5}',
        b'{"findings": "none"}',
        b'{"error": "x", "findings": ["not-an-object"]}',
        b"",
    ],
)
def test_unexpected_shapes_are_protocol_errors(raw):
    with pytest.raises(ProtocolError):
        parse_response(raw)


def test_null_fields_are_treated_as_empty():
    response = parse_response(b'{"result": null, "error": null, "findings": null}')

    assert response.result == ""
    assert response.error == ""
    assert response.findings is None


def test_parsing_is_deterministic():
    raw = b'{"error": "2 failing checks", "findings": [{"id": "A"}, {"id": "B"}]}'

    assert parse_response(raw) == parse_response(raw)


def test_timeout_is_passed_to_request(make_exchanger):
    seen = {}

    def handler(request):
        seen["timeout"] = request.extensions["timeout"]
        return httpx.Response(200, json={})

    exchanger = make_exchanger(handler, timeout=30.0)
    exchanger.send(CALLBACK_URL, "auth", b"")

    assert seen["timeout"]["read"] == 30.0
    assert seen["timeout"]["connect"] == 30.0


def test_empty_findings_list_is_kept():
    response = parse_response(b'{"error": "failed", "findings": []}')

    assert response.findings == []


def _trickling_server(body, delay):
    """Serve one request on localhost, sending the body a byte at a time."""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]

    def serve():
        conn, _ = listener.accept()
        try:
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                data += chunk
            head = "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nContent-Length: {}\r\n\r\n".format(len(body))
            conn.sendall(head.encode("ascii"))
            for i in range(len(body)):
                conn.sendall(body[i:i + 1])
                time.sleep(delay)
        except OSError:
            pass
        finally:
            conn.close()
            listener.close()

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    return "http://127.0.0.1:{}/callback".format(port)


def test_deadline_covers_slow_body():
    body = json.dumps({"error": "slow", "findings": []}).encode("utf-8")
    endpoint = _trickling_server(body, delay=0.3)
    with httpx.Client(trust_env=False) as client:
        exchanger = ResultExchanger(timeout=1.0, client=client)

        started = time.monotonic()
        with pytest.raises(ExchangeTimeout):
            exchanger.send(endpoint, "auth", b"data")
        elapsed = time.monotonic() - started

    assert elapsed < 2.0


def test_redirect_is_followed_with_body():
    old_url = "https://labs.example.test/old_callback"
    requests = []

    def handler(request):
        requests.append(request)
        if str(request.url) == old_url:
            return httpx.Response(307, headers={"Location": CALLBACK_URL})
        return httpx.Response(200, json={"result": "tkn"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    response = ResultExchanger(client=client).send(old_url, "auth", b"data")

    assert response.result == "tkn"
    assert [str(r.url) for r in requests] == [old_url, CALLBACK_URL]
    assert requests[1].method == "POST"
    assert json.loads(requests[1].content)["auth"] == "auth"
