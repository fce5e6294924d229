import base64
import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from watchwallet.rpc import RpcClient, RpcError


def make_client(url="http://localhost:18332"):
    password = "password"
    return RpcClient(url, "user", password, timeout=5.0)


def test_build_request_fields_and_order():
    body = make_client().build_request("sendtoaddress", ["addr", 0.1])
    assert body == (
        b'{"jsonrpc":"1.0","id":"wallet-watcher","method":"sendtoaddress",'
        b'"params":["addr",0.1]}'
    )


def test_build_request_without_params_sends_null():
    decoded = json.loads(make_client().build_request("getblockcount"))
    assert decoded["params"] is None
    assert decoded["method"] == "getblockcount"


def test_parse_response_returns_result():
    body = b'{"result": 1.5, "error": null, "id": "wallet-watcher"}'
    assert make_client().parse_response(body) == 1.5


def test_parse_response_returns_structured_result():
    body = json.dumps({"result": [{"txid": "abc"}], "error": None}).encode()
    assert make_client().parse_response(body) == [{"txid": "abc"}]


def test_parse_response_missing_result_is_none():
    assert make_client().parse_response(b'{"id": "wallet-watcher"}') is None


def test_parse_response_error_raises_with_code():
    body = b'{"result": null, "error": {"code": -5, "message": "Invalid address"}}'
    with pytest.raises(RpcError) as info:
        make_client().parse_response(body)
    assert str(info.value) == "RPC error: -5 - Invalid address"
    assert info.value.code == -5


def test_parse_response_invalid_json_raises():
    with pytest.raises(RpcError):
        make_client().parse_response(b"not json")


def test_parse_response_non_object_raises():
    with pytest.raises(RpcError):
        make_client().parse_response(b"[1, 2]")


class _Handler(BaseHTTPRequestHandler):
    reply_status = 200
    reply_body = b"{}"
    seen = []

    def do_POST(self):
        length = int(self.headers["Content-Length"])
        type(self).seen.append(
            {
                "body": self.rfile.read(length),
                "auth": self.headers["Authorization"],
                "content_type": self.headers["Content-Type"],
            }
        )
        self.send_response(self.reply_status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.reply_body)))
        self.end_headers()
        self.wfile.write(self.reply_body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def server():
    handler = type("Handler", (_Handler,), {"seen": []})
    httpd = HTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd, handler
    httpd.shutdown()
    httpd.server_close()


def test_call_sends_auth_and_returns_result(server):
    httpd, handler = server
    handler.reply_body = b'{"result": "txid123", "error": null, "id": "wallet-watcher"}'
    url = f"http://127.0.0.1:{httpd.server_address[1]}"
    result = make_client(url).call("sendtoaddress", ["addr", 0.1])
    assert result == "txid123"
    request = handler.seen[0]
    assert request["auth"] == "Basic " + base64.b64encode(b"user:password").decode()
    assert request["content_type"] == "application/json"
    assert json.loads(request["body"])["params"] == ["addr", 0.1]


def test_call_error_on_http_500(server):
    httpd, handler = server
    handler.reply_status = 500
    handler.reply_body = b'{"result": null, "error": {"code": -6, "message": "Insufficient funds"}}'
    url = f"http://127.0.0.1:{httpd.server_address[1]}"
    with pytest.raises(RpcError) as info:
        make_client(url).call("sendtoaddress", ["addr", 0.1])
    assert info.value.code == -6


def test_call_unreachable_raises():
    with pytest.raises(RpcError):
        make_client("http://127.0.0.1:1").call("getblockcount", [])