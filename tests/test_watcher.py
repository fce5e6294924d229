import json
import sqlite3
import threading
from datetime import datetime

import pytest

from watchwallet.rpc import RpcError
from watchwallet.watcher import TransactionSummary, Watcher


class FakeClient:
    def __init__(self, balances, txs):
        self.balances = balances
        self.txs = txs
        self.calls = []

    def call(self, method, params=None):
        params = list(params)
        self.calls.append((method, params))
        address = params[0]
        table = self.balances if method == "getreceivedbyaddress" else self.txs
        value = table[address]
        if isinstance(value, Exception):
            raise value
        return value


def make_connection(*addresses):
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE addresses (address TEXT PRIMARY KEY, alias TEXT)")
    conn.executemany(
        "INSERT INTO addresses (address, alias) VALUES (?, ?)",
        [(a, f"alias-{a}") for a in addresses],
    )
    return conn


TX = {
    "txid": "deadbeef",
    "time": 1_600_000_000,
    "vout": [
        {"value": 0.1, "scriptPubKey": {"addresses": ["addr-a"]}},
        {"value": 2.0, "scriptPubKey": {"addresses": ["other"]}},
        {"value": 0.25, "scriptPubKey": {"addresses": ["addr-a"]}},
    ],
}


def test_summary_with_transaction():
    client = FakeClient({"addr-a": 0.5}, {"addr-a": [TX]})
    summary = Watcher(make_connection(), client).get_address_summary("addr-a")
    assert summary.address == "addr-a"
    assert summary.balance == "0.50000000"
    assert summary.last_tx_hash == "deadbeef"
    assert summary.last_tx_value == "0.35000000"
    assert summary.last_tx_time.timestamp() == 1_600_000_000
    assert client.calls == [
        ("getreceivedbyaddress", ["addr-a", 0]),
        ("searchrawtransactions", ["addr-a", 0, 1, True, None]),
    ]


def test_summary_without_transactions():
    client = FakeClient({"addr-a": 0}, {"addr-a": []})
    summary = Watcher(make_connection(), client).get_address_summary("addr-a")
    assert summary.last_tx_hash == ""
    assert summary.last_tx_time is None
    assert summary.last_tx_value == ""


def test_summary_rejects_non_numeric_balance():
    client = FakeClient({"addr-a": "lots"}, {"addr-a": []})
    with pytest.raises(ValueError, match="failed to unmarshal balance"):
        Watcher(make_connection(), client).get_address_summary("addr-a")


def test_summary_rejects_non_list_transactions():
    client = FakeClient({"addr-a": 1.0}, {"addr-a": {"txid": "x"}})
    with pytest.raises(ValueError, match="failed to unmarshal transactions"):
        Watcher(make_connection(), client).get_address_summary("addr-a")


def test_summary_wraps_rpc_error():
    client = FakeClient({"addr-a": RpcError("RPC error: -5 - bad", code=-5)}, {})
    with pytest.raises(RpcError, match="failed to get balance: RPC error: -5") as info:
        Watcher(make_connection(), client).get_address_summary("addr-a")
    assert info.value.code == -5


def test_to_json_omits_empty_fields():
    data = json.loads(TransactionSummary(address="a", balance="1").to_json())
    assert list(data) == ["address", "balance", "last_tx_time"]
    assert data["last_tx_time"] == "0001-01-01T00:00:00Z"


def test_to_json_round_trip_time():
    client = FakeClient({"addr-a": 0.5}, {"addr-a": [TX]})
    summary = Watcher(make_connection(), client).get_address_summary("addr-a")
    text = summary.to_json()
    data = json.loads(text)
    assert list(data) == ["address", "balance", "last_tx_hash", "last_tx_time", "last_tx_value"]
    parsed = datetime.fromisoformat(data["last_tx_time"].replace("Z", "+00:00"))
    assert parsed.timestamp() == TX["time"]
    assert text.splitlines()[1].startswith('  "address"')


def test_check_addresses_skips_failures(capsys):
    client = FakeClient(
        {"addr-a": 0.5, "addr-b": RpcError("boom")},
        {"addr-a": [TX]},
    )
    watcher = Watcher(make_connection("addr-a", "addr-b"), client)
    summaries = watcher.check_addresses()
    assert [s.address for s in summaries] == ["addr-a"]
    out = capsys.readouterr().out
    assert json.loads(out)["address"] == "addr-a"


def test_run_stops_after_initial_check(capsys):
    client = FakeClient({"addr-a": 0.5}, {"addr-a": []})
    stop = threading.Event()
    stop.set()
    Watcher(make_connection("addr-a"), client).run(stop, interval=0.01)
    assert len(client.calls) == 2
    assert json.loads(capsys.readouterr().out)["balance"] == "0.50000000"


def test_run_logs_database_errors(caplog):
    conn = sqlite3.connect(":memory:")
    stop = threading.Event()
    stop.set()
    Watcher(conn, FakeClient({}, {})).run(stop)
    assert "failed to query addresses" in caplog.text


def test_from_env_defaults(tmp_path):
    watcher = Watcher.from_env({"DB_PATH": str(tmp_path / "w.db")})
    try:
        assert watcher.client.url == "http://localhost:18332"
        assert watcher.client.username == "user"
    finally:
        watcher.connection.close()