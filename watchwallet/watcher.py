"""Periodic reporter of balances and last transactions for stored addresses."""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sqlite3
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from watchwallet.rpc import RpcClient, RpcError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "/root/.faucet/faucet.db"
DEFAULT_RPC_URL = "http://localhost:18332"
DEFAULT_RPC_USER = "user"
DEFAULT_RPC_PASSWORD = "password"
DEFAULT_INTERVAL = 600.0

_ZERO_TIME = "0001-01-01T00:00:00Z"


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME
    if moment.utcoffset() == timedelta(0):
        return moment.strftime("%Y-%m-%dT%H:%M:%S") + "Z"
    return moment.isoformat(timespec="seconds")


@dataclass
class TransactionSummary:
    """Balance and most recent transaction of one address."""

    address: str
    balance: str
    last_tx_hash: str = ""
    last_tx_time: datetime | None = None
    last_tx_value: str = ""

    def to_json(self) -> str:
        """Render the summary as indented JSON, leaving out empty text fields."""
        data: dict[str, str] = {"address": self.address, "balance": self.balance}
        if self.last_tx_hash:
            data["last_tx_hash"] = self.last_tx_hash
        data["last_tx_time"] = _format_time(self.last_tx_time)
        if self.last_tx_value:
            data["last_tx_value"] = self.last_tx_value
        return json.dumps(data, indent=2)


def _as_number(value: Any, what: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"failed to unmarshal {what}: expected a number, got {value!r}")
    return float(value)


def _as_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"failed to unmarshal {what}: expected a list, got {value!r}")
    return value


def _as_dict(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"failed to unmarshal {what}: expected an object, got {value!r}")
    return value


class Watcher:
    """Reports on every address kept in the faucet database."""

    def __init__(self, connection: sqlite3.Connection, client: RpcClient) -> None:
        self.connection = connection
        self.client = client

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> Watcher:
        """Build a watcher from DB_PATH, RPC_URL, RPC_USER and RPC_PASS."""
        env = os.environ if environ is None else environ
        connection = sqlite3.connect(env.get("DB_PATH") or DEFAULT_DB_PATH)
        client = RpcClient(
            env.get("RPC_URL") or DEFAULT_RPC_URL,
            env.get("RPC_USER") or DEFAULT_RPC_USER,
            env.get("RPC_PASS") or DEFAULT_RPC_PASSWORD,
        )
        return Watcher(connection, client)

    def get_address_summary(self, address: str) -> TransactionSummary:
        """Ask the node for an address's received total and latest transaction."""
        try:
            raw_balance = self.client.call("getreceivedbyaddress", [address, 0])
        except RpcError as exc:
            raise RpcError(f"failed to get balance: {exc}", code=exc.code) from exc
        balance = _as_number(raw_balance, "balance")

        try:
            raw_txs = self.client.call("searchrawtransactions", [address, 0, 1, True, None])
        except RpcError as exc:
            raise RpcError(f"failed to get transactions: {exc}", code=exc.code) from exc
        txs = _as_list(raw_txs, "transactions")

        summary = TransactionSummary(address=address, balance=f"{balance:.8f}")
        if not txs:
            return summary

        tx = _as_dict(txs[0], "transactions")
        txid = tx.get("txid") or ""
        if not isinstance(txid, str):
            raise ValueError(f"failed to unmarshal transactions: bad txid {txid!r}")
        timestamp = int(_as_number(tx.get("time"), "transactions"))
        total = 0.0
        for out in _as_list(tx.get("vout"), "transactions"):
            out = _as_dict(out, "transactions")
            script = _as_dict(out.get("scriptPubKey"), "transactions")
            value = _as_number(out.get("value"), "transactions")
            for out_address in _as_list(script.get("addresses"), "transactions"):
                if out_address == address:
                    total += value

        summary.last_tx_hash = txid
        summary.last_tx_time = datetime.fromtimestamp(timestamp, tz=timezone.utc).astimezone()
        summary.last_tx_value = f"{total:.8f}"
        return summary

    def check_addresses(self) -> list[TransactionSummary]:
        """Print a JSON summary for each stored address and return the summaries."""
        rows = self.connection.execute("SELECT address FROM addresses").fetchall()
        summaries = []
        for (address,) in rows:
            try:
                summary = self.get_address_summary(address)
            except (RpcError, ValueError) as exc:
                logger.error("Error getting summary for %s: %s", address, exc)
                continue
            print(summary.to_json())
            summaries.append(summary)
        return summaries

    def _check_logged(self, context: str) -> None:
        try:
            self.check_addresses()
        except sqlite3.Error as exc:
            logger.error("Error %s: failed to query addresses: %s", context, exc)

    def run(self, stop_event: threading.Event, interval: float = DEFAULT_INTERVAL) -> None:
        """Check at once, then every interval seconds until stop_event is set."""
        self._check_logged("in initial address check")
        while not stop_event.wait(interval):
            self._check_logged("checking addresses")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the watcher until interrupted; return the exit status."""
    argparse.ArgumentParser(
        prog="watcher",
        description="Report balances of stored testnet addresses every ten minutes.",
    ).parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    stop = threading.Event()

    def _shutdown(signum: int, frame: Any) -> None:
        logger.info("Shutting down...")
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        watcher = Watcher.from_env()
    except sqlite3.Error as exc:
        logger.error("Failed to connect to database: %s", exc)
        return 1
    try:
        watcher.run(stop)
    finally:
        watcher.connection.close()
    return 0