"""Command-line faucet that manages testnet addresses by alias."""

from __future__ import annotations

import argparse
import os
import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from watchwallet.rpc import RpcClient, RpcError
from watchwallet.store import AddressStore
from watchwallet.wallet import generate_new_address

FUND_AMOUNT = 0.1
TRANSFER_AMOUNT = 0.05
DEFAULT_RPC_URL = "http://localhost:18332"
DEFAULT_RPC_USER = "rpcuser"
DEFAULT_RPC_PASSWORD = "password"


class FaucetError(Exception):
    """Raised when a faucet command cannot be carried out."""


@dataclass(frozen=True)
class FaucetSettings:
    """Database location and node connection details."""

    db_path: Path
    rpc_url: str = DEFAULT_RPC_URL
    rpc_user: str = DEFAULT_RPC_USER
    rpc_password: str = DEFAULT_RPC_PASSWORD

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> FaucetSettings:
        """Read settings from DB_PATH, RPC_URL, RPC_USER and RPC_PASS."""
        env = os.environ if environ is None else environ
        db_path = env.get("DB_PATH") or ""
        path = Path(db_path) if db_path else Path.home() / ".faucet" / "addresses.db"
        return FaucetSettings(
            db_path=path,
            rpc_url=env.get("RPC_URL") or DEFAULT_RPC_URL,
            rpc_user=env.get("RPC_USER") or DEFAULT_RPC_USER,
            rpc_password=env.get("RPC_PASS") or DEFAULT_RPC_PASSWORD,
        )


def _lookup(store: AddressStore, alias: str, action: str) -> str:
    try:
        address = store.get_address(alias)
    except sqlite3.Error as exc:
        raise FaucetError(f"failed to {action}: {exc}") from exc
    if address is None:
        raise FaucetError(f"alias not found: {alias}")
    return address


def generate(store: AddressStore, alias: str) -> str:
    """Create a new address, store it under the alias and return it."""
    try:
        existing = store.get_address(alias)
    except sqlite3.Error as exc:
        raise FaucetError(f"failed to check alias: {exc}") from exc
    if existing is not None:
        raise FaucetError(f"alias already exists: {alias}")
    address = generate_new_address()
    try:
        store.store_address(address, alias)
    except sqlite3.Error as exc:
        raise FaucetError(f"failed to store address: {exc}") from exc
    return address


def fund(store: AddressStore, client: RpcClient, alias: str) -> tuple[str, Any]:
    """Send the fixed funding amount to an alias; return (address, txid)."""
    address = _lookup(store, alias, "get address")
    try:
        txid = client.call("sendtoaddress", [address, FUND_AMOUNT])
    except RpcError as exc:
        raise FaucetError(f"failed to fund address: {exc}") from exc
    return address, txid


def transfer(
    store: AddressStore, client: RpcClient, from_alias: str, to_alias: str
) -> tuple[str, str, Any]:
    """Send the fixed transfer amount to the target alias; return (from, to, txid)."""
    from_address = _lookup(store, from_alias, "get 'from' address")
    to_address = _lookup(store, to_alias, "get 'to' address")
    try:
        txid = client.call("sendtoaddress", [to_address, TRANSFER_AMOUNT])
    except RpcError as exc:
        raise FaucetError(f"failed to transfer funds: {exc}") from exc
    return from_address, to_address, txid


def delete(store: AddressStore, alias: str) -> str:
    """Remove the address stored under an alias and return it."""
    address = _lookup(store, alias, "check alias")
    try:
        store.delete_address(alias)
    except sqlite3.Error as exc:
        raise FaucetError(f"failed to delete address: {exc}") from exc
    return address


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="faucet",
        description=(
            "A CLI tool for managing Bitcoin testnet addresses and transactions. "
            "It provides commands to generate addresses, fund them, and transfer "
            "funds between addresses."
        ),
    )
    commands = parser.add_subparsers(dest="command", required=True)
    cmd = commands.add_parser("generate", help="Generate a new Bitcoin testnet address with an alias")
    cmd.add_argument("alias")
    cmd = commands.add_parser("fund", help="Fund a Bitcoin testnet address by its alias")
    cmd.add_argument("alias")
    cmd = commands.add_parser("transfer", help="Transfer BTC between addresses using their aliases")
    cmd.add_argument("from_alias")
    cmd.add_argument("to_alias")
    cmd = commands.add_parser("delete", help="Delete a stored address by its alias")
    cmd.add_argument("alias")
    return parser


def _run(args: argparse.Namespace, store: AddressStore, client: RpcClient) -> list[str]:
    if args.command == "generate":
        address = generate(store, args.alias)
        return [f"Generated new address: {address} with alias: {args.alias}"]
    if args.command == "fund":
        address, txid = fund(store, client, args.alias)
        return [
            f"Successfully funded address {args.alias} ({address}) with {FUND_AMOUNT} BTC",
            f"Transaction ID: {txid}",
        ]
    if args.command == "transfer":
        from_address, to_address, txid = transfer(store, client, args.from_alias, args.to_alias)
        return [
            f"Successfully transferred {TRANSFER_AMOUNT} BTC from {args.from_alias} "
            f"({from_address}) to {args.to_alias} ({to_address})",
            f"Transaction ID: {txid}",
        ]
    delete(store, args.alias)
    return [f"Successfully deleted address with alias: {args.alias}"]


def main(argv: Sequence[str] | None = None) -> int:
    """Run the faucet command line; return the exit status."""
    args = _build_parser().parse_args(argv)
    settings = FaucetSettings.from_env()
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    client = RpcClient(settings.rpc_url, settings.rpc_user, settings.rpc_password)
    try:
        store = AddressStore(settings.db_path)
    except sqlite3.Error as exc:
        print(f"failed to open database: {exc}")
        return 1
    with store:
        try:
            lines = _run(args, store, client)
        except FaucetError as exc:
            print(exc)
            return 1
    for line in lines:
        print(line)
    return 0