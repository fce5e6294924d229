# watchwallet

Small tools for working with Bitcoin testnet addresses through a node's
JSON-RPC interface.

- `faucet` keeps testnet addresses under short aliases in a SQLite
  database and asks the node to send coins to them.
- `watchwallet-watcher` reads the stored addresses every ten minutes and
  prints a JSON summary of each one: the amount received and the most
  recent transaction.

## Installation

```
pip install .
```

## Configuration

Both commands read their settings from the environment. An unset or empty
variable falls back to the default.

| Variable   | `faucet` default            | `watchwallet-watcher` default |
|------------|-----------------------------|-------------------------------|
| `DB_PATH`  | `~/.faucet/addresses.db`    | `/root/.faucet/faucet.db`     |
| `RPC_URL`  | `http://localhost:18332`    | `http://localhost:18332`      |
| `RPC_USER` | `rpcuser`                   | `user`                        |
| `RPC_PASS` | `password`                  | `password`                    |

`faucet` creates the directory that holds its database if it does not
exist yet. Calls to the node use HTTP basic authentication and time out
after ten seconds.

## Faucet

```
faucet generate alice      # create a new testnet address called "alice"
faucet fund alice          # ask the node to send 0.1 BTC to alice
faucet transfer alice bob  # ask the node to send 0.05 BTC to bob's address
faucet delete alice        # forget the alias
```

Each command looks up aliases in the database (an address may be given in
place of an alias) and exits with status 1 and a message if one is
unknown. `generate` also stops if the alias is already taken, and prints
the new address. `fund` and `transfer` print the transaction id that the
node returns. `transfer` only uses the first alias for lookup and output:
the coins come from the node's own wallet, via `sendtoaddress`.

## Watcher

```
watchwallet-watcher
```

The watcher checks every stored address as soon as it starts, then again
every ten minutes. For each address it calls `getreceivedbyaddress` and
`searchrawtransactions` on the node and prints a summary like this:

```
{
  "address": "mxyz...",
  "balance": "0.10000000",
  "last_tx_hash": "...",
  "last_tx_time": "2024-01-01T12:00:00+00:00",
  "last_tx_value": "0.10000000"
}
```

`last_tx_value` is the sum of that transaction's outputs paying the
address. When an address has no transactions, `last_tx_hash` and
`last_tx_value` are left out and `last_tx_time` is
`0001-01-01T00:00:00Z`. If one address fails, the watcher logs the error
and moves on to the next. Press Ctrl+C, or send SIGTERM, to stop it.

## Using it from Python

```python
from watchwallet.rpc import RpcClient
from watchwallet.store import AddressStore
from watchwallet.faucet import generate, fund

password = "password"
client = RpcClient("http://localhost:18332", "user", password, 10.0)
with AddressStore("addresses.db") as store:
    address = generate(store, "alice")
    address, txid = fund(store, client, "alice")
```

- `watchwallet.rpc.RpcClient.call(method, params)` returns the decoded
  `result` of a call and raises `RpcError` when the request fails or the
  node reports an error.
- `watchwallet.store.AddressStore` offers `store_address`,
  `delete_address`, `get_address` and `get_addresses`.
- `watchwallet.faucet` offers `generate`, `fund`, `transfer` and `delete`,
  which raise `FaucetError` on failure.
- `watchwallet.watcher.Watcher` offers `get_address_summary`,
  `check_addresses` and `run(stop_event, interval)`.
- `watchwallet.wallet.generate_new_address()` returns a fresh testnet
  pay-to-public-key-hash address, and `is_valid_bitcoin_address()` tells
  whether an address decodes for the test network. `base58_encode` and
  `base58_decode` are available as well.

## What it does not do

The faucet does not hold keys. `generate` derives an address from a
freshly made P-256 public key and keeps only the address; the private key
is thrown away, so coins sent to generated addresses cannot be spent with
this package. Funding and transfers are carried out by the node's wallet,
not signed locally.

## Tests

```
pip install .[test]
pytest
```