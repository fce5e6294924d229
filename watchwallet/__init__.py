"""Bitcoin testnet faucet, address store, JSON-RPC client and address watcher."""

__version__ = "0.1.0"