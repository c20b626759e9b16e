from .relay_client import RelayClient, RelayClientError, SendGuard, find_ephemeral_key

__all__ = ["RelayClient", "RelayClientError", "SendGuard", "find_ephemeral_key"]
