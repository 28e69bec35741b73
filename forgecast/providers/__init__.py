from .base import NetworkClient
from .rpc import JsonRpcProvider, RpcError

__all__ = ["NetworkClient", "JsonRpcProvider", "RpcError"]
