from .client import UpstreamClient

__all__ = ["UpstreamClient"]
