from .client import TurbopufferClient, TurbopufferError

__all__ = ["TurbopufferClient", "TurbopufferError"]
