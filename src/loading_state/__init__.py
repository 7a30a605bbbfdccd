"""
Named busy flags with subscriber notification and a derived global flag.
"""
from .types import GLOBAL_KEY, LoadingListener, Unsubscribe
from .manager import LoadingManager

__all__ = [
    "GLOBAL_KEY",
    "LoadingListener",
    "Unsubscribe",
    "LoadingManager",
]

__version__ = "1.0.0"
