"""
Types for loading_state package.
"""
from typing import Callable

GLOBAL_KEY = "global"
"""Reserved key whose subscribers receive the OR of every flag."""

LoadingListener = Callable[[bool], None]
"""Callback receiving the new busy state for the key it subscribed to."""

Unsubscribe = Callable[[], None]
"""Function returned by subscribe(); removes the callback."""
