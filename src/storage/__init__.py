"""
Storage backends and scheduling primitives for the game persistence layer.

Modules:
- kv_store: synchronous key-value stores (memory, JSON file, S3)
- debounce: trailing-edge debounce with pluggable schedulers
- config: environment-driven configuration
"""

__all__ = [
    "config",
    "debounce",
    "kv_store",
]
