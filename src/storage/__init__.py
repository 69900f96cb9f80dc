"""
Storage Module

Key-value stores with per-key expiration used for the IV history.

Components:
    - kv_store: KVStore interface, in-memory and PostgreSQL implementations
"""

from .kv_store import KVStore, MemoryKVStore, PostgresKVStore, build_kv_store

__all__ = [
    'KVStore',
    'MemoryKVStore',
    'PostgresKVStore',
    'build_kv_store'
]
