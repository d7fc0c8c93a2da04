"""Event store layer.

The store is the only shared mutable resource. Every write goes through
the atomic multi-key ``update`` primitive: upserts write events keyed by id,
and the sweeper deletes expired ones with ``None`` values.
"""

from roadfeed.store.base import Store, join_path, split_path, store_key
from roadfeed.store.catalog import write_highway_catalog
from roadfeed.store.firebase import FirebaseStore
from roadfeed.store.memory import MemoryStore
from roadfeed.store.sweeper import prune_expired
from roadfeed.store.upsert import dedupe, upsert_events, write_entries

__all__ = [
    "FirebaseStore",
    "MemoryStore",
    "Store",
    "dedupe",
    "join_path",
    "prune_expired",
    "split_path",
    "store_key",
    "upsert_events",
    "write_entries",
    "write_highway_catalog",
]
