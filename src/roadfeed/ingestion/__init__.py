"""Ingestion layer.

Field mapping, fingerprinting and normalization of raw provider records,
plus the bounded-concurrency fetch stage that collects them.
"""

__all__: list[str] = []
