"""Ingestion layer.

Turns raw feed frames into normalized updates. Only the state/store layer is
allowed to merge them into the live snapshot.
"""

__all__: list[str] = []
