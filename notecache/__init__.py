"""
notecache: simulation-aware cache of per-account daily notes.

Cached snapshots are advanced by elapsed wall-clock time on every read and
discarded as soon as the projection can no longer stand in for a real
query.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
