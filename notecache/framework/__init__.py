"""
Core components of the notes cache.

Submodules:
- cache: Process-wide snapshot store and per-game cache clients
- projector: Time projection and invalidation of cached snapshots
- notes: Cache-aware access to upstream daily notes
- registry: Interfaces of upstream, storage and messaging collaborators
- config: Typed configuration with environment variable injection
- cache_metrics: Prometheus metrics for the cache
- service: Process runner wiring the cache and reminder jobs
"""

__all__ = [
    "__doc__",
]
