"""
Reminder jobs built on top of the notes cache.

Submodules:
- messages: Embed and plain text composition
- dailies: Dailies reminder job
- scheduler: Daily scheduling for reminder jobs
"""

__all__ = [
    "__doc__",
]
