"""Search index synchronization and retrieval for shared campus notes."""

__version__ = "0.1.0"
