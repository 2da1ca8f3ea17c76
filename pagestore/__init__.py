"""Page-based storage engine: page files, a buffer pool, condition expressions and a record manager."""

__version__ = "0.1.0"