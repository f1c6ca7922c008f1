"""Podcast Media Backend - Core application modules.

Provides:
- Configuration constants
- SQLAlchemy models and the podcast lifecycle store
- Core utilities: content-type validation, storage paths, atomic_io
"""

__version__ = "0.1.0"
