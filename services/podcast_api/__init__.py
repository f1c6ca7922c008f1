"""Podcast Media Backend - Podcast API service.

FastAPI service for podcast upload, listing, fetching and deletion.
"""

__all__: list[str] = []
