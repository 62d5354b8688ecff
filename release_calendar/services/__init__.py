from . import release_store, release_writer, sync_service

__all__ = [
    "release_store",
    "release_writer",
    "sync_service",
]
"""Service-layer helpers for the release sync pipeline."""
