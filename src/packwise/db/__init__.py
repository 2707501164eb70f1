"""Persistence backends and collection codecs."""

from packwise.db.blobs import BlobStore, MemoryBlobStore, SqlBlobStore

__all__ = ["BlobStore", "MemoryBlobStore", "SqlBlobStore"]
