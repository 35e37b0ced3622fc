"""Streams, catalogs, sync state, type detection and value reformatting for replication connectors."""

__version__ = "0.1.0"