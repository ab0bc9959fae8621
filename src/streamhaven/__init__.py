"""
StreamHaven: multi-source playlist ingestion and content reconciliation.

Parses M3U, Xtream Codes and XMLTV sources into a shared content store, groups
near-duplicate titles across sources, clusters franchises, and keeps cached
per-item facts (favorites, watch progress, EPG now-playing) in sync.
"""

__version__ = "0.4.0"
