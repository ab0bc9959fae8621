"""
Adapters for StreamHaven: playlist and guide importers plus their registry.
"""
