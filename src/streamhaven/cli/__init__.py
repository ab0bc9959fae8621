"""
Command-line interface for StreamHaven.
"""
