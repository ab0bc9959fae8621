"""
Custom exceptions for StreamHaven operations.

This module provides custom exception classes for different types of errors
that can occur while importing playlists and reconciling content.
"""

from __future__ import annotations


class StreamHavenError(Exception):
    """Base exception for all StreamHaven errors."""

    pass


class ValidationError(StreamHavenError):
    """Raised when validation fails."""

    pass


class NotFoundError(StreamHavenError):
    """Raised when a requested record does not exist."""

    pass


class OperationError(StreamHavenError):
    """Raised when operation fails."""

    pass


class PlaylistImportError(OperationError):
    """Raised when importing a playlist or guide fails as a whole."""

    pass


class InvalidURLError(PlaylistImportError):
    """Raised when a source URL cannot be used."""

    pass


class UnsupportedPlaylistTypeError(PlaylistImportError):
    """Raised when a URL matches no known playlist format."""

    pass


class ParsingFailedError(PlaylistImportError):
    """Raised when a payload could not be parsed at all."""

    pass


class NetworkError(PlaylistImportError):
    """Raised when fetching a payload fails at the transport level."""

    def __init__(self, message: str, *, url: str | None = None, category: str | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.category = category


class SaveDataError(PlaylistImportError):
    """Raised when parsed records could not be written to the store."""

    pass
