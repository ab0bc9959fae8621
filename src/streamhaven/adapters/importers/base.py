"""
Base types for playlist importers.

This module defines the uniform record shape every importer produces, the
importer error family and the abstract base class importers extend.

Importers are responsible for fetching and decoding one source. They should be
stateless and return plain data; persisting is handled by the ingest use cases.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ...infra.exceptions import StreamHavenError
from ...shared.types import SourceType


@dataclass
class ParsedMovie:
    """A video-on-demand entry decoded from a provider payload."""

    title: str
    stream_url: str | None = None
    stable_id: str | None = None
    poster_url: str | None = None
    rating: str | None = None
    category: str | None = None
    summary: str | None = None
    release_date: date | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("title is required")


@dataclass
class ParsedSeries:
    """A series entry decoded from a provider payload."""

    title: str
    stable_id: str | None = None
    poster_url: str | None = None
    rating: str | None = None
    category: str | None = None
    summary: str | None = None
    release_date: date | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("title is required")


@dataclass
class ParsedChannel:
    """One live stream. Several of these may share a name and become variants."""

    name: str
    stream_url: str
    tvg_id: str | None = None
    logo_url: str | None = None
    category: str | None = None
    stable_id: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name is required")
        if not self.stream_url:
            raise ValueError("stream_url is required")


@dataclass
class ParsedPlaylist:
    """Everything one importer run decoded from a source."""

    movies: list[ParsedMovie] = field(default_factory=list)
    series: list[ParsedSeries] = field(default_factory=list)
    channels: list[ParsedChannel] = field(default_factory=list)
    epg_url: str | None = None
    skipped: int = 0
    # Per-category failures that did not abort the run, keyed by category
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.movies or self.series or self.channels)

    def counts(self) -> dict[str, int]:
        return {
            "movies": len(self.movies),
            "series": len(self.series),
            "channels": len(self.channels),
            "skipped": self.skipped,
        }


class ImporterError(StreamHavenError):
    """Base exception for importer-related errors."""

    pass


class ImporterNotFoundError(ImporterError):
    """Raised when a requested importer is not found in the registry."""

    pass


class ImporterConfigurationError(ImporterError):
    """Raised when an importer is not properly configured."""

    pass


@dataclass
class ImporterConfig:
    """
    Configuration schema for importer types.

    Importers declare their parameters here so the CLI and registry can
    describe and validate them.
    """

    required_params: list[dict[str, str]]
    """Required parameters with name and description"""
    optional_params: list[dict[str, str]]
    """Optional parameters with name, description and default value"""
    description: str
    """Human-readable description of the importer"""


class BaseImporter(ABC):
    """
    Abstract base class for playlist importers.

    Subclasses set ``name`` and ``source_type``, declare their configuration
    schema and implement ``parse``.
    """

    name: str = "base-importer"
    source_type: SourceType

    def __init__(self, **config: Any) -> None:
        self.config = config
        self._validate_config()

    @abstractmethod
    def parse(self) -> ParsedPlaylist:
        """
        Fetch and decode the source.

        Returns:
            ParsedPlaylist with every record that could be decoded

        Raises:
            PlaylistImportError: If nothing usable could be obtained
        """
        ...

    @classmethod
    @abstractmethod
    def get_config_schema(cls) -> ImporterConfig:
        ...

    def _validate_config(self) -> None:
        schema = self.get_config_schema()
        missing = [
            param["name"]
            for param in schema.required_params
            if not self.config.get(param["name"])
        ]
        if missing:
            raise ImporterConfigurationError(
                f"{self.name} importer is missing required parameter(s): {', '.join(missing)}"
            )

    def _get_config_value(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    @classmethod
    def get_help(cls) -> dict[str, Any]:
        schema = cls.get_config_schema()
        return {
            "description": schema.description,
            "required_params": schema.required_params,
            "optional_params": schema.optional_params,
        }
