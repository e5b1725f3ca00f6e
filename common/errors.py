from __future__ import annotations

from typing import Optional


class TileMapError(Exception):
    """Base class for every error raised by the tile map renderer."""


class ConfigurationError(TileMapError, ValueError):
    """
    Setup-time problem with the map description or host inputs.

    Raised before any drawing happens: unknown tile matrix set, a limit that
    references a missing matrix, no templated tile link, zoom out of range,
    invalid matrix values.
    """


class TransportError(TileMapError):
    """A metadata document could not be retrieved."""

    def __init__(self, url: str, status: Optional[int], detail: str = ""):
        self.url = url
        self.status = status
        self.detail = detail
        msg = f"unexpected response status from {url}: {status}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class TileLoadError(TileMapError):
    """A single tile image failed to load. Never fatal to a render."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"tile {url} failed to load: {reason}")
