"""Per-platform event fetchers and their configuration."""

from __future__ import annotations

from .aic import AICollectiveConfig, AICollectiveFetcher
from .base import EventSource, HTTPClientConfig
from .errors import SourceAPIError, SourceConfigError, SourceResponseShapeError
from .loader import (
    AICollectiveChapter,
    SourcesConfig,
    SourcesConfigError,
    load_sources,
)
from .luma import DEFAULT_LUMA_FEEDS, LumaConfig, LumaFeed, LumaFetcher
from .meetup import DEFAULT_MEETUP_GROUPS, MeetupConfig, MeetupFetcher, MeetupGroup
from .meetup_page import ParsedEventsFound, ParsedEventsNotFound, parse_group_page

__all__ = [
    "DEFAULT_LUMA_FEEDS",
    "DEFAULT_MEETUP_GROUPS",
    "AICollectiveChapter",
    "AICollectiveConfig",
    "AICollectiveFetcher",
    "EventSource",
    "HTTPClientConfig",
    "LumaConfig",
    "LumaFeed",
    "LumaFetcher",
    "MeetupConfig",
    "MeetupFetcher",
    "MeetupGroup",
    "ParsedEventsFound",
    "ParsedEventsNotFound",
    "SourceAPIError",
    "SourceConfigError",
    "SourceResponseShapeError",
    "SourcesConfig",
    "SourcesConfigError",
    "load_sources",
    "parse_group_page",
]
