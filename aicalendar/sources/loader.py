"""YAML loader for the source and community configuration file."""

from __future__ import annotations

from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from aicalendar.communities.models import DEFAULT_COMMUNITIES, Community

from .luma import DEFAULT_LUMA_FEEDS, LumaFeed
from .meetup import DEFAULT_MEETUP_GROUPS, MeetupGroup

YAML_VERSION = (1, 2)


class SourcesConfigError(ValueError):
    """Raised when a sources file cannot be parsed or fails validation."""

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        message = "\n".join(issues)
        super().__init__(message)
        self.issues = issues


class AICollectiveChapter(msgspec.Struct, kw_only=True, frozen=True):
    """AI Collective chapter to query and the community it maps to."""

    chapter: str = "portland"
    community_slug: str = "aic-portland"


class SourcesConfig(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Explicit source lists handed to each fetcher.

    Attributes
    ----------
    luma : list[LumaFeed]
        Luma discover and calendar feeds. Empty disables Luma.
    meetup : list[MeetupGroup]
        Meetup groups to poll. Empty disables Meetup.
    aic : AICollectiveChapter, optional
        AI Collective chapter; ``null`` disables the source.
    communities : list[Community]
        Registry entries seeded before ingestion.

    """

    luma: list[LumaFeed] = msgspec.field(
        default_factory=lambda: list(DEFAULT_LUMA_FEEDS)
    )
    meetup: list[MeetupGroup] = msgspec.field(
        default_factory=lambda: list(DEFAULT_MEETUP_GROUPS)
    )
    aic: AICollectiveChapter | None = msgspec.field(
        default_factory=AICollectiveChapter
    )
    communities: list[Community] = msgspec.field(
        default_factory=lambda: list(DEFAULT_COMMUNITIES)
    )


def _duplicates(values: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def validate_sources(config: SourcesConfig) -> SourcesConfig:
    """Check cross-references between sources and communities."""
    issues: list[str] = []
    slugs = [community.slug for community in config.communities]
    issues.extend(
        f"communities: duplicate slug {slug!r}" for slug in _duplicates(slugs)
    )
    issues.extend(
        f"luma: duplicate feed {label!r}"
        for label in _duplicates([feed.label for feed in config.luma])
    )
    issues.extend(
        f"meetup: duplicate group {name!r}"
        for name in _duplicates([group.urlname for group in config.meetup])
    )

    known = set(slugs)
    referenced = [
        (f"luma feed {feed.label}", feed.community_slug) for feed in config.luma
    ]
    referenced.extend(
        (f"meetup group {group.urlname}", group.community_slug)
        for group in config.meetup
    )
    if config.aic is not None:
        referenced.append(
            (f"aic chapter {config.aic.chapter}", config.aic.community_slug)
        )
    issues.extend(
        f"{owner}: unknown community {slug!r}"
        for owner, slug in referenced
        if slug is not None and slug not in known
    )

    if issues:
        raise SourcesConfigError(issues)
    return config


def load_sources(path: Path | str) -> SourcesConfig:
    """Parse a YAML sources file using a YAML 1.2 compliant loader."""
    yaml = _yaml()
    path_obj = Path(path)

    try:
        loaded = yaml.load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise SourcesConfigError([f"failed to parse YAML: {exc}"]) from exc

    if loaded is None:
        raise SourcesConfigError(["sources file is empty"])

    try:
        config = msgspec.convert(loaded, type=SourcesConfig)
    except msgspec.ValidationError as exc:
        raise SourcesConfigError([f"schema validation failed: {exc}"]) from exc

    return validate_sources(config)


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
