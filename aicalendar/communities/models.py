"""Typed community registry entries."""

from __future__ import annotations

import msgspec


class Community(msgspec.Struct, kw_only=True, frozen=True):
    """A local organiser that events can be attributed to.

    Attributes
    ----------
    slug : str
        Stable identifier referenced by ``CanonicalEvent.community_slug``.
    name : str
        Human-readable community name.
    color : str, optional
        Hex colour used for calendar badges.
    meetup_slug, luma_calendar_slug, eventbrite_org_id : str, optional
        Platform handles the community publishes under.

    """

    slug: str
    name: str
    description: str | None = None
    website_url: str | None = None
    logo_url: str | None = None
    color: str | None = None
    meetup_slug: str | None = None
    luma_calendar_slug: str | None = None
    eventbrite_org_id: str | None = None
    leader_name: str | None = None
    leader_email: str | None = None


DEFAULT_COMMUNITIES: tuple[Community, ...] = (
    Community(
        slug="ai-portland",
        name="AI Portland",
        description="Portland's AI community meetup group",
        meetup_slug="ai-portland",
        color="#3B82F6",
    ),
    Community(
        slug="pdxhacks",
        name="PDXHacks",
        description="Portland hackathon community",
        luma_calendar_slug="pdxhacks",
        color="#8B5CF6",
    ),
    Community(
        slug="aic-portland",
        name="AI Collective Portland",
        description="GenAI Collective Portland chapter",
        luma_calendar_slug="genai-collective",
        color="#F59E0B",
    ),
    Community(
        slug="portland-ai-engineers",
        name="Portland AI Engineers",
        description="Portland AI Engineers meetup group",
        meetup_slug="portland-ai-engineers",
        color="#10B981",
    ),
    Community(
        slug="ai-tinkerers-pdx",
        name="AI Tinkerers Portland",
        description="AI Tinkerers Portland chapter",
        meetup_slug="ai-tinkerers-portland-or",
        color="#EC4899",
    ),
    Community(
        slug="pdx-robotics",
        name="PDX Robotics",
        description="Portland robotics and AI hardware community",
        color="#6366F1",
    ),
)
